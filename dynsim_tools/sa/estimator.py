"""Variance-based (Sobol) sensitivity index estimators.

Both estimators read model outputs in the block layout produced by
`build_design`: per base row, `f(X1)`, `f(AB1)`, ..., `f(ABD)`, `f(X2)`.

- 'saltelli': SALib's Sobol analysis. First-order indices use the Saltelli
  (2010) estimator, total-effect indices the Jansen (1999) estimator.
  SALib reports a bootstrap confidence half-width, turned here into a
  (low, high) interval around the estimate.
- 'jansen': Jansen (1999) estimators for both indices,

      V    = Var([f(X1), f(X2)])
      S_j  = (V - mean((f(X2) - f(ABj))^2) / 2) / V
      ST_j = mean((f(X1) - f(ABj))^2) / 2 / V

  with percentile bootstrap intervals over resampled base rows.

Indices are estimates, not probabilities: they are never clamped and can
come out slightly negative (or above one) when the true effect is near the
bound. An output with zero variance has no variance to apportion; every
index is reported as 0 with a (0, 0) interval.

References:
    - Saltelli, A., et al. (2010). Variance based sensitivity analysis of
      model output. Computer Physics Communications, 181(2), 259-270.
    - Jansen, M.J.W. (1999). Analysis of variance designs for model output.
      Computer Physics Communications, 117(1-2), 35-43.
"""

from ..errors import ConfigurationError
from ..utils.results import SensitivityIndices

# SALib
from SALib.analyze import sobol as asobol

# Data
import numpy as np

# Logging
import logging

from typing import Literal, Sequence


def separate_outputs(Y: np.ndarray, d: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Splits block-layout outputs into f(X1), f(AB) and f(X2).

    Args:
        Y (np.ndarray): Outputs, shape (N * (d + 2),).
        d (int): Number of parameters.

    Returns:
        tuple: (yA of shape (N,), yAB of shape (N, d), yB of shape (N,)).
    """
    blocks = np.asarray(Y, dtype=float).reshape(-1, d + 2)
    return blocks[:, 0], blocks[:, 1:d + 1], blocks[:, d + 1]


def jansen_indices(yA: np.ndarray, yAB: np.ndarray, yB: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """First-order and total-effect indices with the Jansen estimators.

    Leading axes are treated as a batch, so bootstrap resamples can be
    evaluated in one call.

    Args:
        yA (np.ndarray): f(X1), shape (..., N).
        yAB (np.ndarray): f(ABj), shape (..., N, d).
        yB (np.ndarray): f(X2), shape (..., N).

    Returns:
        tuple: (S1, ST), each of shape (..., d). Zero where the output
            variance is zero.
    """
    V = np.var(np.concatenate([yA, yB], axis=-1), axis=-1)[..., None]
    partial_first = V - 0.5 * np.mean((yB[..., None] - yAB) ** 2, axis=-2)
    partial_total = 0.5 * np.mean((yA[..., None] - yAB) ** 2, axis=-2)

    with np.errstate(divide="ignore", invalid="ignore"):
        S1 = np.where(V > 0, partial_first / V, 0.0)
        ST = np.where(V > 0, partial_total / V, 0.0)
    return S1, ST


class SobolEstimator:
    """First-order and total-effect Sobol indices with bootstrap intervals.

    Attributes:
        method (str): 'saltelli' (SALib) or 'jansen'.
        num_resamples (int): Bootstrap resamples.
        conf_level (float): Confidence level of the intervals.
        seed (int | None): Seed of the bootstrap resampling.

    Example:
        ```python
        estimator = SobolEstimator(method="jansen", num_resamples=200, seed=1)
        indices = estimator.analyze(["r", "K"], Y)
        indices["K"].first_order
        ```
    """

    def __init__(
        self,
        method: Literal["saltelli", "jansen"] = "saltelli",
        num_resamples: int = 100,
        conf_level: float = 0.95,
        seed: int = None
    ):
        if method not in ("saltelli", "jansen"):
            raise ConfigurationError("estimator", f"must be 'saltelli' or 'jansen', got {method!r}")
        if num_resamples <= 0:
            raise ConfigurationError("num_bootstrap", f"must be > 0, got {num_resamples!r}")
        if not 0 < conf_level < 1:
            raise ConfigurationError("conf_level", f"must be in (0, 1), got {conf_level!r}")
        self.method = method
        self.num_resamples = num_resamples
        self.conf_level = conf_level
        self.seed = seed

    def analyze(
        self,
        names: Sequence[str],
        Y: np.ndarray,
        problem: dict = None
    ) -> dict[str, SensitivityIndices]:
        """Estimates the indices of every parameter for one output.

        Args:
            names (Sequence[str]): Parameter names, in design column order.
            Y (np.ndarray): Outputs in block layout, shape (N * (D + 2),).
                Must be finite; drop incomplete blocks first.
            problem (dict, optional): SALib problem dictionary of the
                sampled space, handed to SALib by the 'saltelli' method.
                Built from `names` when omitted.

        Returns:
            dict[str, SensitivityIndices]: Parameter name to indices.

        Raises:
            ConfigurationError: If Y does not fit the block layout, holds
                fewer than two blocks, or is not finite.
        """
        names = list(names)
        d = len(names)
        Y = np.asarray(Y, dtype=float).ravel()

        if Y.size % (d + 2):
            raise ConfigurationError(
                "Y", f"{Y.size} outputs is not a multiple of the block size {d + 2}"
            )
        if Y.size // (d + 2) < 2:
            raise ConfigurationError("Y", "at least two complete sample blocks are required")
        if not np.all(np.isfinite(Y)):
            raise ConfigurationError("Y", "outputs must be finite; drop failed blocks first")

        if np.ptp(Y) == 0:
            logging.warning("Constant model output; reporting zero sensitivity for every parameter.")
            zero = SensitivityIndices(0.0, 0.0, (0.0, 0.0), (0.0, 0.0))
            return {name: SensitivityIndices(**vars(zero)) for name in names}

        if self.method == "saltelli":
            return self._analyze_salib(names, Y, problem)
        return self._analyze_jansen(names, Y)

    def _analyze_salib(
        self, names: list[str], Y: np.ndarray, problem: dict = None
    ) -> dict[str, SensitivityIndices]:
        if problem is None:
            # SALib reads only the names and count of the variables
            problem = {
                "num_vars": len(names),
                "names": names,
                "bounds": [[0.0, 1.0]] * len(names),
            }
        elif list(problem["names"]) != names:
            raise ConfigurationError("problem", f"names {problem['names']} do not match {names}")
        si = asobol.analyze(
            problem,
            Y,
            calc_second_order=False,
            num_resamples=self.num_resamples,
            conf_level=self.conf_level,
            print_to_console=False,
            seed=self.seed,
        )
        indices = {}
        for j, name in enumerate(names):
            s1, s1_conf = float(si["S1"][j]), float(si["S1_conf"][j])
            st, st_conf = float(si["ST"][j]), float(si["ST_conf"][j])
            indices[name] = SensitivityIndices(
                first_order=s1,
                total_effect=st,
                first_order_conf=(s1 - s1_conf, s1 + s1_conf),
                total_effect_conf=(st - st_conf, st + st_conf),
            )
        return indices

    def _analyze_jansen(self, names: list[str], Y: np.ndarray) -> dict[str, SensitivityIndices]:
        yA, yAB, yB = separate_outputs(Y, len(names))
        S1, ST = jansen_indices(yA, yAB, yB)

        n = yA.shape[0]
        rng = np.random.default_rng(self.seed)
        r = rng.integers(n, size=(self.num_resamples, n))
        boot_S1, boot_ST = jansen_indices(yA[r], yAB[r], yB[r])  # (R, d)

        alpha = (1.0 - self.conf_level) / 2.0
        S1_low, S1_high = np.quantile(boot_S1, [alpha, 1.0 - alpha], axis=0)
        ST_low, ST_high = np.quantile(boot_ST, [alpha, 1.0 - alpha], axis=0)

        return {
            name: SensitivityIndices(
                first_order=float(S1[j]),
                total_effect=float(ST[j]),
                first_order_conf=(float(S1_low[j]), float(S1_high[j])),
                total_effect_conf=(float(ST_low[j]), float(ST_high[j])),
            )
            for j, name in enumerate(names)
        }
