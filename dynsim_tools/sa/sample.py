"""Parameter sampling and cross-substituted designs for Sobol analysis.

This module draws the two independent sample matrices required by the
two-matrix variance decomposition and combines them into the design the
model is evaluated on.

Sampling draws every parameter from its marginal distribution and floors
negative draws at zero. Draws are never rejected or resampled, so the
requested number of rows is always returned.

The design uses the block layout of SALib's Sobol analysis without second
order terms: for every base row `i` it holds `D + 2` consecutive rows

    X1[i], AB1[i], ..., ABD[i], X2[i]

where `ABj` is `X1` with column `j` taken from `X2`.

Typical usage example:

```python
    from dynsim_tools.config import SpaceConfig
    from dynsim_tools.sa.sample import ParameterSampler, build_design

    space = SpaceConfig.from_dict({'r': {'mean': 0.05, 'stddev': 0.01}})
    X1, X2 = ParameterSampler(space, seed=42).sample(1000)
    design = build_design(X1, X2)  # 1000 * (1 + 2) rows
```
"""

from ..config.space import SpaceConfig
from ..errors import ConfigurationError

# Data
import numpy as np
import pandas as pd

# Logging
import logging


class ParameterSampler:
    """Draws independent, non-negative parameter matrices.

    Attributes:
        space (dict[str, rv_frozen]): Parameter name to frozen scipy
            distribution, in column order.
        names (tuple[str, ...]): Parameter names, in column order.
        seed (int): Random seed for reproducibility.
        rng (np.random.Generator): Random number generator instance.
        floor (float): Lower bound applied after drawing.
    """

    def __init__(self, space: SpaceConfig, seed: int = 42, floor: float = 0.0):
        """Initializes the sampler with parameter distributions and a seed.

        Args:
            space (SpaceConfig): Marginal distribution of every parameter.
            seed (int, optional): Random seed. Defaults to 42.
            floor (float, optional): Values below it are raised to it.
                Defaults to 0.0.
        """
        if not len(space):
            raise ConfigurationError("parameters", "at least one parameter distribution is required")
        self.space = space.get_search_space()
        self.names = tuple(self.space.keys())
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.floor = floor

    def draw(self, n: int) -> pd.DataFrame:
        """Draws one matrix of shape (n, num_parameters).

        Args:
            n (int): Number of rows. Must be > 0.

        Returns:
            pd.DataFrame: One column per parameter, values >= floor.

        Raises:
            ConfigurationError: If n is not positive.
        """
        if n <= 0:
            raise ConfigurationError("num_samples", f"must be > 0, got {n!r}")

        samples = pd.DataFrame({
            name: np.atleast_1d(dist.rvs(size=n, random_state=self.rng))
            for name, dist in self.space.items()
        }, columns=list(self.names))

        n_floored = int((samples < self.floor).to_numpy().sum())
        if n_floored:
            logging.info(f"Flooring {n_floored} of {samples.size} draws to {self.floor}.")

        return samples.clip(lower=self.floor)

    def sample(self, n: int) -> tuple[pd.DataFrame, pd.DataFrame]:
        """Draws the two independent matrices X1 and X2, each (n, num_parameters)."""
        logging.info(f"Drawing two sample matrices of {n} rows for {list(self.names)}.")
        return self.draw(n), self.draw(n)


def build_design(X1: pd.DataFrame, X2: pd.DataFrame) -> pd.DataFrame:
    """Combines two sample matrices into the cross-substituted design.

    Args:
        X1 (pd.DataFrame): First matrix, shape (N, D).
        X2 (pd.DataFrame): Second matrix, same shape and columns as X1.

    Returns:
        pd.DataFrame: Design of N * (D + 2) rows in block layout with the
            same columns.

    Raises:
        ConfigurationError: If the two matrices differ in shape or columns.
    """
    if list(X1.columns) != list(X2.columns):
        raise ConfigurationError(
            "X2", f"columns {list(X2.columns)} do not match X1 columns {list(X1.columns)}"
        )
    if X1.shape != X2.shape:
        raise ConfigurationError("X2", f"shape {X2.shape} does not match X1 shape {X1.shape}")

    A = X1.to_numpy(dtype=float)
    B = X2.to_numpy(dtype=float)
    n, d = A.shape

    blocks = np.empty((n, d + 2, d))
    blocks[:, 0] = A
    for j in range(d):
        AB = A.copy()
        AB[:, j] = B[:, j]
        blocks[:, j + 1] = AB
    blocks[:, d + 1] = B

    return pd.DataFrame(blocks.reshape(n * (d + 2), d), columns=X1.columns)


def complete_blocks(ok: np.ndarray, d: int) -> np.ndarray:
    """Marks base rows whose whole block of D + 2 design rows succeeded.

    Args:
        ok (np.ndarray): Boolean success flag per design row, in row order.
        d (int): Number of parameters.

    Returns:
        np.ndarray: Boolean flag per base row, shape (N,).
    """
    ok = np.asarray(ok, dtype=bool)
    if ok.size % (d + 2):
        raise ConfigurationError(
            "design", f"{ok.size} rows is not a multiple of the block size {d + 2}"
        )
    return ok.reshape(-1, d + 2).all(axis=1)
