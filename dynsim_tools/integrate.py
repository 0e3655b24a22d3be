"""Numerical integration of derivative functions onto a requested time grid.

This module wraps the explicit and implicit solvers of `scipy.integrate`
behind a single call: given a derivative `f(time, state, parameters)`, an
initial state, a parameter set and increasing output times, return the
state trajectory at those times.

Unlike `solve_ivp`, the integrator enforces a step budget and an optional
wall-clock timeout per call, so one pathological parameter draw cannot stall
a batch. A fresh solver object is created for every call; no step-size
state is shared between calls or threads.

Typical usage example:

```python
    import numpy as np
    from dynsim_tools.integrate import Integrator
    from dynsim_tools.dynamics import LogisticGrowth

    integrator = Integrator(method="RK45", max_steps=5000)
    trajectory = integrator.solve(
        LogisticGrowth(), [10.0], np.arange(0, 201), {"r": 0.05, "K": 500}
    )
    trajectory.to_frame().tail()
```
"""

from .errors import ConfigurationError, IntegrationFailure

# Solvers
from scipy.integrate import RK23, RK45, DOP853, Radau, BDF, LSODA

# Data
import numpy as np
import pandas as pd

import time as time_module
from dataclasses import dataclass, field
from typing import Callable, Mapping


SOLVERS = {
    "RK23": RK23,
    "RK45": RK45,
    "DOP853": DOP853,
    "Radau": Radau,
    "BDF": BDF,
    "LSODA": LSODA,
}


@dataclass(frozen=True, eq=False)
class Trajectory:
    """
    States of a model at increasing output times.

    Attributes:
        times (np.ndarray): Output times, shape (T,).
        states (np.ndarray): State at each time, shape (T, n_state).
        state_names (tuple[str, ...]): Name of each state component.
    """
    times: np.ndarray
    states: np.ndarray
    state_names: tuple[str, ...] = field(default=("population",))

    def __post_init__(self):
        times = np.asarray(self.times, dtype=float)
        states = np.asarray(self.states, dtype=float)
        if states.ndim == 1:
            states = states[:, None]
        if states.shape[0] != times.shape[0]:
            raise ConfigurationError(
                "states", f"expected {times.shape[0]} rows to match times, got {states.shape[0]}"
            )
        object.__setattr__(self, "times", times)
        object.__setattr__(self, "states", states)

    def __len__(self):
        return self.times.shape[0]

    def values(self, state: int | str = 0) -> np.ndarray:
        """Series of one state component, selected by position or name."""
        if isinstance(state, str):
            state = self.state_names.index(state)
        return self.states[:, state]

    def to_frame(self) -> pd.DataFrame:
        names = list(self.state_names)
        if len(names) != self.states.shape[1]:
            names = [f"state_{i}" for i in range(self.states.shape[1])]
        frame = pd.DataFrame(self.states, columns=names)
        frame.insert(0, "time", self.times)
        return frame


def check_output_times(times) -> np.ndarray:
    """
    Validate and return the output grid as a float array.

    Raises:
        ConfigurationError: If the grid is empty, not finite or not strictly
            increasing.
    """
    times = np.asarray(times, dtype=float)
    if times.ndim != 1 or times.size == 0:
        raise ConfigurationError("output_times", "must be a non-empty 1-D sequence")
    if not np.all(np.isfinite(times)):
        raise ConfigurationError("output_times", "must be finite")
    if np.any(np.diff(times) <= 0):
        raise ConfigurationError("output_times", "must be strictly increasing")
    return times


@dataclass
class Integrator:
    """
    Step-budgeted adapter over the `scipy.integrate` ODE solvers.

    Attributes:
        method (str): Solver name: 'RK45', 'RK23', 'DOP853', 'Radau',
            'BDF' or 'LSODA'. Defaults to 'RK45'.
        rtol (float): Relative tolerance. Defaults to 1e-6.
        atol (float): Absolute tolerance. Defaults to 1e-9.
        max_steps (int): Internal step budget per call. Defaults to 10000.
        timeout (float, optional): Wall-clock seconds allowed per call.
            None disables the check. Defaults to None.
        max_step (float): Largest step the solver may take. Defaults to inf.

    Example:
        ```python
        stiff = Integrator(method="BDF", max_steps=50000, timeout=5.0)
        ```
    """
    method: str = "RK45"
    rtol: float = 1e-6
    atol: float = 1e-9
    max_steps: int = 10000
    timeout: float | None = None
    max_step: float = np.inf

    def __post_init__(self):
        if self.method not in SOLVERS:
            raise ConfigurationError(
                "method", f"unknown solver {self.method!r}, expected one of {sorted(SOLVERS)}"
            )
        if self.max_steps <= 0:
            raise ConfigurationError("max_steps", f"must be > 0, got {self.max_steps!r}")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError("timeout", f"must be > 0, got {self.timeout!r}")

    def solve(
        self,
        derivative: Callable,
        initial_state,
        times,
        parameters: Mapping[str, float],
        state_names: tuple[str, ...] = None
    ) -> Trajectory:
        """
        Integrate `derivative` from `initial_state` and sample it at `times`.

        Args:
            derivative (Callable): `derivative(time, state, parameters)`
                returning the rate of change of the state.
            initial_state (array-like): State at `times[0]`.
            times (array-like): Strictly increasing output times.
            parameters (Mapping[str, float]): Passed through to the derivative.
            state_names (tuple[str, ...], optional): Names of the state
                components. Taken from the derivative when it has them.

        Returns:
            Trajectory: States at every requested time.

        Raises:
            ConfigurationError: If `times` is not strictly increasing.
            IntegrationFailure: If the step budget or timeout is exhausted,
                the solver fails, or the state stops being finite.
        """
        times = check_output_times(times)
        y0 = np.atleast_1d(np.asarray(initial_state, dtype=float))
        if state_names is None:
            state_names = getattr(derivative, "state_names", ("population",))

        out = np.empty((times.size, y0.size))
        out[0] = y0

        if times.size == 1:
            return Trajectory(times, out, tuple(state_names))

        def fun(t, y):
            rate = np.atleast_1d(np.asarray(derivative(t, y, parameters), dtype=float))
            # Step-size control never terminates on NaN error norms
            if not np.all(np.isfinite(rate)):
                raise IntegrationFailure(f"{self.method} got a non-finite rate at t={t:.6g}")
            return rate

        solver = SOLVERS[self.method](
            fun,
            times[0],
            y0,
            times[-1],
            rtol=self.rtol,
            atol=self.atol,
            max_step=self.max_step
        )

        started = time_module.monotonic()
        steps = 0
        next_idx = 1
        while solver.status == "running":
            if steps >= self.max_steps:
                raise IntegrationFailure(
                    f"{self.method} exceeded {self.max_steps} steps at t={solver.t:.6g}"
                )
            if self.timeout is not None and time_module.monotonic() - started > self.timeout:
                raise IntegrationFailure(
                    f"{self.method} exceeded {self.timeout}s timeout at t={solver.t:.6g}"
                )

            message = solver.step()
            steps += 1

            if solver.status == "failed":
                raise IntegrationFailure(f"{self.method} failed at t={solver.t:.6g}: {message}")

            if next_idx < times.size and times[next_idx] <= solver.t:
                interpolant = solver.dense_output()
                while next_idx < times.size and times[next_idx] <= solver.t:
                    out[next_idx] = interpolant(times[next_idx])
                    next_idx += 1

        if next_idx < times.size:
            # Finished exactly on the last output time
            out[next_idx:] = solver.y

        if not np.all(np.isfinite(out)):
            raise IntegrationFailure(f"{self.method} produced non-finite states")

        return Trajectory(times, out, tuple(state_names))
