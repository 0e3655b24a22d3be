"""
# Population Dynamics

Derivative functions for simple population models and the parameter-set
structure they share with the sampler and the model-evaluation wrapper.

## Classes

- `ParameterSet`: Ordered mapping of parameter name to value, checked against a schema
- `Derivative`: Abstract base every model pluggable into the integrator implements
- `ExponentialGrowth`: dP/dt = r * P
- `LogisticGrowth`: dP/dt = r * P * (1 - P / K)
- `CappedExponentialGrowth`: dP/dt = r * P below the capacity K, 0 at or above it

## Functions

- `exponential_solution`, `logistic_solution`: Closed-form trajectories
- `iterate_discrete`: Difference-equation rendition of any derivative

## Example Usage

```python
import numpy as np
from dynsim_tools.dynamics import LogisticGrowth, ParameterSet

model = LogisticGrowth()
params = ParameterSet.from_mapping({'r': 0.05, 'K': 500}, model.parameter_names)
rate = model(0.0, np.array([10.0]), params)
```
"""

from .errors import ConfigurationError

import numpy as np
from abc import ABC, abstractmethod
from typing import Iterable, Mapping, Sequence


class ParameterSet(dict[str, float]):
    """
    Ordered mapping of parameter names to values.

    A ParameterSet is built against a schema (an ordered tuple of names) so the
    derivative function, the sampler and the wrapper agree on the keys. Key
    order follows the schema.

    Example:
        ```python
        params = ParameterSet.from_row(('r', 'K'), [0.05, 500.0])
        params['K']  # 500.0
        ```
    """

    @classmethod
    def from_mapping(cls, data: Mapping[str, float], schema: Sequence[str]) -> "ParameterSet":
        """
        Build a ParameterSet from a mapping, checking its keys against a schema.

        Raises:
            ConfigurationError: If names are missing from or foreign to the schema.
        """
        validate_names(data.keys(), schema)
        return cls((name, float(data[name])) for name in schema)

    @classmethod
    def from_row(cls, schema: Sequence[str], row: Iterable[float]) -> "ParameterSet":
        """Build a ParameterSet from values given in schema order."""
        values = [float(v) for v in row]
        if len(values) != len(schema):
            raise ConfigurationError(
                "parameters", f"expected {len(schema)} values for {list(schema)}, got {len(values)}"
            )
        return cls(zip(schema, values))

    def to_array(self) -> np.ndarray:
        return np.fromiter(self.values(), dtype=float, count=len(self))


def validate_names(names: Iterable[str], schema: Sequence[str], field: str = "parameters"):
    """
    Check that `names` matches `schema` exactly.

    Raises:
        ConfigurationError: Naming the missing and unexpected parameters.
    """
    names = list(names)
    missing = [n for n in schema if n not in names]
    extra = [n for n in names if n not in schema]
    if missing or extra:
        raise ConfigurationError(
            field, f"parameter names do not match model schema {list(schema)}: "
                   f"missing {missing}, unexpected {extra}"
        )


class Derivative(ABC):
    """
    Abstract base for derivative functions driven by a generic integrator.

    Subclasses declare the parameter names they read (`parameter_names`) and
    the names of their state components (`state_names`), and implement
    `derivative(time, state, parameters)`.

    The integrator calls the derivative repeatedly at times it chooses, which
    may lie between or slightly beyond the requested output times. A
    derivative must therefore be pure: no side effects and the same rate for
    the same inputs.

    Example:
        ```python
        class Decay(Derivative):
            parameter_names = ('k',)

            def derivative(self, time, state, parameters):
                return -parameters['k'] * state
        ```
    """

    parameter_names: tuple[str, ...] = ()
    state_names: tuple[str, ...] = ("population",)

    @abstractmethod
    def derivative(self, time: float, state: np.ndarray, parameters: ParameterSet) -> np.ndarray:
        """
        Rate of change of the state.

        Args:
            time (float): Time at which the rate is evaluated.
            state (np.ndarray): Current state, shape (n_state,).
            parameters (ParameterSet): Model parameters.

        Returns:
            np.ndarray: Rate of change, same shape as `state`.
        """
        pass

    def __call__(self, time, state, parameters):
        return self.derivative(time, state, parameters)

    def validate(self, parameters: Mapping[str, float]):
        validate_names(parameters.keys(), self.parameter_names)


class ExponentialGrowth(Derivative):
    """Unbounded growth, dP/dt = r * P."""

    parameter_names = ("r",)

    def derivative(self, time, state, parameters):
        return parameters["r"] * np.asarray(state, dtype=float)


class LogisticGrowth(Derivative):
    """Growth that slows towards the carrying capacity, dP/dt = r * P * (1 - P / K)."""

    parameter_names = ("r", "K")

    def derivative(self, time, state, parameters):
        state = np.asarray(state, dtype=float)
        capacity = parameters["K"]
        if capacity <= 0:
            # No habitat: the population can only decline
            return -parameters["r"] * state
        return parameters["r"] * state * (1.0 - state / capacity)


class CappedExponentialGrowth(Derivative):
    """Exponential growth that stops once the population reaches K."""

    parameter_names = ("r", "K")

    def derivative(self, time, state, parameters):
        state = np.asarray(state, dtype=float)
        return np.where(state >= parameters["K"], 0.0, parameters["r"] * state)


def exponential_solution(times, initial_population: float, r: float) -> np.ndarray:
    """Closed form P(t) = P0 * exp(r * (t - t0))."""
    times = np.asarray(times, dtype=float)
    return initial_population * np.exp(r * (times - times[0]))


def logistic_solution(times, initial_population: float, r: float, K: float) -> np.ndarray:
    """Closed form P(t) = K * P0 / (P0 + (K - P0) * exp(-r * (t - t0)))."""
    times = np.asarray(times, dtype=float)
    decay = np.exp(-r * (times - times[0]))
    return K * initial_population / (initial_population + (K - initial_population) * decay)


def iterate_discrete(
    derivative,
    initial_state,
    times,
    parameters: Mapping[str, float]
) -> np.ndarray:
    """
    Step a derivative as a difference equation on the output times.

    `P[i + 1] = P[i] + f(t[i], P[i]) * (t[i + 1] - t[i])`. With unit time
    spacing this is the discrete-time version of the continuous model.

    Args:
        derivative (Callable): `derivative(time, state, parameters)`.
        initial_state (array-like): State at `times[0]`.
        times (array-like): Increasing output times.
        parameters (Mapping[str, float]): Model parameters.

    Returns:
        np.ndarray: States, shape (len(times), n_state).
    """
    times = np.asarray(times, dtype=float)
    state = np.atleast_1d(np.asarray(initial_state, dtype=float))
    states = np.empty((len(times), state.size))
    states[0] = state
    for i in range(len(times) - 1):
        rate = np.atleast_1d(derivative(times[i], states[i], parameters))
        states[i + 1] = states[i] + rate * (times[i + 1] - times[i])
    return states
