"""
# Trajectory Metrics

This module reduces a trajectory (a time series of model state) to scalar
summary metrics suitable for sensitivity decomposition.

## Functions

- `max_value`: Maximum state value over the trajectory
- `first_crossing`: Time of the first point strictly above a threshold, or None
- `time_to_threshold`: `first_crossing`, saturating to the final time
- `final_value`, `mean_value`, `min_value`: Further reductions

## Classes

- `Metric`: Named reduction over one state column of a trajectory
- `MaxValue`, `TimeToThreshold`, `FinalValue`, `MeanValue`, `MinValue`: Specific metrics

## Example Usage

```python
from dynsim_tools.utils.metric import Metric, time_to_threshold
import numpy as np

times = np.array([1.0, 2.0, 3.0])
values = np.array([10.0, 150.0, 200.0])
time_to_threshold(times, values, 100.0)  # 2.0

threshyear = Metric.from_name('threshold_time', 'threshyear')
```
"""

import numpy as np
from dataclasses import dataclass
from typing import Callable


def max_value(times, values, threshold=None) -> float:
    """
    Maximum state value observed over the whole trajectory.

    Args:
        times (array-like): Output times (unused).
        values (array-like): State values at each time.
        threshold (float, optional): Unused.

    Returns:
        float: The largest value.
    """
    return float(np.max(values))


def first_crossing(times, values, threshold: float) -> float | None:
    """
    Time of the first trajectory point whose value strictly exceeds `threshold`.

    Args:
        times (array-like): Output times.
        values (array-like): State values at each time.
        threshold (float): Value to exceed.

    Returns:
        float | None: The crossing time, or None when no point exceeds the
            threshold.
    """
    above = np.flatnonzero(np.asarray(values) > threshold)
    if above.size == 0:
        return None
    return float(np.asarray(times)[above[0]])


def time_to_threshold(times, values, threshold: float) -> float:
    """
    Time of the first point strictly above `threshold`, or the final time.

    When the trajectory never exceeds the threshold the result saturates to
    the last output time, so every sample gets a defined value.

    Example:
        ```python
        time_to_threshold([1, 2, 3], [10, 20, 30], 100)    # 3.0
        time_to_threshold([1, 2, 3], [10, 150, 200], 100)  # 2.0
        ```
    """
    crossing = first_crossing(times, values, threshold)
    if crossing is None:
        return float(np.asarray(times)[-1])
    return crossing


def final_value(times, values, threshold=None) -> float:
    """State value at the last output time."""
    return float(np.asarray(values)[-1])


def mean_value(times, values, threshold=None) -> float:
    """Time-weighted mean of the state (trapezoid rule); plain value for one point."""
    times = np.asarray(times, dtype=float)
    values = np.asarray(values, dtype=float)
    if times.size < 2:
        return float(values[0])
    return float(np.trapezoid(values, times) / (times[-1] - times[0]))


def min_value(times, values, threshold=None) -> float:
    return float(np.min(values))


@dataclass
class Metric:
    """
    Base class for trajectory metrics.

    This class encapsulates a reduction with its name and the state column it
    reads. `func(times, values, threshold)` returns one float.

    Attributes:
        name (str): Unique identifier for the metric (key in metrics records).
        func (Callable): Reduction computing the metric value.
        state (int | str): State column of the trajectory to reduce.
            Defaults to 0, the first component.

    Example:
        ```python
        peak = Metric(name='maxpop', func=max_value)
        peak.evaluate(trajectory, threshold=100.0)
        ```
    """
    name: str
    func: Callable
    state: int | str = 0

    def evaluate(self, trajectory, threshold: float) -> float:
        """Reduce one trajectory to this metric's value."""
        return self.func(trajectory.times, trajectory.values(self.state), threshold)

    @staticmethod
    def from_name(metric_name: str, name: str = None, state: int | str = 0) -> "Metric":
        """
        Create a Metric instance from string identifiers.

        Args:
            metric_name (str): Type of reduction. Supported values:
                - 'max': Maximum value
                - 'threshold_time': Time to exceed the threshold
                - 'final': Final value
                - 'mean': Time-weighted mean
                - 'min': Minimum value
                The default record names 'maxpop' and 'threshyear' are
                accepted as aliases of 'max' and 'threshold_time'.
            name (str, optional): Key of the metric in records. Defaults to
                `metric_name`.
            state (int | str, optional): State column. Defaults to 0.

        Returns:
            Metric: Appropriate metric subclass instance.

        Raises:
            ValueError: If metric_name is not recognized.
        """
        mapping = {
            "max": MaxValue,
            "maxpop": MaxValue,
            "threshold_time": TimeToThreshold,
            "threshyear": TimeToThreshold,
            "final": FinalValue,
            "mean": MeanValue,
            "min": MinValue
        }

        metric_cls = mapping.get(metric_name.lower())
        if metric_cls is None:
            raise ValueError(f"Unknown metric name: {metric_name}")

        return metric_cls(name=name or metric_name, state=state)


class MaxValue(Metric):
    """Maximum state value over the trajectory."""
    def __init__(self, name: str = "maxpop", state: int | str = 0):
        super().__init__(name=name, func=max_value, state=state)


class TimeToThreshold(Metric):
    """
    Time at which the state first exceeds the threshold.

    Saturates to the final output time when the threshold is never exceeded.
    """
    def __init__(self, name: str = "threshyear", state: int | str = 0):
        super().__init__(name=name, func=time_to_threshold, state=state)


class FinalValue(Metric):
    """State value at the end of the trajectory."""
    def __init__(self, name: str = "final", state: int | str = 0):
        super().__init__(name=name, func=final_value, state=state)


class MeanValue(Metric):
    """Time-weighted mean of the state."""
    def __init__(self, name: str = "mean", state: int | str = 0):
        super().__init__(name=name, func=mean_value, state=state)


class MinValue(Metric):
    def __init__(self, name: str = "min", state: int | str = 0):
        super().__init__(name=name, func=min_value, state=state)


def default_metrics(state: int | str = 0) -> list[Metric]:
    """The `maxpop` and `threshyear` metrics of one state column."""
    return [MaxValue(state=state), TimeToThreshold(state=state)]


def extract_metrics(
    trajectory,
    threshold: float,
    metrics: list[Metric] = None,
    state: int | str = 0
) -> dict[str, float]:
    """
    Reduce a trajectory to a metrics record.

    Args:
        trajectory (Trajectory): Times and states of one model run.
        threshold (float): Threshold passed to every reduction.
        metrics (list[Metric], optional): Reductions to compute. Defaults to
            `default_metrics(state)`.
        state (int | str, optional): State column of the default metrics.
            Ignored when `metrics` is given. Defaults to 0.

    Returns:
        dict[str, float]: Metric name to value, in `metrics` order.

    Example:
        ```python
        trajectory = Trajectory(times=[1, 2, 3], states=[10, 20, 30])
        extract_metrics(trajectory, 100)  # {'maxpop': 30.0, 'threshyear': 3.0}
        ```
    """
    if metrics is None:
        metrics = default_metrics(state)
    return {metric.name: metric.evaluate(trajectory, threshold) for metric in metrics}
