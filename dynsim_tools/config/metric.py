"""
# Metric Configuration

This module provides the configuration class that selects which trajectory
metrics are computed for every model run and the threshold they share.

## Classes

- `MetricConfig`: Metrics to extract plus the threshold passed to them

## Example Usage

```python
from dynsim_tools.config.metric import MetricConfig

# Create from dictionary
config = MetricConfig.from_dict({
    'metrics': ['max', 'threshold_time'],
    'names': ['maxpop', 'threshyear'],
    'threshold': 100.0
})

for metric in config.metrics:
    print(metric.name)
```
"""

from dynsim_tools.utils.metric import Metric, default_metrics, extract_metrics
from dataclasses import dataclass, field


@dataclass
class MetricConfig:
    """
    Configuration for trajectory metrics.

    Attributes:
        metrics (list[Metric]): Metric instances, computed in this order.
            Defaults to `maxpop` and `threshyear`.
        threshold (float): Threshold handed to every reduction. Defaults to 0.

    Example:
        ```python
        config = MetricConfig(threshold=100.0)
        record = config.extract(trajectory)  # {'maxpop': ..., 'threshyear': ...}
        ```
    """
    metrics: list[Metric] = field(default_factory=default_metrics)
    threshold: float = 0.0

    @property
    def names(self) -> list[str]:
        return [metric.name for metric in self.metrics]

    def extract(self, trajectory) -> dict[str, float]:
        """Compute every configured metric for one trajectory."""
        return extract_metrics(trajectory, self.threshold, self.metrics)

    @classmethod
    def from_dict(cls, data: dict):
        """
        Create a MetricConfig from a dictionary specification.

        Args:
            data (dict): Configuration dictionary with keys:
                - 'metrics' (list[str]): Metric type names (e.g., 'max', 'threshold_time')
                - 'names' (list[str], optional): Record names for each metric
                - 'state' (int | str, optional): State column to reduce
                - 'threshold' (float, optional): Threshold value

        Returns:
            MetricConfig: Configured instance.

        Note:
            With no 'metrics' key the defaults `maxpop` and `threshyear` are used.
        """
        kinds = data.get("metrics")
        state = data.get("state", 0)
        threshold = float(data.get("threshold", 0.0))
        if not kinds:
            return cls(metrics=default_metrics(state), threshold=threshold)
        names = data.get("names") or [None] * len(kinds)
        metrics = [Metric.from_name(k, n, state) for k, n in zip(kinds, names)]
        return cls(metrics=metrics, threshold=threshold)
