"""
# Results Management

This module provides data structures for storing, managing, and serializing
model-evaluation and sensitivity-analysis results from dynsim_tools.

## Type Aliases

- `MetricsRecord`: Dictionary mapping metric names to values for one sample

## Classes

- `SampleStatus`: Outcome of evaluating one sample (ok, failed, cancelled)
- `SampleOutcome`: Metrics record paired with the sample index it came from
- `EvaluationResults`: All outcomes of a batch, ordered by sample index
- `FailureReport`: Count, rate and offending rows of failed samples
- `SensitivityIndices`: First-order and total-effect index of one parameter
- `SensitivityResults`: Indices per metric and parameter

## Example Usage

```python
from dynsim_tools.utils.results import SensitivityIndices, SensitivityResults

results = SensitivityResults({
    'maxpop': {
        'r': SensitivityIndices(0.1, 0.15, (0.05, 0.2), (0.1, 0.2)),
        'K': SensitivityIndices(0.8, 0.9, (0.7, 0.9), (0.8, 1.0)),
    }
})
results.to_frame()
results.save('/results/directory')
```
"""

from dataclasses import dataclass, asdict, field
from enum import Enum
import pandas as pd
import numpy as np
import json
import os


MetricsRecord = dict[str, float]
"""Type alias for one sample's metrics, mapping metric names to values."""


class SampleStatus(str, Enum):
    """
    Outcome of evaluating one sample.

    Values:
        OK: Metrics were computed
        FAILED: The integrator failed or a metric was not finite
        CANCELLED: The batch was cancelled before the sample started
    """
    OK = "ok"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class SampleOutcome:
    """
    Metrics record of one sample, paired with the sample's row index.

    Attributes:
        index (int): Row of the sample in the design matrix.
        parameters (dict[str, float]): Parameter values of the row.
        metrics (MetricsRecord | None): Metrics, None unless status is OK.
        status (SampleStatus): Evaluation outcome.
        message (str | None): Failure message for failed samples.
    """
    index: int
    parameters: dict[str, float]
    metrics: MetricsRecord | None = None
    status: SampleStatus = SampleStatus.OK
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is SampleStatus.OK


@dataclass
class FailureReport:
    """
    Summary of failed samples in a batch.

    Attributes:
        total (int): Number of samples that were evaluated (not cancelled).
        indices (list[int]): Row indices of failed samples.
        parameters (list[dict[str, float]]): Parameter rows of failed samples.
        messages (list[str]): Failure message of each failed sample.
    """
    total: int
    indices: list[int] = field(default_factory=list)
    parameters: list[dict[str, float]] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.indices)

    @property
    def rate(self) -> float:
        return self.count / self.total if self.total else 0.0

    def to_dict(self):
        data = asdict(self)
        data["count"] = self.count
        data["rate"] = self.rate
        return data

    def to_json(self, outfile: str):
        """
        Save the report to a JSON file.

        Note:
            Uses the "+x" mode to create a new file, will fail if file already exists.
        """
        with open(outfile, "+x") as f:
            json.dump(self.to_dict(), f, indent=4)


class EvaluationResults:
    """
    Outcomes of a batch of model evaluations, ordered by sample index.

    Outcomes may be added in any order (parallel workers finish out of order);
    they are always exposed sorted by `SampleOutcome.index`.

    Example:
        ```python
        results = model.evaluate_parallel(samples, metric_config, workers=4)
        frame = results.metrics_frame()  # NaN rows for failed samples
        report = results.failures()
        ```
    """

    def __init__(self, outcomes: list[SampleOutcome], metric_names: list[str] = None):
        self.outcomes: list[SampleOutcome] = sorted(outcomes, key=lambda o: o.index)
        self.metric_names = list(metric_names) if metric_names is not None else self._infer_names()

    def _infer_names(self) -> list[str]:
        for outcome in self.outcomes:
            if outcome.ok:
                return list(outcome.metrics.keys())
        return []

    def __len__(self):
        return len(self.outcomes)

    def __iter__(self):
        return iter(self.outcomes)

    def __getitem__(self, i) -> SampleOutcome:
        return self.outcomes[i]

    @property
    def indices(self) -> np.ndarray:
        return np.array([o.index for o in self.outcomes], dtype=int)

    @property
    def ok(self) -> np.ndarray:
        """Boolean mask of successful samples, in index order."""
        return np.array([o.ok for o in self.outcomes], dtype=bool)

    def metrics_frame(self) -> pd.DataFrame:
        """
        Metrics of every sample as a DataFrame indexed by sample index.

        Failed and cancelled samples appear as rows of NaN so that positions
        still line up with the design matrix.
        """
        rows = [
            o.metrics if o.ok else {name: np.nan for name in self.metric_names}
            for o in self.outcomes
        ]
        frame = pd.DataFrame(rows, columns=self.metric_names, index=self.indices, dtype=float)
        frame.index.name = "sample"
        return frame

    def parameters_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame([o.parameters for o in self.outcomes], index=self.indices)
        frame.index.name = "sample"
        return frame

    def status_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(
            {
                "status": [o.status.value for o in self.outcomes],
                "message": [o.message for o in self.outcomes],
            },
            index=self.indices
        )
        frame.index.name = "sample"
        return frame

    def failures(self) -> FailureReport:
        """Report of failed samples; cancelled samples count towards neither side."""
        failed = [o for o in self.outcomes if o.status is SampleStatus.FAILED]
        evaluated = sum(o.status is not SampleStatus.CANCELLED for o in self.outcomes)
        return FailureReport(
            total=evaluated,
            indices=[o.index for o in failed],
            parameters=[dict(o.parameters) for o in failed],
            messages=[o.message for o in failed]
        )

    @property
    def cancelled(self) -> list[int]:
        return [o.index for o in self.outcomes if o.status is SampleStatus.CANCELLED]


@dataclass
class SensitivityIndices:
    """
    Variance-based sensitivity indices of one parameter for one metric.

    Indices are estimates and are not clamped: values slightly below zero
    or above one occur when the true effect is near the bound.

    Attributes:
        first_order (float): Fraction of output variance due to the parameter alone.
        total_effect (float): Fraction due to the parameter including interactions.
        first_order_conf (tuple[float, float]): Bootstrap confidence interval of `first_order`.
        total_effect_conf (tuple[float, float]): Bootstrap confidence interval of `total_effect`.
    """
    first_order: float
    total_effect: float
    first_order_conf: tuple[float, float]
    total_effect_conf: tuple[float, float]

    @property
    def interaction(self) -> float:
        return self.total_effect - self.first_order

    def to_dict(self):
        """
        Convert to the serialized form.

        Returns:
            dict: Keys 'first_order', 'total_effect', 'first_order_conf',
                'total_effect_conf'; intervals as [low, high] lists.
        """
        return {
            "first_order": float(self.first_order),
            "total_effect": float(self.total_effect),
            "first_order_conf": [float(v) for v in self.first_order_conf],
            "total_effect_conf": [float(v) for v in self.total_effect_conf],
        }


class SensitivityResults(dict[str, dict[str, SensitivityIndices]]):
    """
    Sensitivity indices organized by metric, then by parameter.

    Attributes:
        failures (FailureReport | None): Failures of the evaluation batch the
            indices were estimated from.
        num_samples (int): Number of base rows the estimate used.

    Example:
        ```python
        results['maxpop']['K'].first_order
        results.to_frame().query("metric == 'threshyear'")
        ```
    """

    def __init__(self, data=None, failures: FailureReport = None, num_samples: int = 0):
        super().__init__(data or {})
        self.failures = failures
        self.num_samples = num_samples

    def to_dict(self):
        """Nested dictionary with all indices converted to dict format."""
        return {
            metric: {param: idx.to_dict() for param, idx in params.items()}
            for metric, params in self.items()
        }

    def to_frame(self) -> pd.DataFrame:
        """
        Long-format DataFrame with one row per (metric, parameter).

        Columns: metric, parameter, S1, S1_low, S1_high, ST, ST_low, ST_high.
        """
        rows = []
        for metric, params in self.items():
            for param, idx in params.items():
                rows.append({
                    "metric": metric,
                    "parameter": param,
                    "S1": idx.first_order,
                    "S1_low": idx.first_order_conf[0],
                    "S1_high": idx.first_order_conf[1],
                    "ST": idx.total_effect,
                    "ST_low": idx.total_effect_conf[0],
                    "ST_high": idx.total_effect_conf[1],
                })
        return pd.DataFrame(
            rows,
            columns=["metric", "parameter", "S1", "S1_low", "S1_high", "ST", "ST_low", "ST_high"]
        )

    def to_json(self, outfile: str):
        """
        Save the indices to a JSON file.

        Note:
            Uses the "+x" mode to create a new file, will fail if file already exists.
        """
        data = {
            "num_samples": self.num_samples,
            "indices": self.to_dict(),
        }
        if self.failures is not None:
            data["failures"] = self.failures.to_dict()
        with open(outfile, "+x") as f:
            json.dump(data, f, indent=4)

    def save(self, directory: str):
        """
        Save one CSV of indices per metric into `directory`.

        Files are named `indices_{metric}.csv`. The directory must exist;
        existing files with the same names are overwritten.
        """
        frame = self.to_frame()
        for metric in self.keys():
            frame[frame["metric"] == metric].drop(columns="metric").to_csv(
                os.path.join(directory, f"indices_{metric}.csv"),
                index=False
            )
