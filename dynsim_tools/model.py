"""
# Model Interface and Population Model Implementation

This module provides the abstract model interface used by the sensitivity
workflow and a concrete implementation that integrates a derivative function
(e.g. logistic population growth) and reduces the trajectory to metrics.

## Classes

- `Model`: Abstract base class defining the interface for all models
- `PopulationModel`: Derivative function + integrator + metric extraction

## Key Features

- **Parallel Execution**: Evaluate many parameter sets with a bounded thread pool
- **Per-sample Failure Handling**: Integration failures are recorded, never abort the batch
- **Ordered Results**: Every metrics record carries the index of the row it came from
- **Cancellation**: A set event stops new rows from starting; running rows finish

## Example Usage

```python
import numpy as np
from dynsim_tools import PopulationModel
from dynsim_tools.dynamics import LogisticGrowth
from dynsim_tools.config import MetricConfig

model = PopulationModel(
    derivative=LogisticGrowth(),
    initial_state=[10.0],
    times=np.arange(0, 201),
)

# Run single simulation
trajectory = model.run(X={'r': 0.05, 'K': 500})

# Evaluate many parameter sets in parallel
param_sets = [{'r': 0.05, 'K': 500}, {'r': 0.02, 'K': 150}]
results = model.evaluate_parallel(param_sets, MetricConfig(threshold=100), workers=4)
results.metrics_frame()
```
"""

from dynsim_tools.dynamics import Derivative, ParameterSet
from dynsim_tools.integrate import Integrator, Trajectory, check_output_times
from dynsim_tools.config import MetricConfig
from dynsim_tools.errors import ConfigurationError, IntegrationFailure
from dynsim_tools.utils.results import (
    EvaluationResults,
    MetricsRecord,
    SampleOutcome,
    SampleStatus
)

# Basic data utils
import pandas as pd
import numpy as np
from typing import Any, Mapping
from abc import abstractmethod, ABC

# Logging
import logging

# Parallel runs
import threading
from tqdm import tqdm
from concurrent.futures import ThreadPoolExecutor, as_completed


class Model(ABC):
    """
    Abstract base class for models driven by the sensitivity workflow.

    This class defines the interface every model implements: run one
    parameter set, reduce the output to a metrics record, and evaluate many
    parameter sets in parallel.

    Attributes:
        parameter_names (tuple[str, ...]): Schema of the parameter sets the
            model accepts.

    Example:
        ```python
        class MyModel(Model):
            parameter_names = ('a', 'b')

            def run(self, X):
                ...

            def evaluate_model(self, output, metric_config):
                ...
        ```
    """

    parameter_names: tuple[str, ...] = ()

    @abstractmethod
    def run(self, X: Mapping[str, float] = None) -> Any:
        """
        Execute the model with a single parameter set.

        Args:
            X (Mapping[str, float], optional): Parameter values keyed by name.

        Returns:
            Model output, e.g. a Trajectory.

        Raises:
            IntegrationFailure: If the model cannot produce an output for `X`.
        """
        pass

    @abstractmethod
    def evaluate_model(self, output, metric_config: MetricConfig) -> MetricsRecord:
        """
        Reduce one model output to a metrics record.

        Args:
            output: Output of `run`.
            metric_config (MetricConfig): Metrics to compute and their threshold.

        Returns:
            MetricsRecord: Dictionary mapping metric names to values.
        """
        pass

    def parameter_set(self, X: Mapping[str, float]) -> ParameterSet:
        """Check `X` against the model schema and return it as a ParameterSet."""
        return ParameterSet.from_mapping(X, self.parameter_names)

    def evaluate_sample(
        self,
        index: int,
        X: Mapping[str, float],
        metric_config: MetricConfig,
        cancel_event: threading.Event = None
    ) -> SampleOutcome:
        """
        Run and evaluate one sample, turning errors of that sample into an outcome.

        Configuration errors are raised; any other exception from `run` or
        `evaluate_model` fails only this sample, with the exception type in
        the message.

        Args:
            index (int): Row index of the sample in the design matrix.
            X (Mapping[str, float]): Parameter values.
            metric_config (MetricConfig): Metrics to compute.
            cancel_event (threading.Event, optional): When set before the
                sample starts, the sample is skipped.

        Returns:
            SampleOutcome: OK with metrics, FAILED with a message, or
                CANCELLED.
        """
        params = dict(X)
        if cancel_event is not None and cancel_event.is_set():
            return SampleOutcome(index=index, parameters=params, status=SampleStatus.CANCELLED)

        try:
            output = self.run(X=X)
            metrics = self.evaluate_model(output, metric_config)
        except IntegrationFailure as e:
            return SampleOutcome(
                index=index, parameters=params, status=SampleStatus.FAILED, message=str(e)
            )
        except ConfigurationError:
            raise
        except Exception as e:
            # Errors raised by user dynamics on a single draw, e.g. a division by a zero parameter
            return SampleOutcome(
                index=index,
                parameters=params,
                status=SampleStatus.FAILED,
                message=f"{type(e).__name__}: {e}"
            )

        bad = [name for name, value in metrics.items() if not np.isfinite(value)]
        if bad:
            return SampleOutcome(
                index=index,
                parameters=params,
                status=SampleStatus.FAILED,
                message=f"non-finite metrics: {bad}"
            )

        return SampleOutcome(index=index, parameters=params, metrics=metrics)

    def evaluate_parallel(
        self,
        X: list[Mapping[str, float]] | pd.DataFrame,
        metric_config: MetricConfig,
        workers: int = 4,
        cancel_event: threading.Event = None,
        progress: bool = False
    ) -> EvaluationResults:
        """
        Run and evaluate many parameter sets with a bounded pool of workers.

        Rows are independent; each worker call builds its own solver. Results
        are collected as they complete and returned sorted by row index.

        Args:
            X (list[Mapping[str, float]] | pd.DataFrame): Parameter sets, one
                per row. DataFrame columns are parameter names.
            metric_config (MetricConfig): Metrics to compute per sample.
            workers (int, optional): Number of concurrent worker threads.
                Defaults to 4.
            cancel_event (threading.Event, optional): Setting it stops rows
                that have not started; started rows finish or fail normally.
            progress (bool, optional): Show a tqdm progress bar. Defaults to False.

        Returns:
            EvaluationResults: One outcome per row, ordered by row index.

        Raises:
            ConfigurationError: If parameter names do not match the model schema.

        Note:
            - Integration failures are recorded per sample and logged with
              their index; they never abort the batch
            - Failed samples carry no metrics; nothing is substituted
        """
        if isinstance(X, pd.DataFrame):
            X = X.to_dict(orient="records")

        # Fail fast on schema mismatches before any work is scheduled
        X = [self.parameter_set(x) for x in X]

        N = len(X)
        res = [None for _ in range(N)]  # Ensure that we have an accessible index

        pbar = tqdm(total=N, disable=not progress)

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(
                    self.evaluate_sample,
                    i,
                    X[i],
                    metric_config,
                    cancel_event
                ):
                i for i in range(N)  # Store corresponding sample number
            }

            for future in as_completed(futures):
                pbar.update(1)
                idx = futures[future]
                outcome = future.result()
                if outcome.status is SampleStatus.FAILED:
                    logging.warning(f"Sample {idx} failed: {outcome.message}")
                res[idx] = outcome

        pbar.close()

        results = EvaluationResults(res, metric_names=metric_config.names)
        n_cancelled = len(results.cancelled)
        if n_cancelled:
            logging.info(f"Cancelled {n_cancelled} of {N} samples before they started.")
        return results

    def run_parallel(self, X: list[Mapping[str, float]], workers: int = 4) -> list[Any | None]:
        """
        Execute the model with multiple parameter sets in parallel.

        Returns:
            list: Model outputs in input order. Failed runs return None in
                the corresponding list position.
        """
        N = len(X)
        res = [None for _ in range(N)]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self.run, X=X[i]): i for i in range(N)}
            for future in as_completed(futures):
                idx = futures[future]
                try:
                    res[idx] = future.result()
                except ConfigurationError:
                    raise
                except Exception as e:
                    logging.warning(f"Run for index {idx} failed: {type(e).__name__}: {e}")

        return res


class PopulationModel(Model):
    """
    Model that integrates a derivative function and reduces it to metrics.

    The derivative defines the dynamics and the parameter schema; the
    integrator turns it into a trajectory on `times`; the metric config
    reduces the trajectory to a metrics record.

    Attributes:
        derivative (Derivative): Dynamics, e.g. LogisticGrowth().
        initial_state (np.ndarray): State at `times[0]`.
        times (np.ndarray): Strictly increasing output times.
        integrator (Integrator): Solver settings, including the per-sample
            step budget and timeout.

    Example:
        ```python
        model = PopulationModel(
            LogisticGrowth(), [10.0], np.arange(0, 201),
            integrator=Integrator(method="LSODA", max_steps=20000)
        )
        trajectory = model.run(X={'r': 0.05, 'K': 500})
        ```
    """

    def __init__(
        self,
        derivative: Derivative,
        initial_state,
        times,
        integrator: Integrator = None
    ):
        self.derivative = derivative
        self.initial_state = np.atleast_1d(np.asarray(initial_state, dtype=float))
        self.times = check_output_times(times)
        self.integrator = integrator if integrator is not None else Integrator()

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(self.derivative.parameter_names)

    def run(self, X: Mapping[str, float] = None) -> Trajectory:
        """
        Integrate the derivative for one parameter set.

        Raises:
            ConfigurationError: If `X` does not match the derivative's schema.
            IntegrationFailure: If the integrator fails for `X`.
        """
        params = self.parameter_set(X or {})
        return self.integrator.solve(
            self.derivative,
            self.initial_state,
            self.times,
            params,
            state_names=self.derivative.state_names
        )

    def evaluate_model(self, output: Trajectory, metric_config: MetricConfig) -> MetricsRecord:
        return metric_config.extract(output)
