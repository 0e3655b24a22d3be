"""Sensitivity analysis implementation using Sobol indices.

This module runs a global, variance-based sensitivity analysis of a model's
scalar metrics with respect to its uncertain parameters. It computes
first-order and total-effect Sobol indices, with bootstrap confidence
intervals, for every configured metric.

Features:
    - Two independent sample matrices drawn from the parameter marginals
    - Cross-substituted design evaluated in parallel, one task per row
    - Per-sample failure handling: failed rows exclude their whole block
      from the estimate and never enter it as substitute values
    - Refusal to report indices when too many rows failed
    - Automated result saving and bar plots of the indices

Limitations:
    - Second-order indices are not supported
    - Analysis is limited to variance-based methods (Sobol indices)

References:
    - Saltelli, A., et al. (2008). Global Sensitivity Analysis: The Primer
    - Sobol, I.M. (2001). Global sensitivity indices for nonlinear mathematical models

Typical usage example:

    from dynsim_tools.dynamics import LogisticGrowth
    from dynsim_tools.sa import SensitivityAnalysis, SensitivityAnalysisConfig

    config = SensitivityAnalysisConfig.from_json("sa_config.json")
    model = config.build_model(LogisticGrowth())
    sa = SensitivityAnalysis(model, config)
    results = sa.run("output_directory")
"""

# Model and config
from ..model import Model
from ..dynamics import validate_names
from ..errors import DynsimError, FailureToleranceExceeded
from ..utils.results import EvaluationResults, FailureReport, SensitivityResults
from .config import SensitivityAnalysisConfig
from .estimator import SobolEstimator
from .sample import ParameterSampler, build_design, complete_blocks

# Plotting
import matplotlib.pyplot as plt

# Logging
import logging

# Data and saving
import numpy as np
import pandas as pd
import threading
import os


class SensitivityAnalysis:
    """Global sensitivity analysis using Sobol indices.

    Attributes:
        model (Model): The model to analyze. Its parameter schema must match
            the configured parameter names.
        config (SensitivityAnalysisConfig): Sampling, metric, estimator and
            execution settings.
        estimator (SobolEstimator): Index estimator built from the config.

    Example:
        ```python
        model = config.build_model(LogisticGrowth())
        sa = SensitivityAnalysis(model, config)
        results = sa.run("results/")
        results['threshyear']['r'].total_effect
        ```
    """

    def __init__(
        self,
        model: Model,
        config: SensitivityAnalysisConfig,
    ):
        """Initialize the SensitivityAnalysis with model and configuration.

        Raises:
            ConfigurationError: If the configured parameter names do not
                match the model's schema.
        """
        validate_names(config.names, model.parameter_names)
        self.model = model
        self.config = config
        self.estimator = SobolEstimator(
            method=config.estimator,
            num_resamples=config.num_bootstrap,
            conf_level=config.conf_level,
            seed=config.seed
        )

    def _get_samples(self, res_dir: str = None) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
        """Draw X1 and X2 and build the design, saving all three when `res_dir` is given."""
        logging.info("Retrieving parameter samples.")
        sampler = ParameterSampler(self.config.space, seed=self.config.seed)
        X1, X2 = sampler.sample(self.config.num_samples)
        design = build_design(X1, X2)

        if res_dir is not None:
            X1.to_csv(os.path.join(res_dir, "X1.csv"), index_label="sample")
            X2.to_csv(os.path.join(res_dir, "X2.csv"), index_label="sample")
            design.to_csv(os.path.join(res_dir, "design.csv"), index_label="sample")

        return X1, X2, design

    def _check_failures(self, results: EvaluationResults) -> FailureReport:
        """Return the failure report, refusing to continue above the tolerance.

        Raises:
            FailureToleranceExceeded: If the failed fraction of evaluated
                rows exceeds `config.failure_tolerance`.
        """
        report = results.failures()
        if report.count:
            logging.warning(
                f"{report.count} of {report.total} model runs failed "
                f"(rate {report.rate:.3f}): samples {report.indices}"
            )
        if report.rate > self.config.failure_tolerance:
            raise FailureToleranceExceeded(report, self.config.failure_tolerance)
        return report

    def _analyze(self, results: EvaluationResults) -> tuple[dict, int]:
        """Estimate indices of every metric from the complete design blocks.

        Returns:
            tuple: (indices keyed by metric then parameter, number of base
                rows used).

        Raises:
            DynsimError: If fewer than two complete blocks remain.
        """
        problem = self.config.problem
        names = problem.names
        D = len(names)

        keep = complete_blocks(results.ok, D)
        n_used = int(keep.sum())
        if n_used < len(keep):
            logging.info(f"Excluding {len(keep) - n_used} of {len(keep)} sample blocks with failed runs.")
        if n_used < 2:
            raise DynsimError(f"only {n_used} complete sample blocks remain; at least 2 are needed")

        metrics = results.metrics_frame()
        rows = np.repeat(keep, D + 2)

        indices = {}
        for metric in results.metric_names:
            logging.info(f"Analyzing indices for {metric}.")
            Y = metrics[metric].to_numpy()[rows]
            indices[metric] = self.estimator.analyze(names, Y, problem=problem.to_dict())

        return indices, n_used

    def run(
        self,
        out_dir: str = None,
        cancel_event: threading.Event = None,
        progress: bool = False
    ) -> SensitivityResults:
        """Execute the complete sensitivity analysis workflow.

        Args:
            out_dir (str, optional): Directory where results are saved. The
                method creates 'plots' and 'sa_results' subdirectories.
                Nothing is written when None.
            cancel_event (threading.Event, optional): Setting it stops model
                runs that have not started. Indices are then estimated from
                the blocks that completed.
            progress (bool, optional): Show a progress bar while running the
                model. Defaults to False.

        Returns:
            SensitivityResults: Indices per metric and parameter, with the
                failure report and number of base rows used.

        Raises:
            FailureToleranceExceeded: If too many model runs failed.
            DynsimError: If fewer than two complete sample blocks remain.

        Note:
            This method orchestrates the complete workflow:
            1. Draw X1, X2 and build the cross-substituted design
            2. Execute model runs in parallel for every design row
            3. Check failures against the tolerance
            4. Estimate indices for every metric on complete blocks
            5. Save results and plots when `out_dir` is given

        The method creates the following directory structure:
        - {out_dir}/plots/: Bar plots of the indices (PNG format)
        - {out_dir}/sa_results/: Samples, metrics and indices (CSV and JSON)
        """
        plt_dir = res_dir = None
        if out_dir is not None:
            plt_dir = os.path.join(out_dir, "plots")
            res_dir = os.path.join(out_dir, "sa_results")

            logging.info(f"Plots will be saved in: {plt_dir}")
            logging.info(f"Results will be saved in: {res_dir}")

            os.makedirs(plt_dir, exist_ok=True)
            os.makedirs(res_dir, exist_ok=True)

        _, _, design = self._get_samples(res_dir)

        logging.info(f"Running model with {len(design)} samples.")
        evaluations = self.model.evaluate_parallel(
            design,
            self.config.metric_config,
            workers=self.config.workers,
            cancel_event=cancel_event,
            progress=progress
        )

        if res_dir is not None:
            evaluations.metrics_frame().join(evaluations.status_frame()).to_csv(
                os.path.join(res_dir, "metrics.csv")
            )
            evaluations.failures().to_json(os.path.join(res_dir, "failures.json"))

        report = self._check_failures(evaluations)
        indices, n_used = self._analyze(evaluations)
        results = SensitivityResults(indices, failures=report, num_samples=n_used)

        if res_dir is not None:
            logging.info("Saving indices.")
            results.save(res_dir)
            results.to_json(os.path.join(res_dir, "indices.json"))
            self.plot(results, plt_dir)

        return results

    def plot(self, results: SensitivityResults, plt_dir: str):
        """Save one bar plot of first-order and total-effect indices per metric.

        Error bars span the confidence intervals. Files are named
        `indices_{metric}.png`.
        """
        logging.info("Creating plots.")

        frame = results.to_frame()
        for metric in results.keys():
            sub = frame[frame["metric"] == metric]
            x = np.arange(len(sub))
            width = 0.35

            fig, ax = plt.subplots(figsize=(10, 6))
            for offset, col, label in ((-width / 2, "S1", "First-order"), (width / 2, "ST", "Total-effect")):
                value = sub[col].to_numpy()
                yerr = np.clip([
                    value - sub[f"{col}_low"].to_numpy(),
                    sub[f"{col}_high"].to_numpy() - value
                ], 0, None)
                ax.bar(x + offset, value, width, yerr=yerr, capsize=4, label=label)

            ax.axhline(0, color="black", linewidth=0.8)
            ax.set_xticks(x)
            ax.set_xticklabels(sub["parameter"])
            ax.set_ylabel("Sobol Index")
            ax.set_title(f"Sobol Indices for {metric}")
            ax.legend()
            ax.grid(True, axis="y")

            plt.tight_layout()
            plt.savefig(os.path.join(plt_dir, f"indices_{metric}.png"))
            plt.close(fig)
