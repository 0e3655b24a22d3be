"""Configuration classes for sensitivity analysis settings.

This module provides configuration classes for managing sensitivity analysis
parameters including the parameter distributions, the model's initial state
and output grid, the metrics to decompose, and execution settings. It
supports serialization to and from JSON format for easy persistence and
loading of sensitivity analysis configurations.

The module includes a problem definition class for SALib compatibility and
the configuration consumed by `SensitivityAnalysis`.

Typical usage example:

    from dynsim_tools.sa import SensitivityAnalysisConfig

    config = SensitivityAnalysisConfig.from_json("sa_config.json")
    config.num_samples = 4096
    config.to_json("updated_sa_config.json")
"""

from dataclasses import dataclass, asdict, field
from numbers import Integral

from ..config.metric import MetricConfig
from ..config.space import SpaceConfig
from ..dynamics import Derivative
from ..errors import ConfigurationError
from ..integrate import Integrator, check_output_times
from ..model import PopulationModel
import json


@dataclass
class SensitivityAnalysisProblem:
    """Problem definition for sensitivity analysis using SALib.

    Describes the parameter space in the dictionary form SALib functions
    accept. For normally distributed parameters the bounds hold
    `[mean, stddev]`, as SALib's 'norm' distribution expects.

    Attributes:
        num_vars (int): Number of variables (parameters) in the problem.
        names (list[str]): Parameter names, in design column order.
        bounds (list[list[float]]): Distribution parameters of each variable.
        dists (list[str]): SALib distribution name of each variable.

    Example:
        ```python
        problem = SensitivityAnalysisProblem.from_space(config.space)
        problem.to_dict()
        ```
    """

    num_vars: int
    names: list[str]
    bounds: list[list[float]]
    dists: list[str] = field(default_factory=list)

    @classmethod
    def from_space(cls, space: SpaceConfig):
        salib_names = {"normal": "norm", "truncnorm": "truncnorm", "uniform": "unif"}
        return cls(
            num_vars=len(space),
            names=list(space.names),
            bounds=[list(s.parameters) for s in space.values()],
            dists=[salib_names[s.name] for s in space.values()]
        )

    def to_dict(self):
        """Convert the problem definition to SALib's dictionary format."""
        return asdict(self)


@dataclass
class SensitivityAnalysisConfig:
    """Configuration class for sensitivity analysis execution settings.

    Attributes:
        parameters (dict): Parameter name to distribution, either
            `{'mean': m, 'stddev': s}` or `[dist_name, [params...]]`.
        initial_state (list[float]): Model state at the first output time.
        output_times (list[float]): Strictly increasing output times.
        num_samples (int): Base rows per sample matrix. The model is run
            `num_samples * (num_parameters + 2)` times.
        threshold (float): Threshold handed to the metrics.
        metrics (dict | None): `MetricConfig.from_dict` specification
            without the threshold. None selects `maxpop` and `threshyear`.
        num_bootstrap (int): Bootstrap resamples for the intervals.
        conf_level (float): Confidence level of the intervals.
        estimator (str): 'saltelli' (SALib) or 'jansen'.
        workers (int): Number of parallel workers during model execution.
        seed (int): Seed of the sampler and of the bootstrap.
        failure_tolerance (float): Largest tolerated fraction of failed
            model runs, in [0, 1].
        integrator (dict): Keyword arguments of `Integrator`, e.g.
            `{'method': 'LSODA', 'max_steps': 20000, 'timeout': 5.0}`.

    Example:
        ```python
        config = SensitivityAnalysisConfig(
            parameters={'r': {'mean': 0.05, 'stddev': 0.01},
                        'K': {'mean': 200, 'stddev': 50}},
            initial_state=[10.0],
            output_times=list(range(201)),
            num_samples=2000,
            threshold=100.0,
        )
        ```
    """

    parameters: dict
    initial_state: list[float]
    output_times: list[float]
    num_samples: int = 1000
    threshold: float = 0.0
    metrics: dict | None = None
    num_bootstrap: int = 100
    conf_level: float = 0.95
    estimator: str = "saltelli"
    workers: int = 4
    seed: int = 42
    failure_tolerance: float = 0.05
    integrator: dict = field(default_factory=dict)

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Check every field, raising ConfigurationError naming the first bad one."""
        if not isinstance(self.num_samples, Integral) or self.num_samples <= 0:
            raise ConfigurationError("num_samples", f"must be a positive integer, got {self.num_samples!r}")
        if not isinstance(self.num_bootstrap, Integral) or self.num_bootstrap <= 0:
            raise ConfigurationError("num_bootstrap", f"must be a positive integer, got {self.num_bootstrap!r}")
        if not isinstance(self.workers, Integral) or self.workers <= 0:
            raise ConfigurationError("workers", f"must be a positive integer, got {self.workers!r}")
        if not 0 < self.conf_level < 1:
            raise ConfigurationError("conf_level", f"must be in (0, 1), got {self.conf_level!r}")
        if not 0 <= self.failure_tolerance <= 1:
            raise ConfigurationError("failure_tolerance", f"must be in [0, 1], got {self.failure_tolerance!r}")
        if self.estimator not in ("saltelli", "jansen"):
            raise ConfigurationError("estimator", f"must be 'saltelli' or 'jansen', got {self.estimator!r}")
        if not self.parameters:
            raise ConfigurationError("parameters", "at least one parameter distribution is required")
        if len(self.initial_state) == 0:
            raise ConfigurationError("initial_state", "must hold at least one value")

        check_output_times(self.output_times)
        SpaceConfig.from_dict(self.parameters)
        self.make_integrator()

    @property
    def space(self) -> SpaceConfig:
        return SpaceConfig.from_dict(self.parameters)

    @property
    def names(self) -> list[str]:
        return list(self.parameters.keys())

    @property
    def problem(self) -> SensitivityAnalysisProblem:
        return SensitivityAnalysisProblem.from_space(self.space)

    @property
    def metric_config(self) -> MetricConfig:
        data = dict(self.metrics or {})
        data["threshold"] = self.threshold
        return MetricConfig.from_dict(data)

    def make_integrator(self) -> Integrator:
        try:
            return Integrator(**self.integrator)
        except TypeError as e:
            raise ConfigurationError("integrator", str(e)) from e

    def build_model(self, derivative: Derivative) -> PopulationModel:
        """Create a PopulationModel for `derivative` on this configuration's grid."""
        return PopulationModel(
            derivative=derivative,
            initial_state=self.initial_state,
            times=self.output_times,
            integrator=self.make_integrator()
        )

    @classmethod
    def from_json(cls, infile: str):
        """Create a SensitivityAnalysisConfig instance from a JSON file.

        Args:
            infile (str): Path to the JSON file containing the configuration.

        Returns:
            SensitivityAnalysisConfig: A new, validated instance.

        Raises:
            FileNotFoundError: If the specified file does not exist.
            json.JSONDecodeError: If the file contains invalid JSON.
            TypeError: If the loaded data doesn't match the expected structure.
            ConfigurationError: If a value is out of range.

        Example:
            ```python
            config = SensitivityAnalysisConfig.from_json("sa_config.json")
            print(f"Running SA with {config.num_samples} samples using {config.workers} workers")
            ```
        """
        with open(infile, "r") as f:
            data = json.load(f)
        return cls(**data)

    def to_json(self, outfile: str):
        """Serialize the configuration to a JSON file.

        Note:
            The file is opened in exclusive creation mode ("+x") to prevent
            accidental overwrites.
        """
        with open(outfile, "+x") as f:
            json.dump(asdict(self), f, indent=4)
