import json

import pytest

from dynsim_tools.config import SpaceConfig
from dynsim_tools.dynamics import LogisticGrowth
from dynsim_tools.errors import ConfigurationError, FailureToleranceExceeded
from dynsim_tools.model import PopulationModel
from dynsim_tools.sa import SensitivityAnalysisConfig, SensitivityAnalysisProblem
from dynsim_tools.utils.results import FailureReport, SensitivityIndices, SensitivityResults


BASE = dict(
    parameters={"r": {"mean": 0.05, "stddev": 0.01}, "K": ["normal", [200, 50]]},
    initial_state=[10.0],
    output_times=[0, 1, 2],
)


def test_space_config_forms():
    space = SpaceConfig.from_dict(BASE["parameters"])
    assert space.names == ("r", "K")
    assert space.to_dict() == {"r": ["normal", [0.05, 0.01]], "K": ["normal", [200.0, 50.0]]}
    dists = space.get_search_space()
    assert dists["K"].mean() == pytest.approx(200.0)


@pytest.mark.parametrize("spec", [
    {"mean": 1.0},
    {"mean": 1.0, "stddev": 0.0},
    ["lognormal", [0, 1]],
])
def test_space_config_errors_name_parameter(spec):
    with pytest.raises(ConfigurationError) as e:
        SpaceConfig.from_dict({"r": spec})
    assert e.value.field == "parameters.r"


def test_space_config_distribution_factories():
    dists = SpaceConfig.from_dict({
        "a": ["uniform", [2, 4]],
        "b": ["truncnorm", [0.0, 1.0]],
    }).get_search_space()
    assert dists["a"].mean() == pytest.approx(3.0)
    assert dists["b"].ppf(0.0) >= 0.0


def test_sa_config_defaults():
    config = SensitivityAnalysisConfig(**BASE)
    assert config.names == ["r", "K"]
    assert config.estimator == "saltelli"
    assert config.metric_config.names == ["maxpop", "threshyear"]


def test_sa_config_metric_threshold():
    config = SensitivityAnalysisConfig(**BASE, threshold=100.0, metrics={"metrics": ["final"]})
    assert config.metric_config.threshold == 100.0
    assert config.metric_config.names == ["final"]


@pytest.mark.parametrize("kwargs, field", [
    ({"num_samples": 0}, "num_samples"),
    ({"num_bootstrap": 0}, "num_bootstrap"),
    ({"workers": 0}, "workers"),
    ({"conf_level": 1.5}, "conf_level"),
    ({"failure_tolerance": -0.1}, "failure_tolerance"),
    ({"estimator": "morris"}, "estimator"),
    ({"parameters": {}}, "parameters"),
    ({"parameters": {"r": ["beta", [1, 1]]}}, "parameters.r"),
    ({"initial_state": []}, "initial_state"),
    ({"output_times": [0, 2, 1]}, "output_times"),
    ({"integrator": {"method": "Euler"}}, "method"),
    ({"integrator": {"steps": 10}}, "integrator"),
])
def test_sa_config_validation(kwargs, field):
    with pytest.raises(ConfigurationError) as e:
        SensitivityAnalysisConfig(**{**BASE, **kwargs})
    assert e.value.field == field


def test_sa_config_json_round_trip(tmp_path):
    config = SensitivityAnalysisConfig(**BASE, integrator={"method": "LSODA", "max_steps": 20000})
    path = tmp_path / "sa_config.json"
    config.to_json(path)
    loaded = SensitivityAnalysisConfig.from_json(path)
    assert loaded == config
    assert loaded.make_integrator().method == "LSODA"
    with pytest.raises(FileExistsError):
        config.to_json(path)


def test_build_model():
    config = SensitivityAnalysisConfig(**BASE, integrator={"timeout": 2.0})
    model = config.build_model(LogisticGrowth())
    assert isinstance(model, PopulationModel)
    assert model.parameter_names == ("r", "K")
    assert model.integrator.timeout == 2.0


def test_problem_for_salib():
    problem = SensitivityAnalysisConfig(**BASE).problem
    assert isinstance(problem, SensitivityAnalysisProblem)
    assert problem.to_dict() == {
        "num_vars": 2,
        "names": ["r", "K"],
        "bounds": [[0.05, 0.01], [200.0, 50.0]],
        "dists": ["norm", "norm"],
    }


def test_failure_report_and_error_message():
    report = FailureReport(total=10, indices=[2, 5], parameters=[{}, {}], messages=["x", "y"])
    assert report.count == 2
    assert report.rate == 0.2
    error = FailureToleranceExceeded(report, 0.1)
    assert error.report is report
    assert "2 of 10" in str(error)
    assert FailureReport(total=0).rate == 0.0


def test_sensitivity_results_serialization(tmp_path):
    results = SensitivityResults({
        "maxpop": {
            "r": SensitivityIndices(0.1, 0.15, (0.05, 0.2), (0.1, 0.2)),
            "K": SensitivityIndices(-0.01, 0.9, (-0.05, 0.02), (0.8, 1.0)),
        }
    }, num_samples=100)

    frame = results.to_frame()
    assert list(frame.columns) == ["metric", "parameter", "S1", "S1_low", "S1_high", "ST", "ST_low", "ST_high"]
    assert frame.loc[frame.parameter == "K", "S1"].item() == -0.01
    assert results["maxpop"]["r"].interaction == pytest.approx(0.05)

    results.to_json(tmp_path / "indices.json")
    with open(tmp_path / "indices.json") as f:
        data = json.load(f)
    assert data["num_samples"] == 100
    assert data["indices"]["maxpop"]["K"]["first_order_conf"] == [-0.05, 0.02]
    assert "failures" not in data

    results.save(tmp_path)
    assert (tmp_path / "indices_maxpop.csv").exists()
