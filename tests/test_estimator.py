import logging
import numpy as np
import pytest

from dynsim_tools.config import SpaceConfig
from dynsim_tools.errors import ConfigurationError
from dynsim_tools.sa.estimator import SobolEstimator, jansen_indices, separate_outputs
from dynsim_tools.sa.sample import ParameterSampler, build_design


def additive_outputs(n=10000, seed=0):
    space = SpaceConfig.from_dict({"x1": ["uniform", [0, 1]], "x2": ["uniform", [0, 1]]})
    X1, X2 = ParameterSampler(space, seed=seed).sample(n)
    design = build_design(X1, X2)
    return (design["x1"] + 2 * design["x2"]).to_numpy()


def test_separate_outputs():
    Y = np.arange(8.0)
    yA, yAB, yB = separate_outputs(Y, 2)
    np.testing.assert_array_equal(yA, [0, 4])
    np.testing.assert_array_equal(yAB, [[1, 2], [5, 6]])
    np.testing.assert_array_equal(yB, [3, 7])


def test_negative_first_order_is_not_clamped():
    # yA = [0, 1], yAB = [0, 1], yB = [1, 0]
    Y = np.array([0.0, 0.0, 1.0, 1.0, 1.0, 0.0])
    S1, ST = jansen_indices(*separate_outputs(Y, 1))
    assert S1[0] == pytest.approx(-1.0)
    assert ST[0] == pytest.approx(0.0)


@pytest.mark.parametrize("method, expected", [("jansen", -1.0), ("saltelli", -2.0)])
def test_negative_index_survives_analyze(method, expected):
    # f(AB) moves against f(X2) in every block
    Y = np.tile([0.0, 1.0, 0.0, 1.0, 0.0, 1.0], 20)
    indices = SobolEstimator(method=method, num_resamples=20, seed=0).analyze(["x"], Y)
    assert indices["x"].first_order == pytest.approx(expected)
    assert indices["x"].total_effect == pytest.approx(2.0)


@pytest.mark.parametrize("method", ["jansen", "saltelli"])
def test_additive_model(method):
    # Var(x1) : Var(2 * x2) = 1 : 4
    indices = SobolEstimator(method=method, num_resamples=200, seed=1).analyze(["x1", "x2"], additive_outputs())
    assert indices["x1"].first_order == pytest.approx(0.2, abs=0.05)
    assert indices["x2"].first_order == pytest.approx(0.8, abs=0.05)
    assert indices["x1"].total_effect == pytest.approx(0.2, abs=0.05)
    assert indices["x2"].total_effect == pytest.approx(0.8, abs=0.05)
    for idx in indices.values():
        assert idx.first_order_conf[0] <= idx.first_order_conf[1]
        assert idx.total_effect_conf[0] <= idx.total_effect_conf[1]
        assert abs(idx.interaction) < 0.1


@pytest.mark.parametrize("method", ["jansen", "saltelli"])
def test_constant_output_has_zero_indices(method, caplog):
    with caplog.at_level(logging.WARNING):
        indices = SobolEstimator(method=method).analyze(["a", "b"], np.full(40, 3.0))
    for idx in indices.values():
        assert idx.first_order == 0.0
        assert idx.total_effect == 0.0
        assert idx.first_order_conf[0] <= 0.0 <= idx.first_order_conf[1]
        assert idx.total_effect_conf[0] <= 0.0 <= idx.total_effect_conf[1]
    assert "Constant model output" in caplog.text


def test_bootstrap_is_reproducible():
    Y = additive_outputs(n=200)
    a = SobolEstimator(method="jansen", seed=5).analyze(["x1", "x2"], Y)
    b = SobolEstimator(method="jansen", seed=5).analyze(["x1", "x2"], Y)
    assert a == b


def test_rejects_bad_outputs():
    estimator = SobolEstimator()
    with pytest.raises(ConfigurationError):
        estimator.analyze(["a", "b"], np.arange(7.0))
    with pytest.raises(ConfigurationError):
        estimator.analyze(["a", "b"], np.arange(4.0))
    with pytest.raises(ConfigurationError):
        estimator.analyze(["a", "b"], np.array([0.0, 1.0, np.nan, 2.0, 1.0, 0.0, 3.0, 4.0]))


@pytest.mark.parametrize("kwargs, field", [
    ({"method": "sobol"}, "estimator"),
    ({"num_resamples": 0}, "num_bootstrap"),
    ({"conf_level": 1.0}, "conf_level"),
])
def test_invalid_estimator(kwargs, field):
    with pytest.raises(ConfigurationError) as e:
        SobolEstimator(**kwargs)
    assert e.value.field == field


def test_salib_problem_is_passed_through():
    problem = {
        "num_vars": 2,
        "names": ["x1", "x2"],
        "bounds": [[0.0, 1.0], [0.0, 1.0]],
        "dists": ["unif", "unif"],
    }
    Y = additive_outputs(n=500)
    estimator = SobolEstimator(num_resamples=20, seed=1)
    assert estimator.analyze(["x1", "x2"], Y, problem=problem) == estimator.analyze(["x1", "x2"], Y)

    with pytest.raises(ConfigurationError) as e:
        estimator.analyze(["x1", "x2"], Y, problem={**problem, "names": ["x2", "x1"]})
    assert e.value.field == "problem"
