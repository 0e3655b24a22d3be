import numpy as np
import pytest

from dynsim_tools.dynamics import (
    CappedExponentialGrowth,
    ExponentialGrowth,
    LogisticGrowth,
    ParameterSet,
    exponential_solution,
    iterate_discrete,
    logistic_solution,
)
from dynsim_tools.errors import ConfigurationError


def test_parameter_set_follows_schema_order():
    params = ParameterSet.from_mapping({"K": 500, "r": 0.05}, ("r", "K"))
    assert list(params) == ["r", "K"]
    np.testing.assert_array_equal(params.to_array(), [0.05, 500.0])


def test_parameter_set_names_missing_and_unexpected():
    with pytest.raises(ConfigurationError) as e:
        ParameterSet.from_mapping({"r": 0.05, "k": 500}, ("r", "K"))
    assert e.value.field == "parameters"
    assert "'K'" in str(e.value)
    assert "'k'" in str(e.value)


def test_parameter_set_from_row():
    assert ParameterSet.from_row(("r", "K"), [0.1, 20]) == {"r": 0.1, "K": 20.0}
    with pytest.raises(ConfigurationError):
        ParameterSet.from_row(("r", "K"), [0.1])


def test_logistic_rate():
    model = LogisticGrowth()
    rate = model(0.0, np.array([250.0]), {"r": 0.1, "K": 500.0})
    np.testing.assert_allclose(rate, [12.5])


def test_logistic_without_capacity_declines():
    rate = LogisticGrowth()(0.0, np.array([10.0]), {"r": 0.1, "K": 0.0})
    assert rate[0] < 0


def test_capped_growth_stops_at_capacity():
    model = CappedExponentialGrowth()
    np.testing.assert_allclose(model(0.0, np.array([50.0]), {"r": 0.1, "K": 100.0}), [5.0])
    np.testing.assert_allclose(model(0.0, np.array([100.0]), {"r": 0.1, "K": 100.0}), [0.0])


def test_schema_on_validate():
    ExponentialGrowth().validate({"r": 1.0})
    with pytest.raises(ConfigurationError):
        ExponentialGrowth().validate({"r": 1.0, "K": 2.0})


def test_closed_forms():
    times = np.array([0.0, 10.0])
    np.testing.assert_allclose(exponential_solution(times, 10, 0.1), [10, 10 * np.e])
    assert logistic_solution(np.array([0.0, 1e4]), 10, 0.1, 500)[-1] == pytest.approx(500)


def test_iterate_discrete_exponential():
    states = iterate_discrete(ExponentialGrowth(), [10.0], np.arange(4), {"r": 0.5})
    np.testing.assert_allclose(states[:, 0], [10, 15, 22.5, 33.75])


def test_iterate_discrete_logistic_settles_at_capacity():
    states = iterate_discrete(LogisticGrowth(), [10.0], np.arange(500), {"r": 0.1, "K": 200.0})
    assert states.shape == (500, 1)
    assert states[-1, 0] == pytest.approx(200.0)
