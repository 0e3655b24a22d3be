import time

import numpy as np
import pytest

from dynsim_tools.dynamics import Derivative, ExponentialGrowth, LogisticGrowth, logistic_solution
from dynsim_tools.errors import ConfigurationError, IntegrationFailure
from dynsim_tools.integrate import Integrator, Trajectory


class SlowDecay(Derivative):
    parameter_names = ("k",)

    def derivative(self, time_, state, parameters):
        time.sleep(0.01)
        return -parameters["k"] * state


class Blowup(Derivative):
    parameter_names = ()

    def derivative(self, time_, state, parameters):
        return np.full_like(state, np.nan)


def test_logistic_matches_closed_form(logistic_times):
    trajectory = Integrator().solve(LogisticGrowth(), [10.0], logistic_times, {"r": 0.05, "K": 500.0})
    expected = logistic_solution(logistic_times, 10.0, 0.05, 500.0)
    assert len(trajectory) == 201
    np.testing.assert_allclose(trajectory.values(0), expected, rtol=1e-4)


@pytest.mark.parametrize("method", ["RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA"])
def test_every_method_integrates_exponential(method):
    times = np.linspace(0, 10, 11)
    trajectory = Integrator(method=method).solve(ExponentialGrowth(), [1.0], times, {"r": 0.1})
    np.testing.assert_allclose(trajectory.values("population"), np.exp(0.1 * times), rtol=1e-3)


def test_first_output_is_initial_state():
    trajectory = Integrator().solve(ExponentialGrowth(), [3.0], [2.0, 3.0], {"r": 0.1})
    assert trajectory.states[0, 0] == 3.0
    assert trajectory.times[0] == 2.0


def test_single_output_time():
    trajectory = Integrator().solve(ExponentialGrowth(), [3.0], [0.0], {"r": 0.1})
    assert trajectory.states.shape == (1, 1)


def test_step_budget_exhausted():
    with pytest.raises(IntegrationFailure, match="steps"):
        Integrator(max_steps=2).solve(LogisticGrowth(), [10.0], np.arange(0, 201), {"r": 0.05, "K": 500.0})


def test_timeout_exhausted():
    with pytest.raises(IntegrationFailure, match="timeout"):
        Integrator(timeout=0.005).solve(SlowDecay(), [1.0], np.arange(0, 1000), {"k": 1.0})


def test_non_finite_state_fails():
    with pytest.raises(IntegrationFailure):
        Integrator().solve(Blowup(), [1.0], [0.0, 1.0], {})


@pytest.mark.parametrize("times", [[0, 2, 1], [0, 1, 1], [], [0, np.nan]])
def test_bad_output_times(times):
    with pytest.raises(ConfigurationError) as e:
        Integrator().solve(ExponentialGrowth(), [1.0], times, {"r": 0.1})
    assert e.value.field == "output_times"


@pytest.mark.parametrize("kwargs, field", [
    ({"method": "Euler"}, "method"),
    ({"max_steps": 0}, "max_steps"),
    ({"timeout": 0}, "timeout"),
])
def test_invalid_integrator(kwargs, field):
    with pytest.raises(ConfigurationError) as e:
        Integrator(**kwargs)
    assert e.value.field == field


def test_trajectory_to_frame():
    trajectory = Trajectory(times=[0, 1], states=[[1.0, 2.0], [3.0, 4.0]], state_names=("prey", "predator"))
    frame = trajectory.to_frame()
    assert list(frame.columns) == ["time", "prey", "predator"]
    assert frame["predator"].tolist() == [2.0, 4.0]


def test_trajectory_rejects_mismatched_rows():
    with pytest.raises(ConfigurationError):
        Trajectory(times=[0, 1, 2], states=[1.0, 2.0])
