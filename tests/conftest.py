import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from dynsim_tools.model import Model
from dynsim_tools.integrate import Trajectory
from dynsim_tools.errors import IntegrationFailure


class AdditiveModel(Model):
    """y = a + 2 * b reported as a two-point trajectory; fails for a > fail_above."""

    parameter_names = ("a", "b")

    def __init__(self, fail_above: float = None):
        self.fail_above = fail_above

    def run(self, X=None):
        if self.fail_above is not None and X["a"] > self.fail_above:
            raise IntegrationFailure(f"a={X['a']} above {self.fail_above}")
        return Trajectory(times=[0.0, 1.0], states=[0.0, X["a"] + 2 * X["b"]])

    def evaluate_model(self, output, metric_config):
        return metric_config.extract(output)


@pytest.fixture
def additive_model():
    return AdditiveModel


@pytest.fixture
def logistic_times():
    return np.arange(0, 201, dtype=float)
