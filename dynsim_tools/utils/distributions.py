"""
# Probability Distributions

Factories for the SciPy distributions parameters are sampled from.

## Functions

- `get_scipy_normal`: Create SciPy normal distribution
- `get_scipy_truncated_normal`: Create SciPy truncated normal distribution
- `get_scipy_uniform`: Create SciPy uniform distribution

## Example Usage

```python
from dynsim_tools.utils.distributions import get_scipy_normal
import numpy as np

dist = get_scipy_normal(loc=0.05, scale=0.01)
samples = dist.rvs(size=1000, random_state=np.random.default_rng(42))
```
"""

from scipy.stats import (
    truncnorm,
    norm,
    uniform
)
from typing import Callable


def get_scipy_truncated_normal(loc=0.0, scale=1.0, a=1e-12, b=1e12):
    """
    Create a SciPy truncated normal distribution.

    Args:
        loc (float, optional): Mean of the underlying normal. Defaults to 0.0.
        scale (float, optional): Standard deviation. Defaults to 1.0.
        a (float, optional): Lower truncation bound. Defaults to 1e-12.
        b (float, optional): Upper truncation bound. Defaults to 1e12.

    Returns:
        scipy.stats.truncnorm: Configured truncated normal distribution.

    Note:
        `truncnorm` takes its bounds in standard-deviation units, so `a`
        and `b` are rescaled around `loc`.
    """
    a_scaled = (a - loc) / scale
    b_scaled = (b - loc) / scale
    return truncnorm(a=a_scaled, b=b_scaled, loc=loc, scale=scale)


def get_scipy_normal(loc=0.0, scale=1.0):
    """
    Create a SciPy normal distribution.

    Args:
        loc (float, optional): Mean of the distribution. Defaults to 0.0.
        scale (float, optional): Standard deviation. Defaults to 1.0.

    Returns:
        scipy.stats.norm: Configured normal distribution.
    """
    return norm(loc=loc, scale=scale)


def get_scipy_uniform(a=0.0, b=1.0):
    """
    Create a SciPy uniform distribution over [a, b].

    Note:
        SciPy's uniform distribution is parameterized as uniform(loc, scale)
        where scale = b - a, so we transform the [a, b] interface accordingly.
    """
    return uniform(loc=a, scale=b - a)


DISTRIBUTIONS: dict[str, Callable] = {
    "normal": get_scipy_normal,
    "truncnorm": get_scipy_truncated_normal,
    "uniform": get_scipy_uniform
}
"""Distribution names accepted in configuration files."""
