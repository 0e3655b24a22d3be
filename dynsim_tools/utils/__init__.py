"""
# Utilities

This module provides trajectory metrics, probability distributions and
result containers used across the dynsim_tools package.

## Components

- **metric**: Reductions from trajectories to scalar metrics
- **distributions**: SciPy distribution factories for parameter sampling
- **results**: Data structures for sample outcomes and sensitivity indices

## Example Usage

```python
from dynsim_tools.utils.metric import Metric, time_to_threshold
from dynsim_tools.utils.distributions import get_scipy_normal
from dynsim_tools.utils.results import SensitivityIndices

time_to_threshold([1, 2, 3], [10, 150, 200], 100)  # 2.0
dist = get_scipy_normal(loc=0.05, scale=0.01)
```
"""
