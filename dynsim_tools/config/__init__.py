"""
# Configuration Management

This module provides configuration classes for the metrics extracted from
model runs and the parameter spaces samples are drawn from.

## Components

- **MetricConfig**: Which trajectory metrics to compute and the shared threshold
- **SpaceConfig**: Marginal distribution of every sampled parameter

## Example Usage

```python
from dynsim_tools.config import MetricConfig, SpaceConfig

metric_config = MetricConfig.from_dict({
    'metrics': ['max', 'threshold_time'],
    'names': ['maxpop', 'threshyear'],
    'threshold': 100.0
})

space_config = SpaceConfig.from_dict({
    'r': {'mean': 0.05, 'stddev': 0.01},
    'K': {'mean': 200, 'stddev': 50}
})
```
"""

from .metric import *
from .space import *
