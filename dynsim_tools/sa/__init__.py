"""
# Sensitivity Analysis

This module provides variance-based global sensitivity analysis of model
metrics with respect to uncertain parameters.

## Components

- `SensitivityAnalysis`: Runs sampling, model evaluation and estimation
- `SensitivityAnalysisConfig`: Configuration for sensitivity analysis experiments
- `ParameterSampler`, `build_design`: Sample matrices and the cross-substituted design
- `SobolEstimator`: First-order and total-effect indices with bootstrap intervals

## Example Usage

```python
from dynsim_tools.dynamics import LogisticGrowth
from dynsim_tools.sa import SensitivityAnalysis, SensitivityAnalysisConfig

# Load configuration
config = SensitivityAnalysisConfig.from_json('sa_config.json')

# Setup sensitivity analysis
sa = SensitivityAnalysis(
    model=config.build_model(LogisticGrowth()),
    config=config
)

# Run analysis
results = sa.run()

# Get sensitivity indices
results['maxpop']['K'].first_order
results.to_frame()
```
"""

from .sa import *
from .config import *
from .sample import *
from .estimator import *
