"""
# Dynsim Tools

A toolkit for simulating simple dynamical processes and propagating parameter
uncertainty through them, providing functionality for:

- **Diffusion**: Explicit finite-volume stepping of 1-D diffusion with inflow/outflow bookkeeping
- **Dynamics**: Derivative functions for population growth and their closed-form solutions
- **Integration**: Step-budgeted ODE integration onto a requested time grid
- **Model Interface**: Abstract base classes and a population model with parallel evaluation
- **Sensitivity Analysis**: Sobol first-order and total-effect indices with bootstrap intervals
- **Configuration Management**: Configuration for metrics and parameter spaces

## Main Components

- `Model`: Base class for model execution and evaluation
- `PopulationModel`: Derivative function + integrator + metric extraction
- `diffusion`: 1-D diffusion stepper
- `sa`: Sensitivity analysis framework
- `config`: Configuration management for metrics and parameter spaces
- `utils`: Utility functions for metrics, distributions, and results handling

## Example Usage

```python
import numpy as np
from dynsim_tools import PopulationModel
from dynsim_tools.dynamics import LogisticGrowth
from dynsim_tools.sa import SensitivityAnalysis, SensitivityAnalysisConfig

config = SensitivityAnalysisConfig(
    parameters={'r': {'mean': 0.05, 'stddev': 0.01}, 'K': {'mean': 200, 'stddev': 50}},
    initial_state=[10.0],
    output_times=list(range(201)),
    threshold=100.0,
)
model = PopulationModel(LogisticGrowth(), [10.0], np.arange(201))
results = SensitivityAnalysis(model, config).run()
```
"""

from .model import *
