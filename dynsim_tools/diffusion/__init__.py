"""
# Diffusion

Explicit finite-difference diffusion along a one-dimensional channel with
flux bookkeeping per cell.

## Components

- `DiffusionConfig`: Grid, time stepping and physical constants of a run
- `simulate` / `simulate_config`: Step the concentration grid through time
- `DiffusionResult`: Concentration, inflow and outflow grids (time x space)

## Example Usage

```python
from dynsim_tools.diffusion import DiffusionConfig, simulate_config

config = DiffusionConfig(
    initial_concentration=10, num_cells=40, cell_width=1,
    num_steps=200, step_duration=0.5, diffusivity=0.8,
    cross_section_area=1,
)
result = simulate_config(config)
mass = result.total_mass()
```
"""

from .config import *
from .stepper import *
