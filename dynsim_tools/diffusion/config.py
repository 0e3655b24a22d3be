"""Configuration class for the explicit one-dimensional diffusion stepper.

This module provides the DiffusionConfig dataclass describing the grid,
time stepping and physical constants of a diffusion run. It validates its
fields before any stepping happens and supports serialization to and from
JSON format.

Typical usage example:

    from dynsim_tools.diffusion import DiffusionConfig

    config = DiffusionConfig.from_json("diffusion.json")
    print(config.stability_number)
"""

from ..errors import ConfigurationError

import json
from numbers import Integral
from dataclasses import dataclass, asdict
from typing import Literal


STABILITY_LIMIT = 0.5
"""Classical stability bound of D * dt / dx**2 for the explicit scheme."""


@dataclass
class DiffusionConfig:
    """Configuration for an explicit finite-difference diffusion run.

    Attributes:
        initial_concentration (float): Concentration placed in the source
            cell (or in every cell for a uniform start) at step 0. Must be >= 0.
        num_cells (int): Number of spatial cells. Must be > 0.
        cell_width (float): Width of one cell. Must be > 0.
        num_steps (int): Number of time steps, including step 0. Must be > 0.
        step_duration (float): Duration of one time step. Must be > 0.
        diffusivity (float): Diffusion coefficient. Must be >= 0.
        cross_section_area (float): Cross-sectional area of the channel.
            Must be > 0.
        distribution (str): 'point' to start with mass in `source_cell`
            only, 'uniform' to start with every cell at the initial value.
        source_cell (int): Index of the source cell for a point start.

    Example:
        ```python
        config = DiffusionConfig(
            initial_concentration=10,
            num_cells=40,
            cell_width=1,
            num_steps=200,
            step_duration=0.5,
            diffusivity=0.8,
            cross_section_area=1,
        )
        config.stability_number  # 0.4
        ```
    """

    initial_concentration: float
    num_cells: int
    cell_width: float
    num_steps: int
    step_duration: float
    diffusivity: float
    cross_section_area: float
    distribution: Literal["point", "uniform"] = "point"
    source_cell: int = 0

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Check every field and raise ConfigurationError on the first bad one."""
        if not isinstance(self.num_cells, Integral) or self.num_cells <= 0:
            raise ConfigurationError("num_cells", f"must be a positive integer, got {self.num_cells!r}")
        if not isinstance(self.num_steps, Integral) or self.num_steps <= 0:
            raise ConfigurationError("num_steps", f"must be a positive integer, got {self.num_steps!r}")
        if not self.cell_width > 0:
            raise ConfigurationError("cell_width", f"must be > 0, got {self.cell_width!r}")
        if not self.step_duration > 0:
            raise ConfigurationError("step_duration", f"must be > 0, got {self.step_duration!r}")
        if not self.diffusivity >= 0:
            raise ConfigurationError("diffusivity", f"must be >= 0, got {self.diffusivity!r}")
        if not self.cross_section_area > 0:
            raise ConfigurationError("cross_section_area", f"must be > 0, got {self.cross_section_area!r}")
        if not self.initial_concentration >= 0:
            raise ConfigurationError(
                "initial_concentration", f"must be >= 0, got {self.initial_concentration!r}"
            )
        if self.distribution not in ("point", "uniform"):
            raise ConfigurationError(
                "distribution", f"must be 'point' or 'uniform', got {self.distribution!r}"
            )
        if not isinstance(self.source_cell, Integral) or not 0 <= self.source_cell < self.num_cells:
            raise ConfigurationError(
                "source_cell", f"must be in [0, {self.num_cells}), got {self.source_cell!r}"
            )

    @property
    def stability_number(self) -> float:
        """Dimensionless D * dt / dx**2; values above 0.5 overshoot."""
        return self.diffusivity * self.step_duration / self.cell_width ** 2

    @property
    def is_stable(self) -> bool:
        return self.stability_number <= STABILITY_LIMIT

    @classmethod
    def from_json(cls, infile: str):
        """Create a DiffusionConfig from a JSON file.

        Args:
            infile (str): Path to a JSON object whose keys are the
                dataclass fields.

        Returns:
            DiffusionConfig: Validated configuration.

        Raises:
            ConfigurationError: If a field is out of bounds.
        """
        with open(infile, "r") as f:
            data = json.load(f)
        return cls(**data)

    def to_json(self, outfile: str):
        """Serialize the configuration to a new JSON file (fails if it exists)."""
        with open(outfile, "+x") as f:
            json.dump(asdict(self), f, indent=4)
