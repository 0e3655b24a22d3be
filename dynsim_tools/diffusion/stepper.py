"""Explicit finite-difference diffusion along a one-dimensional channel.

The channel is split into `num_cells` cells of width `cell_width` and
cross-sectional area `cross_section_area`. At every time step the flux
across each interior face is computed from the concentration difference of
the two adjacent cells (Fick's first law), booked as outflow of the left cell
and inflow of the right cell, and the concentration of every cell is updated
from its net flux. The first cell has no left face and the last cell has no
right face; no flux crosses the ends, so the channel conserves mass.

The scheme is explicit (forward Euler in time). When
`diffusivity * step_duration / cell_width**2` exceeds 0.5 the update
overshoots: concentrations go negative or exceed the initial maximum and
oscillate with growing amplitude. This is left as is; pick `step_duration`
and `cell_width` accordingly.

Output arrays are indexed `[step, cell]`: time is the outer axis, space the
inner axis.

Typical usage example:

```python
    from dynsim_tools.diffusion import simulate

    result = simulate(
        initial_concentration=10, num_cells=40, cell_width=1,
        num_steps=200, step_duration=0.5, diffusivity=0.8,
        cross_section_area=1,
    )
    result.concentration.shape  # (200, 40)
```
"""

from .config import DiffusionConfig, STABILITY_LIMIT

# Data
import numpy as np
import pandas as pd

# Plotting
import matplotlib.pyplot as plt

# Logging
import logging

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, eq=False)
class DiffusionResult:
    """Concentration and flux grids from one diffusion run.

    Attributes:
        config (DiffusionConfig): Configuration the grids were computed from.
        concentration (np.ndarray): Concentration, shape (num_steps, num_cells).
        inflow (np.ndarray): Net flux entering each cell through its left
            face during each step, shape (num_steps, num_cells). Negative
            values mean mass left through that face.
        outflow (np.ndarray): Net flux leaving each cell through its right
            face during each step, shape (num_steps, num_cells).

    The last row of `inflow` and `outflow` is zero: no step is taken after
    the final concentration row. All arrays are read-only.
    """

    config: DiffusionConfig
    concentration: np.ndarray
    inflow: np.ndarray
    outflow: np.ndarray

    @property
    def times(self) -> np.ndarray:
        return np.arange(self.config.num_steps) * self.config.step_duration

    @property
    def positions(self) -> np.ndarray:
        return np.arange(self.config.num_cells) * self.config.cell_width

    def total_mass(self) -> np.ndarray:
        """Mass held in the channel at every step, shape (num_steps,)."""
        volume = self.config.cell_width * self.config.cross_section_area
        return self.concentration.sum(axis=1) * volume

    def to_frame(self, kind: Literal["concentration", "inflow", "outflow"] = "concentration") -> pd.DataFrame:
        """Long-format DataFrame with one row per (step, cell).

        Columns are `step`, `time`, `cell`, `position` and `kind`.
        """
        grid = getattr(self, kind)
        steps, cells = np.meshgrid(
            np.arange(self.config.num_steps),
            np.arange(self.config.num_cells),
            indexing="ij"
        )
        return pd.DataFrame({
            "step": steps.ravel(),
            "time": steps.ravel() * self.config.step_duration,
            "cell": cells.ravel(),
            "position": cells.ravel() * self.config.cell_width,
            kind: grid.ravel(),
        })

    def plot(self, outfile: str = None, kind: str = "concentration"):
        """Draw one grid as a time by space heatmap.

        Args:
            outfile (str, optional): Save the figure here and close it.
                When None the figure is returned open.
            kind (str, optional): Which grid to draw. Defaults to
                'concentration'.

        Returns:
            matplotlib.figure.Figure | None: The figure when not saved.
        """
        grid = getattr(self, kind)
        fig, ax = plt.subplots(figsize=(10, 6))
        image = ax.imshow(
            grid,
            aspect="auto",
            origin="lower",
            extent=(
                0, self.config.num_cells * self.config.cell_width,
                0, self.config.num_steps * self.config.step_duration
            )
        )
        fig.colorbar(image, ax=ax, label=kind)
        ax.set_xlabel("Distance")
        ax.set_ylabel("Time")
        ax.set_title(f"{kind.capitalize()} (D*dt/dx^2 = {self.config.stability_number:.3g})")
        fig.tight_layout()

        if outfile is None:
            return fig
        fig.savefig(outfile)
        plt.close(fig)


def initial_concentration_row(config: DiffusionConfig) -> np.ndarray:
    """Concentration of every cell at step 0."""
    row = np.zeros(config.num_cells)
    if config.distribution == "uniform":
        row[:] = config.initial_concentration
    else:
        row[config.source_cell] = config.initial_concentration
    return row


def simulate_config(config: DiffusionConfig) -> DiffusionResult:
    """Run the explicit diffusion stepper for a validated configuration.

    Args:
        config (DiffusionConfig): Grid, time stepping and constants.

    Returns:
        DiffusionResult: Concentration, inflow and outflow grids of shape
            (num_steps, num_cells).

    Note:
        A stability number above 0.5 is logged as a warning and stepped
        anyway; the overshoot it produces is part of the result.
    """
    if not config.is_stable:
        logging.warning(
            f"Explicit diffusion step is unstable: D*dt/dx^2 = {config.stability_number:.3g} "
            f"> {STABILITY_LIMIT}; expect overshoot."
        )

    nt, nx = config.num_steps, config.num_cells
    conductance = config.diffusivity * config.cross_section_area / config.cell_width
    volume = config.cell_width * config.cross_section_area

    concentration = np.zeros((nt, nx))
    inflow = np.zeros((nt, nx))
    outflow = np.zeros((nt, nx))

    concentration[0] = initial_concentration_row(config)

    for t in range(nt - 1):
        c = concentration[t]

        # Flux leaving cell x towards cell x + 1, one value per interior face
        face_flux = -conductance * (c[1:] - c[:-1])
        outflow[t, :-1] = face_flux
        inflow[t, 1:] = face_flux

        concentration[t + 1] = c + (inflow[t] - outflow[t]) * config.step_duration / volume

    for grid in (concentration, inflow, outflow):
        grid.setflags(write=False)

    return DiffusionResult(
        config=config,
        concentration=concentration,
        inflow=inflow,
        outflow=outflow
    )


def simulate(
    initial_concentration: float,
    num_cells: int,
    cell_width: float,
    num_steps: int,
    step_duration: float,
    diffusivity: float,
    cross_section_area: float,
    distribution: Literal["point", "uniform"] = "point",
    source_cell: int = 0
) -> DiffusionResult:
    """Simulate diffusion from keyword values; see `simulate_config`.

    Raises:
        ConfigurationError: If any value is out of bounds. Raised before
            any stepping.
    """
    config = DiffusionConfig(
        initial_concentration=initial_concentration,
        num_cells=num_cells,
        cell_width=cell_width,
        num_steps=num_steps,
        step_duration=step_duration,
        diffusivity=diffusivity,
        cross_section_area=cross_section_area,
        distribution=distribution,
        source_cell=source_cell
    )
    return simulate_config(config)
