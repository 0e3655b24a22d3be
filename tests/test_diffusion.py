import logging
import numpy as np
import pytest

from dynsim_tools.diffusion import DiffusionConfig, simulate, simulate_config
from dynsim_tools.errors import ConfigurationError


STABLE = dict(
    initial_concentration=10,
    num_cells=40,
    cell_width=1,
    num_steps=200,
    step_duration=0.5,
    diffusivity=0.8,
    cross_section_area=1,
)


def test_grid_shapes_and_finite_values():
    result = simulate(**STABLE)
    for grid in (result.concentration, result.inflow, result.outflow):
        assert grid.shape == (200, 40)
        assert np.all(np.isfinite(grid))


def test_initial_row_point_source():
    result = simulate(**STABLE)
    assert result.concentration[0, 0] == 10
    assert np.all(result.concentration[0, 1:] == 0)


def test_point_source_in_other_cell():
    result = simulate(**{**STABLE, "source_cell": 7})
    assert result.concentration[0, 7] == 10
    assert result.concentration[0].sum() == 10


def test_mass_conserved_below_stability_limit():
    result = simulate(**STABLE)
    mass = result.total_mass()
    assert mass.shape == (200,)
    np.testing.assert_allclose(mass, mass[0], rtol=1e-6)


def test_flux_bookkeeping():
    result = simulate(**STABLE)
    np.testing.assert_array_equal(result.outflow[:, :-1], result.inflow[:, 1:])
    assert np.all(result.inflow[:, 0] == 0)
    assert np.all(result.outflow[:, -1] == 0)
    assert np.all(result.inflow[-1] == 0)
    assert np.all(result.outflow[-1] == 0)


def test_first_step_by_hand():
    result = simulate(**{**STABLE, "num_cells": 3, "num_steps": 2})
    # flux 0 -> 1 is -0.8 * (0 - 10) = 8; dt / (dx * A) = 0.5
    assert result.outflow[0, 0] == pytest.approx(8.0)
    assert result.inflow[0, 1] == pytest.approx(8.0)
    np.testing.assert_allclose(result.concentration[1], [6.0, 4.0, 0.0])


def test_overshoot_above_stability_limit(caplog):
    with caplog.at_level(logging.WARNING):
        result = simulate(
            initial_concentration=10, num_cells=5, cell_width=1, num_steps=4,
            step_duration=10, diffusivity=0.8, cross_section_area=1,
        )
    assert result.concentration[1, 0] == pytest.approx(-70.0)
    assert result.concentration.min() < 0
    assert result.concentration.max() > 10
    assert "unstable" in caplog.text


def test_stable_run_logs_no_warning(caplog):
    with caplog.at_level(logging.WARNING):
        simulate(**STABLE)
    assert "unstable" not in caplog.text


def test_uniform_start_stays_uniform():
    result = simulate(**{**STABLE, "distribution": "uniform"})
    np.testing.assert_allclose(result.concentration, 10.0)
    assert np.all(result.inflow == 0)


def test_single_step_is_initial_condition():
    result = simulate(**{**STABLE, "num_steps": 1})
    assert result.concentration.shape == (1, 40)
    assert np.all(result.inflow == 0)


def test_zero_diffusivity_keeps_profile():
    result = simulate(**{**STABLE, "diffusivity": 0.0})
    np.testing.assert_array_equal(result.concentration, np.repeat(result.concentration[:1], 200, axis=0))


def test_grids_are_read_only():
    result = simulate(**STABLE)
    with pytest.raises(ValueError):
        result.concentration[0, 0] = 1.0


@pytest.mark.parametrize("field, value", [
    ("num_cells", 0),
    ("num_cells", 2.5),
    ("cell_width", 0),
    ("num_steps", -1),
    ("step_duration", 0),
    ("diffusivity", -0.1),
    ("cross_section_area", 0),
    ("initial_concentration", -1),
    ("distribution", "gaussian"),
    ("source_cell", 40),
    ("source_cell", 1.5),
    ("source_cell", "2"),
])
def test_invalid_configuration_names_field(field, value):
    with pytest.raises(ConfigurationError) as e:
        simulate(**{**STABLE, field: value})
    assert e.value.field == field
    assert field in str(e.value)


def test_stability_number():
    config = DiffusionConfig(**STABLE)
    assert config.stability_number == pytest.approx(0.4)
    assert config.is_stable
    assert not DiffusionConfig(**{**STABLE, "step_duration": 10}).is_stable


def test_config_json_round_trip(tmp_path):
    config = DiffusionConfig(**STABLE)
    path = tmp_path / "diffusion.json"
    config.to_json(path)
    assert DiffusionConfig.from_json(path) == config
    with pytest.raises(FileExistsError):
        config.to_json(path)


def test_simulate_config_matches_simulate():
    a = simulate(**STABLE)
    b = simulate_config(DiffusionConfig(**STABLE))
    np.testing.assert_array_equal(a.concentration, b.concentration)


def test_to_frame_long_format():
    result = simulate(**{**STABLE, "num_steps": 3, "num_cells": 4})
    frame = result.to_frame("outflow")
    assert len(frame) == 12
    assert list(frame.columns) == ["step", "time", "cell", "position", "outflow"]
    assert frame.loc[(frame.step == 0) & (frame.cell == 0), "outflow"].item() == pytest.approx(8.0)


def test_plot_writes_file(tmp_path):
    result = simulate(**{**STABLE, "num_steps": 10})
    outfile = tmp_path / "concentration.png"
    result.plot(outfile)
    assert outfile.exists()
