"""Pytest fixtures and test utilities for EcoClimate."""


import numpy as np
import pytest

from ecoclimate.config import init_taichi
from ecoclimate.fields import create_cell_fields
from ecoclimate.initialization import initialize_cells
from ecoclimate.params import SimulationConfig, create_taichi_params
from ecoclimate.state import WeatherState
from ecoclimate.terrain import TerrainGrid


@pytest.fixture(scope="session", autouse=True)
def taichi_init():
    """Initialize Taichi once per test session with CPU backend."""
    init_taichi(backend="cpu", debug=True)
    yield


@pytest.fixture(scope="session")
def default_params(taichi_init):
    """Taichi parameters loaded from the default configuration."""
    return create_taichi_params(SimulationConfig())


@pytest.fixture
def params_factory():
    """Factory for Taichi parameters from a config or nested overrides."""
    return make_params


def make_params(config: SimulationConfig | None = None, **overrides):
    config = config or SimulationConfig()
    if overrides:
        config = config.with_updates(**overrides)
    return create_taichi_params(config)


@pytest.fixture
def cells_factory():
    """Factory for initialized cell grids."""
    return make_cells


def make_cells(terrain, config: SimulationConfig | None = None, seed: int = 0):
    """Allocate and initialize cells for a TerrainGrid or a list of map rows."""
    if not isinstance(terrain, TerrainGrid):
        terrain = TerrainGrid.from_rows(terrain)
    config = config or SimulationConfig()
    cells = create_cell_fields(terrain.geometry(config.domain.grid_resolution_m))
    initialize_cells(cells, terrain, config, np.random.default_rng(seed))
    return cells


@pytest.fixture
def calm_weather():
    """Storm-free, fog-free weather with no wind."""
    return WeatherState(temperature=22.0, humidity=25.0, wind_speed=0.0)


@pytest.fixture
def set_cell():
    """Overwrite individual fields of one cell."""
    return write_cell


def write_cell(cells, x: int, y: int, **values):
    """Overwrite individual fields of one cell."""
    for name, value in values.items():
        getattr(cells, name)[x, y] = value
