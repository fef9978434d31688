"""Taichi parameter injection.

Bridges the parameter dataclasses to Taichi fields for kernel access. Every
flat parameter becomes a 0-d field of the same name; per-terrain soil values
become lookup tables indexed by terrain code.
"""

import taichi as ti

from ecoclimate.core.dtypes import DTYPE
from ecoclimate.core.states import NUM_TERRAIN_TYPES, TerrainType
from ecoclimate.params.keys import PARAMETER_KEYS
from ecoclimate.params.schema import SimulationConfig

# Per-terrain soil tables, indexed by terrain code
SOIL_TABLES = (
    "soil_field_capacity",
    "soil_wilting_point",
    "soil_evap_rate",
    "soil_infiltration",
)


class TaichiParams:
    """Taichi-accessible parameter container.

    Scalars are read in kernels as ``p.<name>[None]``; soil tables as
    ``p.soil_field_capacity[terrain]``.
    """

    def __init__(self) -> None:
        """Create Taichi parameter fields."""
        for name in PARAMETER_KEYS:
            setattr(self, name, ti.field(DTYPE, shape=()))
        for name in SOIL_TABLES:
            setattr(self, name, ti.field(DTYPE, shape=NUM_TERRAIN_TYPES))

        # Derived
        self.seed_radius_cells = ti.field(ti.i32, shape=())
        self.nonseed_radius_cells = ti.field(ti.i32, shape=())

        self._loaded = False

    def load(self, config: SimulationConfig) -> None:
        """Load parameters from SimulationConfig."""
        for name, value in config.to_flat().items():
            getattr(self, name)[None] = value

        theta_max = config.hydrology.max_volumetric_moisture
        for terrain in TerrainType:
            soil = config.soil_properties(terrain)
            t = int(terrain)
            self.soil_field_capacity[t] = soil.field_capacity(theta_max)
            self.soil_wilting_point[t] = soil.wilting_point(theta_max)
            self.soil_evap_rate[t] = soil.evap_rate_mm_day
            self.soil_infiltration[t] = soil.infiltration_mm_hr

        resolution = config.domain.grid_resolution_m
        self.seed_radius_cells[None] = config.spores.seed_radius_cells(resolution)
        self.nonseed_radius_cells[None] = config.spores.nonseed_radius_cells(resolution)

        self._loaded = True

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def to_dict(self) -> dict[str, float]:
        """Extract current scalar values as dictionary."""
        return {name: float(getattr(self, name)[None]) for name in PARAMETER_KEYS}


def create_taichi_params(config: SimulationConfig) -> TaichiParams:
    """Create and load TaichiParams from config."""
    params = TaichiParams()
    params.load(config)
    return params
