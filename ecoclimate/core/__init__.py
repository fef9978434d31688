"""Core infrastructure: types, geometry, and classifications."""

from ecoclimate.core.dtypes import DTYPE, ITYPE
from ecoclimate.core.geometry import (
    GridGeometry,
    in_bounds,
    offset_distance,
    upwind_offset,
)
from ecoclimate.core.states import (
    NUM_TERRAIN_TYPES,
    TERRAIN_CODES,
    TerrainType,
    VegetationState,
)

__all__ = [
    "DTYPE",
    "ITYPE",
    "GridGeometry",
    "NUM_TERRAIN_TYPES",
    "TERRAIN_CODES",
    "TerrainType",
    "VegetationState",
    "in_bounds",
    "offset_distance",
    "upwind_offset",
]
