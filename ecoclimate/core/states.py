"""Categorical cell classifications.

The enums are the public vocabulary; kernels compare against the plain integer
constants below, which Taichi folds into compiled code.
"""

from enum import IntEnum


class TerrainType(IntEnum):
    """Immutable terrain classification supplied by landscape generation."""

    DESERT = 0
    WATER = 1
    GRASSLAND = 2
    FOREST = 3
    PLATEAU = 4
    CANYON = 5
    VALLEY = 6


class VegetationState(IntEnum):
    """Succession state of a cell, derived from its cover fractions.

    SHRUB is part of the vocabulary but no transition produces it.
    """

    BARREN = 0
    GRASS = 1
    SHRUB = 2
    FUNGAL_MAT = 3
    FOREST = 4


NUM_TERRAIN_TYPES: int = len(TerrainType)

# Kernel constants
DESERT = int(TerrainType.DESERT)
WATER = int(TerrainType.WATER)
GRASSLAND = int(TerrainType.GRASSLAND)
FOREST = int(TerrainType.FOREST)
PLATEAU = int(TerrainType.PLATEAU)
CANYON = int(TerrainType.CANYON)
VALLEY = int(TerrainType.VALLEY)

BARREN = int(VegetationState.BARREN)
GRASS = int(VegetationState.GRASS)
SHRUB = int(VegetationState.SHRUB)
FUNGAL_MAT = int(VegetationState.FUNGAL_MAT)
FOREST_STATE = int(VegetationState.FOREST)

# Character codes used by text terrain maps
TERRAIN_CODES: dict[str, TerrainType] = {
    "D": TerrainType.DESERT,
    "W": TerrainType.WATER,
    "G": TerrainType.GRASSLAND,
    "F": TerrainType.FOREST,
    "P": TerrainType.PLATEAU,
    "C": TerrainType.CANYON,
    "V": TerrainType.VALLEY,
}
