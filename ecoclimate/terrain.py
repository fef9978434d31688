"""Terrain input supplied by landscape generation.

A ``TerrainGrid`` is the immutable starting landscape: terrain classification,
elevation and the low-toxicity-zone flag per cell, as numpy arrays indexed
``[x, y]``.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import numpy as np

from ecoclimate.core.geometry import GridGeometry
from ecoclimate.core.states import TERRAIN_CODES, TerrainType

# Elevation derived from terrain class when none is supplied [m]
TERRAIN_ELEVATION: dict[TerrainType, float] = {
    TerrainType.PLATEAU: 200.0,
    TerrainType.CANYON: -50.0,
    TerrainType.VALLEY: -20.0,
    TerrainType.FOREST: 50.0,
    TerrainType.GRASSLAND: 20.0,
    TerrainType.WATER: 0.0,
    TerrainType.DESERT: 10.0,
}

# Lowercase desert marks a low-toxicity zone in character maps
LOW_TOXICITY_CODE = "d"


def elevation_for(terrain: np.ndarray) -> np.ndarray:
    """Derive elevation from terrain codes."""
    lookup = np.zeros(len(TerrainType), dtype=np.float64)
    for t, z in TERRAIN_ELEVATION.items():
        lookup[int(t)] = z
    return lookup[terrain]


@dataclass(frozen=True, eq=False)
class TerrainGrid:
    """Immutable landscape.

    Attributes:
        terrain: int32 terrain codes, shape (nx, ny)
        elevation: float64 elevation [m], shape (nx, ny)
        low_toxicity: bool low-toxicity-zone flags, shape (nx, ny)
    """

    terrain: np.ndarray
    elevation: np.ndarray
    low_toxicity: np.ndarray

    def __post_init__(self):
        terrain = np.asarray(self.terrain)
        if terrain.ndim != 2 or terrain.size == 0:
            raise ValueError(f"Terrain must be a non-empty 2D array, got shape {terrain.shape}")
        if not np.issubdtype(terrain.dtype, np.integer):
            raise ValueError(f"Terrain codes must be integers, got {terrain.dtype}")
        valid = {int(t) for t in TerrainType}
        unknown = set(np.unique(terrain).tolist()) - valid
        if unknown:
            raise ValueError(f"Unknown terrain codes: {sorted(unknown)}")

        elevation = np.asarray(self.elevation, dtype=np.float64)
        low_toxicity = np.asarray(self.low_toxicity, dtype=bool)
        for name, arr in (("elevation", elevation), ("low_toxicity", low_toxicity)):
            if arr.shape != terrain.shape:
                raise ValueError(
                    f"{name} shape {arr.shape} doesn't match terrain {terrain.shape}"
                )

        terrain = terrain.astype(np.int32)
        for arr in (terrain, elevation, low_toxicity):
            arr.setflags(write=False)
        object.__setattr__(self, "terrain", terrain)
        object.__setattr__(self, "elevation", elevation)
        object.__setattr__(self, "low_toxicity", low_toxicity)

    @property
    def shape(self) -> tuple[int, int]:
        return self.terrain.shape

    def geometry(self, cell_size_m: float = 100.0) -> GridGeometry:
        nx, ny = self.shape
        return GridGeometry(nx, ny, cell_size_m)

    def terrain_at(self, x: int, y: int) -> TerrainType:
        return TerrainType(int(self.terrain[x, y]))

    def count(self, terrain: TerrainType) -> int:
        return int(np.sum(self.terrain == int(terrain)))

    @classmethod
    def from_arrays(
        cls,
        terrain: np.ndarray,
        elevation: np.ndarray | None = None,
        low_toxicity: np.ndarray | None = None,
    ) -> "TerrainGrid":
        """Build from arrays, deriving elevation and clearing flags when omitted."""
        terrain = np.asarray(terrain)
        if elevation is None and terrain.ndim == 2 and np.issubdtype(terrain.dtype, np.integer):
            elevation = elevation_for(np.clip(terrain, 0, len(TerrainType) - 1))
        if elevation is None:
            elevation = np.zeros(terrain.shape)
        if low_toxicity is None:
            low_toxicity = np.zeros(terrain.shape, dtype=bool)
        return cls(terrain, elevation, low_toxicity)

    @classmethod
    def uniform(
        cls, nx: int, ny: int, terrain: TerrainType = TerrainType.DESERT, low_toxicity: bool = False
    ) -> "TerrainGrid":
        """Single-terrain landscape."""
        codes = np.full((nx, ny), int(terrain), dtype=np.int32)
        flags = np.full((nx, ny), low_toxicity, dtype=bool)
        return cls.from_arrays(codes, low_toxicity=flags)

    @classmethod
    def from_rows(cls, rows: list[str]) -> "TerrainGrid":
        """Parse a character map.

        Each string is one row (constant y); characters run along x. Codes are
        D W G F P C V, with lowercase ``d`` for a low-toxicity desert cell.
        """
        rows = [row.rstrip("\n") for row in rows if row.strip()]
        if not rows:
            raise ValueError("Terrain map is empty")
        width = len(rows[0])
        if any(len(row) != width for row in rows):
            raise ValueError("Terrain map rows must all have the same length")

        nx, ny = width, len(rows)
        codes = np.zeros((nx, ny), dtype=np.int32)
        flags = np.zeros((nx, ny), dtype=bool)
        for y, row in enumerate(rows):
            for x, ch in enumerate(row):
                if ch == LOW_TOXICITY_CODE:
                    codes[x, y] = int(TerrainType.DESERT)
                    flags[x, y] = True
                elif ch in TERRAIN_CODES:
                    codes[x, y] = int(TERRAIN_CODES[ch])
                else:
                    raise ValueError(f"Unknown terrain code {ch!r} at ({x}, {y})")
        return cls.from_arrays(codes, low_toxicity=flags)

    @classmethod
    def from_file(cls, path: str | Path) -> "TerrainGrid":
        """Load a character map file. Lines starting with ``#`` are ignored."""
        with open(path, "r") as f:
            lines = [line for line in f if not line.startswith("#")]
        return cls.from_rows(lines)

    @classmethod
    def from_mapping(
        cls,
        cells: Mapping[tuple[int, int], tuple],
        nx: int | None = None,
        ny: int | None = None,
    ) -> "TerrainGrid":
        """Build from ``{(x, y): (terrain, elevation, low_toxicity)}``.

        Every position of the nx-by-ny grid must be present.
        """
        if not cells:
            raise ValueError("Terrain mapping is empty")
        nx = nx if nx is not None else max(x for x, _ in cells) + 1
        ny = ny if ny is not None else max(y for _, y in cells) + 1

        codes = np.zeros((nx, ny), dtype=np.int32)
        elevation = np.zeros((nx, ny), dtype=np.float64)
        flags = np.zeros((nx, ny), dtype=bool)
        missing = []
        for x in range(nx):
            for y in range(ny):
                if (x, y) not in cells:
                    missing.append((x, y))
                    continue
                terrain, z, low = cells[(x, y)]
                codes[x, y] = int(TerrainType(terrain))
                elevation[x, y] = z
                flags[x, y] = bool(low)
        if missing:
            raise ValueError(f"Terrain mapping is missing {len(missing)} cells, e.g. {missing[0]}")
        return cls(codes, elevation, flags)


def demo_landscape(nx: int = 48, ny: int = 32) -> TerrainGrid:
    """A small mixed landscape: desert basin with a lake, forest, plateau ridge, canyon and valley."""
    codes = np.full((nx, ny), int(TerrainType.DESERT), dtype=np.int32)
    xs, ys = np.meshgrid(np.arange(nx), np.arange(ny), indexing="ij")

    codes[(xs < nx // 3) & (ys > ny // 2)] = int(TerrainType.GRASSLAND)
    codes[((xs - nx // 5) ** 2 + (ys - 3 * ny // 4) ** 2) < (min(nx, ny) // 6) ** 2] = int(TerrainType.FOREST)
    codes[((xs - nx // 2) ** 2 + (ys - ny // 2) ** 2) < (min(nx, ny) // 8) ** 2] = int(TerrainType.WATER)
    codes[(xs >= 3 * nx // 4) & (ys < ny // 3)] = int(TerrainType.PLATEAU)
    codes[(xs == 3 * nx // 4 - 1) & (ys < ny // 3)] = int(TerrainType.CANYON)
    codes[(ys >= ny - 3) & (xs > nx // 2)] = int(TerrainType.VALLEY)

    flags = (codes == int(TerrainType.DESERT)) & (xs < nx // 2) & (ys < ny // 4)
    return TerrainGrid.from_arrays(codes, low_toxicity=flags)
