"""Grid geometry and neighborhood helpers.

The grid is indexed ``[x, y]``:
    - x (column) increases eastward, range [0, nx)
    - y (row) increases along the second axis, range [0, ny)

Wind vectors use the same axes, so a wind of (+1, 0) blows toward +x and the
upwind neighbour of cell (x, y) is (x - 1, y).
"""

from dataclasses import dataclass

import taichi as ti

from ecoclimate.core.dtypes import DTYPE


@dataclass(frozen=True)
class GridGeometry:
    """Immutable grid geometry specification.

    Attributes:
        nx: Number of cells along x
        ny: Number of cells along y
        cell_size_m: Edge length of one cell [m]
    """

    nx: int
    ny: int
    cell_size_m: float = 100.0

    def __post_init__(self):
        """Validate grid dimensions."""
        if self.nx < 1:
            raise ValueError(f"nx must be >= 1, got {self.nx}")
        if self.ny < 1:
            raise ValueError(f"ny must be >= 1, got {self.ny}")
        if self.cell_size_m <= 0:
            raise ValueError(f"cell_size_m must be > 0, got {self.cell_size_m}")

    @property
    def n_cells(self) -> int:
        """Total number of cells."""
        return self.nx * self.ny

    @property
    def shape(self) -> tuple[int, int]:
        """Grid shape as (nx, ny) tuple."""
        return (self.nx, self.ny)

    def contains(self, x: int, y: int) -> bool:
        """Check whether (x, y) addresses a cell of this grid."""
        return 0 <= x < self.nx and 0 <= y < self.ny


# =============================================================================
# Taichi helper functions for use in kernels
# =============================================================================


@ti.func
def in_bounds(x, y, nx, ny):
    """Check if (x, y) lies inside an nx-by-ny grid."""
    return 0 <= x < nx and 0 <= y < ny


@ti.func
def offset_distance(dx, dy):
    """Euclidean length of an integer cell offset, in cells."""
    return ti.sqrt(ti.cast(dx * dx + dy * dy, DTYPE))


@ti.func
def upwind_offset(wind_x, wind_y, magnitude, steps):
    """Integer cell offset `steps` cells against the wind direction."""
    ux = -wind_x / magnitude
    uy = -wind_y / magnitude
    return ti.Vector(
        [ti.cast(ti.round(ux * steps), ti.i32), ti.cast(ti.round(uy * steps), ti.i32)]
    )
