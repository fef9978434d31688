"""
Localized remediation around a target cell.

Within Euclidean distance ≤ r of the target:
    τ     ← τ·(1 - drop)
    τ_air ← 0
    θ     ← min(θ + boost·θ_fc, θ_fc)
    F     ← F·(1 - clear)
"""

import taichi as ti

from ecoclimate.core.dtypes import DTYPE
from ecoclimate.core.geometry import in_bounds, offset_distance
from ecoclimate.kernels.utils import clamp
from ecoclimate.kernels.vegetation import derive_state


@ti.kernel
def remediate(cells: ti.template(), p: ti.template(), cx: ti.i32, cy: ti.i32, t_days: DTYPE) -> ti.i32:
    """Remediate the disc around (cx, cy). Returns the number of cells affected."""
    nx, ny = cells.terrain.shape
    radius = ti.cast(p.neutralize_radius_cells[None], ti.i32)
    affected = 0

    for dx, dy in ti.ndrange((-radius, radius + 1), (-radius, radius + 1)):
        x = cx + dx
        y = cy + dy
        if in_bounds(x, y, nx, ny) and offset_distance(dx, dy) <= radius:
            fc = p.soil_field_capacity[cells.terrain[x, y]]
            cells.toxicity[x, y] *= 1.0 - p.neutralize_toxicity_drop[None]
            cells.air_toxicity[x, y] = 0.0
            boost = fc * p.neutralize_moisture_boost_pct[None] / 100.0
            cells.moisture[x, y] = clamp(cells.moisture[x, y] + boost, 0.0, fc)
            cells.mat_cover[x, y] *= 1.0 - p.neutralize_fungal_clear[None]
            cells.veg_state[x, y] = derive_state(
                cells.mat_cover[x, y], cells.forest_cover[x, y], cells.grass_cover[x, y], p
            )
            cells.last_remediation[x, y] = t_days
            affected += 1

    return affected
