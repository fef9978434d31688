"""
Soil and air toxicity.

    τ     -= k_nat·dt
    τ_air -= 0.2·k_nat·dt
    FungalMat: τ += k_mat·F·dt, τ_air += k_mat·F·dt
    Forest:    τ -= k_forest·R·dt
    Grass:     τ -= 0.3·k_forest·G·dt
    τ, τ_air ∈ [0, τ_max]

Applies to every terrain.
"""

import taichi as ti

from ecoclimate.core.dtypes import DTYPE
from ecoclimate.core.states import FOREST_STATE, FUNGAL_MAT, GRASS
from ecoclimate.kernels.utils import clamp


@ti.func
def toxicity_update(cells: ti.template(), p: ti.template(), i, j, dt):
    """Update soil and air toxicity of cell (i, j). Returns the soil toxicity change."""
    before = cells.toxicity[i, j]
    tau = before
    air = cells.air_toxicity[i, j]

    decay = p.toxicity_natural_decay_day[None] * dt
    tau -= decay
    air -= decay * p.toxicity_air_decay_fraction[None]

    state = cells.veg_state[i, j]
    if state == FUNGAL_MAT:
        pollution = p.toxicity_fungal_boost_day[None] * cells.mat_cover[i, j] * dt
        tau += pollution
        air += pollution
    elif state == FOREST_STATE:
        tau -= p.toxicity_forest_purify_day[None] * cells.forest_cover[i, j] * dt
    elif state == GRASS:
        tau -= (
            p.toxicity_forest_purify_day[None]
            * p.toxicity_grass_purify_fraction[None]
            * cells.grass_cover[i, j]
            * dt
        )

    tau_max = p.toxicity_range_max[None]
    cells.toxicity[i, j] = clamp(tau, 0.0, tau_max)
    cells.air_toxicity[i, j] = clamp(air, 0.0, tau_max)
    return cells.toxicity[i, j] - before


@ti.kernel
def toxicity_step(cells: ti.template(), p: ti.template(), dt: DTYPE) -> DTYPE:
    """Apply the toxicity update to every cell. Returns the net change in total soil toxicity."""
    total = ti.cast(0.0, DTYPE)
    for i, j in cells.toxicity:
        total += toxicity_update(cells, p, i, j, dt)
    return total
