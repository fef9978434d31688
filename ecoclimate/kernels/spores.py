"""
Spore production and wind-biased dispersal.

Sources (per ecology step):
    Forest:    A = Y_A·R·(1 + 0.7·τ/3),  B = Y_B·R·(1 + 0.7·τ/3)
    FungalMat: B = Y_mat·F·(1 + 0.2·θ/max(θ_fc, 0.01))
    Storm:     yields × wet_factor × storm_multiplier (× 0.6 for mats)

A forest that has had clean soil (τ ≤ 0.001) for more than the grace period
stops emitting until toxicity returns.

Deposition at offset d = target - source, |d| ≤ radius:
    D = prod · exp(-|d|²/(2r²)) · exp(bias·(u/u_mean)·0.3/u_mean) · exp(-λ|d|) · terrain
    bias = d̂ · wind direction

Dispersal is written as a gather: every target sums the contributions of the
sources in range, so each cell only writes to itself and the result does not
depend on sweep order.
"""

import taichi as ti

from ecoclimate.core.dtypes import DTYPE
from ecoclimate.core.geometry import in_bounds, offset_distance
from ecoclimate.core.states import CANYON, FOREST_STATE, FUNGAL_MAT, PLATEAU
from ecoclimate.kernels.utils import clamp


@ti.kernel
def spore_sources_step(
    cells: ti.template(),
    p: ti.template(),
    is_storm: ti.i32,
    dt: DTYPE,
) -> ti.types.vector(2, ti.i32):
    """
    Compute per-cell seed and non-seed emission and update clean-soil days.

    Returns [active forest sources, fungal mat sources].
    """
    n_forest = 0
    n_mat = 0
    tau_max = p.toxicity_range_max[None]

    for i, j in cells.seed_production:
        state = cells.veg_state[i, j]
        seed = ti.cast(0.0, DTYPE)
        nonseed = ti.cast(0.0, DTYPE)
        tau = cells.toxicity[i, j]

        if state == FOREST_STATE:
            if tau <= p.clean_soil_toxicity[None]:
                cells.days_clean_soil[i, j] += dt
            else:
                cells.days_clean_soil[i, j] = 0.0

            if cells.days_clean_soil[i, j] <= p.clean_soil_grace_days[None]:
                cover = cells.forest_cover[i, j]
                tox_mult = 1.0 + p.spore_toxicity_multiplier[None] * (tau / tau_max)
                seed = p.spore_emission_forest_seed[None] * cover * tox_mult
                nonseed = p.spore_emission_forest_nonseed[None] * cover * tox_mult
                if is_storm == 1:
                    storm = p.spore_wet_factor[None] * p.storm_spore_multiplier[None]
                    seed *= storm
                    nonseed *= storm
                if cover > 0:
                    n_forest += 1

        elif state == FUNGAL_MAT:
            fc = ti.max(p.soil_field_capacity[cells.terrain[i, j]], 0.01)
            moist_mult = 1.0 + p.spore_mat_moisture_multiplier[None] * (cells.moisture[i, j] / fc)
            nonseed = p.spore_emission_mat_nonseed[None] * cells.mat_cover[i, j] * moist_mult
            if is_storm == 1:
                nonseed *= (
                    p.spore_wet_factor[None]
                    * p.storm_spore_multiplier[None]
                    * p.storm_mat_spore_fraction[None]
                )
            if cells.mat_cover[i, j] > 0:
                n_mat += 1

        cells.seed_production[i, j] = seed
        cells.nonseed_production[i, j] = nonseed

    return ti.Vector([n_forest, n_mat])


@ti.kernel
def reset_spores(cells: ti.template()):
    """Zero both spore loads."""
    for i, j in cells.seed_spores:
        cells.seed_spores[i, j] = 0.0
        cells.nonseed_spores[i, j] = 0.0


@ti.func
def deposition_weight(p: ti.template(), terrain, dx, dy, radius, dir_x, dir_y, wind_strength):
    """Deposited fraction of a unit emission at offset (dx, dy) from its source."""
    dist = offset_distance(dx, dy)
    r = ti.cast(radius, DTYPE)
    weight = ti.exp(-(dist * dist) / (2.0 * r * r))

    alignment = ti.cast(0.0, DTYPE)
    if dist > 0:
        alignment = (dx * dir_x + dy * dir_y) / dist
        weight *= ti.exp(alignment * wind_strength * p.spore_wind_scale[None] / p.wind_mean_ms[None])

    weight *= ti.exp(-p.spore_survival_decay[None] * dist)

    if terrain == PLATEAU:
        weight *= p.spore_plateau_modifier[None]
    elif terrain == CANYON:
        if dist > 0 and alignment > p.spore_canyon_alignment[None]:
            weight *= p.spore_canyon_modifier[None]
    return weight


@ti.kernel
def disperse_spores(
    cells: ti.template(),
    p: ti.template(),
    dir_x: DTYPE,
    dir_y: DTYPE,
    wind_strength: DTYPE,
) -> ti.types.vector(2, DTYPE):
    """
    Accumulate seed and non-seed loads from every source in range.

    Non-seed deposition also raises air toxicity. Returns the total
    [seed, non-seed] deposition.
    """
    total_seed = ti.cast(0.0, DTYPE)
    total_nonseed = ti.cast(0.0, DTYPE)

    nx, ny = cells.terrain.shape
    seed_r = p.seed_radius_cells[None]
    nonseed_r = p.nonseed_radius_cells[None]
    reach = ti.max(seed_r, nonseed_r)

    for i, j in ti.ndrange(nx, ny):
        terrain = cells.terrain[i, j]
        seed_load = ti.cast(0.0, DTYPE)
        nonseed_load = ti.cast(0.0, DTYPE)

        for dx in range(-reach, reach + 1):
            for dy in range(-reach, reach + 1):
                sx = i - dx
                sy = j - dy
                if in_bounds(sx, sy, nx, ny):
                    dist = offset_distance(dx, dy)
                    seed_prod = cells.seed_production[sx, sy]
                    nonseed_prod = cells.nonseed_production[sx, sy]
                    if seed_prod > 0 and dist <= seed_r:
                        seed_load += seed_prod * deposition_weight(
                            p, terrain, dx, dy, seed_r, dir_x, dir_y, wind_strength
                        )
                    if nonseed_prod > 0 and dist <= nonseed_r:
                        nonseed_load += nonseed_prod * deposition_weight(
                            p, terrain, dx, dy, nonseed_r, dir_x, dir_y, wind_strength
                        )

        cells.seed_spores[i, j] += seed_load
        cells.nonseed_spores[i, j] += nonseed_load
        air = cells.air_toxicity[i, j] + nonseed_load * p.spore_air_toxicity_per_load[None]
        cells.air_toxicity[i, j] = clamp(air, 0.0, p.toxicity_range_max[None])

        ti.atomic_add(total_seed, seed_load)
        ti.atomic_add(total_nonseed, nonseed_load)

    return ti.Vector([total_seed, total_nonseed])
