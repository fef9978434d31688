"""
Fungal mat colonization and growth.

Colonization (seed load A > 0):
    p = c · A/(K_A + A) · f_θ · f_T · (1 + min(2B, 1.5))
    f_θ = 1.5 if θ > 0.05 else 1
    f_T = max(0.1, 1 - |T - T_opt|/30)
    F  += p·(1 - F)·dt

Existing mats (F > 0):
    RH > RH_min and θ > 0.05:  F += g·(RH/100)·min(1, θ/0.1)·F(1 - F)·dt
    otherwise:                 F -= F·(μ + μ_drought·[RH ≤ RH_min])·dt

Water cells are skipped.
"""

import taichi as ti

from ecoclimate.core.dtypes import DTYPE
from ecoclimate.core.states import FUNGAL_MAT, WATER
from ecoclimate.kernels.utils import clamp


@ti.func
def colonization_probability(p: ti.template(), seed, nonseed, moisture, temperature):
    """Per-day colonization rate from deposited spores and local conditions."""
    sigmoid = seed / (p.fungal_colonization_k_a[None] + seed)

    f_moisture = ti.cast(1.0, DTYPE)
    if moisture > p.fungal_moisture_threshold[None]:
        f_moisture = p.fungal_moisture_boost[None]

    delta = ti.abs(temperature - p.fungal_optimal_temp_c[None])
    f_temp = ti.max(p.fungal_temp_factor_min[None], 1.0 - delta / p.fungal_temp_tolerance_c[None])

    prob = p.fungal_colonization_rate[None] * sigmoid * f_moisture * f_temp
    if nonseed > 0:
        boost = ti.min(nonseed * p.fungal_nonseed_boost_per_load[None], p.fungal_nonseed_boost_max[None])
        prob *= 1.0 + boost
    return prob


@ti.func
def fungal_update(cells: ti.template(), p: ti.template(), i, j, dt):
    """Colonize and grow or shrink the mat of cell (i, j). Returns the cover change."""
    before = cells.mat_cover[i, j]
    if cells.terrain[i, j] != WATER:
        cover = before
        moisture = cells.moisture[i, j]
        seed = cells.seed_spores[i, j]

        if seed > 0:
            prob = colonization_probability(
                p, seed, cells.nonseed_spores[i, j], moisture, cells.temperature[i, j]
            )
            cover += prob * (1.0 - cover) * dt
            if cover > p.fungal_presence_threshold[None]:
                cells.veg_state[i, j] = FUNGAL_MAT

        if cover > 0:
            humidity = cells.humidity[i, j]
            humid = 0
            if humidity > p.fungal_humidity_threshold_pct[None]:
                humid = 1
            if humid == 1 and moisture > p.fungal_moisture_threshold[None]:
                rate = p.fungal_growth_rate_day[None] * (humidity / 100.0)
                rate *= ti.min(1.0, moisture / p.fungal_growth_moisture_ref[None])
                cover += rate * cover * (1.0 - cover) * dt
            else:
                death = p.fungal_mortality_day[None]
                if humid == 0:
                    death += p.fungal_drought_death_rate_day[None]
                cover -= cover * death * dt

        cells.mat_cover[i, j] = clamp(cover, 0.0, 1.0)
    return cells.mat_cover[i, j] - before


@ti.kernel
def fungal_step(cells: ti.template(), p: ti.template(), dt: DTYPE) -> DTYPE:
    """Apply the fungal update to every cell. Returns the net change in total mat cover."""
    total = ti.cast(0.0, DTYPE)
    for i, j in cells.mat_cover:
        total += fungal_update(cells, p, i, j, dt)
    return total
