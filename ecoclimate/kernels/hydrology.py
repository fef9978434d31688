"""
Soil moisture: seepage, precipitation, evaporation and fog.

Per non-water cell and ecology step (dt in days):
    seepage   = s_max·dt·(1 - d/d_max)             nearest water cell at 0 < d ≤ d_max
    P'        = P · orographic · convective        only when P > 0
    I         = min(P', K_inf·24)                  runoff P' - I is discarded
    θ        += I·0.001·dt
    θ        -= 0.1·(θ - θ_fc)·dt                  percolation, when θ > θ_fc
    E         = E_soil·(1 + c_T(T - T_ref))·(1 - c_H·RH/100)·(1 - c_V·max(R, G))
    θ        -= E·0.001·dt
    θ        += fog·dt                             when foggy
    θ         ∈ [0, θ_fc]

Orographic and convective modifiers use the global wind vector.
"""

import taichi as ti

from ecoclimate.core.dtypes import DTYPE
from ecoclimate.core.geometry import in_bounds, offset_distance, upwind_offset
from ecoclimate.core.states import PLATEAU, WATER
from ecoclimate.kernels.utils import clamp

MM_TO_VOLUMETRIC = 0.001
HOURS_PER_DAY = 24.0


@ti.func
def nearest_water_distance(cells: ti.template(), i, j, seep_range, nx, ny):
    """Distance to the nearest water cell within seep_range, or -1 if none."""
    best = ti.cast(-1.0, DTYPE)
    for dx in range(-seep_range, seep_range + 1):
        for dy in range(-seep_range, seep_range + 1):
            x = i + dx
            y = j + dy
            if in_bounds(x, y, nx, ny):
                if cells.terrain[x, y] == WATER:
                    d = offset_distance(dx, dy)
                    if d > 0 and d <= seep_range:
                        if best < 0 or d < best:
                            best = d
    return best


@ti.func
def orographic_factor(cells: ti.template(), p: ti.template(), i, j, wind_x, wind_y, nx, ny):
    """Windward boost or rain-shadow reduction on plateau cells."""
    factor = ti.cast(1.0, DTYPE)
    wind_mag = ti.sqrt(wind_x * wind_x + wind_y * wind_y)
    if cells.terrain[i, j] == PLATEAU and wind_mag > p.orographic_min_wind_ms[None]:
        off = upwind_offset(wind_x, wind_y, wind_mag, 1)
        x = i + off[0]
        y = j + off[1]
        shadowed = 0
        if in_bounds(x, y, nx, ny):
            if cells.terrain[x, y] == PLATEAU:
                shadowed = 1
        if shadowed == 1:
            factor = 1.0 - p.rain_shadow_reduction_pct[None] / 100.0
        else:
            factor = 1.0 + p.orographic_boost_pct[None] / 100.0
    return factor


@ti.func
def convective_factor(cells: ti.template(), p: ti.template(), i, j, wind_x, wind_y, nx, ny):
    """Boost downwind of water, falling off linearly with upwind distance."""
    factor = ti.cast(1.0, DTYPE)
    wind_mag = ti.sqrt(wind_x * wind_x + wind_y * wind_y)
    conv_range = ti.cast(p.water_convective_range[None], ti.i32)
    if wind_mag > p.water_convective_min_wind_ms[None]:
        found = 0
        for step in range(1, conv_range + 1):
            if found == 0:
                off = upwind_offset(wind_x, wind_y, wind_mag, step)
                x = i + off[0]
                y = j + off[1]
                if in_bounds(x, y, nx, ny):
                    if cells.terrain[x, y] == WATER:
                        found = 1
                        falloff = 1.0 - ti.cast(step - 1, DTYPE) / ti.cast(conv_range, DTYPE)
                        factor = 1.0 + p.water_precipitation_bonus[None] / 100.0 * falloff
    return factor


@ti.kernel
def hydrology_step(
    cells: ti.template(),
    p: ti.template(),
    precipitation: DTYPE,
    wind_x: DTYPE,
    wind_y: DTYPE,
    is_storm: ti.i32,
    is_fog: ti.i32,
    dt: DTYPE,
) -> ti.types.vector(4, DTYPE):
    """
    Update soil moisture of every non-water cell.

    Returns [seepage, infiltration, runoff, evaporation] summed over the grid,
    in volumetric units.
    """
    total_seepage = ti.cast(0.0, DTYPE)
    total_infiltration = ti.cast(0.0, DTYPE)
    total_runoff = ti.cast(0.0, DTYPE)
    total_evap = ti.cast(0.0, DTYPE)

    nx, ny = cells.terrain.shape
    seep_range = ti.cast(p.seepage_range_cells[None], ti.i32)

    for i, j in ti.ndrange(nx, ny):
        terrain = cells.terrain[i, j]
        if terrain == WATER:
            continue

        fc = p.soil_field_capacity[terrain]
        theta = cells.moisture[i, j]

        # Groundwater seepage
        d = nearest_water_distance(cells, i, j, seep_range, nx, ny)
        if d > 0:
            seep = p.seepage_max_rate_day[None] * dt * (1.0 - d / ti.cast(seep_range, DTYPE))
            new_theta = ti.min(theta + seep, fc)
            ti.atomic_add(total_seepage, ti.max(new_theta - theta, 0.0))
            theta = new_theta

        # Precipitation
        if precipitation > 0:
            rain = precipitation * orographic_factor(cells, p, i, j, wind_x, wind_y, nx, ny)
            rain *= convective_factor(cells, p, i, j, wind_x, wind_y, nx, ny)
            infiltration = ti.min(rain, p.soil_infiltration[terrain] * HOURS_PER_DAY)
            runoff = rain - infiltration
            theta += infiltration * MM_TO_VOLUMETRIC * dt
            ti.atomic_add(total_infiltration, infiltration * MM_TO_VOLUMETRIC * dt)
            ti.atomic_add(total_runoff, runoff * MM_TO_VOLUMETRIC * dt)

            if theta > fc:
                theta -= (theta - fc) * p.percolation_rate_day[None] * dt

            cells.days_since_rain[i, j] = 0.0
            if is_storm == 1:
                cells.days_since_storm[i, j] = 0.0
        else:
            cells.days_since_rain[i, j] += dt
            cells.days_since_storm[i, j] += dt

        # Evaporation
        evap = p.soil_evap_rate[terrain]
        evap *= 1.0 + (cells.temperature[i, j] - p.evap_reference_temp_c[None]) * p.evap_temp_coeff[None]
        evap *= 1.0 - cells.humidity[i, j] / 100.0 * p.evap_humidity_coeff[None]
        veg = ti.max(cells.forest_cover[i, j], cells.grass_cover[i, j])
        evap *= 1.0 - veg * p.evap_vegetation_coeff[None]
        loss = evap * MM_TO_VOLUMETRIC * dt
        theta -= loss
        ti.atomic_add(total_evap, loss)

        if is_fog == 1:
            theta += p.fog_moisture_day[None] * dt

        cells.moisture[i, j] = clamp(theta, 0.0, fc)

    return ti.Vector([total_seepage, total_infiltration, total_runoff, total_evap])
