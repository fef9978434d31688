"""
Weather: one global sample per weather tick, then local cell weather.

Global sample (host side, draws from the engine's generator):
    T = T_mean + T_seasonal·sin(2π·day/365) + T_diurnal·sin(2π·hour/24)
    |u| = max(1, u_mean·(1 + (r₁ - 0.5)·variability))
    θ = θ_prevailing + (r₂ - 0.5)·spread
    storm if r₃ < 1/storm_frequency: |u| = max(|u|, u_storm), P = P_storm
    fog if r₄ < fog_days/365 and RH > threshold

Local weather (kernel): terrain offsets and ecological feedbacks on
temperature, terrain and neighbourhood bonuses on humidity, terrain
multipliers and forest drag on wind.
"""

import logging
import math

import numpy as np
import taichi as ti

from ecoclimate.core.dtypes import DTYPE
from ecoclimate.core.geometry import in_bounds
from ecoclimate.core.states import (
    CANYON,
    DESERT,
    FOREST,
    FOREST_STATE,
    GRASSLAND,
    PLATEAU,
    VALLEY,
    WATER,
)
from ecoclimate.kernels.utils import clamp
from ecoclimate.params.schema import SimulationConfig
from ecoclimate.state import WeatherState

logger = logging.getLogger(__name__)

TEMPERATURE_MIN_C = -10.0
TEMPERATURE_MAX_C = 50.0
WIND_MAX_MS = 40.0


class WeatherModel:
    """Samples the global weather.

    Humidity is not resampled: every sample carries the humidity of the
    initial state (desert humidity), which also gates fog.
    """

    def __init__(self, config: SimulationConfig, rng: np.random.Generator):
        self.config = config
        self.rng = rng
        self._current = self.initial_state()

    def initial_state(self) -> WeatherState:
        c = self.config.climate
        return WeatherState(
            temperature=c.temp_mean_c,
            humidity=c.humidity_desert_pct,
            wind_speed=c.wind_mean_ms,
            wind_dir_x=1.0,
            wind_dir_y=0.0,
        )

    @property
    def current(self) -> WeatherState:
        return self._current

    def sample(self, t_days: float) -> WeatherState:
        """Draw the global weather for simulated time t_days and make it current."""
        c = self.config.climate

        day_of_year = t_days % 365.0
        hour_of_day = (t_days * 24.0) % 24.0
        temperature = (
            c.temp_mean_c
            + c.temp_seasonal_c * math.sin(2.0 * math.pi * day_of_year / 365.0)
            + c.temp_diurnal_c * math.sin(2.0 * math.pi * hour_of_day / 24.0)
        )

        r_speed, r_angle, r_storm, r_fog = self.rng.random(4)

        wind_speed = max(1.0, c.wind_mean_ms * (1.0 + (r_speed - 0.5) * c.wind_variability))
        angle = math.radians(
            c.wind_prevailing_angle_deg + (r_angle - 0.5) * c.wind_direction_spread_deg
        )

        is_storm = bool(r_storm < c.storm_probability)
        if is_storm:
            wind_speed = max(wind_speed, c.wind_storm_ms)
            precipitation = c.storm_intensity_mm
        else:
            precipitation = 0.0

        humidity = self._current.humidity
        is_fog = bool(r_fog < c.fog_probability and humidity > c.fog_humidity_threshold_pct)

        self._current = WeatherState(
            temperature=temperature,
            humidity=humidity,
            wind_speed=wind_speed,
            wind_dir_x=math.cos(angle),
            wind_dir_y=math.sin(angle),
            precipitation=precipitation,
            is_storm=is_storm,
            is_fog=is_fog,
        )
        logger.debug(
            "Weather t=%.4f T=%.1f wind=%.1f storm=%s fog=%s",
            t_days, temperature, wind_speed, is_storm, is_fog,
        )
        return self._current


@ti.func
def terrain_temperature_offset(terrain, p: ti.template()):
    offset = ti.cast(0.0, DTYPE)
    if terrain == DESERT:
        offset = p.desert_heating_c[None]
    elif terrain == WATER:
        offset = p.water_cooling_c[None]
    elif terrain == PLATEAU:
        offset = p.plateau_temp_drop_c[None]
    elif terrain == CANYON:
        offset = p.canyon_temp_rise_c[None]
    return offset


@ti.func
def base_humidity(terrain, p: ti.template()):
    """Terrain humidity: plateau as desert, canyon as grassland, valley as forest."""
    rh = p.humidity_desert_pct[None]
    if terrain == GRASSLAND or terrain == CANYON:
        rh = p.humidity_grassland_pct[None]
    elif terrain == FOREST or terrain == VALLEY:
        rh = p.humidity_forest_pct[None]
    elif terrain == WATER:
        rh = p.humidity_water_pct[None]
    return rh


@ti.func
def terrain_wind_multiplier(terrain, p: ti.template()):
    mult = ti.cast(1.0, DTYPE)
    if terrain == PLATEAU:
        mult = p.plateau_wind_mult[None]
    elif terrain == VALLEY:
        mult = p.valley_wind_mult[None]
    elif terrain == CANYON:
        mult = p.canyon_wind_mult[None]
    return mult


@ti.func
def water_within(cells: ti.template(), i, j, radius, nx, ny):
    """1 if any water cell lies in the (2r+1)² square around (i, j), else 0."""
    found = 0
    for dx in range(-radius, radius + 1):
        for dy in range(-radius, radius + 1):
            x = i + dx
            y = j + dy
            if in_bounds(x, y, nx, ny):
                if cells.terrain[x, y] == WATER:
                    found = 1
    return found


@ti.kernel
def cell_weather_step(
    cells: ti.template(),
    p: ti.template(),
    temperature: DTYPE,
    precipitation: DTYPE,
    wind_x: DTYPE,
    wind_y: DTYPE,
):
    """
    Derive local temperature, humidity and wind for every cell.

    Humidity reads the local wind of the previous weather tick; wind is
    updated last.
    """
    nx, ny = cells.terrain.shape
    radius = ti.cast(p.water_humidity_radius_cells[None], ti.i32)

    for i, j in ti.ndrange(nx, ny):
        terrain = cells.terrain[i, j]
        forest_cover = cells.forest_cover[i, j]
        forested = 0
        if cells.veg_state[i, j] == FOREST_STATE and forest_cover > p.forest_effect_threshold[None]:
            forested = 1

        # Temperature
        t_local = temperature + terrain_temperature_offset(terrain, p)
        if precipitation > 0:
            t_local -= p.temp_storm_cooling_per_mm[None] * precipitation
        t_local += p.temp_fungal_mat_heating[None] * cells.mat_cover[i, j]
        t_local += p.temp_toxicity_heating[None] * (cells.toxicity[i, j] / p.toxicity_range_max[None])
        t_local -= p.temp_vegetation_cooling[None] * (cells.grass_cover[i, j] + forest_cover)
        cells.temperature[i, j] = clamp(t_local, TEMPERATURE_MIN_C, TEMPERATURE_MAX_C)

        # Humidity
        prev_speed = ti.sqrt(cells.wind_x[i, j] ** 2 + cells.wind_y[i, j] ** 2)
        rh = base_humidity(terrain, p)
        if terrain == CANYON:
            lo = p.canyon_humidity_min[None]
            hi = p.canyon_humidity_max[None]
            rh += lo + (hi - lo) * ti.min(prev_speed / p.canyon_wind_saturation_ms[None], 1.0)
        if terrain == VALLEY:
            lo = p.valley_humidity_min[None]
            hi = p.valley_humidity_max[None]
            bonus = lo
            if rh > p.valley_humid_threshold_pct[None] and prev_speed < p.valley_calm_wind_ms[None]:
                bonus = hi
            else:
                wet = ti.min(cells.moisture[i, j] / p.valley_moisture_saturation[None], 1.0)
                bonus += (hi - lo) * wet
            rh += bonus
        if forested == 1:
            rh += p.forest_evapotranspiration_rh[None] * forest_cover
        if water_within(cells, i, j, radius, nx, ny) == 1:
            rh += p.water_humidity_boost_pct[None]
        cells.humidity[i, j] = clamp(rh, 0.0, 100.0)

        # Wind
        mult = terrain_wind_multiplier(terrain, p)
        if forested == 1:
            drag = p.forest_wind_mult[None]
            mult *= drag + (1.0 - drag) * (1.0 - forest_cover)
        wx = wind_x * mult
        wy = wind_y * mult
        speed = ti.sqrt(wx * wx + wy * wy)
        if speed > WIND_MAX_MS:
            wx *= WIND_MAX_MS / speed
            wy *= WIND_MAX_MS / speed
        cells.wind_x[i, j] = wx
        cells.wind_y[i, j] = wy


def update_cell_weather(cells, params, weather: WeatherState) -> None:
    """Apply a global weather sample to every cell."""
    cell_weather_step(
        cells,
        params,
        weather.temperature,
        weather.precipitation,
        weather.wind_x,
        weather.wind_y,
    )
