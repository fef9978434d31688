"""Tests for global weather sampling and local cell weather."""

import math

import numpy as np
import pytest

from ecoclimate.kernels.weather import (
    TEMPERATURE_MAX_C,
    WIND_MAX_MS,
    WeatherModel,
    update_cell_weather,
)
from ecoclimate.params.schema import SimulationConfig
from ecoclimate.state import WeatherState


def make_model(seed=0, **overrides):
    config = SimulationConfig()
    if overrides:
        config = config.with_updates(**overrides)
    return WeatherModel(config, np.random.default_rng(seed))


class TestWeatherModel:
    """Tests for the global weather sample."""

    def test_initial_state(self):
        weather = make_model().current
        assert weather.temperature == 22.0
        assert weather.humidity == 25.0
        assert weather.wind_speed == 6.0
        assert (weather.wind_dir_x, weather.wind_dir_y) == (1.0, 0.0)
        assert not weather.is_storm

    def test_temperature_cycles(self):
        model = make_model(climate={"storm_frequency_days": 1e9})
        assert model.sample(0.0).temperature == pytest.approx(22.0)

        t = 0.25  # 06:00 on day 0
        expected = 22.0 + 8.0 * math.sin(2 * math.pi * t / 365.0) + 15.0
        assert model.sample(t).temperature == pytest.approx(expected)

    def test_wind_floor_and_unit_direction(self):
        model = make_model(climate={"wind_mean_ms": 1.0, "wind_variability": 1.0})
        for k in range(200):
            w = model.sample(k * 0.01)
            assert w.wind_speed >= 1.0
            assert math.hypot(w.wind_dir_x, w.wind_dir_y) == pytest.approx(1.0)

    def test_direction_spread(self):
        """Directions stay within half the spread of the prevailing angle."""
        model = make_model(climate={"wind_prevailing_angle_deg": 90.0, "wind_direction_spread_deg": 20.0})
        for k in range(100):
            w = model.sample(k * 0.01)
            angle = math.degrees(math.atan2(w.wind_dir_y, w.wind_dir_x))
            assert 80.0 - 1e-9 <= angle <= 100.0 + 1e-9

    def test_certain_storm(self):
        model = make_model(climate={"storm_frequency_days": 1.0})
        w = model.sample(1.0)
        assert w.is_storm
        assert w.precipitation == 50.0
        assert w.wind_speed >= 25.0

    def test_no_storm_means_no_precipitation(self):
        model = make_model(climate={"storm_frequency_days": 1e12})
        for k in range(50):
            w = model.sample(k * 0.1)
            assert not w.is_storm
            assert w.precipitation == 0.0

    def test_fog_gated_on_humidity(self):
        dry = make_model(climate={"fog_days_yr": 365.0})
        assert not any(dry.sample(k * 0.1).is_fog for k in range(20))

        humid = make_model(climate={"fog_days_yr": 365.0, "humidity_desert_pct": 90.0})
        assert all(humid.sample(k * 0.1).is_fog for k in range(20))

    def test_humidity_carried_over(self):
        model = make_model()
        assert all(model.sample(k * 0.1).humidity == 25.0 for k in range(10))

    def test_same_seed_same_sequence(self):
        a = make_model(seed=11)
        b = make_model(seed=11)
        for k in range(20):
            assert a.sample(k * 0.05) == b.sample(k * 0.05)


def global_weather(temperature=20.0, wind_x=6.0, wind_y=0.0, precipitation=0.0):
    speed = math.hypot(wind_x, wind_y)
    dir_x, dir_y = (wind_x / speed, wind_y / speed) if speed > 0 else (1.0, 0.0)
    return WeatherState(
        temperature=temperature,
        humidity=25.0,
        wind_speed=speed,
        wind_dir_x=dir_x,
        wind_dir_y=dir_y,
        precipitation=precipitation,
        is_storm=precipitation > 0,
    )


class TestCellWeather:
    """Tests for the local weather kernel."""

    def test_desert_temperature(self, cells_factory, default_params):
        cells = cells_factory(["D"])
        update_cell_weather(cells, default_params, global_weather(temperature=20.0))
        # +5 desert heating, +0.3 x toxicity 2.2/3
        assert cells.temperature[0, 0] == pytest.approx(25.22)

    def test_storm_cooling(self, cells_factory, default_params):
        cells = cells_factory(["D"])
        update_cell_weather(cells, default_params, global_weather(temperature=20.0, precipitation=10.0))
        assert cells.temperature[0, 0] == pytest.approx(25.22 - 2.0)

    def test_forest_temperature(self, cells_factory, default_params):
        cells = cells_factory(["F"])
        update_cell_weather(cells, default_params, global_weather(temperature=20.0))
        # +0.3 x 0.8/3 toxicity heating, -0.4 x 0.8 vegetation cooling
        assert cells.temperature[0, 0] == pytest.approx(19.76)

    def test_temperature_clamped(self, cells_factory, default_params):
        cells = cells_factory(["D"])
        update_cell_weather(cells, default_params, global_weather(temperature=70.0))
        assert cells.temperature[0, 0] == TEMPERATURE_MAX_C

    def test_water_proximity_humidity(self, cells_factory, default_params):
        cells = cells_factory(["WDDDD"])
        update_cell_weather(cells, default_params, global_weather())
        humidity = cells.to_numpy("humidity")[:, 0]
        assert humidity[0] == 100.0
        assert humidity[1] == pytest.approx(45.0)
        assert humidity[2] == pytest.approx(45.0)
        assert humidity[3] == pytest.approx(25.0)

    def test_forest_humidity(self, cells_factory, default_params):
        cells = cells_factory(["F"])
        update_cell_weather(cells, default_params, global_weather())
        assert cells.humidity[0, 0] == pytest.approx(75.0 + 15.0 * 0.8)

    def test_canyon_humidity_uses_previous_wind(self, cells_factory, default_params):
        cells = cells_factory(["C"])
        update_cell_weather(cells, default_params, global_weather())
        # Previous local wind is the initial 6 m/s
        assert cells.humidity[0, 0] == pytest.approx(50.0 + 5.0 + 15.0 * 6.0 / 15.0)

    def test_terrain_wind_multipliers(self, cells_factory, default_params):
        cells = cells_factory(["DPCV"])
        update_cell_weather(cells, default_params, global_weather(wind_x=0.0, wind_y=4.0))
        np.testing.assert_allclose(cells.to_numpy("wind_y")[:, 0], [4.0, 5.4, 6.0, 2.4])
        np.testing.assert_allclose(cells.to_numpy("wind_x")[:, 0], 0.0, atol=1e-12)

    def test_forest_drag(self, cells_factory, default_params):
        cells = cells_factory(["F"])
        update_cell_weather(cells, default_params, global_weather(wind_x=6.0))
        assert cells.wind_x[0, 0] == pytest.approx(6.0 * (0.6 + 0.4 * 0.2))

    def test_wind_capped(self, cells_factory, default_params):
        cells = cells_factory(["C"])
        update_cell_weather(cells, default_params, global_weather(wind_x=30.0, wind_y=30.0))
        speed = math.hypot(cells.wind_x[0, 0], cells.wind_y[0, 0])
        assert speed == pytest.approx(WIND_MAX_MS)
