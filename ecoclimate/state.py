"""Read-only records handed out by the engine.

``WeatherState`` is the global weather sample, replaced wholesale on every
weather tick. ``CellState`` is a copy of one grid cell returned by queries;
mutating the grid is only possible through the engine commands.
"""

from dataclasses import dataclass
from math import hypot

from ecoclimate.core.states import TerrainType, VegetationState
from ecoclimate.params.schema import SoilProperties


@dataclass(frozen=True)
class WeatherState:
    """Global weather sample.

    Attributes:
        temperature: Ambient temperature [°C]
        humidity: Relative humidity [%]
        wind_speed: Wind speed [m/s]
        wind_dir_x, wind_dir_y: Unit wind direction
        precipitation: Precipitation rate [mm/day]
        is_storm: Storm flag
        is_fog: Fog flag
    """

    temperature: float
    humidity: float
    wind_speed: float
    wind_dir_x: float = 1.0
    wind_dir_y: float = 0.0
    precipitation: float = 0.0
    is_storm: bool = False
    is_fog: bool = False

    @property
    def wind_x(self) -> float:
        return self.wind_dir_x * self.wind_speed

    @property
    def wind_y(self) -> float:
        return self.wind_dir_y * self.wind_speed


@dataclass(frozen=True)
class CellState:
    """Copy of one cell's full state."""

    x: int
    y: int
    terrain: TerrainType
    elevation: float
    is_low_toxicity_zone: bool
    soil: SoilProperties
    temperature: float
    humidity: float
    wind_x: float
    wind_y: float
    moisture: float
    days_since_rain: float
    days_since_storm: float
    toxicity: float
    air_toxicity: float
    mat_cover: float
    forest_cover: float
    grass_cover: float
    vegetation_state: VegetationState
    seed_spores: float
    nonseed_spores: float
    days_clean_soil: float
    days_since_establishment: float
    last_remediation: float

    @property
    def wind_speed(self) -> float:
        return hypot(self.wind_x, self.wind_y)
