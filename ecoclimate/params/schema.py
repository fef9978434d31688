"""Parameter schema with validation. Units: metres, seconds, days, mm, °C, %."""

from dataclasses import dataclass, field, asdict, fields
from typing import Any

from ecoclimate.core.states import TerrainType


class ValidationError(ValueError):
    """Parameter validation failed."""
    pass


def _positive(value: float, name: str) -> None:
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")


def _non_negative(value: float, name: str) -> None:
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")


def _fraction(value: float, name: str) -> None:
    if not 0 <= value <= 1:
        raise ValidationError(f"{name} must be in [0, 1], got {value}")


def _percent(value: float, name: str) -> None:
    if not 0 <= value <= 100:
        raise ValidationError(f"{name} must be in [0, 100], got {value}")


def _ordered(low: float, high: float, low_name: str, high_name: str) -> None:
    if low > high:
        raise ValidationError(f"{low_name} must be <= {high_name}, got {low} > {high}")


# Validators by kind, shared with the flat key table
CHECKS = {
    "any": lambda value, name: None,
    "positive": _positive,
    "non_negative": _non_negative,
    "fraction": _fraction,
    "percent": _percent,
}


@dataclass(frozen=True)
class DomainParams:
    """Domain: grid_resolution_m [m/cell], weather/ecology cadences [s], speed [-]."""
    grid_resolution_m: float = 100.0
    time_step_weather_s: float = 10.0
    time_step_ecology_s: float = 5.0
    simulation_speed: float = 1.0

    def __post_init__(self) -> None:
        _positive(self.grid_resolution_m, "grid_resolution_m")
        _positive(self.time_step_weather_s, "time_step_weather_s")
        _positive(self.time_step_ecology_s, "time_step_ecology_s")
        _positive(self.simulation_speed, "simulation_speed")

    @property
    def weather_interval_days(self) -> float:
        return self.time_step_weather_s / 86400.0

    @property
    def ecology_interval_days(self) -> float:
        return self.time_step_ecology_s / 86400.0


@dataclass(frozen=True)
class ClimateParams:
    """Base climate: temperatures [°C], wind [m/s], storms, humidity [%], fog [days/yr]."""
    temp_mean_c: float = 22.0
    temp_diurnal_c: float = 15.0
    temp_seasonal_c: float = 8.0
    wind_mean_ms: float = 6.0
    wind_storm_ms: float = 25.0
    wind_variability: float = 0.4
    wind_prevailing_angle_deg: float = 180.0
    wind_direction_spread_deg: float = 54.0
    storm_frequency_days: float = 24.0
    storm_intensity_mm: float = 50.0
    humidity_desert_pct: float = 25.0
    humidity_grassland_pct: float = 50.0
    humidity_forest_pct: float = 75.0
    humidity_water_pct: float = 95.0
    fog_days_yr: float = 60.0
    fog_humidity_threshold_pct: float = 80.0

    def __post_init__(self) -> None:
        _non_negative(self.temp_diurnal_c, "temp_diurnal_c")
        _non_negative(self.temp_seasonal_c, "temp_seasonal_c")
        _positive(self.wind_mean_ms, "wind_mean_ms")
        _non_negative(self.wind_storm_ms, "wind_storm_ms")
        _fraction(self.wind_variability, "wind_variability")
        _non_negative(self.wind_direction_spread_deg, "wind_direction_spread_deg")
        _positive(self.storm_frequency_days, "storm_frequency_days")
        _non_negative(self.storm_intensity_mm, "storm_intensity_mm")
        _percent(self.humidity_desert_pct, "humidity_desert_pct")
        _percent(self.humidity_grassland_pct, "humidity_grassland_pct")
        _percent(self.humidity_forest_pct, "humidity_forest_pct")
        _percent(self.humidity_water_pct, "humidity_water_pct")
        _non_negative(self.fog_days_yr, "fog_days_yr")
        if self.fog_days_yr > 365:
            raise ValidationError(f"fog_days_yr must be <= 365, got {self.fog_days_yr}")
        _percent(self.fog_humidity_threshold_pct, "fog_humidity_threshold_pct")

    @property
    def storm_probability(self) -> float:
        """Chance of a storm on any weather tick."""
        return 1.0 / self.storm_frequency_days

    @property
    def fog_probability(self) -> float:
        return self.fog_days_yr / 365.0


@dataclass(frozen=True)
class TerrainParams:
    """Terrain modifiers on wind [-], humidity [%], temperature [°C] and precipitation [%]."""
    plateau_wind_mult: float = 1.35
    canyon_wind_mult: float = 1.5
    valley_wind_mult: float = 0.6
    forest_wind_mult: float = 0.6
    canyon_humidity_min: float = 5.0
    canyon_humidity_max: float = 20.0
    canyon_wind_saturation_ms: float = 15.0
    valley_humidity_min: float = 10.0
    valley_humidity_max: float = 30.0
    valley_calm_wind_ms: float = 3.0
    valley_humid_threshold_pct: float = 60.0
    valley_moisture_saturation: float = 0.3
    forest_evapotranspiration_rh: float = 15.0
    forest_effect_threshold: float = 0.3
    water_humidity_boost_pct: float = 20.0
    water_humidity_radius_cells: int = 2
    water_precipitation_bonus: float = 10.0
    water_convective_range: int = 3
    water_convective_min_wind_ms: float = 1.0
    water_cooling_c: float = -2.0
    desert_heating_c: float = 5.0
    plateau_temp_drop_c: float = -5.0
    canyon_temp_rise_c: float = 3.0
    orographic_boost_pct: float = 20.0
    rain_shadow_reduction_pct: float = 30.0
    orographic_min_wind_ms: float = 3.0

    def __post_init__(self) -> None:
        _non_negative(self.plateau_wind_mult, "plateau_wind_mult")
        _non_negative(self.canyon_wind_mult, "canyon_wind_mult")
        _non_negative(self.valley_wind_mult, "valley_wind_mult")
        _fraction(self.forest_wind_mult, "forest_wind_mult")
        _ordered(self.canyon_humidity_min, self.canyon_humidity_max,
                 "canyon_humidity_min", "canyon_humidity_max")
        _positive(self.canyon_wind_saturation_ms, "canyon_wind_saturation_ms")
        _ordered(self.valley_humidity_min, self.valley_humidity_max,
                 "valley_humidity_min", "valley_humidity_max")
        _positive(self.valley_moisture_saturation, "valley_moisture_saturation")
        _fraction(self.forest_effect_threshold, "forest_effect_threshold")
        _non_negative(self.water_humidity_radius_cells, "water_humidity_radius_cells")
        _positive(self.water_convective_range, "water_convective_range")
        _percent(self.rain_shadow_reduction_pct, "rain_shadow_reduction_pct")
        _non_negative(self.orographic_boost_pct, "orographic_boost_pct")


@dataclass(frozen=True)
class FeedbackParams:
    """Temperature feedbacks: storm cooling [°C/mm], mat/toxicity heating and vegetation cooling [°C]."""
    temp_storm_cooling_per_mm: float = 0.2
    temp_fungal_mat_heating: float = 0.5
    temp_toxicity_heating: float = 0.3
    temp_vegetation_cooling: float = 0.4

    def __post_init__(self) -> None:
        _non_negative(self.temp_storm_cooling_per_mm, "temp_storm_cooling_per_mm")
        _non_negative(self.temp_fungal_mat_heating, "temp_fungal_mat_heating")
        _non_negative(self.temp_toxicity_heating, "temp_toxicity_heating")
        _non_negative(self.temp_vegetation_cooling, "temp_vegetation_cooling")


@dataclass(frozen=True)
class SoilProperties:
    """Soil of one terrain class.

    porosity [-], field_capacity_pct [%], wilting_point_pct [%], depth_m [m],
    initial_moisture_pct [% of field capacity], evap_rate_mm_day [mm/day],
    infiltration_mm_hr [mm/h], runoff_coeff [-], base_toxicity [0-3].
    """
    porosity: float
    field_capacity_pct: float
    wilting_point_pct: float
    depth_m: float
    initial_moisture_pct: float
    evap_rate_mm_day: float
    infiltration_mm_hr: float
    runoff_coeff: float
    base_toxicity: float

    def __post_init__(self) -> None:
        _fraction(self.porosity, "porosity")
        _percent(self.field_capacity_pct, "field_capacity_pct")
        _percent(self.wilting_point_pct, "wilting_point_pct")
        _ordered(self.wilting_point_pct, self.field_capacity_pct,
                 "wilting_point_pct", "field_capacity_pct")
        _positive(self.depth_m, "depth_m")
        _percent(self.initial_moisture_pct, "initial_moisture_pct")
        _non_negative(self.evap_rate_mm_day, "evap_rate_mm_day")
        _non_negative(self.infiltration_mm_hr, "infiltration_mm_hr")
        _fraction(self.runoff_coeff, "runoff_coeff")
        _non_negative(self.base_toxicity, "base_toxicity")

    def field_capacity(self, max_volumetric: float) -> float:
        """Volumetric field capacity [m³/m³]."""
        return self.field_capacity_pct / 100.0 * max_volumetric

    def wilting_point(self, max_volumetric: float) -> float:
        """Volumetric wilting point [m³/m³]."""
        return self.wilting_point_pct / 100.0 * max_volumetric

    @property
    def initial_moisture(self) -> float:
        """Starting moisture: initial fraction of the field-capacity fraction."""
        return self.initial_moisture_pct / 100.0 * self.field_capacity_pct / 100.0


def _desert_soil() -> SoilProperties:
    return SoilProperties(0.35, 8.0, 3.0, 0.5, 5.0, 15.0, 2.0, 0.8, 1.5)


def _grassland_soil() -> SoilProperties:
    return SoilProperties(0.40, 15.0, 6.0, 1.0, 15.0, 6.0, 5.0, 0.3, 0.8)


def _forest_soil() -> SoilProperties:
    return SoilProperties(0.45, 22.0, 10.0, 2.0, 18.0, 1.0, 8.0, 0.1, 0.8)


def _valley_soil() -> SoilProperties:
    return SoilProperties(0.50, 28.0, 12.0, 2.5, 22.0, 0.5, 10.0, 0.05, 0.5)


@dataclass(frozen=True)
class SoilParams:
    """Soils of the four base terrains plus the modifiers deriving plateau, canyon and water."""
    desert: SoilProperties = field(default_factory=_desert_soil)
    grassland: SoilProperties = field(default_factory=_grassland_soil)
    forest: SoilProperties = field(default_factory=_forest_soil)
    valley: SoilProperties = field(default_factory=_valley_soil)
    water_evap_rate_mm_day: float = 2.0
    plateau_depth_m: float = 0.3
    plateau_evap_mult: float = 1.5
    plateau_infiltration_mult: float = 0.5
    plateau_runoff_coeff: float = 0.9
    canyon_initial_moisture_mult: float = 1.2
    canyon_evap_mult: float = 0.8
    canyon_runoff_coeff: float = 0.4

    def __post_init__(self) -> None:
        _non_negative(self.water_evap_rate_mm_day, "water_evap_rate_mm_day")
        _positive(self.plateau_depth_m, "plateau_depth_m")
        _non_negative(self.plateau_evap_mult, "plateau_evap_mult")
        _non_negative(self.plateau_infiltration_mult, "plateau_infiltration_mult")
        _fraction(self.plateau_runoff_coeff, "plateau_runoff_coeff")
        _non_negative(self.canyon_initial_moisture_mult, "canyon_initial_moisture_mult")
        _non_negative(self.canyon_evap_mult, "canyon_evap_mult")
        _fraction(self.canyon_runoff_coeff, "canyon_runoff_coeff")

    def for_terrain(self, terrain: TerrainType) -> SoilProperties:
        """Derive the soil record of a terrain class."""
        terrain = TerrainType(terrain)
        if terrain == TerrainType.GRASSLAND:
            return self.grassland
        if terrain == TerrainType.FOREST:
            return self.forest
        if terrain == TerrainType.VALLEY:
            return self.valley
        if terrain == TerrainType.WATER:
            return SoilProperties(
                porosity=1.0,
                field_capacity_pct=100.0,
                wilting_point_pct=0.0,
                depth_m=10.0,
                initial_moisture_pct=100.0,
                evap_rate_mm_day=self.water_evap_rate_mm_day,
                infiltration_mm_hr=0.0,
                runoff_coeff=0.0,
                base_toxicity=0.0,
            )
        if terrain == TerrainType.PLATEAU:
            # Rocky desert: shallow, windswept, poor infiltration
            d = self.desert
            return SoilProperties(
                porosity=d.porosity,
                field_capacity_pct=d.field_capacity_pct,
                wilting_point_pct=d.wilting_point_pct,
                depth_m=self.plateau_depth_m,
                initial_moisture_pct=d.initial_moisture_pct,
                evap_rate_mm_day=d.evap_rate_mm_day * self.plateau_evap_mult,
                infiltration_mm_hr=d.infiltration_mm_hr * self.plateau_infiltration_mult,
                runoff_coeff=self.plateau_runoff_coeff,
                base_toxicity=d.base_toxicity,
            )
        if terrain == TerrainType.CANYON:
            # Sheltered grassland soil that collects water
            g = self.grassland
            return SoilProperties(
                porosity=g.porosity,
                field_capacity_pct=g.field_capacity_pct,
                wilting_point_pct=g.wilting_point_pct,
                depth_m=g.depth_m,
                initial_moisture_pct=min(100.0, g.initial_moisture_pct * self.canyon_initial_moisture_mult),
                evap_rate_mm_day=g.evap_rate_mm_day * self.canyon_evap_mult,
                infiltration_mm_hr=g.infiltration_mm_hr,
                runoff_coeff=self.canyon_runoff_coeff,
                base_toxicity=g.base_toxicity,
            )
        return self.desert


@dataclass(frozen=True)
class HydrologyParams:
    """Soil water: max_volumetric_moisture [m³/m³], seepage [cells, 1/day], percolation/fog [1/day], evaporation coefficients."""
    max_volumetric_moisture: float = 0.45
    seepage_range_cells: int = 3
    seepage_max_rate_day: float = 0.002
    percolation_rate_day: float = 0.1
    fog_moisture_day: float = 0.001
    evap_reference_temp_c: float = 20.0
    evap_temp_coeff: float = 0.05
    evap_humidity_coeff: float = 0.3
    evap_vegetation_coeff: float = 0.4

    def __post_init__(self) -> None:
        _fraction(self.max_volumetric_moisture, "max_volumetric_moisture")
        _positive(self.max_volumetric_moisture, "max_volumetric_moisture")
        _non_negative(self.seepage_range_cells, "seepage_range_cells")
        _non_negative(self.seepage_max_rate_day, "seepage_max_rate_day")
        _fraction(self.percolation_rate_day, "percolation_rate_day")
        _non_negative(self.fog_moisture_day, "fog_moisture_day")
        _non_negative(self.evap_temp_coeff, "evap_temp_coeff")
        _fraction(self.evap_humidity_coeff, "evap_humidity_coeff")
        _fraction(self.evap_vegetation_coeff, "evap_vegetation_coeff")


@dataclass(frozen=True)
class FungalParams:
    """Fungal mats: rates [1/day], humidity [%], temperatures [°C], moisture [m³/m³]."""
    fungal_growth_rate_day: float = 0.035
    fungal_mortality_day: float = 0.03
    fungal_humidity_threshold_pct: float = 40.0
    fungal_drought_death_rate_day: float = 0.03
    fungal_colonization_rate: float = 0.5
    fungal_colonization_k_a: float = 0.5
    fungal_optimal_temp_c: float = 25.0
    fungal_temp_tolerance_c: float = 30.0
    fungal_temp_factor_min: float = 0.1
    fungal_moisture_threshold: float = 0.05
    fungal_moisture_boost: float = 1.5
    fungal_growth_moisture_ref: float = 0.1
    fungal_nonseed_boost_per_load: float = 2.0
    fungal_nonseed_boost_max: float = 1.5
    fungal_presence_threshold: float = 0.001

    def __post_init__(self) -> None:
        _non_negative(self.fungal_growth_rate_day, "fungal_growth_rate_day")
        _non_negative(self.fungal_mortality_day, "fungal_mortality_day")
        _percent(self.fungal_humidity_threshold_pct, "fungal_humidity_threshold_pct")
        _non_negative(self.fungal_drought_death_rate_day, "fungal_drought_death_rate_day")
        _non_negative(self.fungal_colonization_rate, "fungal_colonization_rate")
        _positive(self.fungal_colonization_k_a, "fungal_colonization_k_a")
        _positive(self.fungal_temp_tolerance_c, "fungal_temp_tolerance_c")
        _fraction(self.fungal_temp_factor_min, "fungal_temp_factor_min")
        _non_negative(self.fungal_moisture_threshold, "fungal_moisture_threshold")
        _positive(self.fungal_moisture_boost, "fungal_moisture_boost")
        _positive(self.fungal_growth_moisture_ref, "fungal_growth_moisture_ref")
        _non_negative(self.fungal_nonseed_boost_per_load, "fungal_nonseed_boost_per_load")
        _non_negative(self.fungal_nonseed_boost_max, "fungal_nonseed_boost_max")
        _fraction(self.fungal_presence_threshold, "fungal_presence_threshold")


@dataclass(frozen=True)
class SporeParams:
    """Spores: emission yields [-], ranges [m], decay [1/cell], storm and terrain multipliers [-]."""
    spore_emission_forest_seed: float = 1.0
    spore_emission_forest_nonseed: float = 5.0
    spore_emission_mat_nonseed: float = 2.0
    spore_range_seed_base: float = 200.0
    spore_range_nonseed_base: float = 800.0
    spore_min_radius_seed_cells: int = 2
    spore_min_radius_nonseed_cells: int = 4
    spore_wet_factor: float = 0.10
    spore_survival_decay: float = 0.15
    spore_toxicity_multiplier: float = 0.7
    spore_mat_moisture_multiplier: float = 0.2
    storm_spore_multiplier: float = 15.0
    storm_mat_spore_fraction: float = 0.6
    spore_wind_scale: float = 0.3
    spore_air_toxicity_per_load: float = 0.01
    spore_plateau_modifier: float = 0.25
    spore_canyon_modifier: float = 1.3
    spore_canyon_alignment: float = 0.7
    clean_soil_toxicity: float = 0.001
    clean_soil_grace_days: float = 3.0

    def __post_init__(self) -> None:
        _non_negative(self.spore_emission_forest_seed, "spore_emission_forest_seed")
        _non_negative(self.spore_emission_forest_nonseed, "spore_emission_forest_nonseed")
        _non_negative(self.spore_emission_mat_nonseed, "spore_emission_mat_nonseed")
        _non_negative(self.spore_range_seed_base, "spore_range_seed_base")
        _non_negative(self.spore_range_nonseed_base, "spore_range_nonseed_base")
        _positive(self.spore_min_radius_seed_cells, "spore_min_radius_seed_cells")
        _positive(self.spore_min_radius_nonseed_cells, "spore_min_radius_nonseed_cells")
        _fraction(self.spore_wet_factor, "spore_wet_factor")
        _non_negative(self.spore_survival_decay, "spore_survival_decay")
        _non_negative(self.spore_toxicity_multiplier, "spore_toxicity_multiplier")
        _non_negative(self.spore_mat_moisture_multiplier, "spore_mat_moisture_multiplier")
        _non_negative(self.storm_spore_multiplier, "storm_spore_multiplier")
        _non_negative(self.storm_mat_spore_fraction, "storm_mat_spore_fraction")
        _non_negative(self.spore_wind_scale, "spore_wind_scale")
        _non_negative(self.spore_air_toxicity_per_load, "spore_air_toxicity_per_load")
        _non_negative(self.spore_plateau_modifier, "spore_plateau_modifier")
        _non_negative(self.spore_canyon_modifier, "spore_canyon_modifier")
        if not -1.0 <= self.spore_canyon_alignment <= 1.0:
            raise ValidationError(
                f"spore_canyon_alignment must be in [-1, 1], got {self.spore_canyon_alignment}"
            )
        _non_negative(self.clean_soil_toxicity, "clean_soil_toxicity")
        _non_negative(self.clean_soil_grace_days, "clean_soil_grace_days")

    def seed_radius_cells(self, grid_resolution_m: float) -> int:
        """Dispersal radius of seed spores in whole cells."""
        return max(self.spore_min_radius_seed_cells,
                   int(self.spore_range_seed_base / grid_resolution_m))

    def nonseed_radius_cells(self, grid_resolution_m: float) -> int:
        """Dispersal radius of non-seed spores in whole cells."""
        return max(self.spore_min_radius_nonseed_cells,
                   int(self.spore_range_nonseed_base / grid_resolution_m))


@dataclass(frozen=True)
class ToxicityParams:
    """Toxicity: range max [-], rates [1/day], initial desert levels [-]."""
    toxicity_range_max: float = 3.0
    toxicity_natural_decay_day: float = 0.0006
    toxicity_air_decay_fraction: float = 0.2
    toxicity_fungal_boost_day: float = 0.04
    toxicity_forest_purify_day: float = 0.006
    toxicity_grass_purify_fraction: float = 0.3
    desert_initial_toxicity: float = 2.2
    low_toxicity_max: float = 1.0

    def __post_init__(self) -> None:
        _positive(self.toxicity_range_max, "toxicity_range_max")
        _non_negative(self.toxicity_natural_decay_day, "toxicity_natural_decay_day")
        _non_negative(self.toxicity_air_decay_fraction, "toxicity_air_decay_fraction")
        _non_negative(self.toxicity_fungal_boost_day, "toxicity_fungal_boost_day")
        _non_negative(self.toxicity_forest_purify_day, "toxicity_forest_purify_day")
        _non_negative(self.toxicity_grass_purify_fraction, "toxicity_grass_purify_fraction")
        _non_negative(self.desert_initial_toxicity, "desert_initial_toxicity")
        _non_negative(self.low_toxicity_max, "low_toxicity_max")


@dataclass(frozen=True)
class VegetationParams:
    """Vegetation: rates [1/day], thresholds [-], covers [0-1], transition horizon [days]."""
    veg_growth_rate_day: float = 0.025
    veg_drought_death_rate_day: float = 0.05
    veg_toxicity_death_rate_day: float = 0.08
    veg_toxicity_threshold: float = 2.0
    forest_growth_rate_day: float = 0.008
    forest_mortality_day: float = 0.001
    forest_drought_tolerance: float = 0.1
    forest_drought_mortality_factor: float = 0.05
    forest_toxicity_tolerance: float = 3.0
    grass_mortality_day: float = 0.001
    grass_toxic_mortality_day: float = 0.01
    grass_toxic_mortality_threshold: float = 1.0
    mat_to_forest_days: float = 730.0
    mat_to_forest_threshold: float = 0.6
    mat_to_forest_mat_loss: float = 0.5
    succession_moisture_grass_pct: float = 5.0
    succession_grass_threshold_toxicity: float = 1.0
    succession_moisture_min: float = 0.05
    barren_to_mat_cover: float = 0.2
    mat_snap_cover: float = 0.3
    forest_snap_trigger: float = 0.2
    forest_snap_cover: float = 0.3
    forest_snap_mat_cover: float = 0.1
    grass_establishment_cover: float = 0.1
    state_cover_threshold: float = 0.1
    initial_forest_cover: float = 0.8
    initial_forest_toxicity: float = 0.8
    initial_grass_cover: float = 0.4

    def __post_init__(self) -> None:
        _non_negative(self.veg_growth_rate_day, "veg_growth_rate_day")
        _non_negative(self.veg_drought_death_rate_day, "veg_drought_death_rate_day")
        _non_negative(self.veg_toxicity_death_rate_day, "veg_toxicity_death_rate_day")
        _non_negative(self.veg_toxicity_threshold, "veg_toxicity_threshold")
        _non_negative(self.forest_growth_rate_day, "forest_growth_rate_day")
        _non_negative(self.forest_mortality_day, "forest_mortality_day")
        _fraction(self.forest_drought_tolerance, "forest_drought_tolerance")
        _fraction(self.forest_drought_mortality_factor, "forest_drought_mortality_factor")
        _non_negative(self.forest_toxicity_tolerance, "forest_toxicity_tolerance")
        _non_negative(self.grass_mortality_day, "grass_mortality_day")
        _non_negative(self.grass_toxic_mortality_day, "grass_toxic_mortality_day")
        _positive(self.mat_to_forest_days, "mat_to_forest_days")
        _fraction(self.mat_to_forest_threshold, "mat_to_forest_threshold")
        _non_negative(self.mat_to_forest_mat_loss, "mat_to_forest_mat_loss")
        _percent(self.succession_moisture_grass_pct, "succession_moisture_grass_pct")
        _non_negative(self.succession_moisture_min, "succession_moisture_min")
        _fraction(self.barren_to_mat_cover, "barren_to_mat_cover")
        _fraction(self.mat_snap_cover, "mat_snap_cover")
        _fraction(self.forest_snap_trigger, "forest_snap_trigger")
        _fraction(self.forest_snap_cover, "forest_snap_cover")
        _fraction(self.forest_snap_mat_cover, "forest_snap_mat_cover")
        _fraction(self.grass_establishment_cover, "grass_establishment_cover")
        _fraction(self.state_cover_threshold, "state_cover_threshold")
        _fraction(self.initial_forest_cover, "initial_forest_cover")
        _non_negative(self.initial_forest_toxicity, "initial_forest_toxicity")
        _fraction(self.initial_grass_cover, "initial_grass_cover")


@dataclass(frozen=True)
class RemediationParams:
    """Remediation: radius [cells], toxicity/fungal reduction fractions [-], moisture boost [% of field capacity]."""
    neutralize_radius_cells: int = 3
    neutralize_toxicity_drop: float = 0.8
    neutralize_moisture_boost_pct: float = 25.0
    neutralize_fungal_clear: float = 1.0

    def __post_init__(self) -> None:
        _non_negative(self.neutralize_radius_cells, "neutralize_radius_cells")
        _fraction(self.neutralize_toxicity_drop, "neutralize_toxicity_drop")
        _percent(self.neutralize_moisture_boost_pct, "neutralize_moisture_boost_pct")
        _fraction(self.neutralize_fungal_clear, "neutralize_fungal_clear")


PARAM_GROUPS: dict[str, type] = {
    "domain": DomainParams,
    "climate": ClimateParams,
    "terrain": TerrainParams,
    "feedback": FeedbackParams,
    "soil": SoilParams,
    "hydrology": HydrologyParams,
    "fungal": FungalParams,
    "spores": SporeParams,
    "toxicity": ToxicityParams,
    "vegetation": VegetationParams,
    "remediation": RemediationParams,
}

SOIL_TERRAINS = ("desert", "grassland", "forest", "valley")


@dataclass(frozen=True)
class SimulationConfig:
    """Complete, immutable parameter set."""

    domain: DomainParams = field(default_factory=DomainParams)
    climate: ClimateParams = field(default_factory=ClimateParams)
    terrain: TerrainParams = field(default_factory=TerrainParams)
    feedback: FeedbackParams = field(default_factory=FeedbackParams)
    soil: SoilParams = field(default_factory=SoilParams)
    hydrology: HydrologyParams = field(default_factory=HydrologyParams)
    fungal: FungalParams = field(default_factory=FungalParams)
    spores: SporeParams = field(default_factory=SporeParams)
    toxicity: ToxicityParams = field(default_factory=ToxicityParams)
    vegetation: VegetationParams = field(default_factory=VegetationParams)
    remediation: RemediationParams = field(default_factory=RemediationParams)

    def to_dict(self) -> dict[str, Any]:
        """Convert to nested dictionary."""
        return {name: asdict(getattr(self, name)) for name in PARAM_GROUPS}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimulationConfig":
        """Create from nested dictionary."""
        kwargs = {}
        for key, group in data.items():
            if key not in PARAM_GROUPS:
                continue
            kwargs[key] = build_group(key, group)
        return cls(**kwargs)

    def with_updates(self, **kwargs: Any) -> "SimulationConfig":
        """Create new config with updates."""
        current = self.to_dict()
        for key, value in kwargs.items():
            if key not in current:
                raise ValidationError(f"Unknown parameter group: {key}")
            if isinstance(value, dict):
                _deep_update(current[key], value)
            else:
                current[key] = asdict(value)
        return self.from_dict(current)

    def to_flat(self) -> dict[str, float | int]:
        """Convert to a flat ``{name: value}`` mapping."""
        from ecoclimate.params.keys import to_flat

        return to_flat(self)

    @classmethod
    def from_flat(cls, values: dict[str, Any]) -> "SimulationConfig":
        """Create from a flat mapping. Unknown names are ignored, missing ones take defaults.

        Raises:
            ValidationError: If a known value is malformed or out of range
        """
        from ecoclimate.params.keys import PARAMETER_KEYS, group_updates

        parsed = {}
        for name, raw in values.items():
            key = PARAMETER_KEYS.get(name)
            if key is None:
                continue
            try:
                parsed[name] = key.parse(raw)
            except (TypeError, ValueError) as exc:
                raise ValidationError(str(exc)) from exc
        return cls().with_updates(**group_updates(parsed))

    def soil_properties(self, terrain: TerrainType) -> SoilProperties:
        """Soil record for a terrain class."""
        return self.soil.for_terrain(terrain)

    def field_capacity(self, terrain: TerrainType) -> float:
        """Volumetric field capacity of a terrain's soil [m³/m³]."""
        return self.soil_properties(terrain).field_capacity(self.hydrology.max_volumetric_moisture)

    def wilting_point(self, terrain: TerrainType) -> float:
        """Volumetric wilting point of a terrain's soil [m³/m³]."""
        return self.soil_properties(terrain).wilting_point(self.hydrology.max_volumetric_moisture)


def build_group(name: str, values: dict[str, Any]) -> Any:
    """Build one parameter group from a (possibly partial) dictionary."""
    cls = PARAM_GROUPS[name]
    if cls is SoilParams:
        values = dict(values)
        for terrain in SOIL_TERRAINS:
            if terrain in values and isinstance(values[terrain], dict):
                base = asdict(getattr(SoilParams(), terrain))
                base.update(values[terrain])
                values[terrain] = SoilProperties(**base)
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in values.items() if k in known})


def _deep_update(target: dict[str, Any], updates: dict[str, Any]) -> None:
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        else:
            target[key] = value
