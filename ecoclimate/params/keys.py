"""Flat parameter names.

Every flat name (as used by ``name,value`` parameter files) is listed here
with the group and field it binds to, the value kind, and the check applied
to a single value. ``PARAMETER_KEYS`` is the only binding between flat names
and the grouped schema.
"""

from dataclasses import dataclass
from typing import Any

from ecoclimate.params.schema import CHECKS, SOIL_TERRAINS


@dataclass(frozen=True)
class ParameterKey:
    """Binding of one flat parameter name.

    Attributes:
        name: Flat parameter name
        group: SimulationConfig group attribute
        attr: Field of the group
        kind: ``float`` or ``int``
        check: Validator kind from ``CHECKS``
        soil_attr: Field of the SoilProperties record, for per-terrain soil keys
    """

    name: str
    group: str
    attr: str
    kind: type = float
    check: str = "any"
    soil_attr: str | None = None

    def parse(self, raw: Any) -> float | int:
        """Convert and validate a raw value, raising ValueError when unusable."""
        if self.kind is int:
            value = float(raw)
            if not value.is_integer():
                raise ValueError(f"{self.name} must be an integer, got {raw!r}")
            value = int(value)
        else:
            value = float(raw)
            if value != value or value in (float("inf"), float("-inf")):
                raise ValueError(f"{self.name} must be finite, got {raw!r}")
        CHECKS[self.check](value, self.name)
        return value

    def get(self, config: Any) -> float | int:
        """Read this key's value from a SimulationConfig."""
        value = getattr(getattr(config, self.group), self.attr)
        if self.soil_attr is not None:
            value = getattr(value, self.soil_attr)
        return value


def _group(group: str, entries: list[tuple]) -> list[ParameterKey]:
    return [ParameterKey(name, group, name, kind, check) for name, kind, check in entries]


_DOMAIN = _group("domain", [
    ("grid_resolution_m", float, "positive"),
    ("time_step_weather_s", float, "positive"),
    ("time_step_ecology_s", float, "positive"),
    ("simulation_speed", float, "positive"),
])

_CLIMATE = _group("climate", [
    ("temp_mean_c", float, "any"),
    ("temp_diurnal_c", float, "non_negative"),
    ("temp_seasonal_c", float, "non_negative"),
    ("wind_mean_ms", float, "positive"),
    ("wind_storm_ms", float, "non_negative"),
    ("wind_variability", float, "fraction"),
    ("wind_prevailing_angle_deg", float, "any"),
    ("wind_direction_spread_deg", float, "non_negative"),
    ("storm_frequency_days", float, "positive"),
    ("storm_intensity_mm", float, "non_negative"),
    ("humidity_desert_pct", float, "percent"),
    ("humidity_grassland_pct", float, "percent"),
    ("humidity_forest_pct", float, "percent"),
    ("humidity_water_pct", float, "percent"),
    ("fog_days_yr", float, "non_negative"),
    ("fog_humidity_threshold_pct", float, "percent"),
])

_TERRAIN = _group("terrain", [
    ("plateau_wind_mult", float, "non_negative"),
    ("canyon_wind_mult", float, "non_negative"),
    ("valley_wind_mult", float, "non_negative"),
    ("forest_wind_mult", float, "fraction"),
    ("canyon_humidity_min", float, "any"),
    ("canyon_humidity_max", float, "any"),
    ("canyon_wind_saturation_ms", float, "positive"),
    ("valley_humidity_min", float, "any"),
    ("valley_humidity_max", float, "any"),
    ("valley_calm_wind_ms", float, "non_negative"),
    ("valley_humid_threshold_pct", float, "percent"),
    ("valley_moisture_saturation", float, "positive"),
    ("forest_evapotranspiration_rh", float, "any"),
    ("forest_effect_threshold", float, "fraction"),
    ("water_humidity_boost_pct", float, "any"),
    ("water_humidity_radius_cells", int, "non_negative"),
    ("water_precipitation_bonus", float, "any"),
    ("water_convective_range", int, "positive"),
    ("water_convective_min_wind_ms", float, "non_negative"),
    ("water_cooling_c", float, "any"),
    ("desert_heating_c", float, "any"),
    ("plateau_temp_drop_c", float, "any"),
    ("canyon_temp_rise_c", float, "any"),
    ("orographic_boost_pct", float, "non_negative"),
    ("rain_shadow_reduction_pct", float, "percent"),
    ("orographic_min_wind_ms", float, "non_negative"),
])

_FEEDBACK = _group("feedback", [
    ("temp_storm_cooling_per_mm", float, "non_negative"),
    ("temp_fungal_mat_heating", float, "non_negative"),
    ("temp_toxicity_heating", float, "non_negative"),
    ("temp_vegetation_cooling", float, "non_negative"),
])

_SOIL_FIELDS = [
    ("porosity", "fraction"),
    ("field_capacity_pct", "percent"),
    ("wilting_point_pct", "percent"),
    ("depth_m", "positive"),
    ("initial_moisture_pct", "percent"),
    ("evap_rate_mm_day", "non_negative"),
    ("infiltration_mm_hr", "non_negative"),
    ("runoff_coeff", "fraction"),
    ("base_toxicity", "non_negative"),
]

_SOIL = [
    ParameterKey(f"{terrain}_{attr}", "soil", terrain, float, check, soil_attr=attr)
    for terrain in SOIL_TERRAINS
    for attr, check in _SOIL_FIELDS
] + _group("soil", [
    ("water_evap_rate_mm_day", float, "non_negative"),
    ("plateau_depth_m", float, "positive"),
    ("plateau_evap_mult", float, "non_negative"),
    ("plateau_infiltration_mult", float, "non_negative"),
    ("plateau_runoff_coeff", float, "fraction"),
    ("canyon_initial_moisture_mult", float, "non_negative"),
    ("canyon_evap_mult", float, "non_negative"),
    ("canyon_runoff_coeff", float, "fraction"),
])

_HYDROLOGY = _group("hydrology", [
    ("max_volumetric_moisture", float, "fraction"),
    ("seepage_range_cells", int, "non_negative"),
    ("seepage_max_rate_day", float, "non_negative"),
    ("percolation_rate_day", float, "fraction"),
    ("fog_moisture_day", float, "non_negative"),
    ("evap_reference_temp_c", float, "any"),
    ("evap_temp_coeff", float, "non_negative"),
    ("evap_humidity_coeff", float, "fraction"),
    ("evap_vegetation_coeff", float, "fraction"),
])

_FUNGAL = _group("fungal", [
    ("fungal_growth_rate_day", float, "non_negative"),
    ("fungal_mortality_day", float, "non_negative"),
    ("fungal_humidity_threshold_pct", float, "percent"),
    ("fungal_drought_death_rate_day", float, "non_negative"),
    ("fungal_colonization_rate", float, "non_negative"),
    ("fungal_colonization_k_a", float, "positive"),
    ("fungal_optimal_temp_c", float, "any"),
    ("fungal_temp_tolerance_c", float, "positive"),
    ("fungal_temp_factor_min", float, "fraction"),
    ("fungal_moisture_threshold", float, "non_negative"),
    ("fungal_moisture_boost", float, "positive"),
    ("fungal_growth_moisture_ref", float, "positive"),
    ("fungal_nonseed_boost_per_load", float, "non_negative"),
    ("fungal_nonseed_boost_max", float, "non_negative"),
    ("fungal_presence_threshold", float, "fraction"),
])

_SPORES = _group("spores", [
    ("spore_emission_forest_seed", float, "non_negative"),
    ("spore_emission_forest_nonseed", float, "non_negative"),
    ("spore_emission_mat_nonseed", float, "non_negative"),
    ("spore_range_seed_base", float, "non_negative"),
    ("spore_range_nonseed_base", float, "non_negative"),
    ("spore_min_radius_seed_cells", int, "non_negative"),
    ("spore_min_radius_nonseed_cells", int, "non_negative"),
    ("spore_wet_factor", float, "fraction"),
    ("spore_survival_decay", float, "non_negative"),
    ("spore_toxicity_multiplier", float, "non_negative"),
    ("spore_mat_moisture_multiplier", float, "non_negative"),
    ("storm_spore_multiplier", float, "non_negative"),
    ("storm_mat_spore_fraction", float, "non_negative"),
    ("spore_wind_scale", float, "non_negative"),
    ("spore_air_toxicity_per_load", float, "non_negative"),
    ("spore_plateau_modifier", float, "non_negative"),
    ("spore_canyon_modifier", float, "non_negative"),
    ("spore_canyon_alignment", float, "any"),
    ("clean_soil_toxicity", float, "non_negative"),
    ("clean_soil_grace_days", float, "non_negative"),
])

_TOXICITY = _group("toxicity", [
    ("toxicity_range_max", float, "positive"),
    ("toxicity_natural_decay_day", float, "non_negative"),
    ("toxicity_air_decay_fraction", float, "non_negative"),
    ("toxicity_fungal_boost_day", float, "non_negative"),
    ("toxicity_forest_purify_day", float, "non_negative"),
    ("toxicity_grass_purify_fraction", float, "non_negative"),
    ("desert_initial_toxicity", float, "non_negative"),
    ("low_toxicity_max", float, "non_negative"),
])

_VEGETATION = _group("vegetation", [
    ("veg_growth_rate_day", float, "non_negative"),
    ("veg_drought_death_rate_day", float, "non_negative"),
    ("veg_toxicity_death_rate_day", float, "non_negative"),
    ("veg_toxicity_threshold", float, "non_negative"),
    ("forest_growth_rate_day", float, "non_negative"),
    ("forest_mortality_day", float, "non_negative"),
    ("forest_drought_tolerance", float, "fraction"),
    ("forest_drought_mortality_factor", float, "fraction"),
    ("forest_toxicity_tolerance", float, "non_negative"),
    ("grass_mortality_day", float, "non_negative"),
    ("grass_toxic_mortality_day", float, "non_negative"),
    ("grass_toxic_mortality_threshold", float, "any"),
    ("mat_to_forest_days", float, "positive"),
    ("mat_to_forest_threshold", float, "fraction"),
    ("mat_to_forest_mat_loss", float, "non_negative"),
    ("succession_moisture_grass_pct", float, "percent"),
    ("succession_grass_threshold_toxicity", float, "any"),
    ("succession_moisture_min", float, "non_negative"),
    ("barren_to_mat_cover", float, "fraction"),
    ("mat_snap_cover", float, "fraction"),
    ("forest_snap_trigger", float, "fraction"),
    ("forest_snap_cover", float, "fraction"),
    ("forest_snap_mat_cover", float, "fraction"),
    ("grass_establishment_cover", float, "fraction"),
    ("state_cover_threshold", float, "fraction"),
    ("initial_forest_cover", float, "fraction"),
    ("initial_forest_toxicity", float, "non_negative"),
    ("initial_grass_cover", float, "fraction"),
])

_REMEDIATION = _group("remediation", [
    ("neutralize_radius_cells", int, "non_negative"),
    ("neutralize_toxicity_drop", float, "fraction"),
    ("neutralize_moisture_boost_pct", float, "percent"),
    ("neutralize_fungal_clear", float, "fraction"),
])

PARAMETER_KEYS: dict[str, ParameterKey] = {
    key.name: key
    for key in (
        _DOMAIN + _CLIMATE + _TERRAIN + _FEEDBACK + _SOIL + _HYDROLOGY
        + _FUNGAL + _SPORES + _TOXICITY + _VEGETATION + _REMEDIATION
    )
}


def to_flat(config: Any) -> dict[str, float | int]:
    """Flatten a SimulationConfig into ``{name: value}``."""
    return {name: key.get(config) for name, key in PARAMETER_KEYS.items()}


def group_updates(values: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Arrange flat values into nested group dictionaries.

    Values are not parsed; unknown names are skipped.
    """
    nested: dict[str, dict[str, Any]] = {}
    for name, value in values.items():
        key = PARAMETER_KEYS.get(name)
        if key is None:
            continue
        group = nested.setdefault(key.group, {})
        if key.soil_attr is not None:
            group.setdefault(key.attr, {})[key.soil_attr] = value
        else:
            group[key.attr] = value
    return nested


