"""Initialization of the cell grid from a terrain grid.
"""

import numpy as np

from ecoclimate.core.states import TerrainType, VegetationState
from ecoclimate.fields.cells import CellFields
from ecoclimate.params.schema import SimulationConfig
from ecoclimate.terrain import TerrainGrid

NEVER_STORMED_DAYS = 999.0
NEVER_REMEDIATED_DAY = -999.0


def terrain_lookup(config: SimulationConfig, attr: str) -> np.ndarray:
    """Per-terrain table of one soil quantity, indexed by terrain code.

    ``attr`` is a SoilProperties field, or ``field_capacity`` / ``wilting_point``
    for the volumetric values.
    """
    theta_max = config.hydrology.max_volumetric_moisture
    table = np.zeros(len(TerrainType), dtype=np.float64)
    for terrain in TerrainType:
        soil = config.soil_properties(terrain)
        if attr == "field_capacity":
            table[int(terrain)] = soil.field_capacity(theta_max)
        elif attr == "wilting_point":
            table[int(terrain)] = soil.wilting_point(theta_max)
        else:
            table[int(terrain)] = getattr(soil, attr)
    return table


def initial_humidity(config: SimulationConfig, terrain: np.ndarray) -> np.ndarray:
    """Starting humidity: desert, grassland, forest and water have their own, others as desert."""
    c = config.climate
    humidity = np.full(terrain.shape, c.humidity_desert_pct, dtype=np.float64)
    humidity[terrain == int(TerrainType.GRASSLAND)] = c.humidity_grassland_pct
    humidity[terrain == int(TerrainType.FOREST)] = c.humidity_forest_pct
    humidity[terrain == int(TerrainType.WATER)] = c.humidity_water_pct
    return humidity


def initialize_cells(
    cells: CellFields,
    terrain: TerrainGrid,
    config: SimulationConfig,
    rng: np.random.Generator,
) -> None:
    """Populate every cell field from the terrain and the parameter set.

    Args:
        cells: Allocated cell fields matching the terrain shape
        terrain: Starting landscape
        config: Parameter set
        rng: Generator for the randomized starting toxicities
    """
    if cells.geometry.shape != terrain.shape:
        raise ValueError(
            f"Terrain shape {terrain.shape} doesn't match grid {cells.geometry.shape}"
        )

    codes = terrain.terrain
    shape = codes.shape
    veg = config.vegetation
    tox = config.toxicity

    is_forest = codes == int(TerrainType.FOREST)
    is_grass = codes == int(TerrainType.GRASSLAND)
    is_desert = codes == int(TerrainType.DESERT)

    # Moisture starts at the soil's initial fraction, never above field capacity
    field_capacity = terrain_lookup(config, "field_capacity")[codes]
    moisture = np.minimum(terrain_lookup(config, "initial_moisture")[codes], field_capacity)

    draws = rng.random(shape) * tox.low_toxicity_max
    toxicity = terrain_lookup(config, "base_toxicity")[codes]
    toxicity[is_forest] = veg.initial_forest_toxicity
    toxicity[is_grass] = draws[is_grass]
    toxicity[is_desert] = np.where(
        terrain.low_toxicity[is_desert], draws[is_desert], tox.desert_initial_toxicity
    )
    toxicity = np.clip(toxicity, 0.0, tox.toxicity_range_max)

    forest = np.where(is_forest, veg.initial_forest_cover, 0.0)
    grass = np.where(is_grass, veg.initial_grass_cover, 0.0)
    state = np.full(shape, int(VegetationState.BARREN), dtype=np.int32)
    state[is_forest] = int(VegetationState.FOREST)
    state[is_grass] = int(VegetationState.GRASS)

    zeros = np.zeros(shape, dtype=np.float64)
    values = {
        "terrain": codes,
        "elevation": terrain.elevation,
        "low_toxicity": terrain.low_toxicity.astype(np.int32),
        "temperature": np.full(shape, config.climate.temp_mean_c),
        "humidity": initial_humidity(config, codes),
        "wind_x": np.full(shape, config.climate.wind_mean_ms),
        "wind_y": zeros,
        "moisture": moisture,
        "days_since_rain": zeros,
        "days_since_storm": np.full(shape, NEVER_STORMED_DAYS),
        "toxicity": toxicity,
        "air_toxicity": zeros,
        "mat_cover": zeros,
        "forest_cover": forest,
        "grass_cover": grass,
        "veg_state": state,
        "days_clean_soil": zeros,
        "days_since_establishment": zeros,
        "last_remediation": np.full(shape, NEVER_REMEDIATED_DAY),
        "seed_spores": zeros,
        "nonseed_spores": zeros,
        "seed_production": zeros,
        "nonseed_production": zeros,
    }
    for name, arr in values.items():
        cells.from_numpy(name, arr)
