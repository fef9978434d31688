"""Engine orchestrator with two independent cadences.

Weather ticks sample the global weather and derive local cell weather.
Ecology ticks run hydrology, spore dispersal and the fused
fungal/toxicity/vegetation sweep over the whole grid, in that order.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from ecoclimate.core.geometry import GridGeometry
from ecoclimate.core.states import TerrainType, VegetationState
from ecoclimate.diagnostics import GridStats, WaterLedger, compute_stats
from ecoclimate.fields.cells import CellFields, create_cell_fields
from ecoclimate.initialization import initialize_cells
from ecoclimate.kernels.ecology import cell_ecology_step
from ecoclimate.kernels.hydrology import hydrology_step
from ecoclimate.kernels.remediation import remediate
from ecoclimate.kernels.spores import disperse_spores, reset_spores, spore_sources_step
from ecoclimate.kernels.utils import compute_total, count_equal
from ecoclimate.kernels.weather import WeatherModel, update_cell_weather
from ecoclimate.params.schema import SimulationConfig
from ecoclimate.params.taichi_params import TaichiParams, create_taichi_params
from ecoclimate.state import CellState, WeatherState
from ecoclimate.terrain import TerrainGrid

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400.0

# A tick is due when the clock is within this fraction of its interval
TICK_TOLERANCE = 1e-6


@dataclass(frozen=True)
class AdvanceReport:
    """Ticks executed by one ``advance`` call."""

    weather_ticks: int = 0
    ecology_ticks: int = 0


@dataclass
class EcologyReport:
    """Grid totals from the most recent ecology tick."""

    seepage: float = 0.0
    infiltration: float = 0.0
    runoff: float = 0.0
    evaporation: float = 0.0
    forest_sources: int = 0
    mat_sources: int = 0
    seed_deposited: float = 0.0
    nonseed_deposited: float = 0.0
    mat_change: float = 0.0
    toxicity_change: float = 0.0


@dataclass
class SimulationState:
    """Cell grid plus scheduling and bookkeeping."""

    cells: CellFields
    terrain: TerrainGrid
    elapsed_s: float = 0.0
    weather_ticks: int = 0
    ecology_ticks: int = 0
    water: WaterLedger = field(default_factory=WaterLedger)
    last_ecology: EcologyReport = field(default_factory=EcologyReport)

    @property
    def current_day(self) -> float:
        return self.elapsed_s / SECONDS_PER_DAY

    @property
    def geometry(self) -> GridGeometry:
        return self.cells.geometry


class Simulation:
    """Owns the grid, parameters and random source; the only way to mutate the grid."""

    def __init__(self, config: SimulationConfig | None = None, seed: int | None = None):
        self.config = config or SimulationConfig()
        self.seed = seed
        self.rng = np.random.default_rng(seed)
        self.weather_model = WeatherModel(self.config, self.rng)
        self.params: TaichiParams | None = None
        self.state: SimulationState | None = None
        self._paused = False
        self._speed = self.config.domain.simulation_speed

    def initialize(self, terrain: TerrainGrid) -> SimulationState:
        """Allocate and populate the cell grid for a landscape.

        A grid from an earlier call is released first.

        Returns the SimulationState for inspection/testing.
        """
        if self.state is not None:
            self.state.cells.release()

        geometry = terrain.geometry(self.config.domain.grid_resolution_m)
        cells = create_cell_fields(geometry)
        initialize_cells(cells, terrain, self.config, self.rng)

        self.params = create_taichi_params(self.config)
        self.state = SimulationState(cells=cells, terrain=terrain)

        logger.info(
            "Initialized %dx%d grid at %.0f m/cell (seed=%s)",
            geometry.nx, geometry.ny, geometry.cell_size_m, self.seed,
        )
        return self.state

    def _require_state(self) -> SimulationState:
        if self.state is None:
            raise RuntimeError("Simulation not initialized")
        return self.state

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def advance(self, delta_seconds: float) -> AdvanceReport:
        """Advance simulated time by a wall-clock delta scaled by the speed.

        Runs every weather and ecology tick whose scheduled time falls within
        the advanced interval, chronologically, weather first on ties. A
        paused engine does nothing.

        Raises:
            ValueError: If delta_seconds is negative
        """
        if delta_seconds < 0:
            raise ValueError(f"delta_seconds must be non-negative, got {delta_seconds}")
        state = self._require_state()
        if self._paused or delta_seconds == 0:
            return AdvanceReport()

        domain = self.config.domain
        weather_s = domain.time_step_weather_s
        ecology_s = domain.time_step_ecology_s
        target = state.elapsed_s + delta_seconds * self._speed

        n_weather = 0
        n_ecology = 0
        while True:
            next_weather = (state.weather_ticks + 1) * weather_s
            next_ecology = (state.ecology_ticks + 1) * ecology_s
            weather_due = next_weather - target <= TICK_TOLERANCE * weather_s
            ecology_due = next_ecology - target <= TICK_TOLERANCE * ecology_s
            if not (weather_due or ecology_due):
                break
            if weather_due and (not ecology_due or next_weather <= next_ecology):
                state.elapsed_s = next_weather
                self.step_weather(next_weather / SECONDS_PER_DAY)
                n_weather += 1
            else:
                state.elapsed_s = next_ecology
                self.step_ecology(domain.ecology_interval_days)
                n_ecology += 1

        state.elapsed_s = max(state.elapsed_s, target)
        return AdvanceReport(weather_ticks=n_weather, ecology_ticks=n_ecology)

    def apply_remediation(self, x: int, y: int) -> bool:
        """Remediate the neighbourhood of (x, y). Out-of-bounds targets are a no-op.

        Returns:
            True if the target was inside the grid
        """
        state = self._require_state()
        if not state.geometry.contains(x, y):
            logger.debug("Remediation target (%d, %d) outside the grid", x, y)
            return False
        affected = remediate(state.cells, self.params, x, y, state.current_day)
        logger.info(
            "Remediated %d cells around (%d, %d) on day %.3f",
            affected, x, y, state.current_day,
        )
        return True

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def step_weather(self, t_days: float) -> WeatherState:
        """Sample the global weather at t_days and update local cell weather."""
        state = self._require_state()
        weather = self.weather_model.sample(t_days)
        update_cell_weather(state.cells, self.params, weather)
        state.weather_ticks += 1
        return weather

    def step_ecology(self, dt: float, weather: WeatherState | None = None) -> EcologyReport:
        """Integrate one ecology step of dt days.

        Hydrology, then spore sources, reset and dispersal, then the fused
        fungal/toxicity/vegetation sweep. Every stage reads the same weather
        sample, the current one unless given.
        """
        state = self._require_state()
        cells = state.cells
        p = self.params
        weather = weather or self.weather_model.current
        storm = int(weather.is_storm)

        water = hydrology_step(
            cells, p,
            weather.precipitation, weather.wind_x, weather.wind_y,
            storm, int(weather.is_fog), dt,
        )
        state.water.record(float(water[0]), float(water[1]), float(water[2]), float(water[3]))
        logger.debug(
            "Hydrology: seepage=%.4g infiltration=%.4g runoff=%.4g evaporation=%.4g",
            water[0], water[1], water[2], water[3],
        )

        sources = spore_sources_step(cells, p, storm, dt)
        reset_spores(cells)
        wind_strength = weather.wind_speed / self.config.climate.wind_mean_ms
        deposited = disperse_spores(
            cells, p, weather.wind_dir_x, weather.wind_dir_y, wind_strength
        )
        logger.debug("Spores: sources=%s deposited=%s", sources, deposited)

        changes = cell_ecology_step(cells, p, dt)

        report = EcologyReport(
            seepage=float(water[0]),
            infiltration=float(water[1]),
            runoff=float(water[2]),
            evaporation=float(water[3]),
            forest_sources=int(sources[0]),
            mat_sources=int(sources[1]),
            seed_deposited=float(deposited[0]),
            nonseed_deposited=float(deposited[1]),
            mat_change=float(changes[0]),
            toxicity_change=float(changes[1]),
        )
        state.last_ecology = report
        state.ecology_ticks += 1
        return report

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def weather(self) -> WeatherState:
        return self.weather_model.current

    @property
    def elapsed_days(self) -> float:
        return self._require_state().current_day

    @property
    def paused(self) -> bool:
        return self._paused

    @paused.setter
    def paused(self, value: bool) -> None:
        value = bool(value)
        if value != self._paused:
            logger.info("Simulation %s", "paused" if value else "resumed")
        self._paused = value

    @property
    def speed(self) -> float:
        return self._speed

    @speed.setter
    def speed(self, value: float) -> None:
        if not value > 0:
            raise ValueError(f"speed must be positive, got {value}")
        logger.info("Simulation speed set to %g", value)
        self._speed = float(value)

    def get_cell(self, x: int, y: int) -> CellState | None:
        """Copy of cell (x, y), or None outside the grid."""
        state = self._require_state()
        if not state.geometry.contains(x, y):
            return None
        c = state.cells
        terrain = TerrainType(int(c.terrain[x, y]))
        return CellState(
            x=x,
            y=y,
            terrain=terrain,
            elevation=float(c.elevation[x, y]),
            is_low_toxicity_zone=bool(c.low_toxicity[x, y]),
            soil=self.config.soil_properties(terrain),
            temperature=float(c.temperature[x, y]),
            humidity=float(c.humidity[x, y]),
            wind_x=float(c.wind_x[x, y]),
            wind_y=float(c.wind_y[x, y]),
            moisture=float(c.moisture[x, y]),
            days_since_rain=float(c.days_since_rain[x, y]),
            days_since_storm=float(c.days_since_storm[x, y]),
            toxicity=float(c.toxicity[x, y]),
            air_toxicity=float(c.air_toxicity[x, y]),
            mat_cover=float(c.mat_cover[x, y]),
            forest_cover=float(c.forest_cover[x, y]),
            grass_cover=float(c.grass_cover[x, y]),
            vegetation_state=VegetationState(int(c.veg_state[x, y])),
            seed_spores=float(c.seed_spores[x, y]),
            nonseed_spores=float(c.nonseed_spores[x, y]),
            days_clean_soil=float(c.days_clean_soil[x, y]),
            days_since_establishment=float(c.days_since_establishment[x, y]),
            last_remediation=float(c.last_remediation[x, y]),
        )

    def snapshot(self) -> dict[str, np.ndarray]:
        """Numpy copies of every persistent cell field."""
        return self._require_state().cells.snapshot()

    def stats(self) -> GridStats:
        return compute_stats(self.snapshot())

    def average_toxicity(self) -> float:
        """Grid-average soil toxicity."""
        state = self._require_state()
        return float(compute_total(state.cells.toxicity)) / state.geometry.n_cells

    def total_fungal_cover(self) -> float:
        return float(compute_total(self._require_state().cells.mat_cover))

    def count_state(self, veg_state: VegetationState) -> int:
        """Number of cells currently in a vegetation state."""
        return int(count_equal(self._require_state().cells.veg_state, int(veg_state)))
