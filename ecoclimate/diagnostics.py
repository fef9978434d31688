"""Grid statistics and invariant checks.
"""

from dataclasses import dataclass, field

import numpy as np

from ecoclimate.core.states import VegetationState
from ecoclimate.initialization import terrain_lookup
from ecoclimate.params.schema import SimulationConfig

TEMPERATURE_RANGE = (-10.0, 50.0)
MAX_WIND_MS = 40.0


@dataclass
class WaterLedger:
    """Cumulative hydrology fluxes, in volumetric moisture summed over cells."""

    seepage: float = 0.0
    infiltration: float = 0.0
    runoff: float = 0.0  # discarded, never routed
    evaporation: float = 0.0

    def record(self, seepage: float, infiltration: float, runoff: float, evaporation: float) -> None:
        self.seepage += seepage
        self.infiltration += infiltration
        self.runoff += runoff
        self.evaporation += evaporation


@dataclass(frozen=True)
class GridStats:
    """Aggregate view of the grid."""

    mean_toxicity: float
    mean_air_toxicity: float
    total_fungal_cover: float
    total_forest_cover: float
    total_grass_cover: float
    mean_moisture: float
    state_counts: dict[VegetationState, int] = field(default_factory=dict)

    def summary(self) -> str:
        counts = ", ".join(f"{s.name.lower()}={n}" for s, n in self.state_counts.items())
        return (
            f"tox={self.mean_toxicity:.3f} air={self.mean_air_toxicity:.3f} "
            f"mat={self.total_fungal_cover:.2f} forest={self.total_forest_cover:.2f} "
            f"grass={self.total_grass_cover:.2f} moisture={self.mean_moisture:.4f} [{counts}]"
        )


def compute_stats(snapshot: dict[str, np.ndarray]) -> GridStats:
    """Aggregate a cell snapshot."""
    states = snapshot["veg_state"]
    return GridStats(
        mean_toxicity=float(np.mean(snapshot["toxicity"])),
        mean_air_toxicity=float(np.mean(snapshot["air_toxicity"])),
        total_fungal_cover=float(np.sum(snapshot["mat_cover"])),
        total_forest_cover=float(np.sum(snapshot["forest_cover"])),
        total_grass_cover=float(np.sum(snapshot["grass_cover"])),
        mean_moisture=float(np.mean(snapshot["moisture"])),
        state_counts={s: int(np.sum(states == int(s))) for s in VegetationState},
    )


def derive_states(
    mat: np.ndarray,
    forest: np.ndarray,
    grass: np.ndarray,
    config: SimulationConfig,
) -> np.ndarray:
    """Cover-dominant vegetation state for arrays of covers."""
    threshold = config.vegetation.state_cover_threshold
    presence = config.fungal.fungal_presence_threshold
    return np.select(
        [
            (mat > presence) & (mat > forest) & (mat > grass),
            (forest > threshold) & (forest > grass),
            grass > threshold,
        ],
        [
            int(VegetationState.FUNGAL_MAT),
            int(VegetationState.FOREST),
            int(VegetationState.GRASS),
        ],
        default=int(VegetationState.BARREN),
    ).astype(np.int32)


def check_ranges(
    snapshot: dict[str, np.ndarray],
    config: SimulationConfig,
    atol: float = 1e-9,
) -> None:
    """Verify every documented range and the state/cover consistency.

    Raises:
        AssertionError: Listing every violated invariant
    """
    violations = []

    def within(name: str, values: np.ndarray, lo, hi) -> None:
        bad = (values < np.asarray(lo) - atol) | (values > np.asarray(hi) + atol)
        if np.any(bad):
            idx = tuple(int(v) for v in np.argwhere(bad)[0])
            violations.append(
                f"{name}: {int(np.sum(bad))} cells out of range, e.g. {idx} = {values[idx]:.6g}"
            )

    tau_max = config.toxicity.toxicity_range_max
    field_capacity = terrain_lookup(config, "field_capacity")[snapshot["terrain"]]

    within("moisture", snapshot["moisture"], 0.0, field_capacity)
    within("toxicity", snapshot["toxicity"], 0.0, tau_max)
    within("air_toxicity", snapshot["air_toxicity"], 0.0, tau_max)
    for name in ("mat_cover", "forest_cover", "grass_cover"):
        within(name, snapshot[name], 0.0, 1.0)
    within("humidity", snapshot["humidity"], 0.0, 100.0)
    within("temperature", snapshot["temperature"], *TEMPERATURE_RANGE)
    within("wind", np.hypot(snapshot["wind_x"], snapshot["wind_y"]), 0.0, MAX_WIND_MS)
    for name in ("seed_spores", "nonseed_spores"):
        within(name, snapshot[name], 0.0, np.inf)

    expected = derive_states(
        snapshot["mat_cover"], snapshot["forest_cover"], snapshot["grass_cover"], config
    )
    mismatch = expected != snapshot["veg_state"]
    if np.any(mismatch):
        idx = tuple(int(v) for v in np.argwhere(mismatch)[0])
        violations.append(
            f"veg_state: {int(np.sum(mismatch))} cells disagree with their covers, "
            f"e.g. {idx} is {VegetationState(int(snapshot['veg_state'][idx])).name}, "
            f"covers imply {VegetationState(int(expected[idx])).name}"
        )

    if violations:
        raise AssertionError("Grid invariants violated:\n  " + "\n  ".join(violations))
