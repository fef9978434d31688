"""
Tests for vegetation growth, stress mortality and succession.
"""

import numpy as np
import pytest

from ecoclimate.core.states import VegetationState
from ecoclimate.kernels.vegetation import refresh_states, vegetation_step

FOREST_FC = 0.22 * 0.45
GRASS_FC = 0.15 * 0.45


class TestDeriveState:
    """The state always follows the dominant cover."""

    @pytest.mark.parametrize(
        "mat, forest, grass, expected",
        [
            (0.5, 0.3, 0.0, VegetationState.FUNGAL_MAT),
            (0.2, 0.5, 0.2, VegetationState.FOREST),
            (0.0, 0.2, 0.3, VegetationState.GRASS),
            (0.05, 0.05, 0.05, VegetationState.BARREN),
            (0.0005, 0.0, 0.0, VegetationState.BARREN),
            (0.0, 0.1, 0.0, VegetationState.BARREN),
            (0.3, 0.3, 0.0, VegetationState.FOREST),
        ],
    )
    def test_refresh(self, cells_factory, default_params, set_cell, mat, forest, grass, expected):
        cells = cells_factory(["D"])
        set_cell(cells, 0, 0, mat_cover=mat, forest_cover=forest, grass_cover=grass)
        refresh_states(cells, default_params)
        assert cells.veg_state[0, 0] == int(expected)


class TestGrowth:
    def test_forest_growth(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["F"])
        set_cell(cells, 0, 0, moisture=FOREST_FC)

        vegetation_step(cells, default_params, 1.0)

        grown = 0.8 + 0.008 * 0.8 * (1.0 - 0.8 / 3.0)
        assert cells.forest_cover[0, 0] == pytest.approx(grown * (1.0 - 0.001))
        assert cells.days_since_establishment[0, 0] == pytest.approx(1.0)
        assert cells.veg_state[0, 0] == int(VegetationState.FOREST)

    def test_grass_growth(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["G"])
        set_cell(cells, 0, 0, moisture=GRASS_FC, toxicity=0.5)
        vegetation_step(cells, default_params, 1.0)
        assert cells.grass_cover[0, 0] == pytest.approx(0.4 + 0.025 * 0.6 - 0.001 * 0.4)

    def test_grass_toxic_mortality(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["G"])
        set_cell(cells, 0, 0, moisture=GRASS_FC, toxicity=1.5)
        vegetation_step(cells, default_params, 1.0)
        expected = 0.4 + 0.025 * 0.6 - 0.001 * 0.4 - 0.01 * 0.4 * 0.5
        assert cells.grass_cover[0, 0] == pytest.approx(expected)

    def test_no_growth_below_establishment_moisture(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["D"])
        # above the desert wilting point, below 5 % of saturation
        set_cell(
            cells, 0, 0,
            moisture=0.02, toxicity=0.5, grass_cover=0.4, days_since_establishment=4.0,
            veg_state=int(VegetationState.GRASS),
        )
        vegetation_step(cells, default_params, 1.0)
        assert cells.grass_cover[0, 0] == pytest.approx(0.4)
        assert cells.days_since_establishment[0, 0] == 0.0


class TestStress:
    def test_forest_drought_is_mild(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["F"])
        set_cell(cells, 0, 0, moisture=0.001)
        vegetation_step(cells, default_params, 10.0)
        assert cells.forest_cover[0, 0] == pytest.approx(0.8 * (1.0 - 0.05 * 0.05 * 10.0))
        assert cells.days_since_establishment[0, 0] == 0.0

    def test_forest_tolerates_wilting_point(self, cells_factory, default_params, set_cell):
        """Forest only wilts below a tenth of its soil's wilting point."""
        cells = cells_factory(["F"])
        set_cell(cells, 0, 0, moisture=0.03)
        vegetation_step(cells, default_params, 10.0)
        assert cells.forest_cover[0, 0] > 0.8

    def test_grass_drought(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["G"])
        set_cell(cells, 0, 0, moisture=0.01, toxicity=0.5)
        vegetation_step(cells, default_params, 1.0)
        assert cells.grass_cover[0, 0] == pytest.approx(0.4 * (1.0 - 0.05))

    def test_grass_toxic_stress(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["G"])
        set_cell(cells, 0, 0, moisture=GRASS_FC, toxicity=2.5)
        vegetation_step(cells, default_params, 1.0)
        assert cells.grass_cover[0, 0] == pytest.approx(0.4 * (1.0 - 0.08))

    def test_forest_tolerates_high_toxicity(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["F"])
        set_cell(cells, 0, 0, moisture=FOREST_FC, toxicity=2.9)
        vegetation_step(cells, default_params, 1.0)
        assert cells.forest_cover[0, 0] > 0.79

    def test_stressed_grass_dies_back_to_barren(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["G"])
        set_cell(cells, 0, 0, moisture=GRASS_FC, toxicity=2.5)
        for _ in range(20):
            vegetation_step(cells, default_params, 1.0)
        assert cells.grass_cover[0, 0] < 0.1
        assert cells.veg_state[0, 0] == int(VegetationState.BARREN)


class TestSuccession:
    def test_barren_to_mat(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["D"])
        set_cell(cells, 0, 0, mat_cover=0.25, grass_cover=0.05)

        vegetation_step(cells, default_params, 1.0)

        assert cells.mat_cover[0, 0] == pytest.approx(0.3)
        assert cells.grass_cover[0, 0] == 0.0
        assert cells.veg_state[0, 0] == int(VegetationState.FUNGAL_MAT)

    def test_mat_nudges_toward_forest(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["D"])
        set_cell(cells, 0, 0, mat_cover=0.8, moisture=0.06, veg_state=int(VegetationState.FUNGAL_MAT))

        vegetation_step(cells, default_params, 10.0)

        gain = 0.8 / 730.0 * 10.0
        assert cells.forest_cover[0, 0] == pytest.approx(gain)
        assert cells.mat_cover[0, 0] == pytest.approx(0.8 - 0.5 * gain)
        assert cells.veg_state[0, 0] == int(VegetationState.FUNGAL_MAT)

    def test_mat_needs_moisture_to_advance(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["D"])
        set_cell(cells, 0, 0, mat_cover=0.8, moisture=0.04, veg_state=int(VegetationState.FUNGAL_MAT))
        vegetation_step(cells, default_params, 10.0)
        assert cells.forest_cover[0, 0] == 0.0
        assert cells.mat_cover[0, 0] == pytest.approx(0.8)

    def test_mat_snaps_to_forest(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["D"])
        set_cell(
            cells, 0, 0,
            mat_cover=0.8, forest_cover=0.195, grass_cover=0.05, moisture=0.06,
            veg_state=int(VegetationState.FUNGAL_MAT),
        )

        vegetation_step(cells, default_params, 10.0)

        assert cells.forest_cover[0, 0] == pytest.approx(0.3)
        assert cells.mat_cover[0, 0] == pytest.approx(0.1)
        assert cells.grass_cover[0, 0] == 0.0
        assert cells.veg_state[0, 0] == int(VegetationState.FOREST)

    def test_grass_establishment(self, cells_factory, default_params, set_cell):
        """Established grass sits exactly at the state threshold, so the cell still reads Barren."""
        cells = cells_factory(["D"])
        set_cell(cells, 0, 0, toxicity=0.5, moisture=0.06)

        vegetation_step(cells, default_params, 1.0)

        assert cells.grass_cover[0, 0] == pytest.approx(0.1)
        assert cells.veg_state[0, 0] == int(VegetationState.BARREN)

    def test_toxic_barren_stays_bare(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["D"])
        set_cell(cells, 0, 0, moisture=0.06)
        vegetation_step(cells, default_params, 1.0)
        assert cells.grass_cover[0, 0] == 0.0

    def test_water_is_skipped(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["W"])
        set_cell(cells, 0, 0, mat_cover=0.5, toxicity=0.0)
        vegetation_step(cells, default_params, 1.0)
        assert cells.mat_cover[0, 0] == 0.5
        assert cells.grass_cover[0, 0] == 0.0

    def test_state_matches_covers_after_step(self, cells_factory, default_params):
        cells = cells_factory(["DGFWPCV", "dGGFFDV"])
        for _ in range(5):
            vegetation_step(cells, default_params, 2.0)
        states = cells.to_numpy("veg_state").copy()
        refresh_states(cells, default_params)
        np.testing.assert_array_equal(states, cells.to_numpy("veg_state"))
