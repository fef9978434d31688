"""Tests for fungal mat colonization, growth and dieback."""

import pytest

from ecoclimate.core.states import VegetationState
from ecoclimate.kernels.fungal import fungal_step


def seeded_desert(cells_factory, set_cell, **values):
    cells = cells_factory(["D"])
    defaults = dict(seed_spores=1.0, moisture=0.1, temperature=25.0)
    defaults.update(values)
    set_cell(cells, 0, 0, **defaults)
    return cells


class TestColonization:
    def test_colonization_in_dry_air(self, cells_factory, default_params, set_cell):
        """Rate 0.5 x 1/1.5 x 1.5 on bare ground, then dry-air dieback."""
        cells = seeded_desert(cells_factory, set_cell)

        change = fungal_step(cells, default_params, 0.1)

        colonized = 0.5 * 0.1
        expected = colonized - colonized * 0.06 * 0.1
        assert cells.mat_cover[0, 0] == pytest.approx(expected)
        assert change == pytest.approx(expected)
        assert cells.veg_state[0, 0] == int(VegetationState.FUNGAL_MAT)

    def test_colonization_in_humid_air(self, cells_factory, default_params, set_cell):
        cells = seeded_desert(cells_factory, set_cell, humidity=80.0)
        fungal_step(cells, default_params, 0.1)

        colonized = 0.05
        expected = colonized + 0.035 * 0.8 * colonized * (1 - colonized) * 0.1
        assert cells.mat_cover[0, 0] == pytest.approx(expected)

    def test_dry_soil_slows_colonization(self, cells_factory, default_params, set_cell):
        wet = seeded_desert(cells_factory, set_cell, humidity=80.0)
        dry = seeded_desert(cells_factory, set_cell, humidity=80.0, moisture=0.01)
        fungal_step(wet, default_params, 0.1)
        fungal_step(dry, default_params, 0.1)
        colonized = 0.5 / 1.5 * 0.1
        # humid air but soil below 0.05: base mortality only
        assert dry.mat_cover[0, 0] == pytest.approx(colonized * (1 - 0.03 * 0.1))
        assert wet.mat_cover[0, 0] > dry.mat_cover[0, 0]

    def test_temperature_factor_floor(self, cells_factory, default_params, set_cell):
        cells = seeded_desert(cells_factory, set_cell, humidity=80.0, moisture=0.01, temperature=-10.0)
        fungal_step(cells, default_params, 0.1)
        # |(-10) - 25| / 30 > 0.9, so the factor floors at 0.1
        colonized = 0.5 / 1.5 * 0.1 * 0.1
        assert cells.mat_cover[0, 0] == pytest.approx(colonized * (1 - 0.03 * 0.1))

    def test_nonseed_boost(self, cells_factory, default_params, set_cell):
        plain = seeded_desert(cells_factory, set_cell, humidity=80.0, moisture=0.01)
        boosted = seeded_desert(cells_factory, set_cell, humidity=80.0, moisture=0.01, nonseed_spores=0.25)
        capped = seeded_desert(cells_factory, set_cell, humidity=80.0, moisture=0.01, nonseed_spores=10.0)
        for cells in (plain, boosted, capped):
            fungal_step(cells, default_params, 0.1)

        base = plain.mat_cover[0, 0]
        assert boosted.mat_cover[0, 0] == pytest.approx(base * 1.5)
        assert capped.mat_cover[0, 0] == pytest.approx(base * 2.5)

    def test_no_seed_no_colonization(self, cells_factory, default_params, set_cell):
        cells = seeded_desert(cells_factory, set_cell, seed_spores=0.0, nonseed_spores=5.0)
        fungal_step(cells, default_params, 1.0)
        assert cells.mat_cover[0, 0] == 0.0
        assert cells.veg_state[0, 0] == int(VegetationState.BARREN)

    def test_water_is_skipped(self, cells_factory, default_params, set_cell):
        cells = cells_factory(["W"])
        set_cell(cells, 0, 0, seed_spores=5.0, humidity=100.0)
        assert fungal_step(cells, default_params, 1.0) == 0.0
        assert cells.mat_cover[0, 0] == 0.0


class TestExistingMats:
    def test_growth_when_humid_and_moist(self, cells_factory, default_params, set_cell):
        cells = seeded_desert(cells_factory, set_cell, seed_spores=0.0, mat_cover=0.5, humidity=80.0)
        fungal_step(cells, default_params, 1.0)
        assert cells.mat_cover[0, 0] == pytest.approx(0.5 + 0.035 * 0.8 * 0.25)

    def test_growth_scaled_by_moisture(self, cells_factory, default_params, set_cell):
        cells = seeded_desert(
            cells_factory, set_cell, seed_spores=0.0, mat_cover=0.5, humidity=80.0, moisture=0.06
        )
        fungal_step(cells, default_params, 1.0)
        assert cells.mat_cover[0, 0] == pytest.approx(0.5 + 0.035 * 0.8 * 0.6 * 0.25)

    def test_dieback_in_dry_air(self, cells_factory, default_params, set_cell):
        cells = seeded_desert(cells_factory, set_cell, seed_spores=0.0, mat_cover=0.5, humidity=30.0)
        fungal_step(cells, default_params, 1.0)
        assert cells.mat_cover[0, 0] == pytest.approx(0.5 - 0.5 * 0.06)

    def test_dieback_in_dry_soil(self, cells_factory, default_params, set_cell):
        """Humid air but dry soil costs only the base mortality."""
        cells = seeded_desert(
            cells_factory, set_cell, seed_spores=0.0, mat_cover=0.5, humidity=80.0, moisture=0.01
        )
        fungal_step(cells, default_params, 1.0)
        assert cells.mat_cover[0, 0] == pytest.approx(0.5 - 0.5 * 0.03)

    def test_cover_clamped(self, cells_factory, default_params, set_cell):
        cells = seeded_desert(cells_factory, set_cell, seed_spores=0.0, mat_cover=0.5, humidity=30.0)
        fungal_step(cells, default_params, 100.0)
        assert cells.mat_cover[0, 0] == 0.0
