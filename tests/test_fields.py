"""Tests for field management module.

Tests FieldSpec, FieldContainer and the cell grid wrapper.
"""

import numpy as np
import pytest
import taichi as ti

from ecoclimate.core.dtypes import DTYPE, ITYPE
from ecoclimate.core.geometry import GridGeometry
from ecoclimate.fields import (
    FieldContainer,
    FieldRole,
    FieldSpec,
    create_cell_fields,
    create_cell_specs,
)


class TestFieldSpec:
    """Tests for FieldSpec dataclass."""

    def test_basic_creation(self):
        spec = FieldSpec(name="moisture", dtype=DTYPE, role=FieldRole.STATE)
        assert spec.name == "moisture"
        assert spec.dtype == DTYPE
        assert spec.role == FieldRole.STATE
        assert spec.description == ""

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            FieldSpec(name="", dtype=DTYPE, role=FieldRole.STATE)

    def test_name_must_be_snake_case(self):
        with pytest.raises(ValueError, match="snake_case"):
            FieldSpec(name="SoilMoisture", dtype=DTYPE, role=FieldRole.STATE)


class TestFieldContainer:
    """Tests for FieldContainer lifecycle."""

    def test_register_and_allocate(self, taichi_init):
        container = FieldContainer(GridGeometry(4, 3))
        container.register(FieldSpec("toxicity", DTYPE, FieldRole.STATE))
        container.register(FieldSpec("terrain", ITYPE, FieldRole.STATIC))
        container.allocate()

        assert container.allocated
        assert container["toxicity"].shape == (4, 3)
        assert container.fields_by_role(FieldRole.STATIC) == ["terrain"]
        assert "toxicity" in container
        assert len(container) == 2

    def test_duplicate_registration(self):
        container = FieldContainer(GridGeometry(4, 4))
        container.register(FieldSpec("toxicity", DTYPE, FieldRole.STATE))
        with pytest.raises(ValueError, match="already registered"):
            container.register(FieldSpec("toxicity", DTYPE, FieldRole.STATE))

    def test_register_after_allocate(self, taichi_init):
        container = FieldContainer(GridGeometry(4, 4))
        container.register(FieldSpec("toxicity", DTYPE, FieldRole.STATE))
        container.allocate()
        with pytest.raises(RuntimeError, match="after allocation"):
            container.register(FieldSpec("moisture", DTYPE, FieldRole.STATE))

    def test_get_before_allocate(self):
        container = FieldContainer(GridGeometry(4, 4))
        container.register(FieldSpec("toxicity", DTYPE, FieldRole.STATE))
        with pytest.raises(RuntimeError, match="not yet allocated"):
            container["toxicity"]

    def test_allocate_empty(self):
        with pytest.raises(RuntimeError, match="No fields registered"):
            FieldContainer(GridGeometry(4, 4)).allocate()

    def test_numpy_dtypes(self):
        assert FieldSpec("veg_state", ITYPE, FieldRole.STATE).numpy_dtype is np.int32
        assert FieldSpec("moisture", DTYPE, FieldRole.STATE).itemsize == 8

    def test_memory_estimate(self, taichi_init):
        container = FieldContainer(GridGeometry(10, 10))
        container.register(FieldSpec("toxicity", ti.f64, FieldRole.STATE))
        container.register(FieldSpec("terrain", ti.i32, FieldRole.STATIC))
        assert container.memory_bytes == 0
        container.allocate()
        assert container.memory_bytes == 100 * 8 + 100 * 4


class TestCellFields:
    """Tests for the cell grid wrapper."""

    def test_specs_unique(self):
        names = [spec.name for spec in create_cell_specs()]
        assert len(names) == len(set(names))

    def test_integer_fields(self):
        specs = {spec.name: spec for spec in create_cell_specs()}
        for name in ("terrain", "low_toxicity", "veg_state"):
            assert specs[name].dtype == ITYPE

    def test_attribute_access(self, taichi_init):
        cells = create_cell_fields(GridGeometry(5, 3))
        assert cells.nx == 5 and cells.ny == 3
        assert cells.moisture.shape == (5, 3)
        assert cells.geometry.shape == (5, 3)
        assert "mat_cover" in cells.names

    def test_numpy_round_trip(self, taichi_init):
        cells = create_cell_fields(GridGeometry(3, 2))
        values = np.arange(6, dtype=np.float64).reshape(3, 2) / 10.0
        cells.from_numpy("moisture", values)
        np.testing.assert_array_equal(cells.to_numpy("moisture"), values)

    def test_from_numpy_casts_integers(self, taichi_init):
        cells = create_cell_fields(GridGeometry(2, 2))
        cells.from_numpy("veg_state", np.array([[1, 3], [4, 0]], dtype=np.int64))
        assert cells.to_numpy("veg_state").dtype == np.int32
        assert cells.veg_state[1, 0] == 4

    def test_from_numpy_shape_mismatch(self, taichi_init):
        cells = create_cell_fields(GridGeometry(3, 2))
        with pytest.raises(ValueError, match="Shape mismatch"):
            cells.from_numpy("moisture", np.zeros((2, 3)))

    def test_snapshot_excludes_scratch(self, taichi_init):
        cells = create_cell_fields(GridGeometry(2, 2))
        snap = cells.snapshot()
        assert "toxicity" in snap
        assert "seed_spores" in snap
        assert "seed_production" not in snap

    def test_release(self, taichi_init):
        cells = create_cell_fields(GridGeometry(2, 2))
        cells.release()
        assert not cells.container.allocated
        with pytest.raises(RuntimeError, match="not yet allocated"):
            cells.to_numpy("moisture")
