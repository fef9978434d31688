"""Declarative per-cell field layout.

Fields are described by ``FieldSpec`` records, registered with a
``FieldContainer`` and then placed together in one dense Taichi SNode tree of
the grid's shape, so a whole grid can be released at once.

    container = FieldContainer(GridGeometry(48, 32))
    container.register(FieldSpec("moisture", DTYPE, FieldRole.STATE))
    container.allocate()
    container["moisture"].fill(0.05)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

import numpy as np
import taichi as ti

from ecoclimate.core.geometry import GridGeometry

_NUMPY_DTYPES = (
    (ti.f64, np.float64),
    (ti.f32, np.float32),
    (ti.i32, np.int32),
    (ti.i64, np.int64),
    (ti.i8, np.int8),
)


class FieldRole(Enum):
    """How a field changes over a run.

    STATIC: Written once from the landscape (terrain, elevation, zone flags)
    STATE: Carried from tick to tick (weather, moisture, toxicity, covers)
    DERIVED: Rebuilt every ecology tick but worth inspecting (spore loads)
    SCRATCH: Intermediate values inside one tick (spore emission)
    """

    STATIC = auto()
    STATE = auto()
    DERIVED = auto()
    SCRATCH = auto()


@dataclass(frozen=True)
class FieldSpec:
    """One scalar cell field.

    Attributes:
        name: Attribute name on the cell grid, snake_case
        dtype: Taichi element type
        role: Lifecycle category
        description: Meaning and units
    """

    name: str
    dtype: Any
    role: FieldRole
    description: str = ""

    def __post_init__(self):
        if not self.name:
            raise ValueError("Field name cannot be empty")
        if not (self.name.islower() and self.name.replace("_", "").isalnum()):
            raise ValueError(f"Field name must be snake_case, got: {self.name}")

    @property
    def numpy_dtype(self) -> type:
        """Host-side numpy equivalent of the Taichi dtype."""
        for ti_dtype, np_dtype in _NUMPY_DTYPES:
            if self.dtype == ti_dtype:
                return np_dtype
        raise TypeError(f"No numpy dtype for field '{self.name}' of type {self.dtype}")

    @property
    def itemsize(self) -> int:
        return np.dtype(self.numpy_dtype).itemsize


class FieldContainer:
    """Registry of field specs for one grid, allocated as a single SNode tree."""

    def __init__(self, geometry: GridGeometry):
        self._geometry = geometry
        self._specs: dict[str, FieldSpec] = {}
        self._fields: dict[str, Any] = {}
        self._tree = None

    @property
    def geometry(self) -> GridGeometry:
        return self._geometry

    @property
    def allocated(self) -> bool:
        return self._tree is not None

    @property
    def field_names(self) -> list[str]:
        return list(self._specs)

    def register(self, spec: FieldSpec) -> None:
        """Add a field to the layout.

        Raises:
            ValueError: If the name is taken
            RuntimeError: If the layout is already allocated
        """
        if self.allocated:
            raise RuntimeError("Cannot register fields after allocation")
        if spec.name in self._specs:
            raise ValueError(f"Field '{spec.name}' already registered")
        self._specs[spec.name] = spec

    def register_many(self, specs: list[FieldSpec]) -> None:
        for spec in specs:
            self.register(spec)

    def allocate(self) -> None:
        """Place every registered field in one dense block of the grid's shape.

        Raises:
            RuntimeError: If already allocated or nothing is registered
        """
        if self.allocated:
            raise RuntimeError("Fields already allocated")
        if not self._specs:
            raise RuntimeError("No fields registered")

        builder = ti.FieldsBuilder()
        block = builder.dense(ti.ij, self._geometry.shape)
        for name, spec in self._specs.items():
            self._fields[name] = ti.field(dtype=spec.dtype)
            block.place(self._fields[name])
        self._tree = builder.finalize()

    def release(self) -> None:
        """Free the device memory of every field."""
        if self._tree is not None:
            self._tree.destroy()
            self._tree = None
        self._fields.clear()

    def __getitem__(self, name: str) -> Any:
        if not self.allocated:
            raise RuntimeError("Fields not yet allocated")
        if name not in self._fields:
            raise KeyError(f"Field '{name}' not found")
        return self._fields[name]

    def get_spec(self, name: str) -> FieldSpec:
        if name not in self._specs:
            raise KeyError(f"Field '{name}' not registered")
        return self._specs[name]

    def fields_by_role(self, role: FieldRole) -> list[str]:
        return [name for name, spec in self._specs.items() if spec.role == role]

    @property
    def memory_bytes(self) -> int:
        """Bytes held by the allocated fields, 0 before allocation."""
        if not self.allocated:
            return 0
        return self._geometry.n_cells * sum(spec.itemsize for spec in self._specs.values())

    def __contains__(self, name: str) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)
