"""Field management for the ecosystem grid.

Main classes:
- FieldSpec: Declarative field specification
- FieldRole: Field categorization (STATIC, STATE, DERIVED, SCRATCH)
- FieldContainer: Manages Taichi field lifecycle
- CellFields: Attribute access to the cell grid, passable to kernels
"""

from ecoclimate.fields.base import FieldContainer, FieldRole, FieldSpec
from ecoclimate.fields.cells import CellFields, create_cell_fields, create_cell_specs

__all__ = [
    "FieldContainer",
    "FieldRole",
    "FieldSpec",
    "CellFields",
    "create_cell_fields",
    "create_cell_specs",
]
