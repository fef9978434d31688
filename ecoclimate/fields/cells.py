"""Cell grid field specifications.

Every per-cell attribute of the ecosystem grid is one scalar Taichi field of
shape (nx, ny). ``CellFields`` exposes them as plain attributes so that it can
be passed to kernels as a ``ti.template()`` argument.
"""

from typing import Any

import numpy as np

from ecoclimate.core.dtypes import DTYPE, ITYPE
from ecoclimate.core.geometry import GridGeometry
from ecoclimate.fields.base import FieldContainer, FieldRole, FieldSpec


def create_cell_specs(dtype: Any = DTYPE) -> list[FieldSpec]:
    """Create specifications for every cell field."""
    return [
        # Landscape (static)
        FieldSpec("terrain", ITYPE, FieldRole.STATIC, "Terrain classification code"),
        FieldSpec("elevation", dtype, FieldRole.STATIC, "Elevation [m]"),
        FieldSpec("low_toxicity", ITYPE, FieldRole.STATIC, "Low-toxicity zone flag (0/1)"),
        # Atmosphere
        FieldSpec("temperature", dtype, FieldRole.STATE, "Local temperature [°C]"),
        FieldSpec("humidity", dtype, FieldRole.STATE, "Local relative humidity [%]"),
        FieldSpec("wind_x", dtype, FieldRole.STATE, "Local wind, x component [m/s]"),
        FieldSpec("wind_y", dtype, FieldRole.STATE, "Local wind, y component [m/s]"),
        # Hydrology
        FieldSpec("moisture", dtype, FieldRole.STATE, "Soil moisture [m³/m³]"),
        FieldSpec("days_since_rain", dtype, FieldRole.STATE, "Days since last rain [days]"),
        FieldSpec("days_since_storm", dtype, FieldRole.STATE, "Days since last storm [days]"),
        # Contamination
        FieldSpec("toxicity", dtype, FieldRole.STATE, "Soil/water toxicity [0-3]"),
        FieldSpec("air_toxicity", dtype, FieldRole.STATE, "Air toxicity [0-3]"),
        # Vegetation
        FieldSpec("mat_cover", dtype, FieldRole.STATE, "Fungal mat cover [0-1]"),
        FieldSpec("forest_cover", dtype, FieldRole.STATE, "Forest cover [0-1]"),
        FieldSpec("grass_cover", dtype, FieldRole.STATE, "Grass cover [0-1]"),
        FieldSpec("veg_state", ITYPE, FieldRole.STATE, "Vegetation state code"),
        # Bookkeeping
        FieldSpec("days_clean_soil", dtype, FieldRole.STATE, "Consecutive clean-soil days [days]"),
        FieldSpec("days_since_establishment", dtype, FieldRole.STATE,
                  "Days of uninterrupted growth conditions [days]"),
        FieldSpec("last_remediation", dtype, FieldRole.STATE,
                  "Simulated day of last remediation [days]"),
        # Spores (recomputed every ecology tick)
        FieldSpec("seed_spores", dtype, FieldRole.DERIVED, "Seed-spore load [-]"),
        FieldSpec("nonseed_spores", dtype, FieldRole.DERIVED, "Non-seed-spore load [-]"),
        FieldSpec("seed_production", dtype, FieldRole.SCRATCH, "Seed-spore emission [-]"),
        FieldSpec("nonseed_production", dtype, FieldRole.SCRATCH, "Non-seed-spore emission [-]"),
    ]


class CellFields:
    """Attribute access to the allocated cell fields.

    Example:
        cells = create_cell_fields(GridGeometry(32, 32))
        cells.moisture.fill(0.1)
        some_kernel(cells, params)
    """

    def __init__(self, container: FieldContainer):
        self._container = container
        self.nx = container.geometry.nx
        self.ny = container.geometry.ny
        for name in container.field_names:
            setattr(self, name, container[name])

    @property
    def container(self) -> FieldContainer:
        return self._container

    @property
    def geometry(self) -> GridGeometry:
        return self._container.geometry

    @property
    def names(self) -> list[str]:
        return self._container.field_names

    def to_numpy(self, name: str) -> np.ndarray:
        """Copy one field to a numpy array indexed [x, y]."""
        return self._container[name].to_numpy()

    def from_numpy(self, name: str, values: np.ndarray) -> None:
        """Overwrite one field from a numpy array indexed [x, y]."""
        arr = np.asarray(values)
        if arr.shape != self.geometry.shape:
            raise ValueError(
                f"Shape mismatch for '{name}': expected {self.geometry.shape}, got {arr.shape}"
            )
        spec = self._container.get_spec(name)
        self._container[name].from_numpy(arr.astype(spec.numpy_dtype))

    def release(self) -> None:
        """Free the grid. Field attributes must not be used afterwards."""
        self._container.release()

    def snapshot(self, roles: tuple[FieldRole, ...] = (
        FieldRole.STATIC, FieldRole.STATE, FieldRole.DERIVED,
    )) -> dict[str, np.ndarray]:
        """Copy every field of the given roles to numpy."""
        return {
            name: self.to_numpy(name)
            for role in roles
            for name in self._container.fields_by_role(role)
        }


def create_cell_fields(geometry: GridGeometry, dtype: Any = DTYPE) -> CellFields:
    """Allocate a complete cell grid."""
    container = FieldContainer(geometry)
    container.register_many(create_cell_specs(dtype))
    container.allocate()
    return CellFields(container)

