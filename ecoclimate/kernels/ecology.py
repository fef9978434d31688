"""Combined per-cell sweep: fungal, then toxicity, then vegetation.

The three updates only touch the cell they run on, so they are fused into a
single pass over the grid.
"""

import taichi as ti

from ecoclimate.core.dtypes import DTYPE
from ecoclimate.kernels.fungal import fungal_update
from ecoclimate.kernels.toxicity import toxicity_update
from ecoclimate.kernels.vegetation import vegetation_update


@ti.kernel
def cell_ecology_step(cells: ti.template(), p: ti.template(), dt: DTYPE) -> ti.types.vector(2, DTYPE):
    """
    Fused fungal, toxicity and vegetation update.

    Returns [net mat cover change after the fungal update, net soil toxicity change].
    """
    mat_change = ti.cast(0.0, DTYPE)
    tox_change = ti.cast(0.0, DTYPE)
    for i, j in cells.veg_state:
        mat_change += fungal_update(cells, p, i, j, dt)
        tox_change += toxicity_update(cells, p, i, j, dt)
        vegetation_update(cells, p, i, j, dt)
    return ti.Vector([mat_change, tox_change])
