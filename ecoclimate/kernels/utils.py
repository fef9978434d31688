"""Utility kernels shared by the subsystems."""

import taichi as ti

from ecoclimate.core.dtypes import DTYPE


@ti.kernel
def compute_total(field: ti.template()) -> DTYPE:
    """Sum all field values."""
    total = ti.cast(0.0, DTYPE)
    for I in ti.grouped(field):
        total += field[I]
    return total


@ti.kernel
def count_equal(field: ti.template(), value: ti.i32) -> ti.i32:
    """Count cells of an integer field equal to value."""
    count = 0
    for I in ti.grouped(field):
        if field[I] == value:
            count += 1
    return count


@ti.func
def clamp(value, lo, hi):
    """Clamp a scalar to [lo, hi]."""
    return ti.max(lo, ti.min(hi, value))
