"""Type definitions for the ecosystem simulation.

All cell fields and kernel arithmetic use double precision. Thresholds such as
the remediation toxicity cut and the succession snap values are compared
exactly, and trajectories must be reproducible bit for bit on the CPU backend.
"""

import taichi as ti

# ti.f64: Double precision (64-bit float) used for every field and kernel argument
DTYPE = ti.f64

# Integer type for categorical fields (terrain, vegetation state)
ITYPE = ti.i32
