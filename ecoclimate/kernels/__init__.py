"""Taichi kernels for the ecosystem subsystems.

Each module holds one subsystem:
- weather: global weather sampling and local cell weather
- hydrology: soil moisture
- spores: spore production and dispersal
- fungal, toxicity, vegetation: per-cell updates, fused by ecology
- remediation: localized operator intervention
"""
