"""
Parameter management for the ecoclimate engine.

This module provides:
- Validated, immutable parameter containers (schema.py)
- The flat parameter-name table (keys.py)
- YAML and flat-file loading utilities (loader.py)
- Taichi parameter injection (taichi_params.py)
"""

from ecoclimate.params.schema import (
    DomainParams,
    ClimateParams,
    TerrainParams,
    FeedbackParams,
    SoilProperties,
    SoilParams,
    HydrologyParams,
    FungalParams,
    SporeParams,
    ToxicityParams,
    VegetationParams,
    RemediationParams,
    SimulationConfig,
    ValidationError,
)
from ecoclimate.params.keys import PARAMETER_KEYS, ParameterKey
from ecoclimate.params.loader import (
    load_config,
    save_config,
    load_config_with_overrides,
    load_parameter_csv,
    save_parameter_csv,
)
from ecoclimate.params.taichi_params import TaichiParams, create_taichi_params

__all__ = [
    # Schema classes
    "DomainParams",
    "ClimateParams",
    "TerrainParams",
    "FeedbackParams",
    "SoilProperties",
    "SoilParams",
    "HydrologyParams",
    "FungalParams",
    "SporeParams",
    "ToxicityParams",
    "VegetationParams",
    "RemediationParams",
    "SimulationConfig",
    "ValidationError",
    # Flat names
    "PARAMETER_KEYS",
    "ParameterKey",
    # Loader functions
    "load_config",
    "save_config",
    "load_config_with_overrides",
    "load_parameter_csv",
    "save_parameter_csv",
    # Taichi injection
    "TaichiParams",
    "create_taichi_params",
]
