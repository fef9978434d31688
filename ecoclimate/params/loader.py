"""
Configuration loading and saving.

Two formats are supported:
- nested YAML mirroring the parameter groups (load_config / save_config)
- flat ``name,value`` parameter files (load_parameter_csv)

The YAML loaders are strict and raise on invalid content. The flat loader is
tolerant: it never raises on file content, keeping the base value for anything
it cannot use and logging what it skipped.
"""

import csv
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

import yaml

from ecoclimate.params.keys import PARAMETER_KEYS, group_updates
from ecoclimate.params.schema import (
    PARAM_GROUPS,
    SimulationConfig,
    ValidationError,
    build_group,
)

logger = logging.getLogger(__name__)


def load_config(path: str | Path) -> SimulationConfig:
    """
    Read a nested parameter file. Groups or fields left out keep their defaults.

        climate:
          storm_frequency_days: 12.0
        remediation:
          neutralize_radius_cells: 5

    Raises:
        FileNotFoundError: If the file is missing
        ValidationError: If the content is not a mapping or a value is out of range
        yaml.YAMLError: If the YAML is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValidationError(f"Configuration must be a dictionary, got {type(data)}")

    return SimulationConfig.from_dict(data)


def save_config(config: SimulationConfig, path: str | Path) -> None:
    """Write every parameter group to a nested YAML file, in declaration order."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)


def load_config_with_overrides(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> SimulationConfig:
    """
    Defaults, or the YAML file at path, with nested group overrides applied on top.

        load_config_with_overrides(overrides={"spores": {"storm_spore_multiplier": 5.0}})
    """
    config = load_config(path) if path is not None else SimulationConfig()
    if overrides:
        config = config.with_updates(**overrides)
    return config


def read_parameter_rows(path: str | Path) -> dict[str, str]:
    """Read raw ``name,value`` rows. Blank lines and ``#`` comments are skipped."""
    rows: dict[str, str] = {}
    with open(path, "r", newline="") as f:
        for row in csv.reader(f):
            if not row or not row[0].strip() or row[0].strip().startswith("#"):
                continue
            if len(row) < 2:
                logger.warning("Skipping parameter row without a value: %s", row[0].strip())
                continue
            rows[row[0].strip()] = row[1].strip()
    return rows


def config_from_flat_lenient(
    values: dict[str, Any],
    base: SimulationConfig | None = None,
) -> SimulationConfig:
    """
    Apply flat values over base (the defaults if None), skipping bad input.

    Every name that parses replaces the base value, even when it equals the
    default. Unknown names are ignored. A value that cannot be parsed or fails
    its check keeps the base value. A group that fails a cross-field check
    (e.g. wilting point above field capacity) keeps the base group.
    """
    parsed: dict[str, Any] = {}
    for name, raw in values.items():
        key = PARAMETER_KEYS.get(name)
        if key is None:
            logger.debug("Ignoring unknown parameter %s", name)
            continue
        try:
            parsed[name] = key.parse(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Invalid value for %s (%r), ignored: %s", name, raw, exc)

    base = base or SimulationConfig()
    groups = {}
    for group, updates in group_updates(parsed).items():
        current = asdict(getattr(base, group))
        for attr, value in updates.items():
            if isinstance(value, dict):
                current[attr].update(value)
            else:
                current[attr] = value
        try:
            groups[group] = build_group(group, current)
        except ValidationError as exc:
            logger.warning("Parameter group %s is inconsistent, ignored: %s", group, exc)
    return base.with_updates(**groups) if groups else base


def load_parameter_csv(path: str | Path, base: SimulationConfig | None = None) -> SimulationConfig:
    """
    Load a flat ``name,value`` parameter file over base.

    Never raises on file content: a missing or unreadable file yields base
    unchanged, and individual bad values keep their base values.

    Args:
        path: Path to the parameter file
        base: Configuration the file overrides, defaults if None

    Returns:
        SimulationConfig with every parsed row applied
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Parameter file not found at %s, ignored", path)
        return base or SimulationConfig()

    try:
        rows = read_parameter_rows(path)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        logger.warning("Could not read parameter file %s, ignored: %s", path, exc)
        return base or SimulationConfig()

    config = config_from_flat_lenient(rows, base)
    logger.info("Loaded %d parameter rows from %s", len(rows), path)
    return config


def save_parameter_csv(config: SimulationConfig, path: str | Path) -> None:
    """Write every flat parameter as a ``name,value`` row, grouped with comment headers."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    flat = config.to_flat()
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        for group in PARAM_GROUPS:
            f.write(f"# {group}\n")
            for name, key in PARAMETER_KEYS.items():
                if key.group == group:
                    writer.writerow([name, flat[name]])
