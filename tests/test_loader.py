"""Tests for YAML and flat parameter file loading."""

import logging
from pathlib import Path

import pytest
import yaml

from ecoclimate.params.loader import (
    config_from_flat_lenient,
    load_config,
    load_config_with_overrides,
    load_parameter_csv,
    read_parameter_rows,
    save_config,
    save_parameter_csv,
)
from ecoclimate.params.schema import SimulationConfig, ValidationError


class TestYamlLoading:
    """Tests for nested YAML configuration files."""

    def test_save_and_load(self, tmp_path):
        config = SimulationConfig().with_updates(climate={"storm_frequency_days": 12.0})
        path = tmp_path / "config.yaml"
        save_config(config, path)

        loaded = load_config(path)
        assert loaded == config

    def test_partial_file(self, tmp_path):
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.dump({"toxicity": {"toxicity_natural_decay_day": 0.001}}))

        config = load_config(path)
        assert config.toxicity.toxicity_natural_decay_day == 0.001
        assert config.toxicity.toxicity_range_max == 3.0

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == SimulationConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValidationError, match="must be a dictionary"):
            load_config(path)

    def test_invalid_value_raises(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.dump({"domain": {"grid_resolution_m": -5.0}}))
        with pytest.raises(ValidationError, match="grid_resolution_m"):
            load_config(path)

    def test_overrides(self):
        config = load_config_with_overrides(
            overrides={"spores": {"spore_survival_decay": 0.3}}
        )
        assert config.spores.spore_survival_decay == 0.3


class TestParameterFileOverBase:
    """A flat file applied over a loaded configuration."""

    def test_every_parsed_row_overrides(self, tmp_path):
        base = SimulationConfig().with_updates(
            climate={"wind_mean_ms": 9.0},
            remediation={"neutralize_radius_cells": 5},
        )
        path = tmp_path / "params.csv"
        path.write_text("neutralize_radius_cells,3\nfungal_growth_rate_day,0.1\n")

        config = load_parameter_csv(path, base=base)

        # 3 is also the default value
        assert config.remediation.neutralize_radius_cells == 3
        assert config.fungal.fungal_growth_rate_day == 0.1
        assert config.climate.wind_mean_ms == 9.0

    def test_bad_rows_keep_base(self, tmp_path):
        base = SimulationConfig().with_updates(climate={"wind_mean_ms": 9.0})
        path = tmp_path / "params.csv"
        path.write_text("wind_mean_ms,fast\ndesert_wilting_point_pct,50\n")

        assert load_parameter_csv(path, base=base) == base

    def test_missing_file_keeps_base(self, tmp_path):
        base = SimulationConfig().with_updates(climate={"wind_mean_ms": 9.0})
        assert load_parameter_csv(tmp_path / "nope.csv", base=base) == base


class TestParameterFile:
    """Tests for flat name,value parameter files."""

    def test_round_trip(self, tmp_path):
        config = SimulationConfig().with_updates(
            soil={"forest": {"base_toxicity": 1.2}},
            remediation={"neutralize_radius_cells": 5},
        )
        path = tmp_path / "params.csv"
        save_parameter_csv(config, path)

        assert load_parameter_csv(path) == config

    def test_comments_and_blank_lines(self, tmp_path):
        path = tmp_path / "params.csv"
        path.write_text(
            "# climate\n"
            "\n"
            "wind_mean_ms,4.5\n"
            "  # indented comment\n"
            "storm_frequency_days, 30\n"
        )
        rows = read_parameter_rows(path)
        assert rows == {"wind_mean_ms": "4.5", "storm_frequency_days": "30"}

        config = load_parameter_csv(path)
        assert config.climate.wind_mean_ms == 4.5
        assert config.climate.storm_frequency_days == 30.0

    def test_missing_file_gives_defaults(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            config = load_parameter_csv(tmp_path / "nope.csv")
        assert config == SimulationConfig()
        assert "not found" in caplog.text

    def test_unparsable_value_uses_default(self, tmp_path, caplog):
        path = tmp_path / "params.csv"
        path.write_text("wind_mean_ms,fast\nstorm_intensity_mm,40\n")

        with caplog.at_level(logging.WARNING):
            config = load_parameter_csv(path)

        assert config.climate.wind_mean_ms == 6.0
        assert config.climate.storm_intensity_mm == 40.0
        assert "wind_mean_ms" in caplog.text

    def test_out_of_range_value_uses_default(self, tmp_path):
        path = tmp_path / "params.csv"
        path.write_text("neutralize_toxicity_drop,1.7\n")
        config = load_parameter_csv(path)
        assert config.remediation.neutralize_toxicity_drop == 0.8

    def test_unknown_names_ignored(self, tmp_path):
        path = tmp_path / "params.csv"
        path.write_text("camera_zoom,2\nwind_mean_ms,5\n")
        config = load_parameter_csv(path)
        assert config.climate.wind_mean_ms == 5.0

    def test_row_without_value_skipped(self, tmp_path, caplog):
        path = tmp_path / "params.csv"
        path.write_text("wind_mean_ms\nstorm_intensity_mm,10\n")
        with caplog.at_level(logging.WARNING):
            config = load_parameter_csv(path)
        assert config.climate.wind_mean_ms == 6.0
        assert config.climate.storm_intensity_mm == 10.0
        assert "without a value" in caplog.text

    def test_inconsistent_group_falls_back(self, caplog):
        """Wilting point above field capacity resets the soil group."""
        with caplog.at_level(logging.WARNING):
            config = config_from_flat_lenient({"desert_wilting_point_pct": "50"})
        assert config.soil == SimulationConfig().soil
        assert "inconsistent" in caplog.text

    def test_binary_file_gives_defaults(self, tmp_path):
        path = Path(tmp_path) / "params.csv"
        path.write_bytes(b"\xff\xfe\x00\x81\x82")
        assert load_parameter_csv(path) == SimulationConfig()
