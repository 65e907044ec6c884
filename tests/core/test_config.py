from __future__ import annotations

import json
from pathlib import Path

import pytest

from envelopelab.core.config import EngineConfig, load_config
from envelopelab.core.errors import ConfigError
from envelopelab.tax import DEFAULT_TAX_TABLE


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults() -> None:
    config = load_config()
    assert config == EngineConfig()
    assert config.max_stages == 32
    assert config.missing_day == "warn"
    assert config.create_missing_targets is True
    assert config.tax_table is DEFAULT_TAX_TABLE


def test_load_yaml_engine_section(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "engine.yaml",
        """
engine:
  max_stages: 4
  missing_day: raise
  non_finite: raise
  create_missing_targets: false
  tax_table:
    thresholds: [10000]
    rates: [0.1, 0.2]
    dependent_credit: 500
""",
    )
    config = load_config(path)

    assert config.max_stages == 4
    assert config.missing_day == "raise"
    assert config.non_finite == "raise"
    assert config.create_missing_targets is False
    assert config.tax_table.thresholds == (10000.0,)
    assert config.tax_table.dependent_credit == 500.0


def test_load_json_without_engine_key(tmp_path: Path) -> None:
    path = _write(tmp_path, "engine.json", json.dumps({"missing_day": "ignore"}))
    assert load_config(path).missing_day == "ignore"


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    path = _write(tmp_path, "empty.yml", "")
    assert load_config(path) == EngineConfig()


def test_unknown_option_names_source(tmp_path: Path) -> None:
    path = _write(tmp_path, "engine.yaml", "engine:\n  max_stage: 3\n")
    with pytest.raises(ConfigError, match=r"engine\.yaml: unknown engine option\(s\): max_stage"):
        load_config(path)


def test_invalid_policy() -> None:
    with pytest.raises(ConfigError, match="missing_day"):
        load_config({"missing_day": "explode"})


@pytest.mark.parametrize("value", [0, True, "3"])
def test_invalid_max_stages(value) -> None:
    with pytest.raises(ConfigError):
        EngineConfig(max_stages=value)


def test_root_must_be_mapping(tmp_path: Path) -> None:
    path = _write(tmp_path, "list.yaml", "- 1\n- 2\n")
    with pytest.raises(ConfigError, match="must be a mapping"):
        load_config(path)


def test_unsupported_format(tmp_path: Path) -> None:
    path = _write(tmp_path, "engine.toml", "max_stages = 3\n")
    with pytest.raises(ConfigError, match="Unsupported config format"):
        load_config(path)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_mapping_input_is_not_mutated() -> None:
    data = {"engine": {"tax_table": {"thresholds": [1000], "rates": [0.0, 0.5]}}}
    load_config(data)
    assert data == {"engine": {"tax_table": {"thresholds": [1000], "rates": [0.0, 0.5]}}}
