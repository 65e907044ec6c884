"""Engine configuration and its YAML/JSON loader."""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..tax import DEFAULT_TAX_TABLE, TaxTable, load_tax_table
from .errors import ConfigError

__all__ = ["EngineConfig", "load_config", "read_mapping"]

_GUARD_POLICIES = {
    "missing_day": {"warn", "ignore", "raise"},
    "non_finite": {"warn", "raise"},
}


@dataclass
class EngineConfig:
    """
    Configuration options for staged peek resolution.

    Attributes:
        max_stages: Upper bound on solve/resolve rounds a driven run may take
        missing_day: Policy when a peek names a day absent from the time axis
        non_finite: Policy when a series value read by a peek is NaN/inf
        create_missing_targets: Create an empty envelope when a peek targets an
            unknown name (otherwise raise ConfigError)
        tax_table: Bracket table used by marginal-tax operations that do not
            carry their own
    """

    max_stages: int = 32
    missing_day: str = "warn"
    non_finite: str = "warn"
    create_missing_targets: bool = True
    tax_table: TaxTable = field(default_factory=lambda: DEFAULT_TAX_TABLE)

    def __post_init__(self):
        if isinstance(self.max_stages, bool) or not isinstance(self.max_stages, int):
            raise ConfigError("max_stages must be an integer")
        if self.max_stages < 1:
            raise ConfigError("max_stages must be >= 1")
        for name, allowed in _GUARD_POLICIES.items():
            value = getattr(self, name)
            if value not in allowed:
                raise ConfigError(
                    f"{name} must be one of {sorted(allowed)}, got {value!r}"
                )


def load_config(source: str | Path | dict[str, Any] | None = None) -> EngineConfig:
    """Parse engine configuration from YAML/JSON/dict; ``None`` yields defaults."""
    if source is None:
        return EngineConfig()
    mapping, label = read_mapping(source)
    data = mapping.get("engine", mapping)
    if not isinstance(data, dict):
        raise ConfigError(f"{label}::engine: expected a mapping")

    known = {"max_stages", "missing_day", "non_finite", "create_missing_targets", "tax_table"}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"{label}: unknown engine option(s): {', '.join(unknown)}")

    kwargs = {k: v for k, v in data.items() if k != "tax_table"}
    kwargs["tax_table"] = load_tax_table(data.get("tax_table"))
    try:
        return EngineConfig(**kwargs)
    except ConfigError as e:
        raise ConfigError(f"{label}: {e}") from e


def read_mapping(source: str | Path | dict[str, Any]) -> tuple[dict[str, Any], str]:
    """Read a YAML/JSON file (by suffix) or copy a mapping; returns ``(data, label)``."""
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = path.suffix.lstrip(".").lower()
    text = path.read_text(encoding="utf-8")
    if fmt in {"yaml", "yml", ""}:
        data = yaml.safe_load(text)
    elif fmt == "json":
        data = json.loads(text)
    else:
        raise ConfigError(f"Unsupported config format '{fmt}' for {path}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping (source={path})")
    return data, str(path)
