"""
Strategy registry setup for EnvelopeLab.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from envelopelab.core.config import read_mapping
from envelopelab.core.errors import ConfigError
from envelopelab.core.kinds import K
from envelopelab.core.operation import PeekOperation
from envelopelab.tax import load_tax_table

from .inject import InjectAtDays
from .propagate import ProportionalImpulse
from .reset import ResetToTarget, ResetToZero
from .tax import MarginalTaxDelta

# Global registry mapping kind strings to operation classes
PeekRegistry: dict[str, type[PeekOperation]] = {}

# Field names used by camelCase plan payloads
_FIELD_ALIASES = {
    "envelope": "target",
    "targetKey": "target",
    "targetEnvelope": "target",
    "taxesTargetKey": "target",
    "taxesTargetEnvelope": "target",
    "sourceKey": "source",
    "sourceEnvelope": "source",
    "coeff": "coefficient",
    "thetaParamKey": "param_key",
    "filter": "day_filter",
    "targetValue": "value",
    "taxableKey": "taxable",
    "taxableIncomeKey": "taxable",
    "addKey": "additional",
    "filingStatus": "filing_status",
}


def register_defaults():
    """
    Register all default peek operation classes in the global registry.

    Registered Strategies:
        - 'p.inject.at_days': generic per-day descriptor constructor
        - 'p.reset.zero': cancel an envelope's balance at a day
        - 'p.reset.target': move an envelope's balance to a target at a day
        - 'p.propagate.proportional': impulses proportional to another series
        - 'p.tax.marginal_delta': marginal tax on additional income

    Note:
        This function is automatically called when the strategies package is
        imported. Additional strategies can be registered by assigning into
        ``PeekRegistry`` directly.
    """
    PeekRegistry[K.P_INJECT_AT_DAYS] = InjectAtDays
    PeekRegistry[K.P_RESET_ZERO] = ResetToZero
    PeekRegistry[K.P_RESET_TARGET] = ResetToTarget
    PeekRegistry[K.P_PROPAGATE_PROPORTIONAL] = ProportionalImpulse
    PeekRegistry[K.P_TAX_MARGINAL_DELTA] = MarginalTaxDelta


def build_operation(payload: dict[str, Any]) -> PeekOperation:
    """
    Build a peek operation from a declarative payload.

    Args:
        payload: Mapping with a ``kind`` plus the operation's parameters. Legacy
            kind names (``reset_to_zero``, ``impulse_from_envelope``,
            ``tax_delta_on_401k``) and camelCase field names are accepted.

    Returns:
        The operation instance

    Raises:
        ConfigError: Unknown kind, unknown fields or invalid parameter values
    """
    if not isinstance(payload, dict):
        raise ConfigError("peek payload must be a mapping")
    data = dict(payload)
    raw_kind = data.pop("kind", None)
    if not isinstance(raw_kind, str) or not raw_kind:
        raise ConfigError("peek payload requires a 'kind'")
    kind = K.normalize(raw_kind)
    cls = PeekRegistry.get(kind)
    if cls is None:
        raise ConfigError(f"Unknown peek kind: {raw_kind}")

    params: dict[str, Any] = {}
    for key, value in data.items():
        name = _FIELD_ALIASES.get(key, key)
        if name in params:
            raise ConfigError(f"{kind}: parameter '{name}' given more than once")
        params[name] = value
    if "table" in params and not hasattr(params["table"], "thresholds"):
        params["table"] = load_tax_table(params["table"])

    try:
        return cls(**params)
    except TypeError as e:
        raise ConfigError(f"{kind}: {e}") from e


def load_peeks(source: str | Path | dict[str, Any]) -> list[tuple[int, PeekOperation]]:
    """
    Parse a list of staged peek payloads from YAML/JSON/dict.

    The document holds a ``peeks`` list; each entry carries an optional
    ``stage`` (default 0) next to its operation payload.

    Returns:
        ``(stage, operation)`` pairs in document order
    """
    mapping, label = read_mapping(source)
    entries = mapping.get("peeks")
    if not isinstance(entries, list):
        raise ConfigError(f"{label}::peeks: expected a list")

    out: list[tuple[int, PeekOperation]] = []
    for idx, entry in enumerate(entries):
        ctx = f"{label}::peeks[{idx}]"
        if not isinstance(entry, dict):
            raise ConfigError(f"{ctx}: expected a mapping")
        data = dict(entry)
        stage = data.pop("stage", 0)
        if isinstance(stage, bool) or not isinstance(stage, int) or stage < 0:
            raise ConfigError(f"{ctx}.stage must be a non-negative integer")
        try:
            out.append((stage, build_operation(data)))
        except ConfigError as e:
            raise ConfigError(f"{ctx}: {e}") from e
    return out
