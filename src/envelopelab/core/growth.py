"""
Growth models attached to envelopes and snapshotted onto descriptors.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import ConfigError


class GrowthKind(Enum):
    """
    Growth curve applied forward from a descriptor's occurrence day.

    Values are the labels plans use for ``growth_type``.
    """

    NONE = "None"
    SIMPLE_INTEREST = "Simple Interest"
    APPRECIATION = "Appreciation"
    DEPRECIATION = "Depreciation"
    DEPRECIATION_BY_USEFUL_LIFE = "Depreciation (Days)"
    DAILY_COMPOUND = "Daily Compound"
    MONTHLY_COMPOUND = "Monthly Compound"
    YEARLY_COMPOUND = "Yearly Compound"

    @classmethod
    def parse(cls, label: Any) -> GrowthKind:
        """Accept an enum member, its label, or its name in any case."""
        if isinstance(label, GrowthKind):
            return label
        if label is None or label == "":
            return cls.NONE
        if not isinstance(label, str):
            raise ConfigError(f"growth type must be a string, got {type(label).__name__}")
        for member in cls:
            if label == member.value or label.upper() == member.name:
                return member
        raise ConfigError(f"Unknown growth type: {label!r}")


@dataclass(frozen=True)
class GrowthModel:
    """
    Immutable growth configuration.

    Frozen so that a snapshot taken when a descriptor is synthesized cannot be
    altered by later edits to the envelope's live configuration.

    Attributes:
        kind: Growth curve
        rate: Annual rate (e.g. 0.05 for 5%)
        useful_life_days: Only used by DEPRECIATION_BY_USEFUL_LIFE
    """

    kind: GrowthKind = GrowthKind.NONE
    rate: float = 0.0
    useful_life_days: float | None = None

    def __post_init__(self):
        if self.kind is GrowthKind.DEPRECIATION_BY_USEFUL_LIFE and (
            self.useful_life_days is not None and self.useful_life_days <= 0
        ):
            raise ConfigError("useful_life_days must be positive")

    @classmethod
    def none(cls) -> GrowthModel:
        return cls()

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> GrowthModel:
        """
        Build a model from plan-style keys.

        Accepts either ``{"type", "r", "days_of_usefulness"}`` (descriptor form) or
        ``{"growth_type", "growth_rate", "days_of_usefulness"}`` (envelope form).
        """
        if not data:
            return cls()
        kind = GrowthKind.parse(data.get("type", data.get("growth_type")))
        try:
            rate = float(data.get("r", data.get("growth_rate", 0.0)) or 0.0)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid growth rate: {e}") from e
        days = data.get("days_of_usefulness", data.get("useful_life_days"))
        return cls(
            kind=kind,
            rate=rate,
            useful_life_days=None if days is None else float(days),
        )

    def factor(self, dt: float) -> float:
        """
        Multiplicative factor ``dt`` days after occurrence.

        Matches the curves the external solver integrates with.
        """
        r = self.rate
        kind = self.kind
        if kind in (GrowthKind.SIMPLE_INTEREST, GrowthKind.APPRECIATION):
            return 1 + r * (dt / 365.25)
        if kind is GrowthKind.DAILY_COMPOUND:
            return (1 + r / 365.25) ** dt
        if kind is GrowthKind.MONTHLY_COMPOUND:
            return (1 + r / 12) ** ((12 * dt) / 365)
        if kind is GrowthKind.YEARLY_COMPOUND:
            return (1 + r) ** (dt / 365.25)
        if kind is GrowthKind.DEPRECIATION:
            return max(0.0, (1 - r) ** (dt / 365.25))
        if kind is GrowthKind.DEPRECIATION_BY_USEFUL_LIFE:
            days = self.useful_life_days
            if not days or days <= 0:
                return 0.0
            return max(0.0, 1 - dt / days)
        return 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "r": self.rate,
            "days_of_usefulness": self.useful_life_days,
        }
