"""
Progressive income tax estimation used by marginal-tax peek operations.

This module provides a bracket table type, a default federal table and a
bracket-walking evaluator. Income is taxed span by span: each bracket only taxes
the part of income that falls between the previous threshold and its own, so no
income is taxed twice.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .core.errors import ConfigError


class FilingStatus(Enum):
    """Filing status; joint filing scales every threshold by the table's multiplier."""

    SINGLE = "single"
    MARRIED_FILING_JOINTLY = "married_filing_jointly"

    @classmethod
    def parse(cls, value: Any) -> FilingStatus:
        """
        Normalize plan labels ("Single", "Married Filing Jointly", "married_filing_jointly").

        ``None`` means single; any other unrecognised value raises ConfigError.
        """
        if isinstance(value, FilingStatus):
            return value
        if value is None:
            return cls.SINGLE
        if isinstance(value, str):
            key = value.strip().lower().replace(" ", "_").replace("-", "_")
            for member in cls:
                if key == member.value:
                    return member
        raise ConfigError(
            f"Unknown filing status: {value!r} "
            f"(expected one of {[m.value for m in cls]})"
        )


@dataclass(frozen=True)
class TaxTable:
    """
    Progressive bracket table.

    Attributes:
        thresholds: Strictly ascending upper bounds of every bracket but the last
        rates: Marginal rate per bracket; one more than ``thresholds`` (last is open-ended)
        dependent_credit: Flat credit subtracted per dependent
        joint_multiplier: Factor applied to every threshold for joint filing
    """

    thresholds: tuple[float, ...]
    rates: tuple[float, ...]
    dependent_credit: float = 2000.0
    joint_multiplier: float = 2.0

    def __post_init__(self):
        if len(self.rates) != len(self.thresholds) + 1:
            raise ConfigError(
                f"tax table needs exactly one more rate than thresholds "
                f"(got {len(self.rates)} rates, {len(self.thresholds)} thresholds)"
            )
        if any(b <= a for a, b in zip(self.thresholds, self.thresholds[1:])):
            raise ConfigError("tax table thresholds must be strictly ascending")
        if self.thresholds and self.thresholds[0] <= 0:
            raise ConfigError("tax table thresholds must be positive")
        if any(not (0.0 <= r <= 1.0) for r in self.rates):
            raise ConfigError("tax rates must be in [0, 1]")
        if self.dependent_credit < 0:
            raise ConfigError("dependent_credit must be >= 0")
        if self.joint_multiplier <= 0:
            raise ConfigError("joint_multiplier must be positive")

    def thresholds_for(self, filing_status: FilingStatus | str) -> tuple[float, ...]:
        status = FilingStatus.parse(filing_status)
        if status is FilingStatus.MARRIED_FILING_JOINTLY:
            return tuple(t * self.joint_multiplier for t in self.thresholds)
        return self.thresholds

    def to_dict(self) -> dict[str, Any]:
        return {
            "thresholds": list(self.thresholds),
            "rates": list(self.rates),
            "dependent_credit": self.dependent_credit,
            "joint_multiplier": self.joint_multiplier,
        }


FEDERAL_2023 = TaxTable(
    thresholds=(11_000.0, 44_725.0, 95_375.0, 182_050.0, 231_250.0, 578_125.0),
    rates=(0.10, 0.12, 0.22, 0.24, 0.32, 0.35, 0.37),
    dependent_credit=2000.0,
    joint_multiplier=2.0,
)

DEFAULT_TAX_TABLE = FEDERAL_2023


def bracket_tax(income: float, thresholds: tuple[float, ...], rates: tuple[float, ...]) -> float:
    """Gross progressive tax before credits."""
    remaining = max(0.0, income)
    prev = 0.0
    tax = 0.0
    for i, rate in enumerate(rates):
        cap = thresholds[i] if i < len(thresholds) else float("inf")
        span = max(0.0, min(remaining, cap - prev))
        tax += span * rate
        remaining -= span
        prev = cap
        if remaining <= 0:
            break
    return tax


def estimate_tax(
    income: float,
    filing_status: FilingStatus | str = FilingStatus.SINGLE,
    dependents: int = 0,
    table: TaxTable = DEFAULT_TAX_TABLE,
) -> float:
    """
    Estimate annual income tax.

    Args:
        income: Taxable income (negative treated as zero)
        filing_status: Single or joint filing
        dependents: Number of dependents, each worth ``table.dependent_credit``
        table: Bracket table

    Returns:
        Tax after credits, floored at zero
    """
    gross = bracket_tax(income, table.thresholds_for(filing_status), table.rates)
    return max(0.0, gross - max(0, dependents) * table.dependent_credit)


def marginal_tax(
    taxable: float,
    additional: float,
    filing_status: FilingStatus | str = FilingStatus.SINGLE,
    dependents: int = 0,
    table: TaxTable = DEFAULT_TAX_TABLE,
) -> float:
    """``tax(taxable + additional) - tax(taxable)``."""
    return estimate_tax(taxable + additional, filing_status, dependents, table) - estimate_tax(
        taxable, filing_status, dependents, table
    )


def load_tax_table(data: Mapping[str, Any] | TaxTable | None) -> TaxTable:
    """Build a TaxTable from a mapping; ``None`` returns the default table."""
    if data is None:
        return DEFAULT_TAX_TABLE
    if isinstance(data, TaxTable):
        return data
    if not isinstance(data, Mapping):
        raise ConfigError("tax table must be a mapping")
    try:
        thresholds = tuple(float(t) for t in data["thresholds"])
        rates = tuple(float(r) for r in data["rates"])
    except KeyError as e:
        raise ConfigError(f"tax table is missing {e.args[0]!r}") from e
    except (TypeError, ValueError) as e:
        raise ConfigError(f"tax table has a non-numeric entry: {e}") from e
    return TaxTable(
        thresholds=thresholds,
        rates=rates,
        dependent_credit=float(data.get("dependent_credit", DEFAULT_TAX_TABLE.dependent_credit)),
        joint_multiplier=float(data.get("joint_multiplier", DEFAULT_TAX_TABLE.joint_multiplier)),
    )
