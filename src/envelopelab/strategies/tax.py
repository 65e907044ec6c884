"""
Marginal tax delta strategy.
"""

from __future__ import annotations

from dataclasses import dataclass

from envelopelab.core.context import PeekContext
from envelopelab.core.descriptors import Descriptor, Direction
from envelopelab.core.errors import ConfigError
from envelopelab.core.kinds import K
from envelopelab.core.operation import PeekOperation, coerce_days
from envelopelab.tax import FilingStatus, TaxTable, marginal_tax


@dataclass
class MarginalTaxDelta(PeekOperation):
    """
    Extra tax caused by additional income (kind: 'p.tax.marginal_delta').

    For each day, reads the pre-addition taxable income series and the additional
    income series, computes ``tax(taxable + additional) - tax(taxable)`` with the
    progressive bracket evaluator and, only if positive, appends an outflow
    Impulse of that delta to the taxes envelope (``target``).

    Required Parameters:
        - target: Taxes envelope
        - taxable: Envelope holding taxable income before the addition
        - additional: Envelope holding the additional income
        - days: Days to evaluate

    Optional Parameters:
        - filing_status: 'single' (default) or joint filing
        - dependents: Number of dependents (default 0)
        - table: Bracket table (defaults to the run's configured table)
    """

    kind = K.P_TAX_MARGINAL_DELTA

    taxable: str = ""
    additional: str = ""
    days: tuple[int, ...] = ()
    filing_status: FilingStatus = FilingStatus.SINGLE
    dependents: int = 0
    table: TaxTable | None = None

    def __post_init__(self):
        super().__post_init__()
        for name in ("taxable", "additional"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigError(f"{self.kind}: '{name}' must be a non-empty string")
        self.days = coerce_days(self.days, self.kind)
        self.filing_status = FilingStatus.parse(self.filing_status)
        if isinstance(self.dependents, bool) or not isinstance(self.dependents, (int, float)):
            raise ConfigError(f"{self.kind}: dependents must be an integer")
        if int(self.dependents) != self.dependents:
            raise ConfigError(f"{self.kind}: dependents must be an integer")
        self.dependents = int(self.dependents)
        if self.dependents < 0:
            raise ConfigError(f"{self.kind}: dependents must be >= 0")

    def apply(self, ctx: PeekContext) -> int:
        table = self.table or ctx.config.tax_table
        appended = 0
        for day in self.days:
            taxable = ctx.read(self.taxable, day, self)
            extra = ctx.read(self.additional, day, self)
            if taxable is None or extra is None:
                continue
            delta = marginal_tax(taxable, extra, self.filing_status, self.dependents, table)
            if delta <= 0:
                continue
            desc = Descriptor.impulse(
                Direction.OUT,
                day,
                delta,
                peek=self.kind,
                stage=ctx.stage,
                taxable=taxable,
                additional=extra,
            )
            ctx.append(self.target, desc, self)
            appended += 1
        return appended
