"""
Proportional propagation of one envelope's series into another as impulses.
"""

from __future__ import annotations

import logging
import math
import operator
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from envelopelab.core.context import PeekContext
from envelopelab.core.descriptors import Descriptor, Direction
from envelopelab.core.errors import ConfigError
from envelopelab.core.kinds import K
from envelopelab.core.operation import PeekOperation, coerce_days

logger = logging.getLogger(__name__)

_FILTER_OPS: dict[str, Callable[[int, int], bool]] = {
    "lt": operator.lt,
    "le": operator.le,
    "gt": operator.gt,
    "ge": operator.ge,
    "eq": operator.eq,
}


@dataclass(frozen=True)
class DayFilter:
    """
    Declarative day predicate, e.g. ``DayFilter("lt", 3650)`` admits days < 3650.
    """

    op: str
    day: int

    def __post_init__(self):
        if self.op not in _FILTER_OPS:
            raise ConfigError(
                f"day filter op must be one of {sorted(_FILTER_OPS)}, got {self.op!r}"
            )

    def __call__(self, day: int) -> bool:
        return _FILTER_OPS[self.op](day, self.day)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> DayFilter:
        try:
            return cls(op=data["op"], day=int(data["day"]))
        except KeyError as e:
            raise ConfigError(f"day filter is missing {e.args[0]!r}") from e


@dataclass
class ProportionalImpulse(PeekOperation):
    """
    Impulses proportional to a source series (kind: 'p.propagate.proportional').

    For each admitted day, reads ``source`` at that day, multiplies by
    ``coefficient`` and, if the product is nonzero, appends an Impulse of
    ``|value * coefficient|`` to ``target`` in the fixed ``direction``.

    Required Parameters:
        - source: Envelope whose series is read
        - target: Envelope receiving the impulses
        - coefficient: Scale factor
        - days: Candidate days

    Optional Parameters:
        - direction: 'out' (default) or 'in'
        - param_key: Theta parameter name (defaults to 'a' for in, 'b' for out)
        - day_filter: Predicate on the day value (DayFilter or any callable)

    **Example:**
        ```python
        # 5% of a brokerage balance leaves as fees every 30 days
        ProportionalImpulse(
            target="Fees", source="Brokerage", coefficient=0.05, days=range(0, 3650, 30)
        )
        ```
    """

    kind = K.P_PROPAGATE_PROPORTIONAL

    source: str = ""
    coefficient: float = 0.0
    days: tuple[int, ...] = ()
    direction: Direction = Direction.OUT
    param_key: str = ""
    day_filter: Callable[[int], bool] | None = field(default=None, compare=False)

    def __post_init__(self):
        super().__post_init__()
        if not isinstance(self.source, str) or not self.source:
            raise ConfigError(f"{self.kind}: 'source' must be a non-empty string")
        try:
            self.coefficient = float(self.coefficient)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{self.kind}: invalid coefficient: {e}") from e
        if not math.isfinite(self.coefficient):
            raise ConfigError(f"{self.kind}: coefficient must be finite")
        self.days = coerce_days(self.days, self.kind)
        self.direction = Direction.parse(self.direction)
        if not self.param_key:
            self.param_key = self.direction.default_param_key
        if isinstance(self.day_filter, dict):
            self.day_filter = DayFilter.from_mapping(self.day_filter)
        if self.day_filter is not None and not callable(self.day_filter):
            raise ConfigError(f"{self.kind}: 'day_filter' must be callable")

    def apply(self, ctx: PeekContext) -> int:
        appended = 0
        for day in self.days:
            if self.day_filter is not None and not self.day_filter(day):
                continue
            value = ctx.read(self.source, day, self)
            if value is None:
                continue
            amount = value * self.coefficient
            if amount == 0:
                continue
            desc = Descriptor.impulse(
                self.direction,
                day,
                abs(amount),
                param_key=self.param_key,
                peek=self.kind,
                stage=ctx.stage,
                source=self.source,
            )
            ctx.append(self.target, desc, self)
            appended += 1
        return appended
