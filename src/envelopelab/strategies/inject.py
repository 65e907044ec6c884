"""
Generic at-days injector.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from envelopelab.core.context import PeekContext
from envelopelab.core.descriptors import Descriptor
from envelopelab.core.errors import ConfigError
from envelopelab.core.kinds import K
from envelopelab.core.operation import PeekOperation, coerce_days

DescriptorFactory = Callable[[int, PeekContext], "Descriptor | None"]


@dataclass
class InjectAtDays(PeekOperation):
    """
    Generic building block (kind: 'p.inject.at_days').

    Calls ``make(day, ctx)`` for each day and appends whatever descriptor it
    returns to ``target``; a ``None`` return skips that day. The constructor is
    free to read any series through ``ctx``.

    Required Parameters:
        - target: Envelope receiving the descriptors
        - days: Days to call the constructor for
        - make: ``(day, ctx) -> Descriptor | None``
    """

    kind = K.P_INJECT_AT_DAYS

    days: tuple[int, ...] = ()
    make: DescriptorFactory | None = field(default=None, compare=False)

    def __post_init__(self):
        super().__post_init__()
        self.days = coerce_days(self.days, self.kind)
        if not callable(self.make):
            raise ConfigError(f"{self.kind}: 'make' must be callable")

    def apply(self, ctx: PeekContext) -> int:
        appended = 0
        for day in self.days:
            desc = self.make(day, ctx)
            if desc is None:
                continue
            ctx.append(self.target, desc, self)
            appended += 1
        return appended
