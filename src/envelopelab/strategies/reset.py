"""
Compensation strategies: move an envelope's simulated balance to a value at a day.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from envelopelab.core.context import PeekContext
from envelopelab.core.descriptors import Descriptor, Direction
from envelopelab.core.errors import ConfigError
from envelopelab.core.kinds import K
from envelopelab.core.operation import PeekOperation, coerce_days

logger = logging.getLogger(__name__)


@dataclass
class ResetToTarget(PeekOperation):
    """
    Compensating transfer to a target balance (kind: 'p.reset.target').

    Reads the target envelope's own simulated balance at ``day`` and appends one
    Transfer of ``value - balance``: an inflow when the delta is positive, an
    outflow of its absolute value when negative. The growth snapshot is taken from
    the envelope at synthesis time so the correction compounds like the envelope.

    Required Parameters:
        - target: Envelope to correct
        - day: Day of the correction (must be on the time axis)
        - value: Balance the envelope should have at ``day``

    Note:
        No-op when the delta is exactly zero or the day is off-axis.
    """

    kind = K.P_RESET_TARGET

    day: int = 0
    value: float = 0.0

    def __post_init__(self):
        super().__post_init__()
        (self.day,) = coerce_days([self.day], self.kind)
        try:
            self.value = float(self.value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{self.kind}: invalid target value: {e}") from e
        if not math.isfinite(self.value):
            raise ConfigError(f"{self.kind}: target value must be finite")

    def apply(self, ctx: PeekContext) -> int:
        current = ctx.read(self.target, self.day, self)
        if current is None:
            return 0
        delta = self.value - current
        if delta == 0:
            logger.debug("%s: %s already at %s on day %d", self.kind, self.target, self.value, self.day)
            return 0
        env = ctx.envelope(self.target, self)
        desc = Descriptor.transfer(
            Direction.for_delta(delta),
            self.day,
            abs(delta),
            env.growth_snapshot(),
            peek=self.kind,
            stage=ctx.stage,
        )
        ctx.append(self.target, desc, self)
        return 1


@dataclass
class ResetToZero(ResetToTarget):
    """
    Cancel an envelope's balance at a day (kind: 'p.reset.zero').

    A positive balance yields an outflow, a negative one an inflow, both of
    magnitude ``|balance|``. No-op if the balance is exactly zero.
    """

    kind = K.P_RESET_ZERO

    def __post_init__(self):
        if self.value != 0:
            raise ConfigError(f"{self.kind}: value is fixed at 0")
        super().__post_init__()
