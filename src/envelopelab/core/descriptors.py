"""
Descriptor model: the declarative event units consumed by the solver.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import ConfigError
from .growth import GrowthModel


class Direction(Enum):
    """Sign of a descriptor's effect on its envelope."""

    IN = "in"
    OUT = "out"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.IN else -1

    @property
    def default_param_key(self) -> str:
        """Named parameter conventionally carrying the magnitude ('a' in, 'b' out)."""
        return "a" if self is Direction.IN else "b"

    @classmethod
    def parse(cls, value: Any) -> Direction:
        if isinstance(value, Direction):
            return value
        try:
            return cls(value)
        except ValueError as e:
            raise ConfigError(f"direction must be 'in' or 'out', got {value!r}") from e

    @classmethod
    def for_delta(cls, delta: float) -> Direction:
        """Direction that moves a balance by ``delta``."""
        return cls.IN if delta > 0 else cls.OUT


class DescriptorType(Enum):
    """
    TRANSFER persists and grows forward from its day per the growth snapshot.
    IMPULSE affects only the evaluation point at its day.
    """

    TRANSFER = "T"
    IMPULSE = "Impulse"


@dataclass(frozen=True)
class Descriptor:
    """
    Time-stamped balance change appended to an envelope.

    The magnitude-producing function ``theta(t)`` returns a mapping keyed by
    ``param_key``; synthesized descriptors carry a constant magnitude.

    Attributes:
        type: TRANSFER or IMPULSE
        direction: IN or OUT
        day: Occurrence day offset (``t_k``)
        magnitude: Non-negative amount
        growth: Growth snapshot captured at synthesis time
        param_key: Name of the theta parameter carrying the magnitude
        meta: Free-form provenance (peek kind, stage, source envelope)
    """

    type: DescriptorType
    direction: Direction
    day: int
    magnitude: float
    growth: GrowthModel = field(default_factory=GrowthModel)
    param_key: str = ""
    meta: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if not math.isfinite(self.magnitude):
            raise ConfigError(f"descriptor magnitude must be finite, got {self.magnitude}")
        if self.magnitude < 0:
            raise ConfigError("descriptor magnitude must be >= 0; use direction for sign")
        if not self.param_key:
            object.__setattr__(self, "param_key", self.direction.default_param_key)

    @classmethod
    def transfer(
        cls,
        direction: Direction,
        day: int,
        magnitude: float,
        growth: GrowthModel,
        **meta: Any,
    ) -> Descriptor:
        return cls(
            type=DescriptorType.TRANSFER,
            direction=direction,
            day=int(day),
            magnitude=float(magnitude),
            growth=growth,
            meta=meta,
        )

    @classmethod
    def impulse(
        cls,
        direction: Direction,
        day: int,
        magnitude: float,
        param_key: str = "",
        **meta: Any,
    ) -> Descriptor:
        # Impulses never grow forward
        return cls(
            type=DescriptorType.IMPULSE,
            direction=direction,
            day=int(day),
            magnitude=float(magnitude),
            growth=GrowthModel.none(),
            param_key=param_key,
            meta=meta,
        )

    def theta(self, t: float) -> dict[str, float]:
        """Parameter mapping at time ``t`` (constant for synthesized descriptors)."""
        return {self.param_key: self.magnitude}

    def value_at(self, t: float) -> float:
        return self.theta(t)[self.param_key]

    @property
    def signed_magnitude(self) -> float:
        return self.direction.sign * self.magnitude

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "direction": self.direction.value,
            "t_k": self.day,
            "thetaParamKey": self.param_key,
            "magnitude": self.magnitude,
            "growth": self.growth.to_dict(),
            "meta": dict(self.meta),
        }
