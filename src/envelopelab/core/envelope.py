"""
Envelope container: a named bucket holding a growth model and its descriptors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .descriptors import Descriptor
from .errors import ConfigError
from .growth import GrowthModel


@dataclass
class Envelope:
    """
    Named financial bucket whose balance the solver derives from descriptors.

    The growth model may be replaced at any time; descriptors already appended
    keep the snapshot they were built with.

    Attributes:
        name: Unique envelope name within a plan
        growth: Live growth configuration
        descriptors: Ordered, append-only descriptor list
    """

    name: str
    growth: GrowthModel = field(default_factory=GrowthModel)
    descriptors: list[Descriptor] = field(default_factory=list)

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ConfigError("Envelope must have a non-empty name")

    def append(self, descriptor: Descriptor) -> None:
        if not isinstance(descriptor, Descriptor):
            raise ConfigError(
                f"Envelope '{self.name}' only accepts Descriptor instances, "
                f"got {type(descriptor).__name__}"
            )
        self.descriptors.append(descriptor)

    def growth_snapshot(self) -> GrowthModel:
        """Growth model to freeze onto a descriptor synthesized now."""
        return self.growth

    @classmethod
    def from_mapping(cls, name: str, data: dict[str, Any] | None = None) -> Envelope:
        """Build an envelope from plan-style ``growth_type``/``growth_rate`` keys."""
        return cls(name=name, growth=GrowthModel.from_mapping(data or {}))

    def __len__(self) -> int:
        return len(self.descriptors)


EnvelopeMap = dict[str, Envelope]


def make_envelopes(growth_by_name: dict[str, dict[str, Any] | None]) -> EnvelopeMap:
    """Build an envelope map from ``{name: growth-config}``."""
    return {name: Envelope.from_mapping(name, cfg) for name, cfg in growth_by_name.items()}
