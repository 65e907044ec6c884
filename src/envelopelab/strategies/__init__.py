"""
Peek operation strategies for EnvelopeLab.

Each strategy is a dataclass with a ``kind`` discriminator and an ``apply`` method
that reads settled stage results and appends descriptors to one target envelope.

Strategy Categories:
- Building blocks: per-day descriptor injection
- Compensation: reset an envelope to zero or to a target balance
- Propagation: impulses proportional to another envelope's series
- Tax: marginal tax on additional income

Registry System:
The module automatically registers all default strategies in the global registry,
making them available to ``build_operation`` by kind string.
"""

from .inject import InjectAtDays
from .propagate import DayFilter, ProportionalImpulse
from .registry import PeekRegistry, build_operation, load_peeks, register_defaults
from .reset import ResetToTarget, ResetToZero
from .tax import MarginalTaxDelta

# Register all default strategies when module is imported
register_defaults()

__all__ = [
    "InjectAtDays",
    "ResetToZero",
    "ResetToTarget",
    "ProportionalImpulse",
    "DayFilter",
    "MarginalTaxDelta",
    "PeekRegistry",
    "build_operation",
    "load_peeks",
    "register_defaults",
]
