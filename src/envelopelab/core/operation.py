"""
Base class for peek operations.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, ClassVar

from .context import PeekContext
from .errors import ConfigError


@dataclass
class PeekOperation(ABC):
    """
    Deferred unit of work: read settled results, append descriptors.

    Concrete operations are dataclasses carrying their own parameter record and a
    ``kind`` discriminator, so the set of operations stays exhaustively matchable
    and carries no hidden captured state.

    Contract for ``apply``:
    - reads only series produced by an earlier stage
    - appends descriptors to exactly one envelope, ``target``
    - never removes or edits existing descriptors
    - returns the number of descriptors appended
    """

    kind: ClassVar[str] = ""

    target: str

    def __post_init__(self):
        if not isinstance(self.target, str) or not self.target:
            raise ConfigError(f"{type(self).__name__}: 'target' must be a non-empty string")

    @abstractmethod
    def apply(self, ctx: PeekContext) -> int:
        ...

    def describe(self) -> dict[str, Any]:
        """Declarative form, suitable for logs and JSON."""
        out: dict[str, Any] = {"kind": self.kind}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            elif hasattr(value, "__dataclass_fields__"):
                value = asdict(value)
            elif callable(value):
                value = getattr(value, "__name__", repr(value))
            out[f.name] = value
        return out


def coerce_days(days: Any, owner: str) -> tuple[int, ...]:
    """Normalize a day list, rejecting non-integral entries."""
    if days is None:
        raise ConfigError(f"{owner}: 'days' is required")
    if isinstance(days, (int, float)):
        days = [days]
    out: list[int] = []
    for d in days:
        if isinstance(d, bool):
            raise ConfigError(f"{owner}: day {d!r} is not an integer")
        try:
            fd = float(d)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{owner}: day {d!r} is not an integer") from e
        if not math.isfinite(fd) or fd != int(fd):
            raise ConfigError(f"{owner}: day {d!r} is not an integer")
        out.append(int(fd))
    return tuple(out)
