"""
Per-run diagnostics channel for EnvelopeLab.

Synthesis guards record structured warnings here instead of raising, so that one
malformed peek operation does not abort a multi-stage run.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

DAY_NOT_IN_AXIS = "day_not_in_axis"
NON_FINITE_VALUE = "non_finite_value"
MISSING_SERIES = "missing_series"
TARGET_CREATED = "target_created"
SERIES_MISALIGNED = "series_misaligned"


@dataclass(frozen=True)
class Diagnostic:
    """
    One recorded guard event.

    Attributes:
        code: Machine-readable category (see module constants)
        message: Human-readable description
        stage: Stage being resolved when it was recorded
        kind: Kind string of the peek operation involved
        envelope: Envelope name involved
        day: Day offset involved
    """

    code: str
    message: str
    stage: int | None = None
    kind: str | None = None
    envelope: str | None = None
    day: int | None = None


@dataclass
class Diagnostics:
    """
    Structured warning accumulator owned by one simulation run.

    Mirrors the shape of a validation report: machine-readable records, a
    ``to_dict`` for JSON, and a readable ``__str__``.
    """

    entries: list[Diagnostic] = field(default_factory=list)

    def warn(
        self,
        code: str,
        message: str,
        *,
        stage: int | None = None,
        kind: str | None = None,
        envelope: str | None = None,
        day: int | None = None,
    ) -> Diagnostic:
        entry = Diagnostic(
            code=code, message=message, stage=stage, kind=kind, envelope=envelope, day=day
        )
        self.entries.append(entry)
        logger.warning("[%s] stage=%s %s", code, stage, message)
        return entry

    def has_warnings(self) -> bool:
        return bool(self.entries)

    def by_code(self, code: str) -> list[Diagnostic]:
        return [e for e in self.entries if e.code == code]

    def clear(self) -> None:
        self.entries.clear()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def to_dict(self) -> dict[str, Any]:
        counts: dict[str, int] = {}
        for e in self.entries:
            counts[e.code] = counts.get(e.code, 0) + 1
        return {
            "count": len(self.entries),
            "by_code": counts,
            "entries": [asdict(e) for e in self.entries],
        }

    def to_frame(self) -> pd.DataFrame:
        columns = ["code", "message", "stage", "kind", "envelope", "day"]
        return pd.DataFrame([asdict(e) for e in self.entries], columns=columns)

    def __str__(self) -> str:
        if not self.entries:
            return "No diagnostics"
        lines = [f"{len(self.entries)} diagnostic(s):"]
        for e in self.entries:
            where = ", ".join(
                f"{k}={v}"
                for k, v in (("stage", e.stage), ("envelope", e.envelope), ("day", e.day))
                if v is not None
            )
            lines.append(f"  [{e.code}] {e.message}" + (f" ({where})" if where else ""))
        return "\n".join(lines)
