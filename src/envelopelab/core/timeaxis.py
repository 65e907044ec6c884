"""
Time axis utilities for EnvelopeLab.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

import numpy as np

from .errors import ConfigError


class TimeAxis:
    """
    Ascending, duplicate-free sequence of integer day offsets.

    Every result series of a stage is index-aligned with the axis it was solved on.
    The axis is immutable for the duration of a stage but may differ between stages,
    so the day -> index map is rebuilt on every call to ``index_map``.

    **Example:**
        ```python
        from envelopelab.core.timeaxis import TimeAxis

        axis = TimeAxis([0, 30, 60, 90])
        axis.index_of(60)   # 2
        axis.index_of(45)   # None
        ```
    """

    def __init__(self, days: Iterable[int] | np.ndarray):
        arr = np.asarray(list(days) if not isinstance(days, np.ndarray) else days)
        if arr.ndim != 1:
            raise ConfigError("time axis must be one-dimensional")
        if arr.size and not np.all(np.equal(np.mod(arr, 1), 0)):
            raise ConfigError("time axis days must be integers")
        arr = arr.astype(np.int64)
        if arr.size > 1 and not np.all(np.diff(arr) > 0):
            raise ConfigError("time axis must be strictly ascending without duplicates")
        arr.setflags(write=False)
        self._days = arr

    @property
    def days(self) -> np.ndarray:
        return self._days

    def index_map(self) -> dict[int, int]:
        """Fresh day -> index mapping."""
        return {int(day): i for i, day in enumerate(self._days)}

    def index_of(self, day: int) -> int | None:
        i = int(np.searchsorted(self._days, day))
        if i < len(self._days) and self._days[i] == day:
            return i
        return None

    def __contains__(self, day: object) -> bool:
        return isinstance(day, (int, np.integer)) and self.index_of(int(day)) is not None

    def __len__(self) -> int:
        return len(self._days)

    def __iter__(self):
        return (int(d) for d in self._days)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeAxis):
            return NotImplemented
        return np.array_equal(self._days, other._days)

    def __repr__(self) -> str:
        if len(self) == 0:
            return "TimeAxis([])"
        return f"TimeAxis(n={len(self)}, first={self._days[0]}, last={self._days[-1]})"

    @classmethod
    def coerce(cls, value: TimeAxis | Iterable[int]) -> TimeAxis:
        return value if isinstance(value, TimeAxis) else cls(value)


def build_time_axis(
    start: int,
    end: int,
    frequency: float,
    visible_range: tuple[int, int] | None = None,
    current_day: int | None = None,
) -> TimeAxis:
    """
    Build the evaluation axis the solver uses for a plan.

    Yearly (365) and half-yearly (182.5) frequencies produce a dense grid over the
    whole horizon. Any other frequency evaluates the start, every ``frequency`` days
    inside ``visible_range``, and the end. The end day is always included and
    ``current_day`` is inserted in order when given.

    Args:
        start: First day offset
        end: Last day offset (inclusive)
        frequency: Spacing in days
        visible_range: Optional ``(first, last)`` window evaluated densely
        current_day: Optional "today" to force onto the axis

    Returns:
        TimeAxis of integer days (fractional grid points are floored)
    """
    if frequency <= 0:
        raise ConfigError("frequency must be positive")
    if end < start:
        raise ConfigError("end must be >= start")

    points: list[float] = []
    if frequency in (365, 182.5):
        n = math.ceil((end - start) / frequency)
        points.extend(start + i * frequency for i in range(n))
    else:
        points.append(start)
        if visible_range is not None:
            lo, hi = visible_range
            t = lo
            while t <= hi:
                points.append(t)
                t += frequency
    points.append(end)
    if current_day is not None:
        points.append(current_day)

    days = sorted({int(math.floor(p)) for p in points})
    return TimeAxis(days)
