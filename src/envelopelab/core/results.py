"""
Stage results: read-only balance series produced by the external solver.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

import numpy as np
import pandas as pd

from .timeaxis import TimeAxis


class StageResults(Mapping[str, np.ndarray]):
    """
    Immutable mapping from envelope name to an index-aligned balance series.

    Arrays are copied and flagged non-writeable on construction so that peek
    operations can only read them.

    **Example:**
        ```python
        results = StageResults({"Cash": [100.0, 50.0, 0.0]})
        results.value_at("Cash", 1)      # 50.0
        results.value_at("Missing", 1)   # 0.0
        ```
    """

    def __init__(self, series: Mapping[str, np.ndarray | list[float]] | None = None):
        data: dict[str, np.ndarray] = {}
        for key, values in (series or {}).items():
            arr = np.array(values, dtype=float, copy=True)
            arr.setflags(write=False)
            data[key] = arr
        self._series = data

    def __getitem__(self, key: str) -> np.ndarray:
        return self._series[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._series)

    def __len__(self) -> int:
        return len(self._series)

    def value_at(self, key: str, index: int) -> float:
        """Value of ``key`` at ``index``; a missing series or index reads as zero."""
        arr = self._series.get(key)
        if arr is None or index < 0 or index >= len(arr):
            return 0.0
        return float(arr[index])

    def to_frame(self, time_axis: TimeAxis | None = None) -> pd.DataFrame:
        """Tabulate all series, indexed by day when an axis is given."""
        df = pd.DataFrame({k: np.asarray(v) for k, v in self._series.items()})
        if time_axis is not None and len(time_axis) == len(df):
            df.index = pd.Index(time_axis.days, name="day")
        return df

    @classmethod
    def coerce(cls, value: StageResults | Mapping) -> StageResults:
        return value if isinstance(value, StageResults) else cls(value)


def value_to_today(
    value_at_day: float, target_day: float, current_day: float, inflation_rate: float
) -> float:
    """
    Discount a value at ``target_day`` to today's money.

    Present Value = Future Value / (1 + r)^(d/365)
    """
    d = target_day - current_day
    return value_at_day / (1 + inflation_rate) ** (d / 365)


def value_to_day(
    value_today: float, target_day: float, current_day: float, inflation_rate: float
) -> float:
    """Inverse of ``value_to_today``."""
    d = target_day - current_day
    return value_today * (1 + inflation_rate) ** (d / 365)


def inflation_adjust(
    results: Mapping[str, np.ndarray],
    time_axis: TimeAxis,
    current_day: float,
    inflation_rate: float,
) -> StageResults:
    """
    Express every series in today's money.

    Args:
        results: Series index-aligned with ``time_axis``
        time_axis: Axis the series were solved on
        current_day: Day treated as "today"
        inflation_rate: Annual inflation rate (e.g. 0.03)

    Returns:
        New StageResults; the input is left untouched
    """
    days = time_axis.days.astype(float)
    discount = (1 + inflation_rate) ** ((days - current_day) / 365)
    return StageResults(
        {key: np.asarray(values, dtype=float) / discount for key, values in results.items()}
    )
