"""
Context classes for EnvelopeLab stage resolution.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from . import diagnostics as diag
from .config import EngineConfig
from .descriptors import Descriptor
from .diagnostics import Diagnostics
from .envelope import Envelope, EnvelopeMap
from .errors import ConfigError, SynthesisError
from .results import StageResults
from .timeaxis import TimeAxis

if TYPE_CHECKING:
    from .operation import PeekOperation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeekContext:
    """
    Read-only view passed to every peek operation of one stage.

    Assembled fresh by the resolver for each ``resolve_stage`` call. The only
    mutation an operation may perform through it is ``append``.

    Attributes:
        envelopes: Envelope map of the run (descriptors are appended in place)
        results: Series solved for this stage
        time_axis: Axis the results are aligned with
        index_of_day: Day -> index map built from ``time_axis`` for this call
        stage: Stage being resolved
        diagnostics: Run diagnostics channel
        config: Guard policies
    """

    envelopes: EnvelopeMap
    results: StageResults
    time_axis: TimeAxis
    index_of_day: dict[int, int]
    stage: int = 0
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    config: EngineConfig = field(default_factory=EngineConfig)

    def locate(self, day: int, op: PeekOperation) -> int | None:
        """
        Index of ``day`` on the axis, or None after applying the missing-day policy.
        """
        idx = self.index_of_day.get(int(day))
        if idx is not None:
            return idx
        message = f"{op.kind}: day {day} is not on the time axis"
        policy = self.config.missing_day
        if policy == "raise":
            raise SynthesisError(diag.DAY_NOT_IN_AXIS, message)
        if policy == "warn":
            self.diagnostics.warn(
                diag.DAY_NOT_IN_AXIS,
                message,
                stage=self.stage,
                kind=op.kind,
                envelope=op.target,
                day=int(day),
            )
        return None

    def read(self, key: str, day: int, op: PeekOperation) -> float | None:
        """
        Value of series ``key`` at ``day``.

        Returns None when the day is off-axis, the series length does not match
        the axis, or the value is not finite; a series missing from the results
        reads as zero and is recorded once per call.
        """
        idx = self.locate(day, op)
        if idx is None:
            return None
        if key not in self.results:
            self.diagnostics.warn(
                diag.MISSING_SERIES,
                f"{op.kind}: no results for envelope '{key}', reading as 0",
                stage=self.stage,
                kind=op.kind,
                envelope=key,
                day=int(day),
            )
            return 0.0
        length = len(self.results[key])
        if length != len(self.time_axis):
            self.diagnostics.warn(
                diag.SERIES_MISALIGNED,
                f"{op.kind}: series '{key}' has {length} point(s) for a "
                f"{len(self.time_axis)}-point time axis",
                stage=self.stage,
                kind=op.kind,
                envelope=key,
                day=int(day),
            )
            return None
        value = self.results.value_at(key, idx)
        if not math.isfinite(value):
            message = f"{op.kind}: non-finite value {value} in '{key}' at day {day}"
            if self.config.non_finite == "raise":
                raise SynthesisError(diag.NON_FINITE_VALUE, message)
            self.diagnostics.warn(
                diag.NON_FINITE_VALUE,
                message,
                stage=self.stage,
                kind=op.kind,
                envelope=key,
                day=int(day),
            )
            return None
        return value

    def envelope(self, name: str, op: PeekOperation) -> Envelope:
        """Target envelope, created on demand when the config allows it."""
        env = self.envelopes.get(name)
        if env is not None:
            return env
        if not self.config.create_missing_targets:
            raise ConfigError(f"{op.kind}: unknown target envelope '{name}'")
        env = Envelope(name=name)
        self.envelopes[name] = env
        self.diagnostics.warn(
            diag.TARGET_CREATED,
            f"{op.kind}: created missing target envelope '{name}'",
            stage=self.stage,
            kind=op.kind,
            envelope=name,
        )
        return env

    def append(self, name: str, descriptor: Descriptor, op: PeekOperation) -> None:
        self.envelope(name, op).append(descriptor)
        logger.debug(
            "stage %d %s -> %s: %s %s %.6g at day %d",
            self.stage,
            op.kind,
            name,
            descriptor.type.value,
            descriptor.direction.value,
            descriptor.magnitude,
            descriptor.day,
        )
