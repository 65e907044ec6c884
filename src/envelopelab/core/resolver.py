"""
Stage resolver: drains and applies every peek operation tagged for one stage.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import numpy as np

from .config import EngineConfig
from .context import PeekContext
from .diagnostics import Diagnostics
from .envelope import EnvelopeMap
from .errors import ConfigError
from .queue import PeekQueue
from .results import StageResults
from .timeaxis import TimeAxis

logger = logging.getLogger(__name__)


@dataclass
class StageOutcome:
    """
    What one ``resolve_stage`` call did.

    ``bool(outcome)`` is True iff at least one operation matched the stage, which
    is the signal the driving loop uses to decide whether to solve again.
    """

    stage: int
    applied: int = 0
    appended: int = 0
    by_kind: dict[str, int] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.applied > 0


def apply_stage(
    queue: PeekQueue,
    envelopes: EnvelopeMap,
    results: StageResults | Mapping[str, np.ndarray],
    time_axis: TimeAxis | Iterable[int],
    stage: int,
    *,
    generation: int | None = None,
    diagnostics: Diagnostics | None = None,
    config: EngineConfig | None = None,
) -> StageOutcome:
    """
    Apply every queued operation tagged ``stage`` against ``results``.

    A fresh day -> index map is built from ``time_axis`` on every call. Matching
    operations run once each, in insertion order, and each leaves the queue as it
    is applied. Operations tagged with other stages are left untouched.

    Args:
        queue: Run-owned peek queue
        envelopes: Envelope map that synthesized descriptors are appended to
        results: Series solved for this stage, aligned with ``time_axis``
        time_axis: Axis the results were solved on
        stage: Stage to resolve
        generation: Token from ``queue.clear()``; a mismatch raises StaleRunError
        diagnostics: Channel for guard warnings (a throwaway one if omitted)
        config: Guard policies (defaults if omitted)

    Returns:
        StageOutcome, truthy iff at least one operation matched

    Raises:
        StaleRunError: the queue was cleared after ``generation`` was issued
        QueueDisciplineError: another resolve is in flight on ``queue``

    Note:
        An exception raised by an operation propagates after being logged. The
        stage stays marked as resolved and descriptors appended so far are kept,
        so the run must be restarted (``PeekQueue.clear`` / ``SimulationRun.start``).
    """
    if isinstance(stage, bool) or not isinstance(stage, int) or stage < 0:
        raise ConfigError(f"stage must be a non-negative integer, got {stage!r}")

    outcome = StageOutcome(stage=stage)
    with queue.resolving(stage, generation):
        if not queue.has_stage(stage):
            return outcome

        if queue.resolved_stages and stage < max(queue.resolved_stages):
            warnings.warn(
                f"resolving stage {stage} after stage {max(queue.resolved_stages)}",
                stacklevel=2,
            )

        axis = TimeAxis.coerce(time_axis)
        ctx = PeekContext(
            envelopes=envelopes,
            results=StageResults.coerce(results),
            time_axis=axis,
            index_of_day=axis.index_map(),
            stage=stage,
            diagnostics=diagnostics if diagnostics is not None else Diagnostics(),
            config=config if config is not None else EngineConfig(),
        )

        while (entry := queue.pop_next(stage)) is not None:
            op = entry.op
            try:
                appended = op.apply(ctx)
            except Exception:
                logger.error(
                    "stage %d aborted in %s -> %s after %d operation(s); "
                    "%d operation(s) left queued for this stage, restart the run",
                    stage,
                    op.kind,
                    op.target,
                    outcome.applied,
                    len(queue.pending(stage)),
                )
                raise
            outcome.applied += 1
            outcome.appended += appended
            outcome.by_kind[op.kind] = outcome.by_kind.get(op.kind, 0) + 1
            logger.debug(
                "stage %d: applied %s -> %s (%d descriptor(s))",
                stage,
                op.kind,
                op.target,
                appended,
            )

    logger.info(
        "stage %d resolved: %d operation(s), %d descriptor(s) appended, %d pending",
        stage,
        outcome.applied,
        outcome.appended,
        len(queue),
    )
    return outcome


def resolve_stage(
    queue: PeekQueue,
    envelopes: EnvelopeMap,
    results: StageResults | Mapping[str, np.ndarray],
    time_axis: TimeAxis | Iterable[int],
    stage: int,
    *,
    generation: int | None = None,
    diagnostics: Diagnostics | None = None,
    config: EngineConfig | None = None,
) -> bool:
    """
    Resolve ``stage`` and report whether any operation matched.

    Same semantics as ``apply_stage``; the driving loop stops when this
    returns False.
    """
    return bool(
        apply_stage(
            queue,
            envelopes,
            results,
            time_axis,
            stage,
            generation=generation,
            diagnostics=diagnostics,
            config=config,
        )
    )
