"""
Stage-tagged queue of deferred peek operations.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from .errors import ConfigError
from .exceptions import QueueDisciplineError, StaleRunError
from .operation import PeekOperation


@dataclass(frozen=True)
class StagedPeek:
    """Queue entry: an operation and the stage it waits for."""

    stage: int
    op: PeekOperation
    seq: int  # insertion order across the whole run


class PeekQueue:
    """
    Append-only collection of stage-tagged peek operations for one simulation run.

    Invariants:
    - every operation is applied at most once and leaves the queue as it is applied
    - entries tagged with other stages are never touched by a resolve
    - ``clear`` starts a new generation; tokens from older generations are stale

    **Example Usage:**
        ```python
        from envelopelab.core.queue import PeekQueue
        from envelopelab.strategies import ResetToZero

        queue = PeekQueue()
        token = queue.clear()
        queue.enqueue(0, ResetToZero(target="Cash", day=365))
        queue.stages()   # [0]
        ```
    """

    def __init__(self):
        self._entries: list[StagedPeek] = []
        self._resolved: set[int] = set()
        self._generation = 0
        self._seq = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def resolved_stages(self) -> frozenset[int]:
        return frozenset(self._resolved)

    def clear(self) -> int:
        """
        Drop every queued operation and start a new generation.

        Must be called before stage 0 of every fresh run. Returns the new token.
        """
        if not self._lock.acquire(blocking=False):
            raise QueueDisciplineError(
                "cannot clear while a stage is being resolved",
                generation=self._generation,
            )
        try:
            self._entries = []
            self._resolved = set()
            self._generation += 1
            return self._generation
        finally:
            self._lock.release()

    def enqueue(self, stage: int, op: PeekOperation) -> StagedPeek:
        if isinstance(stage, bool) or not isinstance(stage, int):
            raise ConfigError(f"stage must be an integer, got {stage!r}")
        if stage < 0:
            raise ConfigError(f"stage must be >= 0, got {stage}")
        if not isinstance(op, PeekOperation):
            raise ConfigError(
                f"only PeekOperation instances can be queued, got {type(op).__name__}"
            )
        if stage in self._resolved:
            raise QueueDisciplineError(
                f"stage {stage} was already resolved; {op.kind} would never run",
                generation=self._generation,
                stage=stage,
            )
        entry = StagedPeek(stage=stage, op=op, seq=self._seq)
        self._seq += 1
        self._entries.append(entry)
        return entry

    def pending(self, stage: int | None = None) -> list[PeekOperation]:
        """Queued operations, optionally filtered by stage, in insertion order."""
        return [e.op for e in self._entries if stage is None or e.stage == stage]

    def stages(self) -> list[int]:
        return sorted({e.stage for e in self._entries})

    def has_stage(self, stage: int) -> bool:
        return any(e.stage == stage for e in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[StagedPeek]:
        return iter(list(self._entries))

    def __bool__(self) -> bool:
        return bool(self._entries)

    @contextmanager
    def resolving(self, stage: int, generation: int | None = None) -> Iterator[None]:
        """
        Exclusive section for one stage resolution.

        Raises:
            StaleRunError: ``generation`` does not match the current token
            QueueDisciplineError: another resolve holds the queue
        """
        if not self._lock.acquire(blocking=False):
            raise QueueDisciplineError(
                "a resolve is already in flight on this queue",
                generation=self._generation,
                stage=stage,
            )
        try:
            # Token is checked under the lock; clear() takes it too
            if generation is not None and generation != self._generation:
                raise StaleRunError(generation, self._generation, stage=stage)
            yield
        finally:
            self._lock.release()

    def pop_next(self, stage: int) -> StagedPeek | None:
        """
        Remove and return the oldest entry tagged ``stage``.

        Marks the stage as resolved once anything is taken from it.
        """
        for i, entry in enumerate(self._entries):
            if entry.stage == stage:
                del self._entries[i]
                self._resolved.add(stage)
                return entry
        return None
