"""
Queue-discipline exceptions for EnvelopeLab.

These are the only hard failures of the staged engine. Everything that depends on
the content of simulation results degrades to a diagnostic; misuse of the queue
itself (stale runs, overlapping resolves, scheduling into a drained stage) does not.
"""

from __future__ import annotations


class StageResolutionError(Exception):
    """
    Base class for violations of the peek queue discipline.

    Attributes:
        generation: Generation token of the queue when the violation happened
        stage: Stage number involved (if any)
    """

    def __init__(
        self,
        message: str,
        generation: int | None = None,
        stage: int | None = None,
    ):
        self.generation = generation
        self.stage = stage
        super().__init__(self._fmt(message))

    def _fmt(self, msg: str) -> str:
        """Format the error message with run and stage context."""
        parts = []
        if self.generation is not None:
            parts.append(f"Run g{self.generation}")
        if self.stage is not None:
            parts.append(f"stage {self.stage}")
        if not parts:
            return msg
        return f"[{' '.join(parts)}] {msg}"


class QueueDisciplineError(StageResolutionError):
    """Raised on overlapping resolves or on enqueueing into a drained stage."""


class StaleRunError(StageResolutionError):
    """Raised when a resolve carries the token of a run that has since been cleared."""

    def __init__(self, expected: int, actual: int, stage: int | None = None):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"stale run token g{expected}; queue has moved on to g{actual}",
            generation=actual,
            stage=stage,
        )


class StageLimitError(StageResolutionError):
    """Raised when a driven run keeps synthesizing past ``EngineConfig.max_stages``."""
