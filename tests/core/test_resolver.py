"""
Tests for stage resolution.
"""

from dataclasses import dataclass, field

import pytest

from envelopelab.core.config import EngineConfig
from envelopelab.core.context import PeekContext
from envelopelab.core.diagnostics import Diagnostics
from envelopelab.core.envelope import make_envelopes
from envelopelab.core.errors import ConfigError, SynthesisError
from envelopelab.core.exceptions import QueueDisciplineError, StaleRunError
from envelopelab.core.operation import PeekOperation
from envelopelab.core.queue import PeekQueue
from envelopelab.core.resolver import apply_stage, resolve_stage
from envelopelab.core.timeaxis import TimeAxis
from envelopelab.strategies import ResetToZero


@dataclass
class RecordingOp(PeekOperation):
    """Test operation that records the contexts it was applied with."""

    kind = "test.recording"

    calls: list = field(default_factory=list)
    label: str = ""

    def apply(self, ctx: PeekContext) -> int:
        self.calls.append((self.label, ctx))
        return 0


@dataclass
class ResolvingOp(PeekOperation):
    """Test operation that tries to resolve its own queue while being applied."""

    kind = "test.reentrant"

    queue: PeekQueue = None

    def apply(self, ctx: PeekContext) -> int:
        resolve_stage(self.queue, ctx.envelopes, ctx.results, ctx.time_axis, ctx.stage + 1)
        return 0


@pytest.fixture
def queue():
    q = PeekQueue()
    q.clear()
    return q


class TestResolveStage:
    """Selection, application and removal semantics."""

    def test_applies_matching_stage_only(self, queue):
        """Only stage-s entries run and leave; others are untouched."""
        log = []
        s0 = [RecordingOp(target="Cash", calls=log, label=f"s0-{i}") for i in range(3)]
        s1 = RecordingOp(target="Cash", calls=log, label="s1")
        for op in s0:
            queue.enqueue(0, op)
        queue.enqueue(1, s1)
        before = len(queue)

        changed = resolve_stage(queue, make_envelopes({"Cash": None}), {}, [0, 30], 0)

        assert changed is True
        assert [label for label, _ in log] == ["s0-0", "s0-1", "s0-2"]
        assert len(queue) == before - 3
        assert queue.pending() == [s1]

    def test_unused_stage_returns_false_and_mutates_nothing(self, queue):
        op = RecordingOp(target="Cash")
        queue.enqueue(0, op)
        envelopes = make_envelopes({"Cash": None})

        changed = resolve_stage(queue, envelopes, {"Cash": [1.0, 2.0]}, [0, 30], 5)

        assert changed is False
        assert queue.pending() == [op]
        assert queue.resolved_stages == frozenset()
        assert envelopes["Cash"].descriptors == []

    def test_empty_queue_returns_false(self, queue):
        assert resolve_stage(queue, {}, {}, [0], 0) is False

    def test_each_operation_applied_once(self, queue):
        """Resolving the same stage twice does not re-run anything."""
        op = RecordingOp(target="Cash")
        queue.enqueue(0, op)

        assert resolve_stage(queue, {}, {}, [0], 0) is True
        assert resolve_stage(queue, {}, {}, [0], 0) is False
        assert len(op.calls) == 1

    def test_context_built_fresh_per_call(self, queue):
        """The day -> index map follows the axis passed to each call."""
        first = RecordingOp(target="Cash")
        second = RecordingOp(target="Cash")
        queue.enqueue(0, first)
        queue.enqueue(1, second)

        resolve_stage(queue, {}, {}, [0, 10, 20], 0)
        resolve_stage(queue, {}, {}, TimeAxis([0, 5, 10, 20]), 1)

        ctx0 = first.calls[0][1]
        ctx1 = second.calls[0][1]
        assert ctx0.index_of_day == {0: 0, 10: 1, 20: 2}
        assert ctx1.index_of_day == {0: 0, 5: 1, 10: 2, 20: 3}
        assert ctx0.stage == 0 and ctx1.stage == 1

    def test_outcome_counts(self, queue):
        envelopes = make_envelopes({"Cash": None})
        queue.enqueue(0, ResetToZero(target="Cash", day=30))
        queue.enqueue(0, ResetToZero(target="Cash", day=60))

        outcome = apply_stage(queue, envelopes, {"Cash": [0.0, 10.0, 0.0]}, [0, 30, 60], 0)

        assert bool(outcome)
        assert outcome.applied == 2
        assert outcome.appended == 1
        assert outcome.by_kind == {"p.reset.zero": 2}

    def test_negative_stage_rejected(self, queue):
        with pytest.raises(ConfigError):
            resolve_stage(queue, {}, {}, [0], -1)


class TestQueueDiscipline:
    """Hard failures reserved for misuse of the queue."""

    def test_stale_token_rejected(self):
        queue = PeekQueue()
        stale = queue.clear()
        queue.enqueue(0, RecordingOp(target="Cash"))
        queue.clear()
        queue.enqueue(0, RecordingOp(target="Cash"))

        with pytest.raises(StaleRunError):
            resolve_stage(queue, {}, {}, [0], 0, generation=stale)
        assert len(queue) == 1

    def test_reentrant_resolve_rejected(self, queue):
        queue.enqueue(0, ResolvingOp(target="Cash", queue=queue))
        with pytest.raises(QueueDisciplineError):
            resolve_stage(queue, {}, {}, [0], 0)

    def test_out_of_order_stage_warns(self, queue):
        queue.enqueue(0, RecordingOp(target="Cash"))
        queue.enqueue(1, RecordingOp(target="Cash"))
        resolve_stage(queue, {}, {}, [0], 1)
        with pytest.warns(UserWarning, match="after stage 1"):
            resolve_stage(queue, {}, {}, [0], 0)

    def test_diagnostics_threaded_through(self, queue):
        """Guard warnings land on the caller's diagnostics channel."""
        diagnostics = Diagnostics()
        queue.enqueue(0, ResetToZero(target="Cash", day=45))
        resolve_stage(
            queue, make_envelopes({"Cash": None}), {"Cash": [1.0]}, [0], 0,
            diagnostics=diagnostics,
        )
        assert [d.code for d in diagnostics] == ["day_not_in_axis"]

    def test_failing_operation_reports_stranded_work(self, queue, caplog):
        """An operation raising mid-stage propagates and names what was left behind."""
        envelopes = make_envelopes({"Cash": None})
        first = ResetToZero(target="Cash", day=30)
        failing = ResetToZero(target="Cash", day=45)
        stranded = RecordingOp(target="Cash")
        for op in (first, failing, stranded):
            queue.enqueue(0, op)

        with caplog.at_level("ERROR", logger="envelopelab.core.resolver"):
            with pytest.raises(SynthesisError):
                resolve_stage(
                    queue, envelopes, {"Cash": [0.0, 10.0]}, [0, 30], 0,
                    config=EngineConfig(missing_day="raise"),
                )

        assert len(envelopes["Cash"].descriptors) == 1
        assert queue.pending(0) == [stranded]
        assert stranded.calls == []
        assert "after 1 operation(s); 1 operation(s) left queued" in caplog.text
        # The queue is not wedged; a restart clears the stranded work
        queue.clear()
        assert len(queue) == 0
