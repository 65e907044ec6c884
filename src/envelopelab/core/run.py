"""
Run-scoped arena that threads the peek queue through one simulation run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from .config import EngineConfig
from .diagnostics import Diagnostics
from .envelope import EnvelopeMap
from .exceptions import QueueDisciplineError, StageLimitError
from .operation import PeekOperation
from .queue import PeekQueue
from .resolver import StageOutcome, apply_stage
from .results import StageResults
from .timeaxis import TimeAxis

logger = logging.getLogger(__name__)

Solver = Callable[[EnvelopeMap, TimeAxis], Mapping[str, np.ndarray]]


@dataclass
class RunReport:
    """
    Summary of a driven run.

    Attributes:
        generation: Queue token the run executed under
        outcomes: One StageOutcome per resolved stage, in order
        results: Series from the final solve (the one after which nothing was applied)
        diagnostics: Guard warnings recorded during the run
    """

    generation: int
    outcomes: list[StageOutcome]
    results: StageResults
    diagnostics: Diagnostics

    @property
    def solves(self) -> int:
        return len(self.outcomes)

    @property
    def stages_applied(self) -> int:
        return sum(1 for o in self.outcomes if o)

    @property
    def descriptors_appended(self) -> int:
        return sum(o.appended for o in self.outcomes)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {"stage": o.stage, "applied": o.applied, "appended": o.appended}
                for o in self.outcomes
            ],
            columns=["stage", "applied", "appended"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "generation": self.generation,
            "solves": self.solves,
            "stages_applied": self.stages_applied,
            "descriptors_appended": self.descriptors_appended,
            "outcomes": [
                {
                    "stage": o.stage,
                    "applied": o.applied,
                    "appended": o.appended,
                    "by_kind": dict(o.by_kind),
                }
                for o in self.outcomes
            ],
            "diagnostics": self.diagnostics.to_dict(),
        }


@dataclass
class SimulationRun:
    """
    Owns everything one simulation run needs: envelopes, queue, diagnostics.

    A run is started with ``start()``, which clears the queue and issues the
    generation token every later resolve is checked against. Starting again
    invalidates tokens held by a superseded run, so its late resolves fail with
    StaleRunError instead of writing into the new run's envelopes.

    **Example Usage:**
        ```python
        from envelopelab import SimulationRun, ResetToZero, make_envelopes

        run = SimulationRun(envelopes=make_envelopes({"Cash": None}), time_axis=range(0, 400, 5))
        run.start()
        run.enqueue(0, ResetToZero(target="Cash", day=365))
        report = run.drive(my_solver)  # my_solver(envelopes, axis) -> {name: series}
        ```
    """

    envelopes: EnvelopeMap
    time_axis: TimeAxis | Iterable[int]
    config: EngineConfig = field(default_factory=EngineConfig)
    queue: PeekQueue = field(default_factory=PeekQueue)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    token: int | None = None

    def __post_init__(self):
        self.time_axis = TimeAxis.coerce(self.time_axis)

    def start(self) -> int:
        """Clear queued work and diagnostics; return the run token."""
        self.token = self.queue.clear()
        self.diagnostics.clear()
        logger.debug("run started with token g%d", self.token)
        return self.token

    def enqueue(self, stage: int, op: PeekOperation) -> None:
        self._require_started()
        self.queue.enqueue(stage, op)

    def enqueue_all(self, staged: Iterable[tuple[int, PeekOperation]]) -> None:
        for stage, op in staged:
            self.enqueue(stage, op)

    def resolve(
        self,
        results: StageResults | Mapping[str, np.ndarray],
        stage: int,
        time_axis: TimeAxis | Iterable[int] | None = None,
    ) -> StageOutcome:
        """Resolve one stage of this run against ``results``."""
        self._require_started()
        if time_axis is not None:
            self.time_axis = TimeAxis.coerce(time_axis)
        return apply_stage(
            self.queue,
            self.envelopes,
            results,
            self.time_axis,
            stage,
            generation=self.token,
            diagnostics=self.diagnostics,
            config=self.config,
        )

    @property
    def pending(self) -> int:
        return len(self.queue)

    def drive(self, solve: Solver, first_stage: int = 0) -> RunReport:
        """
        Alternate ``solve`` and stage resolution until a stage applies nothing.

        ``solve(envelopes, time_axis)`` is the external solver; it is called once
        per stage plus once more after the last stage that synthesized anything.

        Raises:
            StageLimitError: more than ``config.max_stages`` stages applied work
        """
        self._require_started()
        token = self.token
        outcomes: list[StageOutcome] = []
        stage = first_stage
        while True:
            results = StageResults.coerce(solve(self.envelopes, self.time_axis))
            outcome = self.resolve(results, stage)
            outcomes.append(outcome)
            if not outcome:
                break
            if len(outcomes) > self.config.max_stages:
                raise StageLimitError(
                    f"still synthesizing after {self.config.max_stages} stage(s)",
                    generation=token,
                    stage=stage,
                )
            stage += 1

        if self.queue:
            logger.warning(
                "run g%d stopped at stage %d with %d operation(s) queued for stages %s",
                token,
                stage,
                len(self.queue),
                self.queue.stages(),
            )
        return RunReport(
            generation=token,
            outcomes=outcomes,
            results=results,
            diagnostics=self.diagnostics,
        )

    def _require_started(self) -> None:
        if self.token is None:
            raise QueueDisciplineError("run has not been started; call start() first")
