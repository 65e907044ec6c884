"""
End-to-end staged runs driven by a reference solver.
"""

import pytest

from envelopelab import (
    Descriptor,
    Direction,
    EngineConfig,
    InjectAtDays,
    MarginalTaxDelta,
    ProportionalImpulse,
    ResetToZero,
    SimulationRun,
    StageLimitError,
    StaleRunError,
    TimeAxis,
    load_peeks,
    make_envelopes,
)
from envelopelab.core.exceptions import QueueDisciplineError
from envelopelab.core.growth import GrowthModel


def _plan():
    envelopes = make_envelopes({"Cash": None, "Salary": None, "Bonus": None, "Taxes": None})
    no_growth = GrowthModel.none()
    envelopes["Cash"].append(Descriptor.transfer(Direction.IN, 0, 1000.0, no_growth))
    envelopes["Cash"].append(Descriptor.transfer(Direction.OUT, 100, 200.0, no_growth))
    envelopes["Salary"].append(Descriptor.transfer(Direction.IN, 0, 40_000.0, no_growth))
    envelopes["Bonus"].append(Descriptor.transfer(Direction.IN, 365, 10_000.0, no_growth))
    return envelopes


class TestStagedRun:
    def test_three_stage_chain(self, solver):
        """Tax on a bonus, paid from cash, then cash swept to zero."""
        axis = TimeAxis(range(0, 731, 5))
        run = SimulationRun(envelopes=_plan(), time_axis=axis)
        run.start()
        run.enqueue(0, MarginalTaxDelta(target="Taxes", taxable="Salary", additional="Bonus", days=[365]))
        run.enqueue(
            1,
            ProportionalImpulse(target="Cash", source="Taxes", coefficient=1.0, days=[365]),
        )
        run.enqueue(2, ResetToZero(target="Cash", day=400))

        report = run.drive(solver)

        assert report.solves == 4
        assert report.stages_applied == 3
        assert report.descriptors_appended == 3
        assert run.pending == 0
        assert not report.diagnostics.has_warnings()

        taxes = run.envelopes["Taxes"].descriptors
        assert [d.magnitude for d in taxes] == [pytest.approx(1727.5)]

        cash = report.results["Cash"]
        assert cash[axis.index_of(365)] == pytest.approx(800.0 - 1727.5)
        assert cash[axis.index_of(400)] == pytest.approx(0.0)
        assert cash[-1] == pytest.approx(0.0)

        sweep = run.envelopes["Cash"].descriptors[-1]
        assert sweep.direction is Direction.OUT
        assert sweep.magnitude == pytest.approx(800.0)

        summary = report.to_dict()
        assert [o["stage"] for o in summary["outcomes"]] == [0, 1, 2, 3]
        assert list(report.to_frame()["applied"]) == [1, 1, 1, 0]

    def test_compounding_reset_stays_zero(self, solver):
        axis = TimeAxis(range(0, 1096, 5))
        envelopes = make_envelopes({"Cash": {"growth_type": "Daily Compound", "growth_rate": 0.05}})
        envelopes["Cash"].append(
            Descriptor.transfer(Direction.IN, 0, 5000.0, envelopes["Cash"].growth_snapshot())
        )
        run = SimulationRun(envelopes=envelopes, time_axis=axis)
        run.start()
        run.enqueue(0, ResetToZero(target="Cash", day=365))

        report = run.drive(solver)

        cash = report.results["Cash"]
        idx = axis.index_of(365)
        assert cash[idx - 1] > 5000.0
        assert max(abs(cash[idx:])) == pytest.approx(0.0, abs=1e-6)

    def test_declarative_plan(self, solver, tmp_path):
        path = tmp_path / "plan.yaml"
        path.write_text(
            """
peeks:
  - kind: tax_delta_on_401k
    taxableKey: Salary
    addKey: Bonus
    taxesTargetKey: Taxes
    days: [365]
  - stage: 1
    kind: reset_to_zero
    envelope: Cash
    day: 400
""",
            encoding="utf-8",
        )
        run = SimulationRun(envelopes=_plan(), time_axis=range(0, 731, 5))
        run.start()
        run.enqueue_all(load_peeks(path))

        report = run.drive(solver)

        assert report.stages_applied == 2
        assert report.results["Cash"][run.time_axis.index_of(400)] == pytest.approx(0.0)

    def test_empty_queue_solves_once(self, solver):
        run = SimulationRun(envelopes=_plan(), time_axis=range(0, 31, 5))
        run.start()
        report = run.drive(solver)
        assert report.solves == 1
        assert report.stages_applied == 0

    def test_stage_gap_leaves_work_behind(self, solver, caplog):
        """Stage 1 is empty, so stage 2 is never reached."""
        run = SimulationRun(envelopes=_plan(), time_axis=range(0, 731, 5))
        run.start()
        run.enqueue(0, ResetToZero(target="Cash", day=50))
        run.enqueue(2, ResetToZero(target="Cash", day=400))

        with caplog.at_level("WARNING", logger="envelopelab.core.run"):
            report = run.drive(solver)

        assert report.stages_applied == 1
        assert run.pending == 1
        assert "operation(s) queued for stages [2]" in caplog.text


class TestRunDiscipline:
    def test_enqueue_before_start(self):
        run = SimulationRun(envelopes={}, time_axis=[0])
        with pytest.raises(QueueDisciplineError, match="not been started"):
            run.enqueue(0, ResetToZero(target="Cash", day=0))

    def test_superseded_run_cannot_resolve(self):
        """A late resolve from an old run never writes into the new run."""
        shared_envelopes = _plan()
        old = SimulationRun(envelopes=shared_envelopes, time_axis=[0, 400])
        old.start()
        old.enqueue(0, ResetToZero(target="Cash", day=400))

        new = SimulationRun(envelopes=shared_envelopes, time_axis=[0, 400], queue=old.queue)
        new.start()
        new.enqueue(0, ResetToZero(target="Cash", day=400))
        before = len(shared_envelopes["Cash"])

        with pytest.raises(StaleRunError):
            old.resolve({"Cash": [1000.0, 800.0]}, 0)
        assert len(shared_envelopes["Cash"]) == before
        assert new.pending == 1

    def test_stage_limit(self, solver):
        """An operation that keeps scheduling more work trips max_stages."""
        run = SimulationRun(
            envelopes=make_envelopes({"Cash": None}),
            time_axis=[0, 1],
            config=EngineConfig(max_stages=3),
        )
        run.start()

        def make(day, ctx):
            run.enqueue(ctx.stage + 1, InjectAtDays(target="Cash", days=[0], make=make))
            return Descriptor.impulse(Direction.IN, day, 1.0)

        run.enqueue(0, InjectAtDays(target="Cash", days=[0], make=make))

        with pytest.raises(StageLimitError, match="after 3 stage"):
            run.drive(solver)

    def test_restart_reuses_queue(self, solver):
        run = SimulationRun(envelopes=_plan(), time_axis=range(0, 731, 5))
        first = run.start()
        run.enqueue(0, ResetToZero(target="Cash", day=50))
        run.drive(solver)

        second = run.start()
        assert second == first + 1
        run.enqueue(0, ResetToZero(target="Cash", day=50))
        assert run.pending == 1
