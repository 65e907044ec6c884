"""
Shared fixtures for EnvelopeLab tests.
"""

from __future__ import annotations

import numpy as np
import pytest

from envelopelab.core.descriptors import DescriptorType
from envelopelab.core.diagnostics import Diagnostics
from envelopelab.core.envelope import make_envelopes
from envelopelab.core.queue import PeekQueue
from envelopelab.core.resolver import apply_stage
from envelopelab.core.timeaxis import TimeAxis


def reference_solve(envelopes, time_axis):
    """
    Minimal descriptor integrator used to drive stage loops in tests.

    Transfers contribute from their day onward scaled by their growth snapshot;
    impulses contribute only at their own day.
    """
    days = np.asarray(TimeAxis.coerce(time_axis).days, dtype=float)
    out = {}
    for name, env in envelopes.items():
        series = np.zeros(len(days))
        for desc in env.descriptors:
            if desc.type is DescriptorType.IMPULSE:
                hit = np.nonzero(days == desc.day)[0]
                if hit.size:
                    series[hit[0]] += desc.signed_magnitude
                continue
            for j in np.nonzero(days >= desc.day)[0]:
                series[j] += desc.signed_magnitude * desc.growth.factor(days[j] - desc.day)
        out[name] = series
    return out


@pytest.fixture(scope="session")
def solver():
    return reference_solve


@pytest.fixture
def axis():
    """Axis every 30 days over one year plus day 365."""
    return TimeAxis(list(range(0, 361, 30)) + [365])


@pytest.fixture
def envelopes():
    return make_envelopes(
        {
            "Cash": {"growth_type": "Yearly Compound", "growth_rate": 0.04},
            "Brokerage": None,
            "Fees": None,
            "Salary": None,
            "Bonus": None,
            "Taxes": None,
        }
    )


@pytest.fixture
def resolve_one():
    """
    Apply a single operation at stage 0 and return ``(outcome, diagnostics)``.
    """

    def _resolve(op, envelopes, results, time_axis, config=None):
        queue = PeekQueue()
        token = queue.clear()
        queue.enqueue(0, op)
        diagnostics = Diagnostics()
        outcome = apply_stage(
            queue,
            envelopes,
            results,
            time_axis,
            0,
            generation=token,
            diagnostics=diagnostics,
            config=config,
        )
        return outcome, diagnostics

    return _resolve
