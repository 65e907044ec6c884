#!/usr/bin/env python3
"""
Staged Peek Example

This example drives a three-stage run against a small descriptor integrator:
- Stage 0: marginal tax on a year-end bonus lands in a Taxes envelope
- Stage 1: the tax is paid out of Cash on the same day
- Stage 2: Cash is swept to zero a month later
"""

import logging
import sys
from pathlib import Path

import numpy as np

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from envelopelab import (
    Descriptor,
    DescriptorType,
    Direction,
    MarginalTaxDelta,
    ProportionalImpulse,
    ResetToZero,
    SimulationRun,
    make_envelopes,
)


def solve(envelopes, time_axis):
    """Integrate every envelope's descriptors over the axis."""
    days = time_axis.days.astype(float)
    out = {}
    for name, env in envelopes.items():
        series = np.zeros(len(days))
        for desc in env.descriptors:
            if desc.type is DescriptorType.IMPULSE:
                series[days == desc.day] += desc.signed_magnitude
                continue
            later = days >= desc.day
            factors = np.array([desc.growth.factor(dt) for dt in days[later] - desc.day])
            series[later] += desc.signed_magnitude * factors
        out[name] = series
    return out


def build_plan():
    """Create envelopes with their scheduled descriptors."""
    envelopes = make_envelopes(
        {
            "Cash": {"growth_type": "Daily Compound", "growth_rate": 0.02},
            "Salary": None,
            "Bonus": None,
            "Taxes": None,
        }
    )
    cash = envelopes["Cash"]
    cash.append(Descriptor.transfer(Direction.IN, 0, 12_000.0, cash.growth_snapshot()))
    envelopes["Salary"].append(
        Descriptor.transfer(Direction.IN, 0, 60_000.0, envelopes["Salary"].growth)
    )
    envelopes["Bonus"].append(
        Descriptor.transfer(Direction.IN, 365, 8_000.0, envelopes["Bonus"].growth)
    )
    return envelopes


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    run = SimulationRun(envelopes=build_plan(), time_axis=range(0, 731, 5))
    run.start()
    run.enqueue(
        0,
        MarginalTaxDelta(target="Taxes", taxable="Salary", additional="Bonus", days=[365]),
    )
    run.enqueue(
        1, ProportionalImpulse(target="Cash", source="Taxes", coefficient=1.0, days=[365])
    )
    run.enqueue(2, ResetToZero(target="Cash", day=395))

    report = run.drive(solve)

    print("=== Staged Run ===")
    print(f"Solves: {report.solves}")
    print(f"Descriptors appended: {report.descriptors_appended}")
    print(report.to_frame().to_string(index=False))
    print()
    print(report.diagnostics)

    frame = report.results.to_frame(run.time_axis)
    print()
    print(frame.loc[[360, 365, 370, 395, 400, 730], ["Cash", "Taxes"]].round(2))


if __name__ == "__main__":
    main()
