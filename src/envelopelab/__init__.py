"""
EnvelopeLab - Staged Dependency Resolution for Envelope Simulations

EnvelopeLab resolves cross-envelope data dependencies in personal-finance plans.
A plan is a set of named envelopes whose balances an external solver derives, in
one deterministic pass, from time-stamped descriptors. Some descriptors can only
be known once other envelopes have been simulated (tax owed on simulated income,
a withdrawal that brings an account back to zero). EnvelopeLab defers those
computations as stage-tagged "peek" operations, applies them once the results
they read exist, and tells the driving loop whether another solve is needed.

Key Features:
- **Staged queue**: operations wait for the stage whose results they read
- **Append-only synthesis**: operations add descriptors, never edit them
- **Growth snapshots**: synthesized transfers freeze the envelope's growth model
- **Run tokens**: a superseded run cannot resolve into a new run's envelopes
- **Diagnostics**: bad days and non-finite inputs are reported, not silently dropped

Quick Start:
    ```python
    from envelopelab import (
        MarginalTaxDelta,
        ResetToZero,
        SimulationRun,
        make_envelopes,
    )

    envelopes = make_envelopes({
        "Cash": {"growth_type": "Daily Compound", "growth_rate": 0.01},
        "Salary": None,
        "Bonus": None,
        "Taxes": None,
    })
    run = SimulationRun(envelopes=envelopes, time_axis=range(0, 3650, 5))
    run.start()
    run.enqueue(0, MarginalTaxDelta(
        target="Taxes", taxable="Salary", additional="Bonus", days=[365, 730],
    ))
    run.enqueue(1, ResetToZero(target="Cash", day=730))
    report = run.drive(solver)  # solver(envelopes, axis) -> {name: series}
    ```

Available Strategies:
    - 'p.inject.at_days': generic per-day descriptor constructor
    - 'p.reset.zero': cancel an envelope's balance at a day
    - 'p.reset.target': move an envelope's balance to a target at a day
    - 'p.propagate.proportional': impulses proportional to another series
    - 'p.tax.marginal_delta': marginal tax on additional income
"""

# Version information
__version__ = "0.1.0"
__author__ = "EnvelopeLab Team"
__description__ = "Staged dependency resolution for envelope simulations"

from .core import (
    ConfigError,
    Descriptor,
    DescriptorType,
    Diagnostic,
    Diagnostics,
    Direction,
    EngineConfig,
    Envelope,
    EnvelopeMap,
    GrowthKind,
    GrowthModel,
    K,
    PeekContext,
    PeekOperation,
    PeekQueue,
    QueueDisciplineError,
    RunReport,
    SimulationRun,
    StageLimitError,
    StageOutcome,
    StageResolutionError,
    StageResults,
    StaleRunError,
    SynthesisError,
    TimeAxis,
    apply_stage,
    build_time_axis,
    inflation_adjust,
    load_config,
    make_envelopes,
    resolve_stage,
)
from .strategies import (
    DayFilter,
    InjectAtDays,
    MarginalTaxDelta,
    PeekRegistry,
    ProportionalImpulse,
    ResetToTarget,
    ResetToZero,
    build_operation,
    load_peeks,
)
from .tax import FEDERAL_2023, FilingStatus, TaxTable, estimate_tax, marginal_tax

__all__ = [
    # Descriptor model
    "Descriptor",
    "DescriptorType",
    "Direction",
    "Envelope",
    "EnvelopeMap",
    "GrowthKind",
    "GrowthModel",
    "make_envelopes",
    # Time and results
    "TimeAxis",
    "build_time_axis",
    "StageResults",
    "inflation_adjust",
    # Engine
    "PeekContext",
    "PeekOperation",
    "PeekQueue",
    "StageOutcome",
    "apply_stage",
    "resolve_stage",
    "SimulationRun",
    "RunReport",
    # Strategies
    "InjectAtDays",
    "ResetToZero",
    "ResetToTarget",
    "ProportionalImpulse",
    "DayFilter",
    "MarginalTaxDelta",
    "PeekRegistry",
    "build_operation",
    "load_peeks",
    # Tax
    "TaxTable",
    "FilingStatus",
    "FEDERAL_2023",
    "estimate_tax",
    "marginal_tax",
    # Config, diagnostics, errors
    "EngineConfig",
    "load_config",
    "Diagnostic",
    "Diagnostics",
    "ConfigError",
    "SynthesisError",
    "StageResolutionError",
    "QueueDisciplineError",
    "StaleRunError",
    "StageLimitError",
    "K",
    # Version info
    "__version__",
    "__author__",
    "__description__",
]
