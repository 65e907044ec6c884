"""
Core module for EnvelopeLab.

This module contains the descriptor model, the stage results view, and the
queue/resolver pair that drives staged peek resolution.
"""

from .errors import ConfigError, SynthesisError
from .exceptions import (
    QueueDisciplineError,
    StageLimitError,
    StageResolutionError,
    StaleRunError,
)
from .kinds import K
from .growth import GrowthKind, GrowthModel
from .descriptors import Descriptor, DescriptorType, Direction
from .envelope import Envelope, EnvelopeMap, make_envelopes
from .timeaxis import TimeAxis, build_time_axis
from .results import StageResults, inflation_adjust, value_to_day, value_to_today
from .diagnostics import Diagnostic, Diagnostics
from .config import EngineConfig, load_config
from .context import PeekContext
from .operation import PeekOperation
from .queue import PeekQueue, StagedPeek
from .resolver import StageOutcome, apply_stage, resolve_stage
from .run import RunReport, SimulationRun

__all__ = [
    # Errors
    "ConfigError",
    "SynthesisError",
    "StageResolutionError",
    "QueueDisciplineError",
    "StaleRunError",
    "StageLimitError",
    # Kinds
    "K",
    # Descriptor model
    "GrowthKind",
    "GrowthModel",
    "Direction",
    "DescriptorType",
    "Descriptor",
    "Envelope",
    "EnvelopeMap",
    "make_envelopes",
    # Time and results
    "TimeAxis",
    "build_time_axis",
    "StageResults",
    "inflation_adjust",
    "value_to_today",
    "value_to_day",
    # Diagnostics and config
    "Diagnostic",
    "Diagnostics",
    "EngineConfig",
    "load_config",
    # Engine
    "PeekContext",
    "PeekOperation",
    "PeekQueue",
    "StagedPeek",
    "StageOutcome",
    "apply_stage",
    "resolve_stage",
    "RunReport",
    "SimulationRun",
]
