"""
Error classes for EnvelopeLab.

This module defines the exception classes used by the staged peek engine for
configuration problems and for data-quality guards that a run has been told to
treat as fatal.
"""


class ConfigError(Exception):
    """
    Configuration error while building or scheduling peek operations.

    This exception is raised when a peek operation, engine configuration or tax
    table is malformed before any simulation results are read.

    **Common Causes:**
    - Negative or non-integer stage numbers
    - Unknown peek kind strings in declarative payloads
    - Missing required parameters (target envelope, days, coefficient)
    - Tax tables whose thresholds are not strictly ascending
    - Unrecognized growth model labels

    **Example Usage:**
        ```python
        from envelopelab.core.errors import ConfigError
        from envelopelab.strategies import build_operation

        try:
            op = build_operation({"kind": "p.reset.zero", "day": 30})
        except ConfigError as e:
            print(f"Configuration error: {e}")
        ```
    """

    pass


class SynthesisError(Exception):
    """
    Raised when a synthesis guard fires and the run is configured to fail hard.

    By default guards such as a day missing from the time axis or a non-finite
    series value are recorded as diagnostics and the offending day is skipped.
    Setting ``EngineConfig.missing_day`` or ``EngineConfig.non_finite`` to
    ``"raise"`` turns them into this exception instead.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        super().__init__(f"{code}: {message}")
