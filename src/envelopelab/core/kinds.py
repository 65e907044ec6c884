"""
EnvelopeLab Kind Constants (strategy-centric, extensible).
"""


class K:
    # === Generic building blocks ===
    P_INJECT_AT_DAYS = "p.inject.at_days"  # one descriptor per day from a constructor

    # === Compensation (reads the target's own balance) ===
    P_RESET_ZERO = "p.reset.zero"  # cancel the balance at a day
    P_RESET_TARGET = "p.reset.target"  # move the balance to a target at a day

    # === Cross-series propagation ===
    P_PROPAGATE_PROPORTIONAL = "p.propagate.proportional"  # coeff * source series

    # === Tax ===
    P_TAX_MARGINAL_DELTA = "p.tax.marginal_delta"  # tax(x + add) - tax(x)

    # Names used by declarative plans before kinds were namespaced
    LEGACY_ALIASES = {
        "reset_to_zero": P_RESET_ZERO,
        "reset_to_value": P_RESET_TARGET,
        "impulse_from_envelope": P_PROPAGATE_PROPORTIONAL,
        "tax_delta_on_401k": P_TAX_MARGINAL_DELTA,
    }

    @classmethod
    def all_kinds(cls) -> list[str]:
        """Enumerate all known kinds (for validation and docs)."""
        return [
            cls.P_INJECT_AT_DAYS,
            cls.P_RESET_ZERO,
            cls.P_RESET_TARGET,
            cls.P_PROPAGATE_PROPORTIONAL,
            cls.P_TAX_MARGINAL_DELTA,
        ]

    @classmethod
    def normalize(cls, kind: str) -> str:
        """Map a legacy kind name onto its namespaced constant."""
        return cls.LEGACY_ALIASES.get(kind, kind)
