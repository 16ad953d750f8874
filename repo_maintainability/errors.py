"""Exception hierarchy for Repository Maintainability Index.

All exceptions inherit from MaintainabilityError (single catch point).
Only FactAcquisitionError is allowed to end a run; the others are absorbed
at the component that raised them.
"""

from __future__ import annotations


class MaintainabilityError(Exception):
    """Base exception for all repository maintainability errors."""


class FactAcquisitionError(MaintainabilityError):
    """The hosting API could not produce a complete fact snapshot."""


class DataIntegrityError(MaintainabilityError):
    """A fact field violates its expected invariant (e.g. a negative count)."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class WeightConfigurationError(MaintainabilityError, ValueError):
    """Metric weights are missing, unknown, out of range or do not sum to 1."""


class InsightError(MaintainabilityError):
    """Base class for failures talking to the LLM provider."""


class InsightTransientError(InsightError):
    """Timeout, connection reset or server-side hiccup; worth one retry."""


class InsightNonTransientError(InsightError):
    """Failure that a retry cannot fix."""


class InsightAuthenticationError(InsightNonTransientError):
    """Missing, invalid or revoked LLM provider credential."""


class InsightQuotaError(InsightNonTransientError):
    """Provider rejected the call for payment or quota reasons."""


class InsightMalformedResponseError(InsightNonTransientError):
    """Provider answered, but not with usable commentary."""
