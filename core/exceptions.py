"""
Exception hierarchy for the assessment engine.

Threshold failures (ATS, typing, interview) are business outcomes and are
never raised; they are recorded as ``failed`` phase statuses instead.
"""

from typing import Any, Optional


class AssessmentError(Exception):
    """Base class for all assessment engine errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(AssessmentError):
    """Job or application record could not be loaded."""


class PersistenceError(AssessmentError):
    """A results-store call failed."""

    def __init__(
        self,
        message: str,
        operation: str,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.operation = operation


class PhaseTransitionError(AssessmentError):
    """An event arrived that is not legal in the current flow state."""


class EvaluationError(AssessmentError):
    """A model-backed capability returned output that could not be used."""
