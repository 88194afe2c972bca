"""Exceptions raised by the assessment engine."""


class AssessmentError(ValueError):
    """Base class for assessment errors."""


class TransitionError(AssessmentError):
    """Raised when an event is not allowed from the current state."""


class InvalidEventError(AssessmentError):
    """Raised when an event payload cannot be parsed."""


class RiskTableError(AssessmentError):
    """Raised when a risk-table source cannot be read."""
