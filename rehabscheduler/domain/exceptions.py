"""
Domain-specific exception hierarchy for the rehab scheduler.
"""


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class InvalidScheduleInputError(SchedulingError, ValueError):
    """Raised when availability, bookings or search parameters are malformed."""


class DataSourceError(SchedulingError):
    """Raised when clinic data cannot be loaded or parsed."""


class GenerationError(SchedulingError):
    """Raised when the text generation backend fails or returns invalid output."""
