"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    DataSourceError,
    GenerationError,
    InvalidScheduleInputError,
    SchedulingError,
)
from .generation import GenerationRequest
from .models import (
    Booking,
    CandidateSlot,
    ResourceAvailability,
    ResourceKind,
    SearchRange,
    TimeOfDayRange,
    TimeRange,
)
from .progress import Patient, SessionSample, TherapySession
from .slot_finder import SlotFinder, find_available_slots

__all__ = [
    "Booking",
    "CandidateSlot",
    "DataSourceError",
    "GenerationError",
    "GenerationRequest",
    "InvalidScheduleInputError",
    "Patient",
    "ResourceAvailability",
    "ResourceKind",
    "SchedulingError",
    "SearchRange",
    "SessionSample",
    "SlotFinder",
    "TherapySession",
    "TimeOfDayRange",
    "TimeRange",
    "find_available_slots",
]
