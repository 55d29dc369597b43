"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .assistant import (
    ReportGenerator,
    ScheduleOptimizer,
    ScheduleRequest,
    ScheduleSuggestion,
    TextGeneratorProtocol,
    TherapyAdjustment,
    TherapyAdvisor,
    TherapyReadings,
    TherapyReport,
)
from .scheduling import SchedulingDataSourceProtocol, SchedulingInputs, SchedulingService

__all__ = [
    "ReportGenerator",
    "ScheduleOptimizer",
    "ScheduleRequest",
    "ScheduleSuggestion",
    "SchedulingDataSourceProtocol",
    "SchedulingInputs",
    "SchedulingService",
    "TextGeneratorProtocol",
    "TherapyAdjustment",
    "TherapyAdvisor",
    "TherapyReadings",
    "TherapyReport",
]
