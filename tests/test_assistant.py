"""
Tests for the assistant workflows.
"""

import asyncio

import pendulum
import pytest
from pydantic import ValidationError

from rehabscheduler.adapters.generation_client import MockTextGenerator
from rehabscheduler.domain.exceptions import GenerationError
from rehabscheduler.domain.generation import (
    SCHEDULE_OPTIMIZATION_TASK,
    THERAPY_ADJUSTMENT_TASK,
    THERAPY_REPORT_TASK,
)
from rehabscheduler.domain.models import ResourceAvailability, ResourceKind, TimeOfDayRange
from rehabscheduler.domain.progress import Patient, SessionSample, TherapySession
from rehabscheduler.domain.slot_finder import SlotFinder
from rehabscheduler.services.assistant import (
    ReportGenerator,
    ScheduleOptimizer,
    ScheduleRequest,
    TherapyAdvisor,
    TherapyReadings,
)
from rehabscheduler.services.scheduling import SchedulingService


class StubDataSource:
    """John Doe on Monday and Wednesday mornings, no bookings."""

    def __init__(self):
        ranges = {
            ResourceKind.PATIENT: [("Monday", "09:00 AM", "12:00 PM"), ("Wednesday", "09:00 AM", "12:00 PM")],
            ResourceKind.THERAPIST: [("Any", "08:00 AM", "05:00 PM")],
            ResourceKind.DEVICE: [("Any", "08:00 AM", "06:00 PM")],
        }
        self._availability = {
            kind: ResourceAvailability(
                resource_id=kind.value,
                kind=kind,
                ranges=[TimeOfDayRange.parse(*entry) for entry in entries],
            )
            for kind, entries in ranges.items()
        }

    async def load_patients(self):
        return []

    async def load_availability(self, kind, resource_id):
        return self._availability[kind]

    async def load_bookings(self, search_range):
        return []


def _optimizer(generator):
    service = SchedulingService(data_source=StubDataSource(), slot_finder=SlotFinder(timezone="UTC"))
    return ScheduleOptimizer(scheduling_service=service, generator=generator)


def _schedule_request(**overrides):
    values = {
        "patientId": "John Doe",
        "therapistId": "Dr. Roberts",
        "deviceId": "Robot-Arm-01",
        "startDate": "2024-11-25",
        "endDate": "2024-11-27",
        "sessionDurationMinutes": 45,
        "sessionsRequested": 2,
        "schedulingGoal": "Two sessions this week.",
        "constraints": ["Sessions on different days."],
    }
    values.update(overrides)
    return ScheduleRequest.model_validate(values)


def _patient():
    return Patient(
        patient_id="p001",
        name="John Doe",
        age=58,
        condition="Post-Stroke Hemiparesis",
        therapy_goals=["Improve range of motion."],
        sessions=[
            TherapySession(
                session_id="s002",
                date=pendulum.datetime(2024, 11, 23, 10, tz="UTC"),
                duration_minutes=30,
                notes="Improved endurance.",
                samples=[SessionSample(10, 48, 20, 33)],
            ),
            TherapySession(
                session_id="s001",
                date=pendulum.datetime(2024, 11, 18, 10, tz="UTC"),
                duration_minutes=30,
                notes="Fatigued quickly.",
                samples=[SessionSample(10, 40, 15, 25)],
            ),
        ],
    )


class TestScheduleOptimizer:
    """Tests for ScheduleOptimizer."""

    def test_picks_among_candidates(self):
        generator = MockTextGenerator()

        suggestion = asyncio.run(_optimizer(generator).optimize(_schedule_request()))

        assert [(slot.date, slot.start_time) for slot in suggestion.suggested_slots] == [
            ("2024-11-25", "09:00 AM"),
            ("2024-11-27", "09:00 AM"),
        ]
        assert suggestion.justification

        request = generator.requests[0]
        assert request.task == SCHEDULE_OPTIMIZATION_TASK
        assert len(request.context["candidateSlots"]) == 20
        assert "Sessions on different days." in request.prompt
        assert "suggestedSlots" in request.response_schema["properties"]

    def test_no_candidates_skips_generation(self):
        generator = MockTextGenerator()

        suggestion = asyncio.run(
            _optimizer(generator).optimize(_schedule_request(startDate="2024-11-26", endDate="2024-11-26"))
        )

        assert suggestion.suggested_slots == []
        assert generator.requests == []

    def test_rejects_unavailable_slot(self):
        def invent_slot(context):
            return {
                "suggestedSlots": [
                    {
                        "patientName": "John Doe",
                        "therapistId": "Dr. Roberts",
                        "date": "2024-11-26",
                        "startTime": "09:00 AM",
                        "endTime": "09:45 AM",
                    }
                ],
                "justification": "Tuesday suits the patient.",
            }

        generator = MockTextGenerator(handlers={SCHEDULE_OPTIMIZATION_TASK: invent_slot})

        with pytest.raises(GenerationError, match="not available"):
            asyncio.run(_optimizer(generator).optimize(_schedule_request()))

    def test_invalid_output(self):
        generator = MockTextGenerator(handlers={SCHEDULE_OPTIMIZATION_TASK: lambda context: {"slots": []}})

        with pytest.raises(GenerationError, match="invalid ScheduleSuggestion"):
            asyncio.run(_optimizer(generator).optimize(_schedule_request()))

    def test_request_validation(self):
        with pytest.raises(ValidationError):
            _schedule_request(sessionDurationMinutes=0)


class TestReportGenerator:
    """Tests for ReportGenerator."""

    def test_report_context(self):
        generator = MockTextGenerator()

        report = ReportGenerator(generator).generate(_patient())

        request = generator.requests[0]
        assert request.task == THERAPY_REPORT_TASK
        assert [session["date"] for session in request.context["sessions"]] == ["2024-11-18", "2024-11-23"]
        assert request.context["sessions"][1]["peakRangeOfMotion"] == 48
        assert "Post-Stroke Hemiparesis" in request.prompt
        assert "executiveSummary" in request.response_schema["properties"]
        assert report.executive_summary.startswith("John Doe")
        assert "40 to 48" in report.progress_analysis

    def test_invalid_report(self):
        generator = MockTextGenerator(handlers={THERAPY_REPORT_TASK: lambda context: {"executiveSummary": "Fine."}})

        with pytest.raises(GenerationError):
            ReportGenerator(generator).generate(_patient())


class TestTherapyAdvisor:
    """Tests for TherapyAdvisor."""

    def _readings(self, **overrides):
        values = {
            "heartRate": 95,
            "muscleLoad": 40,
            "rangeOfMotion": 45,
            "robotResistance": 20,
            "sessionStage": "active",
        }
        values.update(overrides)
        return TherapyReadings.model_validate(values)

    def test_gradual_increase(self):
        generator = MockTextGenerator()

        adjustment = TherapyAdvisor(generator).recommend(self._readings())

        assert adjustment.adjusted_robot_resistance == 25
        assert adjustment.adjusted_range_of_motion == 50
        assert generator.requests[0].task == THERAPY_ADJUSTMENT_TASK

    def test_overexertion_reduces_resistance(self):
        adjustment = TherapyAdvisor(MockTextGenerator()).recommend(self._readings(heartRate=130))

        assert adjustment.adjusted_robot_resistance == 10
        assert adjustment.adjusted_range_of_motion == 45
        assert "overexertion" in adjustment.recommendation

    def test_notes_reach_the_prompt(self):
        generator = MockTextGenerator()

        TherapyAdvisor(generator).recommend(self._readings(therapistNotes="Shoulder pain reported."))

        assert "Shoulder pain reported." in generator.requests[0].prompt

    def test_readings_are_validated(self):
        with pytest.raises(ValidationError):
            self._readings(muscleLoad=150)

    def test_adjustment_out_of_bounds(self):
        generator = MockTextGenerator(
            handlers={
                THERAPY_ADJUSTMENT_TASK: lambda context: {
                    "adjustedRobotResistance": 140,
                    "adjustedRangeOfMotion": 50,
                    "recommendation": "Push harder.",
                }
            }
        )

        with pytest.raises(GenerationError):
            TherapyAdvisor(generator).recommend(self._readings())
