"""
Assistant workflows backed by an external text generation service.

Each workflow assembles structured context, renders a prompt, asks the
generator for a result matching a JSON schema and validates that result with
Pydantic. The slot search itself never depends on the generator: candidate
slots are computed deterministically first and only the selection among them
is delegated.
"""

import json
import logging
from datetime import date as CalendarDate
from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..domain.exceptions import GenerationError
from ..domain.generation import (
    SCHEDULE_OPTIMIZATION_TASK,
    THERAPY_ADJUSTMENT_TASK,
    THERAPY_REPORT_TASK,
    GenerationRequest,
)
from ..domain.models import SearchRange
from ..domain.progress import Patient
from .scheduling import SchedulingService

logger = logging.getLogger(__name__)

OutputModel = TypeVar("OutputModel", bound=BaseModel)


class TextGeneratorProtocol(Protocol):
    """Protocol describing the text generation backend."""

    def generate(self, request: GenerationRequest) -> Dict[str, Any]:
        """Return a result matching ``request.response_schema`` or raise GenerationError."""


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScheduleRequest(_CamelModel):
    """What to schedule and under which rules."""
    patient_id: str
    therapist_id: str
    device_id: str
    start_date: CalendarDate
    end_date: Optional[CalendarDate] = None
    session_duration_minutes: int = Field(gt=0)
    sessions_requested: int = Field(default=1, ge=1)
    scheduling_goal: str = ""
    constraints: List[str] = Field(default_factory=list)

    @property
    def search_range(self) -> SearchRange:
        return SearchRange(start=self.start_date, end=self.end_date)


class SuggestedSlot(_CamelModel):
    patient_name: str
    therapist_id: str
    date: str
    start_time: str
    end_time: str


class ScheduleSuggestion(_CamelModel):
    suggested_slots: List[SuggestedSlot] = Field(default_factory=list)
    justification: str


class TherapyReport(_CamelModel):
    executive_summary: str
    progress_analysis: str
    future_recommendations: str


class TherapyReadings(_CamelModel):
    """Real-time readings from a running session."""
    heart_rate: float = Field(gt=0, description="Heart rate in beats per minute.")
    muscle_load: float = Field(ge=0, le=100, description="Muscle load as a percentage.")
    range_of_motion: float = Field(ge=0, description="Current range of motion in degrees.")
    robot_resistance: float = Field(ge=0, le=100, description="Robot resistance as a percentage.")
    session_stage: str = Field(description="Stage of the session, e.g. warm-up, active, cool-down.")
    therapist_notes: Optional[str] = None


class TherapyAdjustment(_CamelModel):
    adjusted_robot_resistance: float = Field(ge=0, le=100)
    adjusted_range_of_motion: float = Field(ge=0)
    recommendation: str


class _AssistantWorkflow:
    """Shared request/validate cycle for all workflows."""

    def __init__(self, generator: TextGeneratorProtocol) -> None:
        self._generator = generator

    def _generate(
        self,
        *,
        task: str,
        prompt: str,
        context: Dict[str, Any],
        output_model: Type[OutputModel],
    ) -> OutputModel:
        request = GenerationRequest(
            task=task,
            prompt=prompt,
            response_schema=output_model.model_json_schema(by_alias=True),
            context=context,
        )
        raw = self._generator.generate(request)

        try:
            return output_model.model_validate(raw)
        except ValidationError as exc:
            raise GenerationError(f"Generator returned an invalid {output_model.__name__}: {exc}") from exc


class ScheduleOptimizer(_AssistantWorkflow):
    """
    Picks sessions for a scheduling goal among deterministically found slots.
    """

    def __init__(self, scheduling_service: SchedulingService, generator: TextGeneratorProtocol) -> None:
        super().__init__(generator)
        self._scheduling_service = scheduling_service

    async def optimize(self, request: ScheduleRequest) -> ScheduleSuggestion:
        slots = await self._scheduling_service.find_slots(
            patient_id=request.patient_id,
            therapist_id=request.therapist_id,
            device_id=request.device_id,
            search_range=request.search_range,
            session_duration_minutes=request.session_duration_minutes,
        )
        if not slots:
            logger.info("No candidate slots for %s; skipping generation", request.patient_id)
            return ScheduleSuggestion(
                suggested_slots=[],
                justification="No conflict-free slots were found in the requested range.",
            )

        candidates = [slot.to_dict() for slot in slots]
        context = {
            "patientId": request.patient_id,
            "therapistId": request.therapist_id,
            "deviceId": request.device_id,
            "sessionDurationMinutes": request.session_duration_minutes,
            "sessionsRequested": request.sessions_requested,
            "schedulingGoal": request.scheduling_goal,
            "constraints": list(request.constraints),
            "candidateSlots": candidates,
        }
        suggestion = self._generate(
            task=SCHEDULE_OPTIMIZATION_TASK,
            prompt=render_schedule_prompt(context),
            context=context,
            output_model=ScheduleSuggestion,
        )

        candidate_keys = {(slot["date"], slot["startTime"], slot["endTime"]) for slot in candidates}
        for suggested in suggestion.suggested_slots:
            key = (suggested.date, suggested.start_time, suggested.end_time)
            if key not in candidate_keys:
                raise GenerationError(
                    f"Generator suggested a slot that is not available: "
                    f"{suggested.date} {suggested.start_time} - {suggested.end_time}"
                )

        return suggestion


class ReportGenerator(_AssistantWorkflow):
    """Writes a therapy progress report from a patient's session history."""

    def generate(self, patient: Patient) -> TherapyReport:
        sessions = [
            {
                "date": session.date.to_date_string(),
                "duration": session.duration_minutes,
                "notes": session.notes,
                "peakRangeOfMotion": session.peak_range_of_motion(),
                "peakRobotResistance": session.peak_robot_resistance(),
            }
            for session in patient.sessions_in_order()
        ]
        context = {
            "patient": {
                "name": patient.name,
                "age": patient.age,
                "condition": patient.condition,
                "therapyGoals": list(patient.therapy_goals),
            },
            "sessions": sessions,
        }
        return self._generate(
            task=THERAPY_REPORT_TASK,
            prompt=render_report_prompt(context),
            context=context,
            output_model=TherapyReport,
        )


class TherapyAdvisor(_AssistantWorkflow):
    """Recommends robot parameter adjustments from real-time readings."""

    def recommend(self, readings: TherapyReadings) -> TherapyAdjustment:
        context = readings.model_dump(by_alias=True)
        return self._generate(
            task=THERAPY_ADJUSTMENT_TASK,
            prompt=render_adjustment_prompt(context),
            context=context,
            output_model=TherapyAdjustment,
        )


def render_schedule_prompt(context: Dict[str, Any]) -> str:
    constraints = "\n".join(f"- {rule}" for rule in context["constraints"]) or "- None"
    return (
        "You are a scheduling assistant for a rehabilitation clinic.\n"
        f"Patient: {context['patientId']}; therapist: {context['therapistId']}; "
        f"device: {context['deviceId']}.\n"
        f"Goal: {context['schedulingGoal'] or 'Schedule the requested sessions.'}\n"
        f"Sessions requested: {context['sessionsRequested']} of "
        f"{context['sessionDurationMinutes']} minutes.\n"
        f"Constraints:\n{constraints}\n"
        "Choose only from these conflict-free slots:\n"
        f"{json.dumps(context['candidateSlots'])}\n"
        "Explain in 'justification' how the choice respects the constraints."
    )


def render_report_prompt(context: Dict[str, Any]) -> str:
    patient = context["patient"]
    goals = "\n".join(f"- {goal}" for goal in patient["therapyGoals"]) or "- None recorded"
    history = "\n".join(
        f"- {session['date']}: {session['duration']} min, "
        f"peak range of motion {session['peakRangeOfMotion']:g} degrees, "
        f"peak robot resistance {session['peakRobotResistance']:g}%. "
        f"Notes: \"{session['notes']}\""
        for session in context["sessions"]
    ) or "- No sessions recorded"
    return (
        "You are a physical therapy assistant writing a progress report.\n"
        f"Patient: {patient['name']}, age {patient['age']}, condition: {patient['condition']}.\n"
        f"Therapy goals:\n{goals}\n"
        f"Session history:\n{history}\n"
        "Write an executive summary, a progress analysis backed by the data, "
        "and future recommendations."
    )


def render_adjustment_prompt(context: Dict[str, Any]) -> str:
    notes = f"\nTherapist notes: {context['therapistNotes']}" if context.get("therapistNotes") else ""
    return (
        "You help therapists tune a rehabilitation robot during a session.\n"
        f"Heart rate: {context['heartRate']:g} bpm; muscle load: {context['muscleLoad']:g}%; "
        f"range of motion: {context['rangeOfMotion']:g} degrees; "
        f"robot resistance: {context['robotResistance']:g}%; stage: {context['sessionStage']}."
        f"{notes}\n"
        "Avoid sudden increases in resistance or range of motion, watch for overexertion, "
        "and justify every adjustment in 'recommendation'."
    )
