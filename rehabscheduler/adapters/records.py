"""
Pydantic models for clinic data records as stored in JSON documents.

Field names follow the camelCase keys used by the clinic dashboard; the
models convert themselves into domain objects.
"""

from datetime import date as CalendarDate
from datetime import datetime
from typing import List, Optional

import pendulum
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..domain.models import (
    Booking,
    ResourceAvailability,
    ResourceKind,
    TimeOfDayRange,
    normalize_day,
    parse_clock_time,
)
from ..domain.progress import Patient, SessionSample, TherapySession


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class AvailabilityRecord(_Record):
    """One availability window of a patient, therapist or device."""
    resource_id: str = Field(
        validation_alias=AliasChoices("resourceId", "patientId", "therapistId", "deviceId", "robotId"),
    )
    day: str = "Any"
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return normalize_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        parse_clock_time(value)
        return value

    def to_range(self) -> TimeOfDayRange:
        return TimeOfDayRange.parse(self.day, self.start_time, self.end_time)


class AvailabilityBlock(_Record):
    """Availability records grouped by resource kind."""
    patient: List[AvailabilityRecord] = Field(default_factory=list)
    therapist: List[AvailabilityRecord] = Field(default_factory=list)
    device: List[AvailabilityRecord] = Field(
        default_factory=list,
        validation_alias=AliasChoices("device", "robot"),
    )

    def records_for(self, kind: ResourceKind) -> List[AvailabilityRecord]:
        return getattr(self, kind.value)

    def to_availability(self, kind: ResourceKind, resource_id: str) -> Optional[ResourceAvailability]:
        """Collect the windows of one resource, or None if it has no records."""
        ranges = [record.to_range() for record in self.records_for(kind) if record.resource_id == resource_id]
        if not ranges:
            return None
        return ResourceAvailability(resource_id=resource_id, kind=kind, ranges=tuple(ranges))


class BookingRecord(_Record):
    """An existing appointment as stored by the clinic."""
    patient_name: str = Field(alias="patientName")
    date: CalendarDate
    time: str
    duration: int = Field(default=60, gt=0)
    therapist_id: Optional[str] = Field(default=None, alias="therapistId")
    device_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("deviceId", "robotId"),
    )

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        parse_clock_time(value)
        return value

    def to_booking(self, timezone: str) -> Booking:
        resources = tuple(
            resource for resource in (self.patient_name, self.therapist_id, self.device_id) if resource
        )
        return Booking.from_wall_clock(
            day=self.date,
            start_time=self.time,
            timezone=timezone,
            duration_minutes=self.duration,
            resources=resources,
        )


class SampleRecord(_Record):
    time: int = Field(ge=0)
    range_of_motion: float = Field(alias="rangeOfMotion")
    robot_resistance: float = Field(alias="robotResistance")
    muscle_load: float = Field(default=0.0, alias="muscleLoad")

    def to_sample(self) -> SessionSample:
        return SessionSample(
            minute=self.time,
            range_of_motion=self.range_of_motion,
            robot_resistance=self.robot_resistance,
            muscle_load=self.muscle_load,
        )


class SessionRecord(_Record):
    id: str
    date: datetime
    duration: int = Field(gt=0)
    notes: str = ""
    data: List[SampleRecord] = Field(default_factory=list)

    def to_session(self, timezone: str) -> TherapySession:
        started = pendulum.instance(self.date, tz=timezone)
        return TherapySession(
            session_id=self.id,
            date=started,
            duration_minutes=self.duration,
            notes=self.notes,
            samples=[sample.to_sample() for sample in self.data],
        )


class PatientRecord(_Record):
    id: str
    name: str
    age: int = Field(ge=0)
    condition: str
    medical_history: str = Field(default="", alias="medicalHistory")
    therapy_goals: List[str] = Field(default_factory=list, alias="therapyGoals")
    sessions: List[SessionRecord] = Field(default_factory=list)

    def to_patient(self, timezone: str) -> Patient:
        return Patient(
            patient_id=self.id,
            name=self.name,
            age=self.age,
            condition=self.condition,
            medical_history=self.medical_history,
            therapy_goals=list(self.therapy_goals),
            sessions=[session.to_session(timezone) for session in self.sessions],
        )


class ClinicDataRecord(_Record):
    """Root of a clinic data document."""
    patients: List[PatientRecord] = Field(default_factory=list)
    availability: AvailabilityBlock = Field(default_factory=AvailabilityBlock)
    bookings: List[BookingRecord] = Field(default_factory=list)
