"""
Tests for the SchedulingService orchestration layer.
"""

import asyncio
from typing import Dict, List, Optional, Tuple

import pendulum
import pytest

from rehabscheduler.domain.exceptions import InvalidScheduleInputError
from rehabscheduler.domain.models import (
    Booking,
    ResourceAvailability,
    ResourceKind,
    SearchRange,
    TimeOfDayRange,
)
from rehabscheduler.domain.progress import Patient
from rehabscheduler.domain.slot_finder import SlotFinder
from rehabscheduler.services.scheduling import SchedulingService

MONDAY = pendulum.date(2024, 11, 25)


class StubDataSource:
    """Minimal stub matching SchedulingDataSourceProtocol."""

    def __init__(
        self,
        availability: Dict[Tuple[ResourceKind, str], ResourceAvailability],
        bookings: Optional[List[Booking]] = None,
        patients: Optional[List[Patient]] = None,
    ):
        self._availability = availability
        self._bookings = bookings or []
        self._patients = patients or []
        self.booking_calls: List[SearchRange] = []

    async def load_patients(self):
        return list(self._patients)

    async def load_availability(self, kind, resource_id):
        return self._availability.get((kind, resource_id))

    async def load_bookings(self, search_range):
        self.booking_calls.append(search_range)
        return list(self._bookings)


def _availability(kind: ResourceKind, resource_id: str, day: str, start: str, end: str) -> ResourceAvailability:
    return ResourceAvailability(
        resource_id=resource_id,
        kind=kind,
        ranges=(TimeOfDayRange.parse(day, start, end),),
    )


def _clinic() -> Dict[Tuple[ResourceKind, str], ResourceAvailability]:
    return {
        (ResourceKind.PATIENT, "John Doe"): _availability(
            ResourceKind.PATIENT, "John Doe", "Monday", "09:00 AM", "12:00 PM"
        ),
        (ResourceKind.THERAPIST, "Dr. Roberts"): _availability(
            ResourceKind.THERAPIST, "Dr. Roberts", "Any", "08:00 AM", "05:00 PM"
        ),
        (ResourceKind.DEVICE, "Robot-Arm-01"): _availability(
            ResourceKind.DEVICE, "Robot-Arm-01", "Any", "08:00 AM", "06:00 PM"
        ),
    }


def _build_service(data_source: StubDataSource) -> SchedulingService:
    return SchedulingService(data_source=data_source, slot_finder=SlotFinder(timezone="UTC"))


def _find(service: SchedulingService, **overrides):
    arguments = {
        "patient_id": "John Doe",
        "therapist_id": "Dr. Roberts",
        "device_id": "Robot-Arm-01",
        "search_range": SearchRange(start=MONDAY),
        "session_duration_minutes": 45,
    }
    arguments.update(overrides)
    return asyncio.run(service.find_slots(**arguments))


def test_find_slots_uses_data_source_and_finder():
    """End-to-end call should yield slots around existing bookings."""
    booking = Booking.from_wall_clock(MONDAY, "10:00 AM", "UTC", duration_minutes=45)
    data_source = StubDataSource(_clinic(), bookings=[booking])
    service = _build_service(data_source)

    slots = _find(service)

    assert [slot.start_time for slot in slots] == ["09:00 AM", "09:15 AM", "10:45 AM", "11:00 AM", "11:15 AM"]
    assert data_source.booking_calls == [SearchRange(start=MONDAY)]


def test_unknown_resource_yields_no_slots():
    """A resource without records is treated as never available."""
    service = _build_service(StubDataSource(_clinic()))

    assert _find(service, therapist_id="Dr. Nobody") == []


def test_load_inputs_fills_missing_resources():
    service = _build_service(StubDataSource(_clinic()))

    inputs = asyncio.run(
        service.load_inputs(
            patient_id="John Doe",
            therapist_id="Dr. Roberts",
            device_id="Robot-Arm-02",
            search_range=SearchRange(start=MONDAY),
        )
    )

    assert inputs.device.resource_id == "Robot-Arm-02"
    assert inputs.device.kind is ResourceKind.DEVICE
    assert inputs.device.ranges == ()
    assert len(inputs.patient.ranges) == 1


def test_invalid_duration_rejected_before_loading():
    data_source = StubDataSource(_clinic())
    service = _build_service(data_source)

    with pytest.raises(InvalidScheduleInputError):
        _find(service, session_duration_minutes=0)

    assert data_source.booking_calls == []


def test_find_patient_by_id_or_name():
    patients = [
        Patient(patient_id="p001", name="John Doe", age=58, condition="Post-Stroke Hemiparesis"),
        Patient(patient_id="p002", name="Jane Smith", age=45, condition="Rotator Cuff Tear"),
    ]
    service = _build_service(StubDataSource(_clinic(), patients=patients))

    assert asyncio.run(service.find_patient("p002")).name == "Jane Smith"
    assert asyncio.run(service.find_patient("  john doe ")).patient_id == "p001"
    assert asyncio.run(service.find_patient("Samuel Green")) is None
