"""
Application services for finding bookable therapy session slots.

The service coordinates loading availability and bookings via a data source
adapter and delegates the actual slot search to the domain-level
``SlotFinder``. This keeps the CLI thin and improves testability by allowing
the data dependency to be replaced via a simple protocol.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from ..domain.exceptions import InvalidScheduleInputError
from ..domain.models import Booking, CandidateSlot, ResourceAvailability, ResourceKind, SearchRange
from ..domain.progress import Patient
from ..domain.slot_finder import SlotFinder

logger = logging.getLogger(__name__)


class SchedulingDataSourceProtocol(Protocol):
    """Protocol describing the data source behaviour needed by the service."""

    async def load_patients(self) -> List[Patient]:
        """Return every known patient."""

    async def load_availability(
        self,
        kind: ResourceKind,
        resource_id: str,
    ) -> Optional[ResourceAvailability]:
        """Return the availability of one resource, or None if unknown."""

    async def load_bookings(self, search_range: SearchRange) -> List[Booking]:
        """Return bookings overlapping the search range."""


@dataclass(frozen=True)
class SchedulingInputs:
    """Everything the slot finder needs for one patient/therapist/device triple."""
    patient: ResourceAvailability
    therapist: ResourceAvailability
    device: ResourceAvailability
    bookings: List[Booking] = field(default_factory=list)


class SchedulingService:
    """
    Orchestrates data loading and slot calculation.

    Dependency inversion toward a protocol makes it easy to plug in the JSON
    file source, the mock source, or a stub in tests.
    """

    def __init__(
        self,
        data_source: SchedulingDataSourceProtocol,
        slot_finder: SlotFinder,
    ) -> None:
        self._data_source = data_source
        self._slot_finder = slot_finder

    async def find_slots(
        self,
        *,
        patient_id: str,
        therapist_id: str,
        device_id: str,
        search_range: SearchRange,
        session_duration_minutes: int,
    ) -> List[CandidateSlot]:
        """
        Load availability and bookings, then compute candidate slots.
        """
        if session_duration_minutes <= 0:
            raise InvalidScheduleInputError(
                f"Session duration must be positive, got {session_duration_minutes}"
            )

        inputs = await self.load_inputs(
            patient_id=patient_id,
            therapist_id=therapist_id,
            device_id=device_id,
            search_range=search_range,
        )

        return self.calculate_slots(
            inputs=inputs,
            search_range=search_range,
            session_duration_minutes=session_duration_minutes,
        )

    async def load_inputs(
        self,
        *,
        patient_id: str,
        therapist_id: str,
        device_id: str,
        search_range: SearchRange,
    ) -> SchedulingInputs:
        """Load the three resources' availability and the relevant bookings."""
        patient = await self._load_resource(ResourceKind.PATIENT, patient_id)
        therapist = await self._load_resource(ResourceKind.THERAPIST, therapist_id)
        device = await self._load_resource(ResourceKind.DEVICE, device_id)
        bookings = await self._data_source.load_bookings(search_range)

        return SchedulingInputs(
            patient=patient,
            therapist=therapist,
            device=device,
            bookings=list(bookings),
        )

    def calculate_slots(
        self,
        *,
        inputs: SchedulingInputs,
        search_range: SearchRange,
        session_duration_minutes: int,
    ) -> List[CandidateSlot]:
        """Calculate candidate slots from already loaded inputs."""
        return self._slot_finder.find_available_slots(
            patient_availability=inputs.patient,
            therapist_availability=inputs.therapist,
            device_availability=inputs.device,
            existing_bookings=inputs.bookings,
            session_duration_minutes=session_duration_minutes,
            search_range=search_range,
        )

    async def find_patient(self, identifier: str) -> Optional[Patient]:
        """Find a patient by id or by name (case-insensitive)."""
        wanted = identifier.strip().lower()
        for patient in await self._data_source.load_patients():
            if patient.patient_id.lower() == wanted or patient.name.lower() == wanted:
                return patient
        return None

    async def _load_resource(self, kind: ResourceKind, resource_id: str) -> ResourceAvailability:
        """
        Load one resource's availability.

        Unknown resources are normalised to an empty availability so that the
        search deterministically yields no slots instead of failing.
        """
        availability = await self._data_source.load_availability(kind, resource_id)
        if availability is None:
            logger.warning("No availability recorded for %s %r", kind.value, resource_id)
            return ResourceAvailability(resource_id=resource_id, kind=kind)
        return availability
