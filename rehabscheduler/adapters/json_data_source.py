"""
Clinic data sources backed by parsed record documents.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pydantic import ValidationError

from ..domain.exceptions import DataSourceError, InvalidScheduleInputError
from ..domain.models import Booking, ResourceAvailability, ResourceKind, SearchRange, at_wall_clock
from ..domain.progress import Patient
from .records import ClinicDataRecord

logger = logging.getLogger(__name__)


class RecordDataSource:
    """
    Serves patients, availability and bookings from a ``ClinicDataRecord``.

    Subclasses decide where the raw document comes from by implementing
    ``_load_raw_document``. The document is parsed once and cached.
    """

    def __init__(self, timezone: str = "UTC"):
        self.timezone = timezone
        self._document: Optional[ClinicDataRecord] = None

    def _load_raw_document(self) -> Dict[str, Any]:
        raise NotImplementedError

    @property
    def document(self) -> ClinicDataRecord:
        if self._document is None:
            raw = self._load_raw_document()
            try:
                self._document = ClinicDataRecord.model_validate(raw)
            except ValidationError as exc:
                raise DataSourceError(f"Invalid clinic data: {exc}") from exc
        return self._document

    async def load_patients(self) -> List[Patient]:
        """Return every patient record."""
        return [record.to_patient(self.timezone) for record in self.document.patients]

    async def load_availability(
        self,
        kind: ResourceKind,
        resource_id: str,
    ) -> Optional[ResourceAvailability]:
        """Return the availability of one resource, or None if unknown."""
        try:
            return self.document.availability.to_availability(kind, resource_id)
        except InvalidScheduleInputError as exc:
            raise DataSourceError(f"Invalid {kind.value} availability for {resource_id!r}: {exc}") from exc

    async def load_bookings(self, search_range: SearchRange) -> List[Booking]:
        """Return bookings that overlap the days of ``search_range``."""
        range_start = at_wall_clock(search_range.start, pendulum.time(0, 0), self.timezone)
        range_end = at_wall_clock(search_range.end.add(days=1), pendulum.time(0, 0), self.timezone)

        bookings: List[Booking] = []
        for record in self.document.bookings:
            try:
                booking = record.to_booking(self.timezone)
            except InvalidScheduleInputError as exc:
                raise DataSourceError(f"Invalid booking for {record.patient_name!r}: {exc}") from exc

            if booking.start < range_end and booking.end > range_start:
                bookings.append(booking)

        logger.debug("Loaded %d booking(s) for %s - %s", len(bookings), search_range.start, search_range.end)
        return bookings


class JsonDataSource(RecordDataSource):
    """
    Clinic data stored in a single JSON file.

    Expected layout::

        {
            "patients": [...],
            "availability": {"patient": [...], "therapist": [...], "device": [...]},
            "bookings": [...]
        }
    """

    def __init__(self, path: Path, timezone: str = "UTC"):
        super().__init__(timezone=timezone)
        self.path = Path(path)

    def _load_raw_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            raise DataSourceError(f"Clinic data file not found: {self.path}")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise DataSourceError(f"Invalid JSON in {self.path}: {exc}") from exc
        except OSError as exc:
            raise DataSourceError(f"Could not read {self.path}: {exc}") from exc

        if not isinstance(data, dict):
            raise DataSourceError("Clinic data file must contain an object at the root level.")

        logger.debug("Loaded clinic data from %s", self.path)
        return data
