"""
Core business logic for finding bookable therapy session slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

import logging
from typing import Dict, Iterable, Iterator, List, Sequence, Tuple, Union

from pendulum import Date, DateTime

from .exceptions import InvalidScheduleInputError
from .models import (
    Booking,
    CandidateSlot,
    ResourceAvailability,
    ResourceKind,
    SearchRange,
    TimeOfDayRange,
    TimeRange,
    weekday_name,
)

logger = logging.getLogger(__name__)

ENVELOPE = "envelope"
INTERSECTION = "intersection"
STRATEGIES = (ENVELOPE, INTERSECTION)

DEFAULT_STEP_MINUTES = 15

AvailabilityInput = Union[ResourceAvailability, Iterable[TimeOfDayRange]]
Window = Tuple[DateTime, DateTime]


class SlotFinder:
    """
    Finds session slots where a patient, a therapist and a device are all
    free and no existing booking is in the way.

    Algorithm (per calendar day, in order):
    1. Anchor each resource's matching availability (weekday or ``Any``) to the day
    2. Skip the day if any resource has no availability on it
    3. Derive the common window(s):
       - ``envelope``: one window from the latest start to the earliest end
         across all three resources' intervals
       - ``intersection``: merge each resource's intervals, then intersect
         the three merged lists
    4. Walk candidate starts on a fixed step through each common window
    5. Keep a start when the first and last minute of the session fall inside
       every resource's availability, the session ends inside the window and
       no booking conflicts
    6. Deduplicate across the whole range, keeping chronological order
    """

    def __init__(
        self,
        timezone: str = "UTC",
        step_minutes: int = DEFAULT_STEP_MINUTES,
        strategy: str = ENVELOPE,
    ):
        if step_minutes <= 0:
            raise InvalidScheduleInputError(f"step_minutes must be positive, got {step_minutes}")
        if strategy not in STRATEGIES:
            raise InvalidScheduleInputError(
                f"Unknown strategy {strategy!r}; expected one of {', '.join(STRATEGIES)}"
            )
        self.timezone = timezone
        self.step_minutes = step_minutes
        self.strategy = strategy

    def find_available_slots(
        self,
        patient_availability: AvailabilityInput,
        therapist_availability: AvailabilityInput,
        device_availability: AvailabilityInput,
        existing_bookings: Iterable[Booking],
        session_duration_minutes: int,
        search_range: SearchRange,
    ) -> List[CandidateSlot]:
        """
        Find all candidate slots of ``session_duration_minutes`` in ``search_range``.

        Args:
            patient_availability: Patient windows (``ResourceAvailability`` or ranges)
            therapist_availability: Therapist windows
            device_availability: Device windows
            existing_bookings: Committed appointments that block overlapping slots
            session_duration_minutes: Length of the session to place
            search_range: Inclusive range of calendar dates to scan

        Returns:
            Candidate slots ordered by day and start time, without duplicates.
            An empty list means nothing fits; it is not an error.

        Raises:
            InvalidScheduleInputError: If any input is malformed.
        """
        if not isinstance(session_duration_minutes, int) or session_duration_minutes <= 0:
            raise InvalidScheduleInputError(
                f"Session duration must be a positive number of minutes, got {session_duration_minutes!r}"
            )
        if not isinstance(search_range, SearchRange):
            raise InvalidScheduleInputError(
                f"search_range must be a SearchRange, got {type(search_range).__name__}"
            )

        resources: Dict[ResourceKind, Tuple[TimeOfDayRange, ...]] = {
            ResourceKind.PATIENT: self._coerce_ranges(ResourceKind.PATIENT, patient_availability),
            ResourceKind.THERAPIST: self._coerce_ranges(ResourceKind.THERAPIST, therapist_availability),
            ResourceKind.DEVICE: self._coerce_ranges(ResourceKind.DEVICE, device_availability),
        }
        bookings = self._coerce_bookings(existing_bookings)

        slots: List[CandidateSlot] = []
        for day in search_range.days():
            slots.extend(
                self._find_slots_for_day(
                    day=day,
                    resources=resources,
                    bookings=bookings,
                    duration_minutes=session_duration_minutes,
                )
            )

        return self._deduplicate(slots)

    @staticmethod
    def _coerce_ranges(
        kind: ResourceKind,
        availability: AvailabilityInput,
    ) -> Tuple[TimeOfDayRange, ...]:
        ranges = availability.ranges if isinstance(availability, ResourceAvailability) else tuple(availability)
        for entry in ranges:
            if not isinstance(entry, TimeOfDayRange):
                raise InvalidScheduleInputError(
                    f"{kind.value.title()} availability entries must be TimeOfDayRange, "
                    f"got {type(entry).__name__}"
                )
        return ranges

    @staticmethod
    def _coerce_bookings(bookings: Iterable[Booking]) -> List[Booking]:
        result = list(bookings)
        for booking in result:
            if not isinstance(booking, Booking):
                raise InvalidScheduleInputError(
                    f"Existing bookings must be Booking instances, got {type(booking).__name__}"
                )
        return result

    def _find_slots_for_day(
        self,
        day: Date,
        resources: Dict[ResourceKind, Tuple[TimeOfDayRange, ...]],
        bookings: Sequence[Booking],
        duration_minutes: int,
    ) -> List[CandidateSlot]:
        day_name = weekday_name(day)
        intervals: Dict[ResourceKind, List[TimeRange]] = {
            kind: [entry.on_date(day, self.timezone) for entry in ranges if entry.matches(day_name)]
            for kind, ranges in resources.items()
        }

        missing = [kind.value for kind, windows in intervals.items() if not windows]
        if missing:
            logger.debug("No %s availability on %s %s", ", ".join(missing), day_name, day)
            return []

        slots: List[CandidateSlot] = []
        for window_start, window_end in self._common_windows(intervals):
            for start in self._candidate_starts(window_start, window_end):
                end = start.add(minutes=duration_minutes)
                if end > window_end:
                    break
                if not self._fits_every_resource(start, end, intervals):
                    continue
                if any(booking.conflicts_with(start, end) for booking in bookings):
                    continue
                slots.append(CandidateSlot(date=day, start=start, end=end))

        return slots

    def _common_windows(self, intervals: Dict[ResourceKind, List[TimeRange]]) -> List[Window]:
        if self.strategy == INTERSECTION:
            return self._intersected_windows(intervals)
        return self._envelope_window(intervals)

    @staticmethod
    def _envelope_window(intervals: Dict[ResourceKind, List[TimeRange]]) -> List[Window]:
        """
        One combined window: latest start to earliest end over every interval.

        Secondary disjoint windows of a resource collapse into this envelope.
        """
        every_interval = [interval for windows in intervals.values() for interval in windows]
        overall_start = max(interval.start for interval in every_interval)
        overall_end = min(interval.end for interval in every_interval)

        if overall_end < overall_start:
            return []
        return [(overall_start, overall_end)]

    def _intersected_windows(self, intervals: Dict[ResourceKind, List[TimeRange]]) -> List[Window]:
        """Intersect the merged availability of all resources."""
        kinds = list(intervals.keys())
        result = self._merge_adjacent_ranges(intervals[kinds[0]])

        for kind in kinds[1:]:
            result = self._intersect_two_lists(result, self._merge_adjacent_ranges(intervals[kind]))
            if not result:
                return []

        return [(window.start, window.end) for window in result]

    def _intersect_two_lists(
        self,
        list1: List[TimeRange],
        list2: List[TimeRange],
    ) -> List[TimeRange]:
        """
        Calculate intersection of two lists of time ranges.

        Returns all overlapping periods between any ranges in list1 and list2.
        """
        intersections: List[TimeRange] = []

        for range1 in list1:
            for range2 in list2:
                intersection = range1.intersect(range2)
                if intersection:
                    intersections.append(intersection)

        return self._merge_adjacent_ranges(intersections)

    @staticmethod
    def _merge_adjacent_ranges(ranges: List[TimeRange]) -> List[TimeRange]:
        """
        Merge overlapping or adjacent time ranges.

        Example: [09:00-10:00, 10:00-11:00] -> [09:00-11:00]
        """
        if not ranges:
            return []

        sorted_ranges = sorted(ranges, key=lambda r: r.start)
        merged: List[TimeRange] = [sorted_ranges[0]]

        for current in sorted_ranges[1:]:
            last = merged[-1]
            if current.start <= last.end:
                merged[-1] = TimeRange(start=last.start, end=max(last.end, current.end))
            else:
                merged.append(current)

        return merged

    def _candidate_starts(self, window_start: DateTime, window_end: DateTime) -> Iterator[DateTime]:
        current = window_start
        while current <= window_end:
            yield current
            current = current.add(minutes=self.step_minutes)

    @staticmethod
    def _fits_every_resource(
        start: DateTime,
        end: DateTime,
        intervals: Dict[ResourceKind, List[TimeRange]],
    ) -> bool:
        last_minute = end.subtract(minutes=1)
        return all(
            any(window.contains(start) for window in windows)
            and any(window.contains(last_minute) for window in windows)
            for windows in intervals.values()
        )

    @staticmethod
    def _deduplicate(slots: List[CandidateSlot]) -> List[CandidateSlot]:
        seen = set()
        unique: List[CandidateSlot] = []
        for slot in slots:
            key = slot.key()
            if key in seen:
                continue
            seen.add(key)
            unique.append(slot)
        return unique


def find_available_slots(
    patient_availability: AvailabilityInput,
    therapist_availability: AvailabilityInput,
    device_availability: AvailabilityInput,
    existing_bookings: Iterable[Booking],
    session_duration_minutes: int,
    search_range: SearchRange,
    *,
    timezone: str = "UTC",
    step_minutes: int = DEFAULT_STEP_MINUTES,
    strategy: str = ENVELOPE,
) -> List[CandidateSlot]:
    """Convenience wrapper around ``SlotFinder.find_available_slots``."""
    finder = SlotFinder(timezone=timezone, step_minutes=step_minutes, strategy=strategy)
    return finder.find_available_slots(
        patient_availability=patient_availability,
        therapist_availability=therapist_availability,
        device_availability=device_availability,
        existing_bookings=existing_bookings,
        session_duration_minutes=session_duration_minutes,
        search_range=search_range,
    )
