"""
Domain models for availability windows, bookings and candidate slots.
"""

import re
from dataclasses import dataclass
from datetime import date as stdlib_date
from datetime import time
from enum import Enum
from typing import Iterator, List, Tuple

import pendulum
from pendulum import Date, DateTime

from .exceptions import InvalidScheduleInputError

WEEKDAY_NAMES: Tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
ANY_DAY = "Any"

_CLOCK_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")


def parse_clock_time(value: str) -> time:
    """
    Parse a 12-hour clock string such as ``"09:00 AM"`` or ``"12:30 PM"``.

    Raises:
        InvalidScheduleInputError: If the string is not a valid AM/PM time.
    """
    if not isinstance(value, str):
        raise InvalidScheduleInputError(f"Time must be a string like '09:00 AM', got {value!r}")

    match = _CLOCK_PATTERN.match(value)
    if not match:
        raise InvalidScheduleInputError(f"Unparseable time {value!r}; expected format 'hh:mm AM/PM'")

    hours, minutes, period = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    if not 1 <= hours <= 12 or not 0 <= minutes <= 59:
        raise InvalidScheduleInputError(f"Time out of range: {value!r}")

    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0

    return time(hour=hours, minute=minutes)


def format_clock_time(value: time) -> str:
    """Format a time of day as ``hh:mm AM/PM``."""
    hour = value.hour % 12 or 12
    period = "AM" if value.hour < 12 else "PM"
    return f"{hour:02d}:{value.minute:02d} {period}"


def normalize_day(value: str) -> str:
    """Normalise a weekday name (or ``Any``) to title case."""
    candidate = (value or "").strip().title()
    if candidate != ANY_DAY and candidate not in WEEKDAY_NAMES:
        raise InvalidScheduleInputError(
            f"Unknown day {value!r}; use one of {', '.join(WEEKDAY_NAMES)} or '{ANY_DAY}'"
        )
    return candidate


def weekday_name(day: stdlib_date) -> str:
    """English weekday name for a calendar date."""
    return WEEKDAY_NAMES[day.weekday()]


def to_pendulum_date(value: stdlib_date) -> Date:
    """Coerce any ``date`` (or ``datetime``) to a pendulum ``Date``."""
    return pendulum.date(value.year, value.month, value.day)


def at_wall_clock(day: stdlib_date, wall_time: time, timezone: str) -> DateTime:
    """Combine a calendar day and a wall-clock time into an aware instant."""
    return pendulum.datetime(
        day.year,
        day.month,
        day.day,
        wall_time.hour,
        wall_time.minute,
        tz=timezone,
    )


class ResourceKind(str, Enum):
    """The three resources that must be free for a therapy session."""

    PATIENT = "patient"
    THERAPIST = "therapist"
    DEVICE = "device"


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidScheduleInputError(
                f"Start time {self.start} must be before end time {self.end}"
            )

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, instant: DateTime) -> bool:
        """Closed-interval membership: both boundaries count as inside."""
        return self.start <= instant <= self.end

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        start = max(self.start, other.start)
        end = min(self.end, other.end)

        return TimeRange(start=start, end=end)

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD hh:mm A')} - {self.end.format('hh:mm A')}"


@dataclass(frozen=True)
class TimeOfDayRange:
    """
    A recurring wall-clock window ``[start, end)`` on a weekday.

    ``day`` is a weekday name or ``Any`` for every day of the week.
    """
    day: str
    start: time
    end: time

    def __post_init__(self):
        object.__setattr__(self, "day", normalize_day(self.day))
        if self.start >= self.end:
            raise InvalidScheduleInputError(
                f"Availability on {self.day} must start before it ends: "
                f"{format_clock_time(self.start)} - {format_clock_time(self.end)}"
            )

    @classmethod
    def parse(cls, day: str, start_time: str, end_time: str) -> "TimeOfDayRange":
        """Build a range from a day name and two ``hh:mm AM/PM`` strings."""
        return cls(day=day, start=parse_clock_time(start_time), end=parse_clock_time(end_time))

    def matches(self, day_name: str) -> bool:
        return self.day == ANY_DAY or self.day == day_name

    def on_date(self, day: stdlib_date, timezone: str) -> TimeRange:
        """Anchor this window to a concrete calendar day."""
        return TimeRange(
            start=at_wall_clock(day, self.start, timezone),
            end=at_wall_clock(day, self.end, timezone),
        )

    def __str__(self) -> str:
        return f"{self.day} {format_clock_time(self.start)} - {format_clock_time(self.end)}"


@dataclass(frozen=True)
class ResourceAvailability:
    """All availability windows declared for one resource."""
    resource_id: str
    kind: ResourceKind
    ranges: Tuple[TimeOfDayRange, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "kind", ResourceKind(self.kind))
        object.__setattr__(self, "ranges", tuple(self.ranges))

    def ranges_for(self, day_name: str) -> List[TimeOfDayRange]:
        """Entries whose day is ``day_name`` or the ``Any`` wildcard."""
        return [entry for entry in self.ranges if entry.matches(day_name)]

    def intervals_on(self, day: stdlib_date, timezone: str) -> List[TimeRange]:
        """Absolute availability windows on a given calendar day."""
        return [entry.on_date(day, timezone) for entry in self.ranges_for(weekday_name(day))]


@dataclass(frozen=True)
class Booking:
    """
    An existing, committed appointment.

    Only used as a read-only conflict filter when searching for slots.
    """
    start: DateTime
    duration_minutes: int = 60
    resources: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise InvalidScheduleInputError(
                f"Booking duration must be positive, got {self.duration_minutes}"
            )
        if not isinstance(self.start, DateTime):
            object.__setattr__(self, "start", pendulum.instance(self.start))
        object.__setattr__(self, "resources", tuple(self.resources))

    @classmethod
    def from_wall_clock(
        cls,
        day: stdlib_date,
        start_time: str,
        timezone: str,
        duration_minutes: int = 60,
        resources: Tuple[str, ...] = (),
    ) -> "Booking":
        """Create a booking from a calendar day and a ``hh:mm AM/PM`` time."""
        start = at_wall_clock(day, parse_clock_time(start_time), timezone)
        return cls(start=start, duration_minutes=duration_minutes, resources=resources)

    @property
    def end(self) -> DateTime:
        return self.start.add(minutes=self.duration_minutes)

    def conflicts_with(self, start: DateTime, end: DateTime) -> bool:
        """
        True when ``[start, end)`` overlaps this booking.

        A candidate starting exactly when the booking starts always conflicts.
        """
        return (start < self.end and end > self.start) or start == self.start


@dataclass(frozen=True)
class CandidateSlot:
    """
    A computed, not yet committed session slot.
    """
    date: Date
    start: DateTime
    end: DateTime

    @property
    def date_string(self) -> str:
        return self.date.format("YYYY-MM-DD")

    @property
    def start_time(self) -> str:
        return self.start.format("hh:mm A")

    @property
    def end_time(self) -> str:
        return self.end.format("hh:mm A")

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() / 60)

    def key(self) -> Tuple[str, str, str]:
        """Structural identity used for deduplication."""
        return (self.date_string, self.start_time, self.end_time)

    def to_dict(self) -> dict:
        return {
            "date": self.date_string,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, YYYY-MM-DD | hh:mm AM - hh:mm PM (N min)
        """
        return (
            f"{weekday_name(self.date)}, {self.date_string} | "
            f"{self.start_time} - {self.end_time} ({self.duration_minutes()} min)"
        )


@dataclass(frozen=True)
class SearchRange:
    """Inclusive calendar-date window searched day by day."""
    start: Date
    end: Date | None = None

    def __post_init__(self):
        start = to_pendulum_date(self.start)
        end = to_pendulum_date(self.end) if self.end is not None else start
        if start > end:
            raise InvalidScheduleInputError(
                f"Search range start {start} must not be after its end {end}"
            )
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def from_strings(cls, start: str, end: str | None = None) -> "SearchRange":
        """Parse ``YYYY-MM-DD`` strings into a search range."""
        try:
            start_date = pendulum.from_format(start, "YYYY-MM-DD").date()
            end_date = pendulum.from_format(end, "YYYY-MM-DD").date() if end else start_date
        except ValueError as exc:
            raise InvalidScheduleInputError(f"Invalid date in search range: {exc}") from exc
        return cls(start=start_date, end=end_date)

    @classmethod
    def starting(cls, start: stdlib_date, days: int) -> "SearchRange":
        """A range of ``days`` consecutive dates beginning at ``start``."""
        if days < 1:
            raise InvalidScheduleInputError(f"Search range must cover at least one day, got {days}")
        start_date = to_pendulum_date(start)
        return cls(start=start_date, end=start_date.add(days=days - 1))

    def days(self) -> Iterator[Date]:
        current = self.start
        while current <= self.end:
            yield current
            current = current.add(days=1)

    def contains(self, day: stdlib_date) -> bool:
        return self.start <= to_pendulum_date(day) <= self.end

    def __len__(self) -> int:
        return self.end.toordinal() - self.start.toordinal() + 1
