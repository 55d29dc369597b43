"""
Patient records and therapy session progress figures.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from pendulum import DateTime


@dataclass(frozen=True)
class SessionSample:
    """One reading taken during a robot-assisted session."""
    minute: int
    range_of_motion: float  # degrees
    robot_resistance: float  # percent
    muscle_load: float  # percent


@dataclass
class TherapySession:
    """A completed therapy session and the readings captured during it."""
    session_id: str
    date: DateTime
    duration_minutes: int
    notes: str = ""
    samples: List[SessionSample] = field(default_factory=list)

    def peak_range_of_motion(self) -> float:
        """Highest range of motion reached; 0 when nothing was recorded."""
        return max([0.0] + [sample.range_of_motion for sample in self.samples])

    def peak_robot_resistance(self) -> float:
        """Highest robot resistance applied; 0 when nothing was recorded."""
        return max([0.0] + [sample.robot_resistance for sample in self.samples])


@dataclass
class Patient:
    """A patient in the rehabilitation programme."""
    patient_id: str
    name: str
    age: int
    condition: str
    medical_history: str = ""
    therapy_goals: List[str] = field(default_factory=list)
    sessions: List[TherapySession] = field(default_factory=list)

    def sessions_in_order(self) -> List[TherapySession]:
        return sorted(self.sessions, key=lambda session: session.date)

    def latest_session(self) -> Optional[TherapySession]:
        ordered = self.sessions_in_order()
        return ordered[-1] if ordered else None

    def range_of_motion_gain(self) -> float:
        """
        Change in peak range of motion between the first and latest session.

        Returns 0 when fewer than two sessions exist.
        """
        ordered = self.sessions_in_order()
        if len(ordered) < 2:
            return 0.0
        return ordered[-1].peak_range_of_motion() - ordered[0].peak_range_of_motion()
