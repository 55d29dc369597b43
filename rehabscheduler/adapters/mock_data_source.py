"""
Mock clinic data source for running without a data file.
"""

from typing import Any, Dict, Optional

import pendulum
from pendulum import Date

from .json_data_source import RecordDataSource


class MockSchedulingDataSource(RecordDataSource):
    """
    Data source seeded with a small sample clinic.

    Bookings and session history are placed relative to ``today`` so the
    sample stays meaningful whenever it is used.
    """

    def __init__(self, timezone: str = "UTC", today: Optional[Date] = None):
        super().__init__(timezone=timezone)
        self.today = today or pendulum.today(timezone).date()

    def _load_raw_document(self) -> Dict[str, Any]:
        return build_sample_clinic_data(self.today)


def build_sample_clinic_data(today: Date) -> Dict[str, Any]:
    """Sample patients, availability and bookings around ``today``."""

    def days_from_today(days: int) -> str:
        return today.add(days=days).to_date_string()

    def session_date(days_ago: int) -> str:
        return f"{today.subtract(days=days_ago).to_date_string()}T10:00:00"

    return {
        "patients": [
            {
                "id": "p001",
                "name": "John Doe",
                "age": 58,
                "condition": "Post-Stroke Hemiparesis",
                "medicalHistory": (
                    "History of hypertension and a cerebrovascular accident 3 months ago, "
                    "resulting in right-sided weakness."
                ),
                "therapyGoals": [
                    "Improve active range of motion in the right shoulder and elbow.",
                    "Increase muscle strength in the right arm.",
                    "Enhance coordination for activities of daily living.",
                ],
                "sessions": [
                    {
                        "id": "s001",
                        "date": session_date(7),
                        "duration": 30,
                        "notes": "Patient showed good effort but fatigued quickly. Focus on endurance next session.",
                        "data": [
                            {"time": 5, "rangeOfMotion": 30, "robotResistance": 10, "muscleLoad": 15},
                            {"time": 10, "rangeOfMotion": 35, "robotResistance": 12, "muscleLoad": 20},
                            {"time": 15, "rangeOfMotion": 40, "robotResistance": 15, "muscleLoad": 25},
                            {"time": 20, "rangeOfMotion": 38, "robotResistance": 15, "muscleLoad": 22},
                            {"time": 25, "rangeOfMotion": 35, "robotResistance": 12, "muscleLoad": 18},
                        ],
                    },
                    {
                        "id": "s002",
                        "date": session_date(2),
                        "duration": 30,
                        "notes": "Improved endurance. Patient maintained higher resistance for longer.",
                        "data": [
                            {"time": 5, "rangeOfMotion": 35, "robotResistance": 15, "muscleLoad": 20},
                            {"time": 10, "rangeOfMotion": 42, "robotResistance": 18, "muscleLoad": 28},
                            {"time": 15, "rangeOfMotion": 45, "robotResistance": 20, "muscleLoad": 35},
                            {"time": 20, "rangeOfMotion": 48, "robotResistance": 20, "muscleLoad": 33},
                            {"time": 25, "rangeOfMotion": 45, "robotResistance": 18, "muscleLoad": 29},
                        ],
                    },
                ],
            },
            {
                "id": "p002",
                "name": "Jane Smith",
                "age": 45,
                "condition": "Rotator Cuff Tear (Post-operative)",
                "medicalHistory": "Rotator cuff injury during sports. Arthroscopic surgery 6 weeks ago.",
                "therapyGoals": [
                    "Regain full passive range of motion.",
                    "Strengthen rotator cuff and surrounding musculature.",
                    "Return to pain-free overhead activities.",
                ],
                "sessions": [
                    {
                        "id": "s003",
                        "date": session_date(10),
                        "duration": 45,
                        "notes": "Initial session focused on passive range of motion and pain management.",
                        "data": [
                            {"time": 10, "rangeOfMotion": 60, "robotResistance": 5, "muscleLoad": 8},
                            {"time": 20, "rangeOfMotion": 65, "robotResistance": 5, "muscleLoad": 10},
                            {"time": 30, "rangeOfMotion": 70, "robotResistance": 7, "muscleLoad": 12},
                            {"time": 40, "rangeOfMotion": 68, "robotResistance": 7, "muscleLoad": 11},
                        ],
                    },
                    {
                        "id": "s004",
                        "date": session_date(5),
                        "duration": 45,
                        "notes": "Good progress in range of motion. Introduced light strengthening exercises.",
                        "data": [
                            {"time": 10, "rangeOfMotion": 75, "robotResistance": 8, "muscleLoad": 15},
                            {"time": 20, "rangeOfMotion": 80, "robotResistance": 10, "muscleLoad": 20},
                            {"time": 30, "rangeOfMotion": 85, "robotResistance": 10, "muscleLoad": 22},
                            {"time": 40, "rangeOfMotion": 82, "robotResistance": 8, "muscleLoad": 18},
                        ],
                    },
                ],
            },
            {
                "id": "p003",
                "name": "Samuel Green",
                "age": 67,
                "condition": "Arthritis in Knee",
                "medicalHistory": "Long-standing osteoarthritis in the left knee, managed conservatively.",
                "therapyGoals": [
                    "Increase joint mobility and reduce stiffness.",
                    "Strengthen quadriceps and hamstrings to support the knee.",
                    "Improve walking gait and balance.",
                ],
                "sessions": [
                    {
                        "id": "s005",
                        "date": session_date(3),
                        "duration": 25,
                        "notes": "Patient reports less pain after the session. Focus on controlled movements.",
                        "data": [
                            {"time": 5, "rangeOfMotion": 80, "robotResistance": 10, "muscleLoad": 12},
                            {"time": 10, "rangeOfMotion": 85, "robotResistance": 12, "muscleLoad": 15},
                            {"time": 15, "rangeOfMotion": 90, "robotResistance": 12, "muscleLoad": 18},
                            {"time": 20, "rangeOfMotion": 88, "robotResistance": 10, "muscleLoad": 16},
                        ],
                    },
                ],
            },
        ],
        "availability": {
            "patient": [
                {"patientId": "John Doe", "day": "Monday", "startTime": "09:00 AM", "endTime": "12:00 PM"},
                {"patientId": "John Doe", "day": "Wednesday", "startTime": "09:00 AM", "endTime": "12:00 PM"},
                {"patientId": "Jane Smith", "day": "Any", "startTime": "10:00 AM", "endTime": "04:00 PM"},
                {"patientId": "Samuel Green", "day": "Any", "startTime": "01:00 PM", "endTime": "05:00 PM"},
            ],
            "therapist": [
                {"therapistId": "Dr. Roberts", "day": "Any", "startTime": "08:00 AM", "endTime": "05:00 PM"},
            ],
            "device": [
                {"deviceId": "Robot-Arm-01", "day": "Any", "startTime": "08:00 AM", "endTime": "06:00 PM"},
            ],
        },
        "bookings": [
            {
                "patientName": "Emily Brown",
                "date": days_from_today(1),
                "time": "01:00 PM",
                "duration": 60,
                "therapistId": "Dr. Roberts",
                "deviceId": "Robot-Arm-01",
            },
            {
                "patientName": "Samuel Green",
                "date": days_from_today(2),
                "time": "02:00 PM",
                "duration": 30,
                "therapistId": "Dr. Roberts",
                "deviceId": "Robot-Arm-01",
            },
        ],
    }
