"""
Tests for the command line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from rehabscheduler.cli.app import app

runner = CliRunner()

CLINIC_DATA = {
    "patients": [
        {"id": "p001", "name": "John Doe", "age": 58, "condition": "Post-Stroke Hemiparesis"},
    ],
    "availability": {
        "patient": [
            {"patientId": "John Doe", "day": "Monday", "startTime": "09:00 AM", "endTime": "12:00 PM"},
        ],
        "therapist": [
            {"therapistId": "Dr. Roberts", "day": "Any", "startTime": "08:00 AM", "endTime": "05:00 PM"},
        ],
        "device": [
            {"deviceId": "Robot-Arm-01", "day": "Any", "startTime": "08:00 AM", "endTime": "06:00 PM"},
        ],
    },
    "bookings": [
        {"patientName": "Emily Brown", "date": "2024-11-25", "time": "10:00 AM", "duration": 45},
    ],
}

FIND_ARGS = ["find", "-p", "John Doe", "-t", "Dr. Roberts", "-r", "Robot-Arm-01"]


@pytest.fixture
def config_file(tmp_path):
    (tmp_path / "clinic.json").write_text(json.dumps(CLINIC_DATA), encoding="utf-8")
    path = tmp_path / "config.yaml"
    path.write_text("timezone: UTC\ndata_file: clinic.json\n", encoding="utf-8")
    return path


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "rehabscheduler" in result.output


def test_find_as_json(config_file):
    result = runner.invoke(
        app,
        FIND_ARGS + ["--start", "2024-11-25", "--duration", "45", "--json", "--config", str(config_file)],
    )

    assert result.exit_code == 0, result.output
    slots = json.loads(result.output)
    assert [slot["startTime"] for slot in slots] == ["09:00 AM", "09:15 AM", "10:45 AM", "11:00 AM", "11:15 AM"]
    assert slots[0] == {"date": "2024-11-25", "startTime": "09:00 AM", "endTime": "09:45 AM"}


def test_find_prints_slots(config_file):
    result = runner.invoke(app, FIND_ARGS + ["--start", "2024-11-25", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "5 available slot(s)" in result.output
    assert "Monday, 2024-11-25 | 09:00 AM - 09:45 AM (45 min)" in result.output


def test_find_without_slots(config_file):
    result = runner.invoke(app, FIND_ARGS + ["--start", "2024-11-26", "--config", str(config_file)])

    assert result.exit_code == 0
    assert "No available slots found" in result.output


def test_find_with_sample_data(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("timezone: UTC\n", encoding="utf-8")

    result = runner.invoke(
        app,
        FIND_ARGS + ["--start", "2024-11-25", "--json", "--mock", "--config", str(config)],
    )

    assert result.exit_code == 0, result.output
    assert len(json.loads(result.output)) == 10


def test_find_without_data_file(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("timezone: UTC\n", encoding="utf-8")

    result = runner.invoke(app, FIND_ARGS + ["--config", str(config)])

    assert result.exit_code == 1
    assert "No clinic data file configured" in result.output


def test_find_rejects_bad_dates(config_file):
    result = runner.invoke(
        app,
        FIND_ARGS + ["--start", "2024-11-27", "--end", "2024-11-25", "--config", str(config_file)],
    )

    assert result.exit_code == 1
    assert "Error" in result.output


def test_missing_config_file(tmp_path):
    result = runner.invoke(app, FIND_ARGS + ["--config", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_list_patients(config_file):
    result = runner.invoke(app, ["list-patients", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "John Doe" in result.output


def test_optimize_with_mock(config_file):
    result = runner.invoke(
        app,
        ["optimize"] + FIND_ARGS[1:] + ["--start", "2024-11-25", "--mock", "--config", str(config_file)],
    )

    assert result.exit_code == 0, result.output
    assert "Suggested sessions" in result.output
    assert "2024-11-25" in result.output


def test_report_with_mock(config_file):
    result = runner.invoke(app, ["report", "Jane Smith", "--mock", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "Jane Smith" in result.output


def test_report_unknown_patient(config_file):
    result = runner.invoke(app, ["report", "Nobody", "--config", str(config_file)])

    assert result.exit_code == 1
    assert "Unknown patient" in result.output


def test_adjust_with_mock(config_file):
    result = runner.invoke(
        app,
        [
            "adjust",
            "--heart-rate", "130",
            "--muscle-load", "60",
            "--range-of-motion", "45",
            "--resistance", "20",
            "--mock",
            "--config", str(config_file),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "overexertion" in result.output


def test_adjust_rejects_invalid_readings(config_file):
    result = runner.invoke(
        app,
        [
            "adjust",
            "--heart-rate", "90",
            "--muscle-load", "150",
            "--range-of-motion", "45",
            "--resistance", "20",
            "--mock",
            "--config", str(config_file),
        ],
    )

    assert result.exit_code == 1
