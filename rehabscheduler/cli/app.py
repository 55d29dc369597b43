"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, List, NoReturn, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.generation_client import HttpTextGenerator, MockTextGenerator
from ..adapters.json_data_source import JsonDataSource, RecordDataSource
from ..adapters.mock_data_source import MockSchedulingDataSource
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import DataSourceError, SchedulingError
from ..domain.models import SearchRange
from ..domain.slot_finder import SlotFinder
from ..services.assistant import (
    ReportGenerator,
    ScheduleOptimizer,
    ScheduleRequest,
    TherapyAdvisor,
    TherapyReadings,
)
from ..services.scheduling import SchedulingService

app = typer.Typer(
    name="rehabscheduler",
    help="Find therapy session slots and run assistant workflows for a rehabilitation clinic",
    add_completion=False,
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
DataOption = Annotated[
    Optional[Path],
    typer.Option("--data", help="Path to a clinic data JSON file. Overrides data_file from the config."),
]
MockOption = Annotated[bool, typer.Option("--mock", help="Use built-in sample data and a mock generator.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """
    Load the configuration.

    An explicitly given file must exist; the default location is optional and
    falls back to built-in defaults.
    """
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()


def _build_data_source(config: AppConfig, data_file: Optional[Path], mock: bool) -> RecordDataSource:
    if mock:
        return MockSchedulingDataSource(timezone=config.timezone)

    path = data_file or config.data_file
    if path is None:
        raise DataSourceError("No clinic data file configured. Use --data, set data_file, or pass --mock.")
    return JsonDataSource(path=path, timezone=config.timezone)


def _build_generator(config: AppConfig, mock: bool):
    if mock:
        return MockTextGenerator()
    return HttpTextGenerator(
        endpoint=config.generator.endpoint,
        model=config.generator.model,
        api_key=config.generator.get_api_key(),
        timeout_seconds=config.generator.timeout_seconds,
    )


def _build_scheduling_service(config: AppConfig, data_file: Optional[Path], mock: bool) -> SchedulingService:
    slot_finder = SlotFinder(
        timezone=config.timezone,
        step_minutes=config.scheduling.step_minutes,
        strategy=config.scheduling.strategy,
    )
    return SchedulingService(
        data_source=_build_data_source(config, data_file, mock),
        slot_finder=slot_finder,
    )


def _determine_search_range(config: AppConfig, start: Optional[str], end: Optional[str]) -> SearchRange:
    """Explicit dates win; otherwise search ``search_days`` days from today."""
    if start:
        return SearchRange.from_strings(start, end)

    today = pendulum.today(config.timezone).date()
    if end:
        return SearchRange.from_strings(today.to_date_string(), end)
    return SearchRange.starting(today, config.scheduling.search_days)


def _fail(exc: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {exc}")
    raise typer.Exit(1)


@app.command()
def find(
    patient: Annotated[str, typer.Option("--patient", "-p", help="Patient identifier (name as used in availability).")],
    therapist: Annotated[str, typer.Option("--therapist", "-t", help="Therapist identifier.")],
    device: Annotated[str, typer.Option("--device", "-r", help="Device (robot) identifier.")],
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD)")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Session duration in minutes")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print slots as JSON.")] = False,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Find candidate session slots where patient, therapist and device are all free.

    Examples:

        rehabscheduler find -p "John Doe" -t "Dr. Roberts" -r Robot-Arm-01 --mock

        rehabscheduler find -p "Jane Smith" -t "Dr. Roberts" -r Robot-Arm-01 \\
            --start 2024-11-25 --end 2024-11-29 --duration 60 --data clinic.json
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        search_range = _determine_search_range(config, start, end)
        session_duration = duration if duration is not None else config.scheduling.session_duration_minutes
        service = _build_scheduling_service(config, data_file, mock)

        slots = asyncio.run(
            service.find_slots(
                patient_id=patient,
                therapist_id=therapist,
                device_id=device,
                search_range=search_range,
                session_duration_minutes=session_duration,
            )
        )
    except (SchedulingError, FileNotFoundError, ValueError) as exc:
        _fail(exc)

    if as_json:
        console.print_json(json.dumps([slot.to_dict() for slot in slots]))
        return

    console.print()
    console.print("[bold cyan]Search summary:[/bold cyan]")
    console.print(f"   Patient: {patient} | Therapist: {therapist} | Device: {device}")
    console.print(f"   Range: {search_range.start.to_date_string()} - {search_range.end.to_date_string()}")
    console.print(f"   Duration: {session_duration} minutes")
    if mock:
        console.print("[yellow]   Using sample data[/yellow]")
    console.print()

    if not slots:
        console.print(
            "[yellow]No available slots found.[/yellow]\n"
            "Try a longer date range or a shorter session."
        )
    else:
        console.print(f"[bold green]{len(slots)} available slot(s):[/bold green]\n")
        for slot in slots:
            console.print(f"  {slot.format_display()}")
    console.print()


@app.command()
def optimize(
    patient: Annotated[str, typer.Option("--patient", "-p", help="Patient identifier.")],
    therapist: Annotated[str, typer.Option("--therapist", "-t", help="Therapist identifier.")],
    device: Annotated[str, typer.Option("--device", "-r", help="Device (robot) identifier.")],
    sessions: Annotated[int, typer.Option("--sessions", "-n", help="Number of sessions to schedule.")] = 1,
    goal: Annotated[str, typer.Option("--goal", help="Scheduling goal in plain words.")] = "",
    constraint: Annotated[
        Optional[List[str]],
        typer.Option("--constraint", help="A scheduling rule; repeat for several."),
    ] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD)")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Session duration in minutes")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Ask the assistant to pick sessions among the available slots.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        search_range = _determine_search_range(config, start, end)
        service = _build_scheduling_service(config, data_file, mock)
        optimizer = ScheduleOptimizer(scheduling_service=service, generator=_build_generator(config, mock))

        request = ScheduleRequest(
            patient_id=patient,
            therapist_id=therapist,
            device_id=device,
            start_date=search_range.start,
            end_date=search_range.end,
            session_duration_minutes=(
                duration if duration is not None else config.scheduling.session_duration_minutes
            ),
            sessions_requested=sessions,
            scheduling_goal=goal,
            constraints=constraint or [],
        )
        suggestion = asyncio.run(optimizer.optimize(request))
    except (SchedulingError, FileNotFoundError, ValueError) as exc:
        _fail(exc)

    table = Table(title="Suggested sessions", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold yellow")
    table.add_column("Time")
    table.add_column("Patient")
    table.add_column("Therapist", style="dim")
    for slot in suggestion.suggested_slots:
        table.add_row(slot.date, f"{slot.start_time} - {slot.end_time}", slot.patient_name, slot.therapist_id)

    console.print()
    console.print(table)
    console.print(Panel.fit(suggestion.justification, title="Justification"))
    console.print()


@app.command()
def report(
    patient: str = typer.Argument(..., help="Patient id or name"),
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Generate a therapy progress report for a patient.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        service = _build_scheduling_service(config, data_file, mock)
        record = asyncio.run(service.find_patient(patient))
        if record is None:
            raise DataSourceError(f"Unknown patient: {patient!r}")

        therapy_report = ReportGenerator(generator=_build_generator(config, mock)).generate(record)
    except (SchedulingError, FileNotFoundError, ValueError) as exc:
        _fail(exc)

    console.print()
    console.print(Panel(therapy_report.executive_summary, title=f"Executive summary: {record.name}"))
    console.print(Panel(therapy_report.progress_analysis, title="Progress analysis"))
    console.print(Panel(therapy_report.future_recommendations, title="Future recommendations"))
    console.print()


@app.command()
def adjust(
    heart_rate: float = typer.Option(..., "--heart-rate", help="Heart rate in bpm"),
    muscle_load: float = typer.Option(..., "--muscle-load", help="Muscle load in percent"),
    range_of_motion: float = typer.Option(..., "--range-of-motion", help="Range of motion in degrees"),
    resistance: float = typer.Option(..., "--resistance", help="Current robot resistance in percent"),
    stage: str = typer.Option("active", "--stage", help="Session stage (warm-up, active, cool-down)"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Therapist notes"),
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Recommend robot parameter adjustments from real-time readings.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        readings = TherapyReadings(
            heart_rate=heart_rate,
            muscle_load=muscle_load,
            range_of_motion=range_of_motion,
            robot_resistance=resistance,
            session_stage=stage,
            therapist_notes=notes,
        )
        adjustment = TherapyAdvisor(generator=_build_generator(config, mock)).recommend(readings)
    except (SchedulingError, FileNotFoundError, ValueError) as exc:
        _fail(exc)

    console.print(Panel.fit(
        f"[bold]Robot resistance:[/bold] {adjustment.adjusted_robot_resistance:g}%\n"
        f"[bold]Target range of motion:[/bold] {adjustment.adjusted_range_of_motion:g} degrees\n\n"
        f"{adjustment.recommendation}",
        title="Recommended adjustment",
    ))


@app.command()
def list_patients(
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    mock: MockOption = False,
):
    """
    List all patients in the clinic data.
    """
    try:
        config = _load_config(config_file)
        patients = asyncio.run(_build_data_source(config, data_file, mock).load_patients())
    except (SchedulingError, FileNotFoundError, ValueError) as exc:
        _fail(exc)

    if not patients:
        console.print("[yellow]No patients found.[/yellow]")
        return

    table = Table(title="Patients", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold yellow")
    table.add_column("Age", justify="right")
    table.add_column("Condition")
    table.add_column("Sessions", justify="right")

    for patient in patients:
        table.add_row(patient.patient_id, patient.name, str(patient.age), patient.condition, str(len(patient.sessions)))

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]rehabscheduler[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
