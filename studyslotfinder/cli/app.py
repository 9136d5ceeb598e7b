"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..adapters.json_calendar_client import JsonCalendarClient
from ..config import AppConfig
from ..domain.exceptions import SchedulingError
from ..domain.models import AvailableSlot, ConflictReport, SlotQuery, TimeRange
from ..domain.slot_calculator import SlotCalculator
from ..services.scheduling_service import SchedulingService

app = typer.Typer(
    name="studyslotfinder",
    help="Find free study slots in your calendar's busy times",
    add_completion=False
)

console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
BusyOption = Annotated[
    Optional[Path],
    typer.Option("--busy", "-b", help="Free/busy JSON file. Defaults to busy_file from the config."),
]
CalendarOption = Annotated[
    Optional[List[str]],
    typer.Option("--calendar", help="Calendar id to include (repeatable). Defaults to all calendars."),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Print machine-readable JSON.")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Study slot finder: conflicts, free slots, alternatives and study plans.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    try:
        return AppConfig.load(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


def _parse_moment(value: str, tz: str, *, end_of_day: bool = False) -> DateTime:
    """
    Parse a CLI date or datetime.

    A plain date (YYYY-MM-DD) means the start of that day, or midnight at its
    end when ``end_of_day`` is set.
    """
    try:
        if len(value) == 10:
            day = pendulum.from_format(value, "YYYY-MM-DD", tz=tz)
            day = day.start_of("day")
            return day.add(days=1) if end_of_day else day

        moment = pendulum.parse(value, tz=tz)
    except ValueError as e:
        console.print(f"[red]Could not parse date '{escape(value)}': {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if not isinstance(moment, DateTime):
        console.print(f"[red]Expected a date or datetime, got '{escape(value)}'[/red]")
        raise typer.Exit(1)

    return moment.in_timezone(tz)


def _build_service(config: AppConfig, busy_file: Optional[Path]) -> SchedulingService:
    data_file = busy_file or config.busy_file
    if data_file is None:
        console.print(
            "[bold red]Error:[/bold red] No busy-time file given. "
            "Use --busy or set busy_file in the config."
        )
        raise typer.Exit(1)

    try:
        client = JsonCalendarClient(data_file)
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    return SchedulingService(
        calendar_client=client,
        slot_calculator=SlotCalculator(settings=config.engine_settings()),
        timezone=config.timezone,
    )


def _print_slots(slots: List[AvailableSlot], title: str) -> None:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Slot", style="bold")

    for idx, slot in enumerate(slots, 1):
        table.add_row(str(idx), slot.format_display())

    console.print()
    console.print(table)
    console.print()


def _print_report(report: ConflictReport) -> None:
    if not report.has_conflict:
        console.print(f"\n[bold green]✓ No conflicts for {report.requested}[/bold green]\n")
        return

    busy_lines = "\n".join(f"  • {interval}" for interval in report.result.conflicting_intervals)
    console.print(Panel.fit(
        f"[bold red]✗ {report.requested} conflicts with:[/bold red]\n{busy_lines}",
        title="Conflict"
    ))

    if report.suggested_alternatives:
        _print_slots(list(report.suggested_alternatives), "Suggested alternatives")
    else:
        console.print("[yellow]⚠ No alternatives found within the search horizon.[/yellow]\n")


@app.command()
def slots(
    start: Annotated[str, typer.Option("--start", help="Search start (YYYY-MM-DD or ISO datetime)")],
    end: Annotated[str, typer.Option("--end", help="Search end (YYYY-MM-DD or ISO datetime)")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Session length in minutes")] = None,
    break_minutes: Annotated[Optional[int], typer.Option("--break", help="Buffer between sessions in minutes")] = None,
    config_file: ConfigOption = None,
    busy_file: BusyOption = None,
    calendars: CalendarOption = None,
    as_json: JsonOption = False,
):
    """
    List every available study slot in a date range.

    Examples:

        studyslotfinder slots --start 2024-11-25 --end 2024-11-26 --busy busy.json

        studyslotfinder slots --start 2024-11-25T08:00 --end 2024-11-25T12:00 -d 30 --break 10 -b busy.json
    """
    config = _load_config(config_file)
    tz = config.timezone
    service = _build_service(config, busy_file)

    try:
        query = SlotQuery(
            search_start=_parse_moment(start, tz),
            search_end=_parse_moment(end, tz, end_of_day=True),
            duration_minutes=duration if duration is not None else config.defaults.duration_minutes,
            break_minutes=break_minutes if break_minutes is not None else config.defaults.break_minutes,
        )
        found = asyncio.run(service.find_available_slots(
            calendar_ids=calendars or config.calendars,
            query=query,
            constraints=config.defaults.to_constraints(),
        ))
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(data=[slot.to_dict() for slot in found])
        return

    if not found:
        console.print(
            "[yellow]⚠ No available slots found.[/yellow]\n"
            "Try a longer range or a shorter session."
        )
        return

    _print_slots(found, f"{len(found)} available slot(s)")


@app.command("next-slot")
def next_slot(
    start_from: Annotated[Optional[str], typer.Option("--from", help="Search from (default: now)")] = None,
    until: Annotated[Optional[str], typer.Option("--until", help="Search until (default: max_search_days ahead)")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Session length in minutes")] = None,
    break_minutes: Annotated[Optional[int], typer.Option("--break", help="Buffer around the session in minutes")] = None,
    config_file: ConfigOption = None,
    busy_file: BusyOption = None,
    calendars: CalendarOption = None,
    as_json: JsonOption = False,
):
    """
    Show the next free study slot.
    """
    config = _load_config(config_file)
    tz = config.timezone
    service = _build_service(config, busy_file)
    calculator = SlotCalculator(settings=config.engine_settings())

    search_from = _parse_moment(start_from, tz) if start_from else pendulum.now(tz)
    search_until = _parse_moment(until, tz, end_of_day=True) if until else None

    try:
        query = calculator.next_slot_query(
            search_from,
            duration_minutes=duration if duration is not None else config.defaults.duration_minutes,
            break_minutes=break_minutes,
            end_search_at=search_until,
        )
        slot = asyncio.run(service.find_next_free_slot(
            calendar_ids=calendars or config.calendars,
            query=query,
            constraints=config.defaults.to_constraints(),
        ))
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(data=slot.to_dict() if slot else None)
        return

    if slot is None:
        console.print("[yellow]⚠ No free slot before the end of the search range.[/yellow]")
        return

    console.print(f"\n[bold green]✓ Next free slot:[/bold green] {slot.format_display()}\n")


@app.command()
def check(
    start: Annotated[str, typer.Argument(help="Requested start (ISO datetime)")],
    end: Annotated[str, typer.Argument(help="Requested end (ISO datetime)")],
    max_results: Annotated[Optional[int], typer.Option("--max", help="Maximum number of alternatives")] = None,
    horizon: Annotated[Optional[int], typer.Option("--horizon", help="Search horizon in minutes")] = None,
    config_file: ConfigOption = None,
    busy_file: BusyOption = None,
    calendars: CalendarOption = None,
    as_json: JsonOption = False,
):
    """
    Check a requested session for conflicts and suggest alternatives.

    Exits with code 2 when the session conflicts.
    """
    config = _load_config(config_file)
    tz = config.timezone
    service = _build_service(config, busy_file)

    try:
        requested = TimeRange(start=_parse_moment(start, tz), end=_parse_moment(end, tz))
        report = asyncio.run(service.check_conflicts(
            calendar_ids=calendars or config.calendars,
            requested=requested,
            max_results=max_results,
            search_horizon_minutes=horizon,
            constraints=config.defaults.to_constraints(),
        ))
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(data=report.to_dict())
    else:
        _print_report(report)

    if report.has_conflict:
        raise typer.Exit(2)


@app.command()
def plan(
    deadline: Annotated[str, typer.Option("--deadline", help="Deadline (YYYY-MM-DD or ISO datetime)")],
    total_minutes: Annotated[int, typer.Option("--total", help="Total study time needed in minutes")],
    session: Annotated[Optional[int], typer.Option("--session", help="Session length in minutes")] = None,
    start_from: Annotated[Optional[str], typer.Option("--from", help="Plan from (default: now)")] = None,
    config_file: ConfigOption = None,
    busy_file: BusyOption = None,
    calendars: CalendarOption = None,
    as_json: JsonOption = False,
):
    """
    Spread study sessions over the days before a deadline.
    """
    config = _load_config(config_file)
    tz = config.timezone
    service = _build_service(config, busy_file)
    planner = config.planner

    now = _parse_moment(start_from, tz) if start_from else pendulum.now(tz)

    try:
        sessions = asyncio.run(service.plan_study_sessions(
            calendar_ids=calendars or config.calendars,
            now=now,
            deadline=_parse_moment(deadline, tz, end_of_day=True),
            total_study_minutes=total_minutes,
            session_minutes=session if session is not None else planner.session_minutes,
            break_minutes=planner.break_minutes,
            day_start_hour=planner.day_start_hour,
            day_end_hour=planner.day_end_hour,
            constraints=config.defaults.to_constraints(),
        ))
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(data=[slot.to_dict() for slot in sessions])
        return

    if not sessions:
        console.print("[yellow]⚠ No study sessions fit before the deadline.[/yellow]")
        return

    _print_slots(sessions, f"Study plan ({len(sessions)} session(s))")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]studyslotfinder[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
