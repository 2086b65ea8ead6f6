"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from pendulum import Date
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..adapters import build_store
from ..config import AppConfig, get_default_config_path
from ..domain.availability import project_selection, selected_slots
from ..domain.calendar import parse_date, shift_week, start_of_week
from ..domain.exceptions import SlotBookingError
from ..domain.models import Actor, SlotStatus, TimeSlot
from ..domain.slot_generator import SlotGenerator
from ..services.booking_service import BookingService

app = typer.Typer(
    name="slotbooker",
    help="Book one-hour session slots with a mandatory break after each session",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
TokenOption = Annotated[
    Optional[str],
    typer.Option("--token", envvar="SLOTBOOKER_ACCESS_TOKEN", help="Bearer token for the firestore backend."),
]

STATUS_STYLES = {
    SlotStatus.AVAILABLE: "cyan",
    SlotStatus.SELECTED: "bold green",
    SlotStatus.DISABLED: "dim",
}


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Reserve one-hour slots on a day, respecting opening hours and breaks.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _build_service(config: AppConfig, token: Optional[str] = None) -> BookingService:
    store = build_store(config.store, access_token=token)
    generator = SlotGenerator(config=config.get_schedule_config())
    return BookingService(store=store, slot_generator=generator)


def _parse_day(value: str, config: AppConfig) -> Date:
    try:
        return parse_date(value, config.schedule.timezone)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


def _render_slots(day: Date, slots: List[TimeSlot], config: AppConfig) -> None:
    """Print the slot grid of a day as a table."""
    if config.global_message:
        console.print(Panel.fit(config.global_message, border_style="cyan"))

    table = Table(
        title=f"Slots for {day.format('dddd D MMMM YYYY')}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Time", style="bold")
    table.add_column("Status")
    table.add_column("Reason", style="dim")

    for slot in slots:
        style = STATUS_STYLES[slot.status]
        table.add_row(
            slot.label,
            f"[{style}]{slot.status.value.lower()}[/{style}]",
            slot.reason.display_name() if slot.reason else "",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def slots(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD or 'today')")],
    select: Annotated[Optional[List[str]], typer.Option("--select", "-s", help="Slot to preview as selected (HH:MM). Repeatable.")] = None,
    config_file: ConfigOption = None,
    token: TokenOption = None,
):
    """
    Show the slot grid of a day.

    Examples:

        slotbooker slots 2024-11-25

        slotbooker slots today --select 10:00 --select 12:00
    """
    try:
        config = _load_config(config_file)
        day = _parse_day(date, config)
        service = _build_service(config, token)

        day_slots = asyncio.run(service.load_slots(day))
        projected = project_selection(day_slots, select or [])
        _render_slots(day, projected, config)

        chosen = selected_slots(projected)
        if chosen:
            console.print(
                f"[bold cyan]Selected:[/bold cyan] {', '.join(slot.label for slot in chosen)}\n"
            )

        ignored = sorted(set(select or []) - {slot.label for slot in chosen})
        if ignored:
            console.print(f"[yellow]Not selectable: {', '.join(ignored)}[/yellow]\n")

    except (FileNotFoundError, SlotBookingError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def book(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD or 'today')")],
    labels: Annotated[List[str], typer.Argument(help="Slots to book (HH:MM)")],
    actor_id: Annotated[str, typer.Option("--actor-id", help="Identifier of the person booking")],
    actor_name: Annotated[str, typer.Option("--actor-name", help="Display name of the person booking")],
    config_file: ConfigOption = None,
    token: TokenOption = None,
):
    """
    Book one or more slots of a day.
    """
    try:
        config = _load_config(config_file)
        day = _parse_day(date, config)
        service = _build_service(config, token)
        actor = Actor(id=actor_id, display_name=actor_name)

        result = asyncio.run(service.commit(day, labels, actor))

        if result.committed_count:
            console.print(
                f"\n[bold green]✓ Booking confirmed for {result.committed_count} slot(s): "
                f"{', '.join(result.committed)}[/bold green]"
            )
        else:
            console.print("\n[yellow]⚠ No slot was booked.[/yellow]")

        if result.dropped:
            console.print(f"[yellow]Skipped (no longer available): {', '.join(result.dropped)}[/yellow]")
        if result.absorbed:
            console.print(f"[yellow]Already booked meanwhile: {', '.join(result.absorbed)}[/yellow]")

        # Refresh from the store so the grid reflects what was actually written
        _render_slots(day, asyncio.run(service.load_slots(day)), config)

    except (FileNotFoundError, SlotBookingError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def bookings(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD or 'today')")],
    config_file: ConfigOption = None,
    token: TokenOption = None,
):
    """
    List the bookings of a day (admin view).
    """
    try:
        config = _load_config(config_file)
        day = _parse_day(date, config)
        service = _build_service(config, token)

        day_bookings = asyncio.run(service.list_bookings(day))

        if not day_bookings:
            console.print(f"[yellow]No bookings on {day.to_date_string()}.[/yellow]")
            return

        table = Table(
            title=f"Bookings for {day.to_date_string()}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Time", style="bold yellow")
        table.add_column("Name")
        table.add_column("Actor ID", style="dim")
        table.add_column("Booked at", style="dim")

        for booking in day_bookings:
            table.add_row(
                booking.time,
                booking.actor_name,
                booking.actor_id,
                booking.booked_at.in_timezone(config.schedule.timezone).format("YYYY-MM-DD HH:mm"),
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, SlotBookingError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def remove(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD or 'today')")],
    label: Annotated[str, typer.Argument(help="Slot to free (HH:MM)")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
    config_file: ConfigOption = None,
    token: TokenOption = None,
):
    """
    Remove a single booking (admin).
    """
    try:
        config = _load_config(config_file)
        day = _parse_day(date, config)
        service = _build_service(config, token)

        if not yes and not typer.confirm(f"Really remove the {label} booking on {day.to_date_string()}?"):
            console.print("Aborted.")
            raise typer.Exit(0)

        if asyncio.run(service.remove(day, label)):
            console.print(f"[green]✓ Booking {label} on {day.to_date_string()} removed.[/green]")
        else:
            console.print(f"[yellow]No booking {label} on {day.to_date_string()}.[/yellow]")

    except (FileNotFoundError, SlotBookingError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def week(
    date: Annotated[str, typer.Option("--date", "-d", help="Any day of the week to show")] = "today",
    offset: Annotated[int, typer.Option("--offset", help="Weeks to move forward (or backward if negative)")] = 0,
    config_file: ConfigOption = None,
    token: TokenOption = None,
):
    """
    Show how many slots are still free on each day of a week.
    """
    try:
        config = _load_config(config_file)
        week_start = shift_week(start_of_week(_parse_day(date, config)), offset)
        service = _build_service(config, token)

        overview = asyncio.run(service.week_overview(week_start))
        week_end = week_start.add(days=6)

        table = Table(
            title=f"{week_start.format('D MMMM')} - {week_end.format('D MMMM YYYY')}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Day", style="bold")
        table.add_column("Date")
        table.add_column("Free slots", justify="right")

        total = config.schedule.slot_count
        for day, free in overview.items():
            style = "cyan" if free else "dim"
            table.add_row(day.format("ddd"), day.to_date_string(), f"[{style}]{free}/{total}[/{style}]")

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, SlotBookingError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotbooker[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
