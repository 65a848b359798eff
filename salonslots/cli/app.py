"""
Main CLI application using Typer.
"""

from pathlib import Path
from typing import Annotated, Optional, Tuple

import pendulum
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..adapters import build_data_source
from ..config import AppConfig, DataSourceConfig, get_default_config_path
from ..domain.exceptions import SalonSlotsError
from ..domain.models import Booking, format_clock_time
from ..domain.slot_calculator import SlotCalculator
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="salonslots",
    help="Check appointment availability and manage salon bookings",
    add_completion=False
)

console = Console()

WEEKDAY_NAMES = {
    0: "Sunday",
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
}

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
DataOption = Annotated[
    Optional[Path],
    typer.Option("--data", help="Use this JSON data file instead of the configured data source."),
]


def _load_config(config_file: Optional[Path], data_file: Optional[Path]) -> AppConfig:
    """
    Load the configuration, optionally pointing it at a JSON data file.

    Without a config file, ``--data`` alone runs with default settings.
    """
    config_path = config_file or get_default_config_path()

    if data_file is not None and config_file is None and not config_path.exists():
        config = AppConfig()
    else:
        config = AppConfig.load_from_yaml(config_path)

    if data_file is not None:
        config.data_source = DataSourceConfig(kind="json", path=str(data_file))

    return config


def _build_service(
    config_file: Optional[Path],
    data_file: Optional[Path],
) -> Tuple[AppConfig, AvailabilityService]:
    """Wire configuration, data source and calculator together."""
    config = _load_config(config_file, data_file)

    calculator = SlotCalculator(
        slot_interval_minutes=config.schedule.slot_interval_minutes,
        default_open_time=config.schedule.get_open_time(),
        default_close_time=config.schedule.get_close_time(),
        timezone=config.timezone,
    )
    service = AvailabilityService(
        data_source=build_data_source(config.data_source),
        slot_calculator=calculator,
    )
    return config, service


def _fail(error: Exception) -> typer.Exit:
    console.print(f"[bold red]Error:[/bold red] {error}")
    return typer.Exit(1)


def _print_booking(booking: Booking, title: str) -> None:
    console.print(Panel.fit(
        f"[bold]Booking:[/bold] #{booking.id}\n"
        f"[bold]Service:[/bold] {booking.service_type}\n"
        f"[bold]When:[/bold] {booking.date} {booking.time_label}\n"
        f"[bold]Client:[/bold] {booking.name} ({booking.email})\n"
        f"[bold]Status:[/bold] {booking.status.value}\n"
        f"[bold]Deposit paid:[/bold] {'yes' if booking.deposit_paid else 'no'}",
        title=title
    ))


@app.command()
def slots(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    service_id: Annotated[str, typer.Argument(help="Service id (see 'services')")],
    as_json: Annotated[bool, typer.Option("--json", help="Print the slots as JSON.")] = False,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Show the appointment slots for a service on a date.

    Examples:

        salonslots slots 2024-11-25 3

        salonslots slots 2024-11-25 3 --json --data salon_data.json
    """
    try:
        _, service = _build_service(config_file, data_file)
        result = service.get_available_slots(date=date, service_id=service_id)

        if as_json:
            console.print_json(data=[slot.to_dict() for slot in result])
            return

        if not result:
            console.print(f"[yellow]No appointment slots on {date}.[/yellow]")
            return

        table = Table(title=f"Slots on {date}", show_header=True, header_style="bold cyan")
        table.add_column("Time", style="bold")
        table.add_column("Status")

        for slot in result:
            status = "[green]available[/green]" if slot.available else "[red]booked[/red]"
            table.add_row(slot.time, status)

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        raise _fail(e)


@app.command()
def open_dates(
    start: Annotated[Optional[str], typer.Option("--start", help="First date (YYYY-MM-DD). Defaults to today.")] = None,
    days: Annotated[Optional[int], typer.Option("--days", "-n", help="Number of days to check.")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List the dates on which the salon is open.
    """
    try:
        config, service = _build_service(config_file, data_file)
        first_day = start or pendulum.now(config.timezone).to_date_string()
        span = days if days is not None else config.schedule.booking_horizon_days

        dates = service.find_open_dates(start=first_day, days=span)

        if not dates:
            console.print("[yellow]The salon is closed on every day in that range.[/yellow]")
            return

        console.print(f"[bold green]{len(dates)} open day(s):[/bold green]")
        for iso_date in dates:
            weekday = pendulum.parse(iso_date).format("dddd")
            console.print(f"  {iso_date} ({weekday})")

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        raise _fail(e)


@app.command()
def hours(
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Show the weekly business hours.
    """
    try:
        config, service = _build_service(config_file, data_file)
        business_hours = service.list_business_hours()

        if not business_hours:
            console.print("[yellow]No business hours configured.[/yellow]")
            return

        table = Table(
            title=f"{config.salon_name} - Business Hours",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Day", style="bold yellow")
        table.add_column("Hours")
        table.add_column("Break", style="dim")

        for entry in business_hours:
            window = entry.window()
            if window is None:
                table.add_row(WEEKDAY_NAMES[entry.day_of_week], "[red]Closed[/red]", "")
                continue

            pause = ""
            if window.has_break:
                pause = f"{format_clock_time(window.break_start)} - {format_clock_time(window.break_end)}"
            table.add_row(
                WEEKDAY_NAMES[entry.day_of_week],
                f"{format_clock_time(window.open_time)} - {format_clock_time(window.close_time)}",
                pause,
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        raise _fail(e)


@app.command()
def services(
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List all bookable services.
    """
    try:
        _, service = _build_service(config_file, data_file)
        catalogue = service.list_services()

        if not catalogue:
            console.print("[yellow]No services defined.[/yellow]")
            return

        table = Table(title="Services", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="bold yellow")
        table.add_column("Name")
        table.add_column("Duration")
        table.add_column("Price", justify="right")

        for entry in catalogue:
            price = f"${entry.price / 100:.2f}" if entry.price is not None else ""
            table.add_row(str(entry.id), entry.name, entry.display_duration, price)

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        raise _fail(e)


@app.command()
def book(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    service_id: Annotated[str, typer.Argument(help="Service id")],
    name: Annotated[str, typer.Option("--name", help="Client name")],
    email: Annotated[str, typer.Option("--email", help="Client email")],
    phone: Annotated[str, typer.Option("--phone", help="Client phone number")],
    notes: Annotated[Optional[str], typer.Option("--notes", help="Notes for the stylist")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Book an appointment if the slot is still available.
    """
    try:
        _, service = _build_service(config_file, data_file)
        booking = service.book_appointment(
            date=date,
            time=time,
            service_id=service_id,
            name=name,
            email=email,
            phone=phone,
            notes=notes,
        )
        _print_booking(booking, title="Booking created")

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        raise _fail(e)


@app.command()
def set_status(
    booking_id: Annotated[str, typer.Argument(help="Booking id")],
    status: Annotated[str, typer.Argument(help="pending, confirmed or cancelled")],
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Change the status of a booking.
    """
    try:
        _, service = _build_service(config_file, data_file)
        booking = service.update_booking_status(booking_id, status)
        _print_booking(booking, title="Status updated")

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        raise _fail(e)


@app.command()
def deposit_paid(
    booking_id: Annotated[str, typer.Argument(help="Booking id")],
    unpaid: Annotated[bool, typer.Option("--unpaid", help="Mark the deposit as not paid.")] = False,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Record that a booking's deposit has been paid.
    """
    try:
        _, service = _build_service(config_file, data_file)
        booking = service.mark_deposit_paid(booking_id, paid=not unpaid)
        _print_booking(booking, title="Deposit updated")

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        raise _fail(e)


def _print_booking_table(entries, title: str) -> None:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold yellow")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Service")
    table.add_column("Client")
    table.add_column("Status")
    table.add_column("Deposit")

    for booking in entries:
        table.add_row(
            str(booking.id),
            booking.date,
            booking.time_label,
            booking.service_type,
            booking.name,
            booking.status.value,
            "paid" if booking.deposit_paid else "",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def bookings(
    email: Annotated[Optional[str], typer.Option("--email", help="Only show this client's bookings.")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List bookings, optionally for one client.
    """
    try:
        _, service = _build_service(config_file, data_file)
        entries = service.list_bookings(email=email)

        if not entries:
            console.print("[yellow]No bookings found.[/yellow]")
            return

        _print_booking_table(entries, title=f"Bookings for {email}" if email else "Bookings")

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        raise _fail(e)


@app.command()
def reminders(
    date: Annotated[Optional[str], typer.Option("--date", help="Appointment date (YYYY-MM-DD). Defaults to tomorrow.")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List the confirmed bookings whose clients are due a reminder.

    Sending the reminder itself is left to the mail tooling.
    """
    try:
        _, service = _build_service(config_file, data_file)
        entries = service.upcoming_confirmed(date)

        if not entries:
            console.print("[yellow]No confirmed bookings need a reminder.[/yellow]")
            return

        console.print(f"[bold green]{len(entries)} reminder(s) to send:[/bold green]")
        _print_booking_table(entries, title="Reminders")

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        raise _fail(e)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
