"""
Command line entry point for the AeroBook booking engine.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Tuple

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .database.config import initialize_database
from .errors import BookingEngineError
from .models.booking import BookingModel
from .models.enums import BookingStatus, PaymentStatus, UserRole
from .models.user import SessionContext
from .security.password import (
    generate_random_password,
    hash_password,
    password_requirements,
    validate_password,
    verify_password,
)
from .services.authentication import AuthenticationService
from .services.booking_engine import BookingEngine, create_booking_engine
from .services.booking_simulator import BookingSimulator
from .services.reports import BookingReportService
from .stores.sql import SqlStore
from .utils.config import EngineConfig, configure_logging, load_config

app = typer.Typer(help="AeroBook flight booking engine")
console = Console()


def _open() -> Tuple[EngineConfig, SqlStore, BookingEngine]:
    config = load_config()
    db_config = initialize_database(config.database_url, echo=config.database_echo)
    store = SqlStore(db_config)
    return config, store, create_booking_engine(config, store)


def _fail(error: Exception) -> None:
    console.print(f"[bold red]✗ {type(error).__name__}:[/bold red] {error}")
    raise typer.Exit(code=1)


def _print_booking(booking: BookingModel, title: str = "Booking") -> None:
    status_color = {
        BookingStatus.CONFIRMED: "green",
        BookingStatus.PENDING: "yellow",
        BookingStatus.CANCELLED: "red",
    }[booking.booking_status]
    body = (
        f"[bold]PNR:[/bold] [cyan]{booking.pnr}[/cyan]\n"
        f"[bold]Booking ID:[/bold] {booking.booking_id}\n"
        f"[bold]Flight:[/bold] {booking.flight_code} (#{booking.flight_id})\n"
        f"[bold]Departure:[/bold] {booking.departure_time:%Y-%m-%d %H:%M}\n"
        f"[bold]Arrival:[/bold] {booking.arrival_time:%Y-%m-%d %H:%M}\n"
        f"[bold]Amount:[/bold] {booking.amount:.2f}\n"
        f"[bold]Status:[/bold] [{status_color}]{booking.booking_status.value}[/{status_color}]\n"
        f"[bold]Payment:[/bold] {booking.payment_status.value}"
    )
    console.print(Panel(body, title=f"[bold]{title}[/bold]", box=box.ROUNDED))


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    configure_logging(load_config())


@app.command("init-db")
def init_db(
    reset: bool = typer.Option(False, "--reset", help="Drop every table first"),
) -> None:
    """Create the database tables."""
    config = load_config()
    db_config = initialize_database(config.database_url, echo=config.database_echo, create_tables=False)
    if reset:
        db_config.drop_tables()
    db_config.create_tables()
    if not db_config.test_connection():
        console.print("[bold red]✗ Database did not answer after setup[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Database ready at {config.database_url}")


@app.command("seed-demo")
def seed_demo(
    capacity: int = typer.Option(1, help="Seats on the demo flight"),
    price: str = typer.Option("250.00", help="Fare of the demo flight"),
) -> None:
    """Create two airports, an airline, an admin, a user and flight AA100."""
    _, store, _ = _open()
    try:
        jfk = store.add_airport(airport_code="JFK", airport_name="John F. Kennedy International",
                                city="New York", country="USA")
        lax = store.add_airport(airport_code="LAX", airport_name="Los Angeles International",
                                city="Los Angeles", country="USA")
        owner = store.add_owner(company_name="American Airlines", company_code="AA",
                                email="ops@aa.example.com", password_hash=hash_password("owner123"))
        store.add_admin(username="admin", password_hash=hash_password("admin123"))
        user = store.add_user(first_name="Demo", last_name="Passenger",
                              email="demo@example.com", password_hash=hash_password("demo123"))
        departure = (datetime.now() + timedelta(days=7)).replace(second=0, microsecond=0)
        flight = store.add_flight(
            flight_code="AA100", flight_name="New York - Los Angeles", owner_id=owner.owner_id,
            departure_airport_id=jfk.airport_id, destination_airport_id=lax.airport_id,
            departure_time=departure, arrival_time=departure + timedelta(hours=6),
            capacity=capacity, price=Decimal(price),
        )
    except (BookingEngineError, ValueError) as e:
        _fail(e)

    console.print(f"[green]✓[/green] Flight {flight.flight_code} (id {flight.flight_id}), "
                  f"{flight.capacity} seats at {flight.price}")
    console.print(f"[green]✓[/green] User {user.full_name} (id {user.user_id})")


@app.command()
def availability(flight_id: int) -> None:
    """Show seats left on a flight."""
    _, _, engine = _open()
    try:
        flight = engine.flights.get_flight(flight_id)
        seats = engine.available_seats(flight_id)
    except BookingEngineError as e:
        _fail(e)
    color = "green" if seats > 0 else "red"
    console.print(f"{flight.flight_code}: [{color}]{seats}[/{color}] of {flight.capacity} seats available")


@app.command()
def search(
    departure_airport_id: int,
    destination_airport_id: int,
    on: Optional[datetime] = typer.Option(None, "--date", formats=["%Y-%m-%d"], help="Departure day"),
) -> None:
    """List upcoming flights on a route with the seats left on each."""
    _, _, engine = _open()
    try:
        results = engine.search_flights(
            departure_airport_id, destination_airport_id, on_date=on.date() if on else None
        )
    except (BookingEngineError, ValueError) as e:
        _fail(e)

    table = Table(title="Flights", box=box.ROUNDED)
    for column in ("ID", "Flight", "Departure", "Arrival", "Price", "Seats"):
        table.add_column(column)
    for r in results:
        f = r.flight
        seats = "[red]full[/red]" if r.is_full else f"[green]{r.available_seats}[/green]"
        table.add_row(str(f.flight_id), f.flight_code, f"{f.departure_time:%Y-%m-%d %H:%M}",
                      f"{f.arrival_time:%Y-%m-%d %H:%M}", f"{f.price:.2f}", seats)
    console.print(table)
    if not results:
        console.print("[yellow]No flights found[/yellow]")


@app.command()
def login(
    role: UserRole,
    identifier: str = typer.Argument(..., help="Email, airline code or admin username"),
    password: str = typer.Option(..., prompt=True, hide_input=True),
) -> None:
    """Check credentials and show the session they open."""
    _, store, _ = _open()
    try:
        context = AuthenticationService(store).authenticate(role, identifier, password)
    except (BookingEngineError, ValueError) as e:
        _fail(e)
    console.print(f"[green]✓[/green] Logged in as {context.role.value} {context.principal_id}")


@app.command()
def book(user_id: int, flight_id: int) -> None:
    """Book a seat for a user."""
    _, _, engine = _open()
    try:
        booking = engine.create_booking(user_id, flight_id)
    except BookingEngineError as e:
        _fail(e)
    _print_booking(booking, "Booking confirmed")


@app.command()
def cancel(
    booking_id: int,
    as_user: Optional[int] = typer.Option(None, help="Cancel as this user (ownership is checked)"),
) -> None:
    """Cancel a booking before departure."""
    _, _, engine = _open()
    context = SessionContext(principal_id=as_user) if as_user is not None else None
    try:
        booking = engine.cancel_booking(booking_id, context=context)
    except BookingEngineError as e:
        _fail(e)
    _print_booking(booking, "Booking cancelled")


@app.command()
def pay(booking_id: int, status: PaymentStatus) -> None:
    """Settle a booking's payment as COMPLETED or FAILED."""
    _, _, engine = _open()
    try:
        booking = engine.set_payment_status(booking_id, status)
    except BookingEngineError as e:
        _fail(e)
    _print_booking(booking, "Payment updated")


@app.command("set-status")
def set_status(
    booking_id: int,
    status: BookingStatus,
    admin_id: int = typer.Option(..., help="Administrator performing the override"),
) -> None:
    """Administrative override of a booking's status."""
    _, _, engine = _open()
    context = SessionContext(principal_id=admin_id, role=UserRole.ADMIN)
    try:
        booking = engine.set_booking_status(booking_id, status, context)
    except BookingEngineError as e:
        _fail(e)
    _print_booking(booking, "Status overridden")


@app.command()
def lookup(pnr: str) -> None:
    """Find a booking by its PNR."""
    _, _, engine = _open()
    try:
        booking = engine.find_by_pnr(pnr)
    except BookingEngineError as e:
        _fail(e)
    _print_booking(booking)


@app.command()
def history(user_id: int) -> None:
    """List a user's bookings, newest first."""
    _, _, engine = _open()
    try:
        bookings = engine.booking_history(user_id)
    except BookingEngineError as e:
        _fail(e)

    table = Table(title=f"Bookings of user {user_id}", box=box.ROUNDED)
    table.add_column("PNR", style="cyan")
    table.add_column("Flight")
    table.add_column("Departure")
    table.add_column("Amount", justify="right")
    table.add_column("Status")
    table.add_column("Payment")
    for b in bookings:
        table.add_row(b.pnr, b.flight_code, f"{b.departure_time:%Y-%m-%d %H:%M}",
                      f"{b.amount:.2f}", b.booking_status.value, b.payment_status.value)
    console.print(table)


@app.command()
def stats(
    flight_id: Optional[int] = typer.Argument(None, help="Flight to report on"),
    owner: Optional[int] = typer.Option(None, help="Report on every flight of this airline"),
) -> None:
    """Booking statistics for a flight or an airline."""
    _, store, _ = _open()
    reports = BookingReportService(store, store)
    try:
        if owner is not None:
            summary = reports.owner_summary(owner)
            rows = summary.flights
        elif flight_id is not None:
            summary = None
            rows = [reports.flight_stats(flight_id)]
        else:
            raise typer.BadParameter("Give a flight id or --owner")
    except BookingEngineError as e:
        _fail(e)

    table = Table(title="Booking statistics", box=box.ROUNDED)
    for column in ("Flight", "Departure", "Capacity", "Confirmed", "Available", "Occupancy", "Revenue"):
        table.add_column(column)
    for s in rows:
        table.add_row(s.flight_code, f"{s.departure_time:%m-%d %H:%M}", str(s.capacity),
                      str(s.confirmed_bookings), str(s.available_seats),
                      f"{s.occupancy_rate:.1f}%", f"{s.revenue:.2f}")
    console.print(table)
    if summary is not None:
        console.print(f"[bold]Total bookings:[/bold] {summary.total_bookings}  "
                      f"[bold]Revenue:[/bold] [green]{summary.total_revenue:.2f}[/green]")


@app.command()
def simulate(
    flight_id: int,
    users: int = typer.Option(20, min=1, help="Concurrent booking attempts"),
) -> None:
    """Race many users for the same flight and check nothing is oversold."""
    _, store, engine = _open()
    try:
        run_tag = datetime.now().strftime("%Y%m%d%H%M%S%f")
        user_ids = [
            store.add_user(first_name="Sim", last_name=f"User{i}",
                           email=f"sim-{run_tag}-{i}@example.com").user_id
            for i in range(users)
        ]
        result = BookingSimulator(engine).run_simulation(flight_id, user_ids)
    except BookingEngineError as e:
        _fail(e)

    table = Table(title=f"Simulation {result.simulation_id[:8]}", box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Concurrent users", str(result.num_concurrent_users))
    table.add_row("Capacity", str(result.capacity))
    table.add_row("Booked", str(result.successful_bookings))
    table.add_row("Refused (full)", str(result.exhausted_attempts))
    table.add_row("Other failures", str(result.other_failures))
    table.add_row("Avg response", f"{result.average_response_time_ms:.1f} ms")
    table.add_row("Oversold", "[red]yes[/red]" if result.oversold else "[green]no[/green]")
    console.print(table)
    if result.oversold:
        raise typer.Exit(code=1)


@app.command("hash-password")
def hash_password_cmd(
    password: str = typer.Option(..., prompt=True, hide_input=True),
) -> None:
    """Print the salted hash of a password."""
    valid, errors = validate_password(password)
    if not valid:
        for error in errors:
            console.print(f"[yellow]![/yellow] {error}")
        console.print(password_requirements())
        raise typer.Exit(code=1)
    console.print(hash_password(password))


@app.command("verify-password")
def verify_password_cmd(
    stored_hash: str,
    password: str = typer.Option(..., prompt=True, hide_input=True),
) -> None:
    """Check a password against a stored hash."""
    if verify_password(password, stored_hash):
        console.print("[green]✓ Password matches[/green]")
    else:
        console.print("[red]✗ Password does not match[/red]")
        raise typer.Exit(code=1)


@app.command("generate-password")
def generate_password_cmd(
    length: Optional[int] = typer.Option(None, help="Password length (minimum 6)"),
) -> None:
    """Generate a random password that satisfies the strength policy."""
    config = load_config()
    console.print(generate_random_password(length or config.generated_password_length))


if __name__ == "__main__":
    app()
