"""CLI commands for MediBook."""

import asyncio
import uuid
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from medibook.config import get_settings

app = typer.Typer(
    name="medibook",
    help="Appointment booking with doctor availability validation",
    add_completion=False,
)
console = Console()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
):
    """Start the REST API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print(f"Starting MediBook API server on {host}:{port}")
    uvicorn.run(
        "medibook.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def init_db():
    """Create the database tables."""
    from medibook.core.database import Database

    async def _run() -> None:
        database = Database.from_settings(get_settings())
        try:
            await database.create_all()
        finally:
            await database.dispose()

    asyncio.run(_run())
    console.print("[green]Database tables created.[/green]")


@app.command()
def check_slot(
    doctor_id: str = typer.Argument(..., help="Doctor UUID"),
    timestamp: str = typer.Argument(..., help="Requested time, e.g. 2026-03-02T10:00:00"),
    exclude: Optional[str] = typer.Option(
        None, "--exclude", "-x", help="Appointment UUID to ignore (when rescheduling)"
    ),
):
    """Check whether a slot could be booked, without booking it."""
    from medibook.core.database import Database
    from medibook.scheduling.booking import BookingService
    from medibook.scheduling.errors import StorageError
    from medibook.scheduling.timeutil import parse_timestamp

    try:
        did = uuid.UUID(doctor_id)
        exclude_id = uuid.UUID(exclude) if exclude else None
        requested_at = parse_timestamp(timestamp)
    except ValueError as e:
        console.print(f"[red]Invalid input: {e}[/red]")
        raise typer.Exit(2)

    settings = get_settings()

    async def _run():
        database = Database.from_settings(settings)
        try:
            async with database.session() as session:
                service = BookingService(session, failure_policy=settings.availability_failure_policy)
                return await service.check(did, requested_at, exclude_id)
        finally:
            await database.dispose()

    try:
        decision = asyncio.run(_run())
    except StorageError as e:
        console.print(f"[red]Availability lookup failed: {e}[/red]")
        raise typer.Exit(3)

    table = Table(title="Slot Check")
    table.add_column("Doctor")
    table.add_column("Requested")
    table.add_column("Result")
    table.add_column("Reason")
    result = "[green]BOOKABLE[/green]" if decision.accepted else "[red]REJECTED[/red]"
    table.add_row(
        str(decision.doctor_id),
        decision.requested_at.isoformat(),
        result,
        decision.reason.value if decision.reason else "-",
    )
    console.print(table)

    if not decision.accepted:
        console.print(f"[red]{decision.reason.value}[/red]: {decision.message}")
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    from medibook import __version__

    console.print(f"MediBook v{__version__}")
