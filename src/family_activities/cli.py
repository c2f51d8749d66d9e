"""
CLI interface for Family Activities.
Uses Typer for commands and Rich for output.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from family_activities.config import get_settings
from family_activities.models import AdminEventStatus, SchemaType, init_db, reset_db, session_scope
from family_activities.models.enums import Severity
from family_activities.services.admin_event_service import AdminEventError, AdminEventService
from family_activities.services.conversion_service import ConversionBatch, ConversionService, get_review_status

app = typer.Typer(
    name="family-activities",
    help="Convert and review scraped family-activity listings",
    no_args_is_help=True,
)

console = Console()

SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "dim",
}

STATUS_STYLES = {
    AdminEventStatus.PENDING: "yellow",
    AdminEventStatus.APPROVED: "green",
    AdminEventStatus.REJECTED: "red",
}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for every command."""
    level = logging.DEBUG if verbose else getattr(logging, get_settings().log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _load_json(path: Path):
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Could not read {path}: {e}[/red]")
        raise typer.Exit(1)


def _parse_schema_type(value: Optional[str]) -> Optional[SchemaType]:
    if not value:
        return None
    try:
        return SchemaType(value.lower())
    except ValueError:
        console.print(f"[red]Invalid schema type: {value}[/red]")
        raise typer.Exit(1)


def _score_style(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 60:
        return "yellow"
    return "red"


def print_batch(batch: ConversionBatch) -> None:
    """Render a conversion batch as tables."""
    table = Table(title="Conversion Results", box=box.ROUNDED, show_lines=True)
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", width=30)
    table.add_column("Location", width=25)
    table.add_column("Date", width=11)
    table.add_column("Score", justify="right", width=6)
    table.add_column("Review", width=13)

    for activity, diagnostics in batch:
        review = get_review_status(diagnostics)
        table.add_row(
            str(diagnostics.record_index),
            activity.title if activity else "[red]-[/red]",
            activity.location.name if activity else "-",
            (activity.schedule.start_date or "-") if activity else "-",
            Text(str(diagnostics.confidence_score), style=_score_style(diagnostics.confidence_score)),
            review.replace("_", " "),
        )
    console.print(table)

    issues = Table(title="Issues", box=box.ROUNDED)
    issues.add_column("#", style="dim", width=4)
    issues.add_column("Severity", width=8)
    issues.add_column("Type", width=15)
    issues.add_column("Field", width=16)
    issues.add_column("Message / Suggestion")
    for diagnostics in batch.diagnostics:
        for issue in diagnostics.issues:
            if issue.severity == Severity.INFO:
                continue
            issues.add_row(
                str(diagnostics.record_index),
                Text(issue.severity.value, style=SEVERITY_STYLES[issue.severity]),
                issue.type.value,
                issue.field,
                f"{issue.message}\n[dim]{issue.suggestion}[/dim]",
            )
    if issues.row_count:
        console.print(issues)

    summary = batch.summary()
    console.print(Panel.fit(
        f"Records: {summary['records']}\n"
        f"Activities: [green]{summary['activities']}[/green]\n"
        f"Failures: [red]{summary['failures']}[/red]\n"
        f"Average confidence: {summary['average_confidence']}\n"
        f"Container: {summary['container_key'] or '-'}",
        title="Summary",
        border_style="blue",
    ))


# ============================================================================
# Database Commands
# ============================================================================
@app.command("init")
def init_database(
    reset: bool = typer.Option(False, "--reset", help="Drop all tables first (deletes stored events)"),
):
    """Initialize the database (creates tables if they don't exist)."""
    settings = get_settings()
    console.print(f"[blue]Initializing database:[/blue] {settings.database_url}")
    if reset:
        if not typer.confirm("Delete all stored admin events?"):
            raise typer.Abort()
        reset_db()
    else:
        init_db()
    console.print("[green]Database initialized successfully![/green]")


@app.command("status")
def show_status():
    """Show database location and review counts."""
    settings = get_settings()

    console.print(Panel.fit(
        f"[bold]{settings.app_name}[/bold]\n"
        f"Database: {settings.get_db_path()}\n"
        f"Default city: {settings.default_city} ({settings.default_timezone})",
        title="System Status",
        border_style="blue",
    ))

    with session_scope() as session:
        counts = AdminEventService(session).count_by_status()
    console.print(
        "  ".join(f"[{STATUS_STYLES[AdminEventStatus(status)]}]{status}: {count}[/]" for status, count in counts.items())
    )


# ============================================================================
# Conversion Commands
# ============================================================================
@app.command("convert")
def convert_file(
    path: Path = typer.Argument(..., help="JSON file with raw extraction output"),
    schema_type: Optional[str] = typer.Option(None, "--schema-type", "-t", help="events, activities, venues or custom"),
    source_url: Optional[str] = typer.Option(None, "--url", "-u", help="Page the data was extracted from"),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
):
    """Convert a raw extraction file and show diagnostics."""
    payload = _load_json(path)
    schema = _parse_schema_type(schema_type)
    batch = ConversionService().convert_all(
        payload,
        schema_type=schema.value if schema else None,
        source_url=source_url,
    )

    if as_json:
        typer.echo(json.dumps(batch.to_dict(), indent=2))
        return
    print_batch(batch)


# ============================================================================
# Admin Event Commands
# ============================================================================
events_app = typer.Typer(help="Manage extraction submissions awaiting review")
app.add_typer(events_app, name="events")


@events_app.command("submit")
def submit_event(
    path: Path = typer.Argument(..., help="JSON file with raw extraction output"),
    source_url: Optional[str] = typer.Option(None, "--url", "-u", help="Page the data was extracted from"),
    schema_type: str = typer.Option("events", "--schema-type", "-t", help="events, activities, venues or custom"),
    extracted_by: Optional[str] = typer.Option(None, "--by", help="Who ran the extraction"),
):
    """Convert an extraction file and store it for review."""
    payload = _load_json(path)
    schema = _parse_schema_type(schema_type) or SchemaType.EVENTS

    with session_scope() as session:
        service = AdminEventService(session)
        event = service.submit(payload, source_url=source_url, schema_type=schema, extracted_by=extracted_by)
        console.print(
            f"[green]Stored event {event.id}[/green]: "
            f"{event.activities_found} activities, {event.records_failed} failed, "
            f"confidence {event.confidence_score}"
        )


@events_app.command("list")
def list_events(
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Filter by status"),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of results"),
):
    """List extraction submissions."""
    status_filter = None
    if status:
        try:
            status_filter = AdminEventStatus(status.lower())
        except ValueError:
            console.print(f"[red]Invalid status: {status}[/red]")
            raise typer.Exit(1)

    with session_scope() as session:
        events = AdminEventService(session).list(status=status_filter, limit=limit)

        if not events:
            console.print("[dim]No events found.[/dim]")
            return

        table = Table(title="Admin Events", box=box.ROUNDED, show_lines=True)
        table.add_column("ID", style="dim", width=5)
        table.add_column("Source", width=35)
        table.add_column("Schema", width=10)
        table.add_column("Activities", justify="right", width=10)
        table.add_column("Failed", justify="right", width=6)
        table.add_column("Score", justify="right", width=6)
        table.add_column("Status", width=10)

        for event in events:
            table.add_row(
                str(event.id),
                event.source_url or "-",
                event.schema_type.value,
                str(event.activities_found),
                str(event.records_failed),
                f"{event.confidence_score:.0f}",
                Text(event.status.value.title(), style=STATUS_STYLES.get(event.status, "white")),
            )
        console.print(table)


@events_app.command("show")
def show_event(
    event_id: int = typer.Argument(..., help="Admin event ID to show"),
):
    """Show the converted activities and issues of a submission."""
    with session_scope() as session:
        event = AdminEventService(session).get(event_id)
        if not event:
            console.print(f"[red]Admin event {event_id} not found[/red]")
            raise typer.Exit(1)

        console.print(Panel.fit(
            f"[bold]Event {event.id}[/bold]\n"
            f"Source: {event.source_url or '-'}\n"
            f"Schema: {event.schema_type.value}\n"
            f"Status: {event.status.value}\n"
            f"Confidence: {event.confidence_score}\n"
            f"Notes: {event.admin_notes or '-'}",
            title="Admin Event",
            border_style="blue",
        ))

        table = Table(title="Activities", box=box.ROUNDED)
        table.add_column("Title", width=35)
        table.add_column("Location", width=25)
        table.add_column("Date", width=11)
        table.add_column("Price", width=10)
        for activity in event.converted_data or []:
            pricing = activity.get("pricing") or {}
            table.add_row(
                activity["title"],
                activity["location"]["name"],
                activity["schedule"]["startDate"] or "-",
                pricing.get("type", "-"),
            )
        console.print(table)

        for diagnostics in event.diagnostics or []:
            for issue in diagnostics["issues"]:
                if issue["severity"] == Severity.INFO.value:
                    continue
                console.print(
                    f"[{SEVERITY_STYLES[Severity(issue['severity'])]}]"
                    f"record {diagnostics['record_index']} {issue['field']}: {issue['message']}"
                    f"[/] [dim]{issue['suggestion']}[/dim]"
                )


@events_app.command("approve")
def approve_event(
    event_id: int = typer.Argument(..., help="Admin event ID to approve"),
    reviewer: Optional[str] = typer.Option(None, "--by", help="Reviewer name"),
    notes: Optional[str] = typer.Option(None, "--notes", help="Review notes"),
):
    """Approve a pending submission."""
    with session_scope() as session:
        try:
            event = AdminEventService(session).approve(event_id, reviewed_by=reviewer, admin_notes=notes)
        except AdminEventError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]Event {event.id} approved ({event.activities_found} activities)[/green]")


@events_app.command("reject")
def reject_event(
    event_id: int = typer.Argument(..., help="Admin event ID to reject"),
    reason: str = typer.Option(..., "--reason", "-r", help="Rejection reason"),
    reviewer: Optional[str] = typer.Option(None, "--by", help="Reviewer name"),
):
    """Reject a pending submission."""
    with session_scope() as session:
        try:
            event = AdminEventService(session).reject(event_id, reason=reason, reviewed_by=reviewer)
        except AdminEventError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        console.print(f"[yellow]Event {event.id} rejected[/yellow]")


@events_app.command("stats")
def event_stats():
    """Show submission counts by status."""
    with session_scope() as session:
        counts = AdminEventService(session).count_by_status()

    table = Table(title="Admin Events by Status", box=box.ROUNDED)
    table.add_column("Status", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for status, count in counts.items():
        table.add_row(status.title(), str(count))
    table.add_row("─" * 10, "─" * 5, style="dim")
    table.add_row("[bold]Total[/bold]", f"[bold]{sum(counts.values())}[/bold]")
    console.print(table)


# ============================================================================
# Server Commands
# ============================================================================
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
):
    """Start the admin API server."""
    import uvicorn

    console.print(f"[blue]Starting server at http://{host}:{port}[/blue]")
    uvicorn.run(
        "family_activities.api:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    app()
