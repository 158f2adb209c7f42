"""TriageDesk CLI: batch jobs, single-email actions and the web server."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Optional

import typer

app = typer.Typer(
    name="triagedesk",
    help="Customer-support email triage: classify, draft replies, review.",
    no_args_is_help=True,
)


@contextmanager
def _services():
    """Open a Services graph; TriageErrors become a one-line message and exit code 1."""
    from triagedesk.errors import TriageError
    from triagedesk.services import open_services

    try:
        with open_services() as services:
            yield services
    except TriageError as e:
        typer.echo(f"Error ({e.kind.value}): {e.message}", err=True)
        raise typer.Exit(code=1)


def _echo_summary(summary) -> None:
    typer.echo(
        f"  processed: {summary.processed}  skipped: {summary.skipped}  failed: {summary.failed}"
    )
    for item in summary.results:
        if item.status.value == "failed":
            typer.echo(f"  FAILED {item.key}: {item.detail}")


# --- Database ---

db_app = typer.Typer(help="Database management commands.")
app.add_typer(db_app, name="db")


@db_app.callback(invoke_without_command=True)
def db_callback(
    ctx: typer.Context,
    reset: bool = typer.Option(False, "--reset", help="Delete and recreate the database."),
    stats: bool = typer.Option(False, "--stats", help="Show row counts per table."),
):
    """Database management."""
    from triagedesk.config import load_config
    from triagedesk.database import db_stats, get_db, init_db, reset_db

    if not (reset or stats):
        typer.echo(ctx.get_help())
        return

    config = load_config()
    if reset:
        reset_db(config).close()
        typer.echo(f"Database reset: {config.storage.sqlite_path}")
    if stats:
        conn = get_db(config)
        try:
            init_db(conn)
            typer.echo("Table row counts:")
            for table, count in db_stats(conn).items():
                typer.echo(f"  {table:20s} {count if count >= 0 else 'missing'}")
        finally:
            conn.close()


# --- Batch jobs ---

@app.command()
def sync():
    """Pull new support emails from Gmail and process them."""
    with _services() as services:
        typer.echo(f"Syncing Gmail with query: {services.config.gmail.default_query}")
        summary = services.sync_mailbox()
    typer.echo("Sync complete.")
    _echo_summary(summary)


@app.command()
def seed(
    csv: Optional[str] = typer.Option(None, "--csv", help="CSV file with sender,subject,body,sent_date."),
    quick: bool = typer.Option(False, "--quick", help="Store rows without AI analysis."),
):
    """Load sample emails (bundled or CSV) into the database."""
    try:
        with _services() as services:
            summary = services.seed(csv_path=csv, quick=quick)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo("Seeding complete.")
    _echo_summary(summary)


@app.command("process-urgent")
def process_urgent(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum emails to answer."),
):
    """Draft responses for unresolved urgent emails that have none."""
    with _services() as services:
        summary = services.process_urgent(limit)
    typer.echo(f"Processed {summary.processed} urgent emails.")
    _echo_summary(summary)


@app.command("process-pending")
def process_pending(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum emails to process."),
):
    """Classify emails stored without AI analysis (e.g. quick-seeded)."""
    with _services() as services:
        summary = services.process_pending(limit)
    typer.echo(f"Processed {summary.processed} pending emails.")
    _echo_summary(summary)


# --- Single email ---

@app.command()
def regenerate(email_id: str = typer.Argument(..., help="Email id.")):
    """Draft a new response for an email."""
    with _services() as services:
        content = services.pipeline.generate_new_response(email_id)
    typer.echo(content)


@app.command()
def resolve(email_id: str = typer.Argument(..., help="Email id.")):
    """Mark an email resolved."""
    with _services() as services:
        services.storage.mark_email_resolved(email_id)
    typer.echo(f"Resolved {email_id}.")


@app.command()
def send(response_id: str = typer.Argument(..., help="Response id.")):
    """Mark a response sent and resolve its email (no mail is delivered)."""
    with _services() as services:
        response = services.storage.mark_response_sent(response_id)
    typer.echo(f"Marked response {response.id} as sent; email {response.email_id} resolved.")


# --- Reporting ---

@app.command()
def emails(
    priority: Optional[str] = typer.Option(None, "--priority", help="urgent or normal."),
    sentiment: Optional[str] = typer.Option(None, "--sentiment", help="positive, neutral or negative."),
    limit: int = typer.Option(50, "--limit", "-n", help="Maximum rows."),
):
    """List stored emails, newest first."""
    with _services() as services:
        storage = services.storage
        if priority:
            rows = storage.get_emails_by_priority(priority, limit)
        elif sentiment:
            rows = storage.get_emails_by_sentiment(sentiment, limit)
        else:
            rows = storage.list_emails(limit)

    if not rows:
        typer.echo("No emails found.")
    for e in rows:
        flags = ("R" if e.is_resolved else "-") + ("P" if e.is_processed else "-")
        typer.echo(
            f"  {e.id}  {flags}  {e.priority:7s} {e.sentiment:8s} "
            f"{e.received_at:%Y-%m-%d %H:%M}  {e.subject[:50]}"
        )


@app.command()
def analytics(
    backfill: Optional[int] = typer.Option(None, "--backfill", help="Recompute the last N days."),
):
    """Recompute and show daily analytics."""
    from triagedesk.analytics import backfill_analytics, update_daily_analytics

    with _services() as services:
        if backfill:
            rows = backfill_analytics(services.storage, backfill)
        else:
            rows = [update_daily_analytics(services.storage)]

    for a in rows:
        b = a.sentiment_breakdown
        typer.echo(
            f"{a.date}  total {a.total_emails}  resolved {a.resolved_emails}  "
            f"pending {a.pending_emails}  urgent {a.urgent_emails}  "
            f"avg response {a.avg_response_time}m  "
            f"sentiment +{b['positive']}% ={b['neutral']}% -{b['negative']}%"
        )


# --- Web ---

@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Bind host."),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port."),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development."),
):
    """Serve the REST API under /api and the review UI under /admin."""
    import uvicorn

    typer.echo(f"Starting TriageDesk at http://{host}:{port}/admin")
    uvicorn.run("triagedesk.web.app:create_app", host=host, port=port, reload=reload, factory=True)


if __name__ == "__main__":
    app()
