"""
CVR Ledger CLI

Usage:
    cvr-ledger migrate
    cvr-ledger backfill --tenant acme [--project P1] [--since 2026-01-01] [--until 2026-02-01]
    cvr-ledger position --tenant acme --project P1 [--json]
    cvr-ledger export --tenant acme --project P1 --output cvr.xlsx
    cvr-ledger snapshot --tenant acme --project P1 --period-end 2026-09-30 [--type QUARTERLY]

The database and batch size come from CVR_* environment variables unless
overridden with --db-url / --batch-size.
"""
import dataclasses
import json
import signal
import threading
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer

from core.events.domain_events import DomainEvents
from core.exceptions import DomainError
from core.reporting.api import generate_cvr_excel
from core.services.ledger.helpers import money
from infra.config import LedgerSettings
from infra.db.base import make_engine, make_session_factory
from infra.logging_config import setup_logging
from infra.migrate import run_migrations
from infra.operational_support import bind_trace_id
from infra.services import ServiceGraph, build_service_graph

app = typer.Typer(
    name="cvr-ledger",
    help="Cost-value reconciliation ledger: backfill facts and report project positions",
    add_completion=False,
)

DbUrlOption = Annotated[Optional[str], typer.Option("--db-url", help="SQLAlchemy database URL")]
TenantOption = Annotated[str, typer.Option("--tenant", help="Tenant id")]
ProjectOption = Annotated[str, typer.Option("--project", help="Project id")]


def _settings(db_url: Optional[str], batch_size: Optional[int] = None) -> LedgerSettings:
    settings = LedgerSettings.from_env()
    overrides = {}
    if db_url:
        overrides["database_url"] = db_url
    if batch_size is not None:
        overrides["backfill_batch_size"] = batch_size
    return dataclasses.replace(settings, **overrides) if overrides else settings


def _open_graph(settings: LedgerSettings) -> ServiceGraph:
    setup_logging(settings.resolved_log_dir)
    run_migrations(settings.database_url)
    session = make_session_factory(make_engine(settings.database_url))()
    return build_service_graph(session, settings, events=DomainEvents())


def _fail(exc: DomainError) -> None:
    typer.echo(f"Error [{exc.code}]: {exc}", err=True)
    raise typer.Exit(1)


def _fmt(value) -> str:
    return f"{money(value):,.2f}"


@app.command()
def migrate(db_url: DbUrlOption = None) -> None:
    """Create or upgrade the ledger schema"""
    settings = _settings(db_url)
    setup_logging(settings.resolved_log_dir)
    run_migrations(settings.database_url)
    typer.echo("Database schema is up to date")


@app.command()
def backfill(
    tenant: TenantOption,
    project: Annotated[Optional[str], typer.Option("--project", help="Limit to one project")] = None,
    since: Annotated[
        Optional[datetime],
        typer.Option("--since", help="Only documents updated at or after this time"),
    ] = None,
    until: Annotated[
        Optional[datetime],
        typer.Option("--until", help="Only documents updated at or before this time"),
    ] = None,
    batch_size: Annotated[Optional[int], typer.Option("--batch-size", min=1)] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the report as JSON")] = False,
    db_url: DbUrlOption = None,
) -> None:
    """Reconcile ledger facts with the current source documents"""
    settings = _settings(db_url, batch_size)
    graph = _open_graph(settings)

    stop_event = threading.Event()
    previous_handler = None
    if threading.current_thread() is threading.main_thread():
        # Ctrl+C finishes the current sub-batch, then stops cleanly
        previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: stop_event.set())

    try:
        with bind_trace_id(None):
            report = graph.ledger_service.run_backfill(
                tenant,
                project_id=project,
                updated_from=since,
                updated_to=until,
                stop_event=stop_event,
            )
    except DomainError as exc:
        _fail(exc)
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)
        graph.close()

    if as_json:
        typer.echo(json.dumps(report.as_dict(), indent=2))
    else:
        for label, counts in (("Commitments", report.commitments), ("Actuals", report.actuals)):
            typer.echo(
                f"{label}: created={counts.created} updated={counts.updated} "
                f"skipped={counts.skipped} errors={counts.errors}"
            )
            for issue in counts.issues:
                typer.echo(f"  ! {issue.source_type} {issue.source_id}: {issue.message}")
        typer.echo(f"Packages recomputed: {report.packages_recomputed}")
        if report.stopped:
            typer.echo("Stopped before completion; run again to finish.")
    if report.commitments.errors or report.actuals.errors:
        raise typer.Exit(2)


@app.command()
def position(
    tenant: TenantOption,
    project: ProjectOption,
    as_json: Annotated[bool, typer.Option("--json", help="Print the position as JSON")] = False,
    db_url: DbUrlOption = None,
) -> None:
    """Show a project's budget, committed and actual position by package"""
    graph = _open_graph(_settings(db_url))
    try:
        result = graph.ledger_service.get_financial_position(tenant, project)
    except DomainError as exc:
        _fail(exc)
    finally:
        graph.close()

    if as_json:
        typer.echo(json.dumps(result.as_dict(), indent=2))
        return

    typer.echo(f"Project {result.project_id}")
    typer.echo(f"{'Package':<30}{'Budget':>16}{'Committed':>16}{'Actual':>16}{'Variance':>16}{'Remaining':>16}")
    for entry in result.entries:
        typer.echo(
            f"{entry.package_name[:29]:<30}{_fmt(entry.budget):>16}{_fmt(entry.committed):>16}"
            f"{_fmt(entry.actual):>16}{_fmt(entry.variance):>16}{_fmt(entry.remaining):>16}"
        )
    typer.echo(
        f"{'Total':<30}{_fmt(result.total_budget):>16}{_fmt(result.total_committed):>16}"
        f"{_fmt(result.total_actual):>16}{_fmt(result.total_variance):>16}{_fmt(result.total_remaining):>16}"
    )


@app.command()
def snapshot(
    tenant: TenantOption,
    project: ProjectOption,
    period_end: Annotated[datetime, typer.Option("--period-end", formats=["%Y-%m-%d"], help="Last day of the period")],
    report_type: Annotated[str, typer.Option("--type", help="MONTHLY, QUARTERLY, YEAR_END or AD_HOC")] = "MONTHLY",
    db_url: DbUrlOption = None,
) -> None:
    """Freeze the current position as an in-progress period report"""
    graph = _open_graph(_settings(db_url))
    try:
        report = graph.report_service.create_report(tenant, project, period_end.date(), report_type=report_type)
    except DomainError as exc:
        _fail(exc)
    finally:
        graph.close()
    typer.echo(
        f"Captured {report.report_type.value} report {report.id} for {report.project_id} "
        f"(period end {report.period_end.isoformat()}): committed {_fmt(report.total_committed)}, "
        f"actual {_fmt(report.total_actual)}"
    )


@app.command()
def export(
    tenant: TenantOption,
    project: ProjectOption,
    output: Annotated[Path, typer.Option("--output", "-o", help="Target .xlsx file")],
    db_url: DbUrlOption = None,
) -> None:
    """Export a project's CVR position to an Excel workbook"""
    settings = _settings(db_url)
    graph = _open_graph(settings)
    try:
        path = generate_cvr_excel(
            graph.ledger_service,
            tenant,
            project,
            output,
            currency=settings.default_currency,
        )
    except DomainError as exc:
        _fail(exc)
    finally:
        graph.close()
    typer.echo(f"Wrote {path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
