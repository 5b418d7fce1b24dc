# Copyright (c) 2025 Keshav
# Licensed under the GNU Affero General Public License v3.0
# See LICENSE file for details.
"""Main CLI application for rightsizer."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.table import Table

import rightsizer
from rightsizer.config import Settings, load_config
from rightsizer.errors import NotFoundError, RecordValidationError
from rightsizer.store.dumps import DumpManager
from rightsizer.store.service import ResourceService

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _service(ctx: click.Context) -> ResourceService:
    """Build the query façade once per invocation and make sure tables exist."""
    if "service" not in ctx.obj:
        settings = _settings(ctx)
        service = ResourceService.from_settings(settings)
        if settings.db_create_tables:
            service.init_schema()
        ctx.obj["service"] = service
        ctx.call_on_close(service.dispose)
    return ctx.obj["service"]


def _dumps(ctx: click.Context) -> DumpManager:
    return DumpManager(_service(ctx), _settings(ctx).dump_dir)


def _configure_logging(level: str, console: Console) -> None:
    from rich.logging import RichHandler

    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


threshold_option = click.option(
    "--threshold", "-t", type=click.FloatRange(0, 100), default=None,
    help="Utilization percent below which an app is over-provisioned (default from config)",
)


@click.group()
@click.version_option(version=rightsizer.__version__)
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option(
    "--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False),
    default=None, help="YAML config file (environment variables fill the gaps)",
)
@click.option("--database-url", default=None, help="SQLAlchemy URL overriding DB_* settings")
@click.pass_context
def cli(ctx: click.Context, no_color: bool, config_path: str | None, database_url: str | None) -> None:
    """rightsizer: CPU request vs. usage reporting

    Find applications whose CPU request far exceeds their observed peak,
    rank rightsizing candidates and track the optimization work done.
    """
    ctx.ensure_object(dict)
    console = Console(no_color=no_color)
    settings = load_config(config_path) if config_path else Settings()
    if database_url:
        settings = settings.model_copy(update={"database_url": database_url})
    ctx.obj["console"] = console
    ctx.obj["settings"] = settings


@cli.command()
@click.option("--host", default=None, help="Bind host (default from config)")
@click.option("--port", "-p", type=int, default=None, help="Bind port (default from config)")
@click.option("--log-level", type=click.Choice(LOG_LEVELS), default="INFO", show_default=True)
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, log_level: str) -> None:
    """Start the REST API server."""
    import uvicorn

    from rightsizer.api.server import create_app

    console: Console = ctx.obj["console"]
    settings = _settings(ctx)
    _configure_logging(log_level, console)

    host = host or settings.host
    port = port or settings.port
    console.print(f"[bold cyan]Starting API server on {host}:{port}...[/]")
    console.print(f"  Database: {settings.schema_label}.{settings.db_table}")
    console.print(f"  Health check: http://{host}:{port}/api/health")

    app = create_app(settings)
    uvicorn.run(app, host=host, port=port, log_level=log_level.lower())


@cli.command("init-db")
@click.option("--sample/--no-sample", default=False, help="Seed sample rows into an empty table")
@click.pass_context
def init_db(ctx: click.Context, sample: bool) -> None:
    """Create the tables if missing and optionally load sample data."""
    console: Console = ctx.obj["console"]
    service = ResourceService.from_settings(_settings(ctx))
    try:
        with console.status("[bold cyan]Creating tables..."):
            service.init_schema()
        console.print(f"  [green]✓[/] Tables ready: {_settings(ctx).db_table}")
        if sample:
            inserted = service.seed_sample_data()
            if inserted:
                console.print(f"  [green]✓[/] Inserted {inserted} sample rows")
            else:
                console.print("  [yellow]Sample data already exists, skipping[/]")
        console.print(f"  Database contains {service.count_resources()} utilization rows")
    finally:
        service.dispose()


@cli.command()
@threshold_option
@click.option("--show-details/--no-details", default=True, help="Show per-app tables")
@click.option("--limit", type=int, default=15, show_default=True, help="Rows per table")
@click.pass_context
def report(ctx: click.Context, threshold: float | None, show_details: bool, limit: int) -> None:
    """Render the utilization dashboard in the terminal."""
    from rightsizer.reporting.dashboard import build_dashboard
    from rightsizer.reporting.terminal import TerminalRenderer

    console: Console = ctx.obj["console"]
    with console.status("[bold cyan]Running report queries..."):
        dashboard = build_dashboard(_service(ctx), threshold)
    TerminalRenderer(console, limit=limit).render(dashboard, show_details=show_details)


@cli.command()
@threshold_option
@click.option("--env", "-e", default=None, help="Only show this environment")
@click.pass_context
def overprovisioned(ctx: click.Context, threshold: float | None, env: str | None) -> None:
    """List over-provisioned applications, largest waste first."""
    from rightsizer.reporting.terminal import TerminalRenderer

    service = _service(ctx)
    records = service.list_overprovisioned(threshold)
    if env is not None:
        records = [r for r in records if r.env == env]
    effective = service.threshold if threshold is None else threshold
    TerminalRenderer(ctx.obj["console"], limit=len(records) or 1).render_overprovisioned(
        records, effective
    )


@cli.command()
@threshold_option
@click.pass_context
def recommendations(ctx: click.Context, threshold: float | None) -> None:
    """List rightsizing recommendations ranked by CPU savings."""
    from rightsizer.reporting.terminal import TerminalRenderer

    recs = _service(ctx).optimization_recommendations(threshold)
    TerminalRenderer(ctx.obj["console"], limit=len(recs) or 1).render_recommendations(recs)


@cli.command()
@threshold_option
@click.option(
    "--output-dir", "-o", type=click.Path(file_okay=False), default="charts",
    show_default=True, help="Directory for the PNG files",
)
@click.pass_context
def chart(ctx: click.Context, threshold: float | None, output_dir: str) -> None:
    """Export the dashboard charts as PNG images."""
    from rightsizer.reporting.charts import ChartGenerator
    from rightsizer.reporting.dashboard import build_dashboard

    console: Console = ctx.obj["console"]
    dashboard = build_dashboard(_service(ctx), threshold)
    with console.status("[bold cyan]Rendering charts..."):
        paths = ChartGenerator(dashboard).save_all(output_dir)
    for name, path in paths.items():
        console.print(f"  [green]✓[/] {name}: {path}")


@cli.command()
@click.pass_context
def dump(ctx: click.Context) -> None:
    """Snapshot both tables to a timestamped JSON file."""
    console: Console = ctx.obj["console"]
    filename = _dumps(ctx).create_dump()
    console.print(f"[green]Database dump created successfully:[/] {filename}")


@cli.command()
@click.pass_context
def dumps(ctx: click.Context) -> None:
    """List available dump files, newest first."""
    console: Console = ctx.obj["console"]
    manager = DumpManager(None, _settings(ctx).dump_dir)  # listing needs no database
    infos = manager.list_dumps()
    if not infos:
        console.print(f"[yellow]No dumps found in {manager.dump_dir}[/]")
        return

    table = Table(title="Dumps", show_header=True, header_style="bold")
    table.add_column("File")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    for info in infos:
        table.add_row(
            info.filename,
            f"{info.size:,} B",
            info.created.strftime("%Y-%m-%d %H:%M:%S UTC"),
        )
    console.print(table)


@cli.command()
@click.argument("filename")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def restore(ctx: click.Context, filename: str, yes: bool) -> None:
    """Replace both tables with the contents of a dump file."""
    console: Console = ctx.obj["console"]
    if not yes:
        click.confirm(
            f"This deletes all current rows and restores {filename}. Continue?",
            abort=True,
        )
    try:
        rows, history = _dumps(ctx).restore(filename)
    except (NotFoundError, RecordValidationError) as exc:
        console.print(f"[red]{exc}[/]")
        raise SystemExit(1)
    console.print(
        f"[green]Restored {rows} utilization rows and {history} optimization records "
        f"from {filename}[/]"
    )
