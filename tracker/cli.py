"""CLI interface for tracking metrics and their doubling rates."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer

from doubling_core.errors import InvalidInput, NotFound
from tracker.config import TrackerConfig, load_config
from tracker.session import TrackerSession
from tracker.summary import SummaryExporter

app = typer.Typer(help="Doubling Speed Tracker CLI")


def _session(ctx: typer.Context) -> TrackerSession:
    config: TrackerConfig = ctx.obj
    return TrackerSession.from_config(config)


def _fail(message: str) -> NoReturn:
    typer.secho(f"❌ {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to tracker YAML config"),
    db_path: Optional[str] = typer.Option(None, "--db", help="Override the SQLite state file"),
) -> None:
    """Track metrics and estimate how fast they double."""
    try:
        config = load_config(config_path) if config_path else TrackerConfig()
    except FileNotFoundError as e:
        _fail(f"Config file not found: {e}")
    except ValueError as e:
        _fail(f"Invalid config: {e}")

    if db_path:
        config.db_path = db_path

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


@app.command()
def add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Metric name, e.g. Followers"),
    base_value: float = typer.Option(100.0, "--base-value", help="Starting value"),
) -> None:
    """Add a new metric to track."""
    session = _session(ctx)
    try:
        metric = session.add_metric(name, base_value)
    except InvalidInput as e:
        _fail(str(e))

    typer.secho(f"✅ Added metric {metric.id}: {metric.name}", fg=typer.colors.GREEN)


@app.command()
def record(
    ctx: typer.Context,
    metric_id: int = typer.Argument(..., help="Metric ID to record a value for"),
    value: float = typer.Argument(..., help="Current value"),
    date: Optional[str] = typer.Option(None, "--date", help="Day of the value (YYYY-MM-DD), default today"),
) -> None:
    """Record a new value for a metric."""
    session = _session(ctx)
    try:
        metric = session.record_value(metric_id, value, date)
    except (InvalidInput, NotFound) as e:
        _fail(str(e))

    typer.secho(f"✅ Recorded {value:g} for {metric.name}", fg=typer.colors.GREEN)
    typer.echo(f"   Doubling rate: {session.rate_text(metric.id)}")


@app.command()
def delete(
    ctx: typer.Context,
    metric_id: int = typer.Argument(..., help="Metric ID to delete"),
) -> None:
    """Delete a metric and all of its values."""
    session = _session(ctx)
    session.remove_metric(metric_id)
    typer.secho(f"✅ Metric {metric_id} removed", fg=typer.colors.GREEN)


@app.command("list")
def list_metrics(ctx: typer.Context) -> None:
    """List all tracked metrics with their doubling rates."""
    session = _session(ctx)
    overview = session.overview()

    if not overview:
        typer.secho("No metrics tracked yet.", fg=typer.colors.YELLOW)
        return

    typer.secho(f"\n📈 Tracking {len(overview)} metric(s):\n", fg=typer.colors.BLUE)

    for item in overview:
        current = f"{item.current_value:g}" if item.current_value is not None else "No data yet"
        updated = item.last_updated.isoformat() if item.last_updated else "Never"
        typer.echo(f"  [{item.id}] {item.name}")
        typer.echo(
            f"    Start: {item.base_value:g} | Current: {current} | Last updated: {updated}"
        )
        typer.echo(f"    Doubling rate: {item.rate_text}")


@app.command()
def show(
    ctx: typer.Context,
    metric_id: int = typer.Argument(..., help="Metric ID to show"),
) -> None:
    """Show one metric with every recorded value."""
    session = _session(ctx)
    try:
        metric = session.store.get_metric(metric_id)
    except NotFound as e:
        _fail(str(e))

    typer.secho(f"\n{metric.name}", fg=typer.colors.BLUE, bold=True)
    typer.echo(f"   Starting value: {metric.base_value:g}")
    typer.echo(f"   Doubling rate:  {session.rate_text(metric.id)}")

    if not metric.samples:
        typer.secho("   No values recorded yet.", fg=typer.colors.YELLOW)
        return

    typer.echo("")
    for sample in metric.samples:
        typer.echo(f"   {sample.date.isoformat()}  {sample.value:g}")


@app.command()
def export(
    ctx: typer.Context,
    output: str = typer.Argument(..., help="Output file path"),
    fmt: str = typer.Option("csv", "--format", help="Output format (csv or json)", case_sensitive=False),
) -> None:
    """Export a summary of all metrics and their doubling rates."""
    if fmt.lower() not in ["csv", "json"]:
        _fail(f"Invalid format: {fmt}. Must be csv or json.")

    exporter = SummaryExporter(_session(ctx))
    output_path = Path(output)
    if fmt.lower() == "csv":
        exporter.export_csv(output_path)
    else:
        exporter.export_json(output_path)

    typer.secho("✅ Summary exported", fg=typer.colors.GREEN)
    typer.echo(f"   {output_path}")


@app.command()
def series(
    ctx: typer.Context,
    metric_id: int = typer.Argument(..., help="Metric ID to export"),
    output: str = typer.Argument(..., help="Output CSV path"),
) -> None:
    """Export a metric's date/value series for charting."""
    exporter = SummaryExporter(_session(ctx))
    try:
        written = exporter.export_series_csv(metric_id, Path(output))
    except NotFound as e:
        _fail(str(e))

    if not written:
        typer.secho("⚠️  Need at least two values to export a series", fg=typer.colors.YELLOW)
        raise typer.Exit(1)

    typer.secho("✅ Series exported", fg=typer.colors.GREEN)
    typer.echo(f"   {output}")


if __name__ == "__main__":
    app()
