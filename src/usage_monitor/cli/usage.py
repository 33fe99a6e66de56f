"""Usage CLI commands: on-demand checks and catalog inspection."""

import asyncio
from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table

from usage_monitor.cli.common import console, load_settings
from usage_monitor.client import GraphQLClient, discover_datasets
from usage_monitor.engine import current_billing_period
from usage_monitor.formatting import format_value
from usage_monitor.models import CATEGORY_NAMES, MetricCategory, TrafficFilters, UsageRecord
from usage_monitor.registry import build_default_registry, resolve_metrics
from usage_monitor.service import run_usage_check
from usage_monitor.zones import discover_zones, is_valid_zone_id

app = typer.Typer(no_args_is_help=True)


def _records_table(title: str, records: list[UsageRecord], style: str) -> Table:
    table = Table(title=title, title_style=style)
    table.add_column("Metric", style="cyan")
    table.add_column("Usage", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Used", justify="right", style=style)
    table.add_column("Confidence", justify="right", style="dim")
    for record in records:
        confidence = (
            f"{record.confidence.confidence_percent:.0f}%" if record.confidence else "-"
        )
        table.add_row(
            record.metric_name,
            format_value(record.current_usage, record.unit),
            format_value(record.limit, record.unit, record.unlimited),
            f"{record.percent_used:.1f}%",
            confidence,
        )
    return table


@app.command()
def check(
    zone_id: Annotated[
        str | None, typer.Option("--zone-id", "-z", help="Only report this zone")
    ] = None,
    eyeball_only: Annotated[
        bool, typer.Option("--eyeball-only", help="Only count end-user traffic")
    ] = False,
    exclude_blocked: Annotated[
        bool, typer.Option("--exclude-blocked", help="Drop requests answered with 403")
    ] = False,
    exclude_edge_workers: Annotated[
        bool, typer.Option("--exclude-edge-workers", help="Drop Worker subrequests")
    ] = False,
    include_disabled: Annotated[
        bool, typer.Option("--all", help="Also list metrics that are not enabled")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Print the raw JSON result")] = False,
) -> None:
    """Query current usage once and print it by severity.

    Exits with code 1 when any metric is in alert.
    """
    if zone_id is not None and not is_valid_zone_id(zone_id):
        console.print(f"[red]Invalid zone id: '{zone_id}' (expected 32 hex characters)[/red]")
        raise typer.Exit(2)

    settings = load_settings()
    filters = TrafficFilters(
        eyeball_only=eyeball_only,
        exclude_blocked=exclude_blocked,
        exclude_edge_workers=exclude_edge_workers,
        zone_id=zone_id,
    )

    async def _run():
        async with GraphQLClient(settings.api_token) as client:
            return await run_usage_check(
                settings, client, filters, include_disabled=include_disabled
            )

    with console.status("[bold green]Querying usage..."):
        result = asyncio.run(_run())

    if json_output:
        console.print(result.model_dump_json(indent=2))
    else:
        summary = result.summary
        for title, records, style in (
            ("Alerts", summary.alerts, "red"),
            ("Warnings", summary.warnings, "yellow"),
            ("Healthy", summary.healthy, "green"),
        ):
            if records:
                console.print(_records_table(title, records, style))

        if summary.errors:
            errors = Table(title="Errors", title_style="dim")
            errors.add_column("Metric", style="cyan")
            errors.add_column("Error", style="red")
            for record in summary.errors:
                errors.add_row(record.metric_name, record.error or "Unknown error")
            console.print(errors)

        period = result.billing_period
        console.print(
            Panel.fit(
                f"[red]{len(summary.alerts)} alerts[/red]  "
                f"[yellow]{len(summary.warnings)} warnings[/yellow]  "
                f"[green]{len(summary.healthy)} healthy[/green]  "
                f"[dim]{len(summary.errors)} errors[/dim]\n"
                f"Billing period: {period.start.format_iso()} - {period.end.format_iso()}\n"
                f"Zones: {result.zones.count}"
                f"{' (discovered)' if result.zones.auto_discovered else ''}\n"
                f"Filters: {', '.join(filters.describe()) or 'none'}",
                title="Usage Summary",
            )
        )

    if result.summary.alerts:
        raise typer.Exit(1)


@app.command()
def metrics(
    category: Annotated[
        MetricCategory | None, typer.Option("--category", "-c", help="Only this category")
    ] = None,
    enabled_only: Annotated[
        bool, typer.Option("--enabled-only", help="Hide metrics that are not enabled")
    ] = False,
) -> None:
    """List the metric catalog with effective contract limits."""
    settings = load_settings()
    runtimes = resolve_metrics(
        build_default_registry(), settings.contract, settings.configured_zone_tags
    )

    table = Table(title="Monitored Metrics")
    table.add_column("ID", style="cyan")
    table.add_column("Category")
    table.add_column("Scope")
    table.add_column("Dataset", style="dim")
    table.add_column("Limit", justify="right", style="green")
    table.add_column("Enabled")
    for metric in runtimes:
        if category is not None and metric.category != category:
            continue
        if enabled_only and not metric.enabled:
            continue
        table.add_row(
            metric.id,
            CATEGORY_NAMES[metric.category],
            metric.scope.value,
            metric.dataset,
            format_value(metric.limit, metric.unit, metric.unlimited),
            "[green]✓[/green]" if metric.enabled else "[dim]-[/dim]",
        )
    console.print(table)


@app.command()
def period() -> None:
    """Show the current billing period."""
    settings = load_settings()
    billing = settings.contract.billing_period
    current = current_billing_period(billing.start_day, billing.timezone)

    console.print(f"[bold]Billing period[/bold] (starts on day {billing.start_day})")
    console.print(f"  Timezone: [cyan]{billing.timezone}[/cyan]")
    console.print(f"  Start:    [cyan]{current.start.format_iso()}[/cyan]")
    console.print(f"  End:      [cyan]{current.end.format_iso()}[/cyan]")


@app.command()
def datasets() -> None:
    """List analytics datasets available to the API token."""
    settings = load_settings()

    async def _run() -> dict[str, list[str]]:
        async with GraphQLClient(settings.api_token) as client:
            return await discover_datasets(client)

    with console.status("[bold green]Introspecting schema..."):
        try:
            found = asyncio.run(_run())
        except Exception as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from None

    for viewer, names in found.items():
        console.print(f"[bold]{viewer}[/bold] ({len(names)} datasets)")
        for name in names:
            console.print(f"  {name}")


@app.command()
def zones() -> None:
    """List the account's active zones."""
    settings = load_settings()

    with console.status("[bold green]Discovering zones..."):
        result = asyncio.run(discover_zones(settings.api_token, settings.account_id))

    if result.error:
        console.print(f"[red]Error:[/red] {result.error}")
        raise typer.Exit(1)

    table = Table(title=f"Active Zones ({result.total})")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Paused")
    for zone in result.zones:
        table.add_row(zone.id, zone.name, zone.type or "-", "yes" if zone.paused else "no")
    console.print(table)
