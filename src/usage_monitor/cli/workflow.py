"""Workflow CLI commands."""

import asyncio
from typing import Annotated

import typer
from rich.panel import Panel
from whenever import Instant

from usage_monitor.cli.common import console, load_settings
from usage_monitor.models import UsageMonitorInput, UsageMonitorResult
from usage_monitor.temporal import create_client
from usage_monitor.workflows import UsageMonitorWorkflow

app = typer.Typer(no_args_is_help=True)


@app.command()
def trigger(
    force_notify: Annotated[
        bool, typer.Option("--force-notify", help="Notify even when all metrics are healthy")
    ] = False,
    no_notify: Annotated[
        bool, typer.Option("--no-notify", help="Skip the notification step")
    ] = False,
) -> None:
    """Run the usage monitor workflow once and wait for its result."""
    settings = load_settings()
    workflow_id = f"usage-monitor-manual-{Instant.now().timestamp()}"

    async def _run() -> UsageMonitorResult:
        client = await create_client(settings.temporal_address, settings.temporal_namespace)
        return await client.execute_workflow(
            "UsageMonitorWorkflow",
            UsageMonitorInput(
                account_id=settings.account_id,
                zone_tags=settings.configured_zone_tags,
                contract=settings.contract,
                force_notify=force_notify,
                notify=not no_notify,
                triggered_by="cli",
            ),
            id=workflow_id,
            task_queue=settings.task_queue,
            result_type=UsageMonitorResult,
        )

    console.print(f"Starting workflow [cyan]{workflow_id}[/cyan]")
    with console.status("[bold green]Waiting for workflow..."):
        try:
            result = asyncio.run(_run())
        except Exception as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from None

    summary = result.summary
    notification = "not sent"
    if result.notification is not None:
        notification = result.notification.provider
        if result.notification.skipped:
            notification += " (skipped)"
        elif not result.notification.success:
            notification += f" (failed: {result.notification.error})"

    console.print(
        Panel.fit(
            f"Alerts:   [red]{len(summary.alerts)}[/red]\n"
            f"Warnings: [yellow]{len(summary.warnings)}[/yellow]\n"
            f"Healthy:  [green]{len(summary.healthy)}[/green]\n"
            f"Errors:   [dim]{len(summary.errors)}[/dim]\n"
            f"Zones:    {result.zone_count}"
            f"{' (discovered)' if result.zones_discovered else ''}\n"
            f"Notification: {notification}",
            title="Workflow Result",
        )
    )


@app.command()
def status(
    workflow_id: Annotated[str, typer.Argument(help="Workflow id printed by trigger")],
) -> None:
    """Show the execution status and current phase of a monitor run."""
    settings = load_settings()

    async def _run() -> tuple[str | None, str]:
        client = await create_client(settings.temporal_address, settings.temporal_namespace)
        handle = client.get_workflow_handle(workflow_id)
        description = await handle.describe()
        phase = await handle.query(UsageMonitorWorkflow.status)
        execution = description.status.name if description.status is not None else None
        return execution, phase

    try:
        execution, phase = asyncio.run(_run())
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    console.print(f"Workflow: [cyan]{workflow_id}[/cyan]")
    console.print(f"Status:   {execution or 'unknown'}")
    console.print(f"Phase:    {phase}")
