"""Notification CLI commands."""

import asyncio

import typer

from usage_monitor.cli.common import console, load_settings
from usage_monitor.models import NotificationOptions
from usage_monitor.notifications import send_test_notification
from usage_monitor.registry import build_default_registry, enabled_metrics

app = typer.Typer(no_args_is_help=True)


@app.command()
def test() -> None:
    """Send a test notification to the configured webhook."""
    settings = load_settings()
    if not settings.webhook_url:
        console.print("[red]No webhook configured.[/red] Set USAGE_MONITOR_WEBHOOK_URL first.")
        raise typer.Exit(1)

    contract = settings.contract
    options = NotificationOptions(
        alert_threshold=contract.alert_threshold_percent,
        warning_threshold=contract.warning_threshold_percent,
        monitored_count=len(
            enabled_metrics(build_default_registry(), contract, settings.configured_zone_tags)
        ),
    )

    with console.status("[bold green]Sending test notification..."):
        result = asyncio.run(
            send_test_notification(
                settings.webhook_url,
                options,
                provider_name=settings.notification_provider,
            )
        )

    if not result.success:
        console.print(f"[red]✗[/red] {result.provider}: {result.error}")
        raise typer.Exit(1)
    console.print(
        f"[green]✓[/green] Test notification sent via {result.provider} "
        f"({result.duration_ms:.0f} ms)"
    )
