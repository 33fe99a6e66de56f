"""Shared helpers for CLI commands."""

import typer
from pydantic import ValidationError
from rich.console import Console

from usage_monitor.models import MonitorSettings, get_settings

console = Console()


def load_settings() -> MonitorSettings:
    """Load settings from the environment or exit with the missing fields."""
    try:
        return get_settings()
    except ValidationError as e:
        console.print("[red]Invalid configuration:[/red]")
        for error in e.errors():
            field = "__".join(str(part) for part in error["loc"])
            console.print(f"  [red]✗[/red] USAGE_MONITOR_{field.upper()}: {error['msg']}")
        raise typer.Exit(1) from None
