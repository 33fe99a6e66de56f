"""Usage monitor CLI."""

from typing import Annotated

import typer

from usage_monitor.cli.notify import app as notify_app
from usage_monitor.cli.usage import app as usage_app
from usage_monitor.cli.workflow import app as workflow_app

app = typer.Typer(
    name="usage-monitor",
    help="Cloudflare usage monitor - estimates consumption against contract caps",
    no_args_is_help=True,
)

app.add_typer(usage_app, name="usage", help="Query usage and inspect the metric catalog")
app.add_typer(workflow_app, name="workflow", help="Temporal workflow operations")
app.add_typer(notify_app, name="notify", help="Notification operations")


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Bind port")] = 8000,
) -> None:
    """Serve the HTTP API."""
    import uvicorn

    from usage_monitor.api import create_app

    uvicorn.run(create_app(), host=host, port=port)


@app.callback()
def main() -> None:
    """Usage monitor CLI."""
    pass


if __name__ == "__main__":
    app()
