"""CLI entry point for dockerstats.

Provides commands to serve the stats endpoint or take a one-off snapshot.
"""

import asyncio
from typing import Annotated

import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from dockerstats.common.config import LoggingSettings, Settings, load_config
from dockerstats.docker_handler import DockerHandlerError
from dockerstats.exporter import Exporter
from dockerstats.logging_setup import setup_logging
from dockerstats.models import StatsEntry, StatsResponse
from dockerstats.server import run_server

# Create CLI app
app = typer.Typer(
    name="dockerstats",
    help="dockerstats - live Docker container resource usage over HTTP",
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    str | None,
    typer.Option("--config", "-c", help="Path to a YAML config file"),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option("--log-level", "-l", help="Override the configured log level"),
]


def _load_settings(config: str | None, log_level: str | None) -> Settings:
    try:
        settings = load_config(config)
        if log_level:
            settings.logging = LoggingSettings(
                log_level=log_level, log_format=settings.logging.log_format
            )
    except (FileNotFoundError, ValueError, ValidationError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    setup_logging(
        settings.logging.log_level,
        json_output=settings.logging.log_format == "json",
    )
    return settings


@app.command("serve")
def cmd_serve(
    host: Annotated[
        str | None,
        typer.Option("--host", "-h", help="Bind address"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Bind port"),
    ] = None,
    config: ConfigOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Serve container stats at GET /stats."""
    settings = _load_settings(config, log_level)
    if host:
        settings.server.server_host = host
    if port:
        settings.server.server_port = port

    run_server(settings)


@app.command("list")
def cmd_list(
    as_json: Annotated[
        bool,
        typer.Option("--json", "-j", help="Print the raw JSON body instead of a table"),
    ] = False,
    config: ConfigOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Collect stats once and print them."""
    settings = _load_settings(config, log_level or "WARNING")

    async def run() -> list[StatsEntry]:
        exporter = Exporter(settings)
        try:
            return await exporter.list()
        finally:
            await exporter.close()

    try:
        entries = asyncio.run(run())
    except DockerHandlerError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    if as_json:
        console.print_json(StatsResponse(stats=entries).model_dump_json())
        return

    table = Table(title=f"Containers ({len(entries)})")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("CPU %", justify="right")
    table.add_column("Mem", justify="right")
    table.add_column("Mem %", justify="right")
    table.add_column("Net RX/TX", justify="right")
    table.add_column("Block R/W", justify="right")
    table.add_column("Pod")

    for entry in entries:
        table.add_row(
            entry.container_id[:12],
            entry.container_name.lstrip("/"),
            f"{entry.cpu_usage_percentage:.2f}",
            _human_bytes(entry.memory_usage_in_bytes),
            f"{entry.memory_usage_percentage:.2f}",
            f"{_human_bytes(entry.network_rx_in_bytes)} / "
            f"{_human_bytes(entry.network_tx_in_bytes)}",
            f"{_human_bytes(entry.block_read_in_bytes)} / "
            f"{_human_bytes(entry.block_write_in_bytes)}",
            _pod_name(entry),
        )

    console.print(table)


def _human_bytes(value: float) -> str:
    for unit in ("B", "KiB", "MiB", "GiB"):
        if abs(value) < 1024:
            return f"{value:.1f}{unit}"
        value /= 1024
    return f"{value:.1f}TiB"


def _pod_name(entry: StatsEntry) -> str:
    labels = entry.kubernetes_labels
    if "kubernetes_pod_name" not in labels:
        return "-"
    pod = labels["kubernetes_pod_name"]
    namespace = labels.get("kubernetes_pod_namespace")
    return f"{namespace}/{pod}" if namespace else pod


# Entry point for the CLI
if __name__ == "__main__":
    app()
