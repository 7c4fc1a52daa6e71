from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_ingest, render_query


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for streaming readings to and querying the power telemetry service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Text file of 'time value channel' rows."
    ),
    chunk_size: Optional[int] = typer.Option(
        None,
        "--chunk-size",
        min=1,
        help="Bytes per streamed chunk.",
    ),
) -> None:
    """Stream a file of readings to the service."""
    state = _get_state(ctx)
    typer.echo(f"Streaming {file} to {state.config.base_url} ...")
    payload = state.client.upload_rows(file, chunk_size=chunk_size)
    color = typer.colors.GREEN if payload.get("success") else typer.colors.RED
    typer.secho(
        f"Upload finished. accepted={payload.get('accepted_rows')} rejected={payload.get('rejected_rows')}",
        fg=color,
    )
    typer.echo()
    render_ingest(payload)


@app.command("query")
def query_command(
    ctx: typer.Context,
    from_time: str = typer.Option(..., "--from", help="Window start, ISO-8601 (exclusive)."),
    to_time: str = typer.Option(..., "--to", help="Window end, ISO-8601 (exclusive)."),
) -> None:
    """Show raw readings and daily Power within a time window."""
    state = _get_state(ctx)
    items = state.client.query(from_time, to_time)
    render_query(items)
