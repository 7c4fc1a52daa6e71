from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_ingest(payload: Dict[str, Any]) -> None:
    echo_heading("Ingest Result")
    echo_key_values(
        [
            ("success", payload.get("success")),
            ("session_id", payload.get("session_id")),
            ("status", payload.get("status")),
            ("accepted_rows", payload.get("accepted_rows")),
            ("rejected_rows", payload.get("rejected_rows")),
            ("failed_chunks", payload.get("failed_chunks")),
        ]
    )


def render_query(items: List[Dict[str, Any]]) -> None:
    readings = [item for item in items if "name" not in item]
    power = [item for item in items if "name" in item]

    echo_heading("Readings")
    if readings:
        for item in readings:
            typer.echo(f"  - {item.get('time')}: {item.get('value')}")
    else:
        typer.echo("No readings in window.")

    typer.echo()
    echo_heading("Power")
    if power:
        for item in power:
            typer.echo(f"  - {item.get('time')}: {item.get('value')}")
    else:
        typer.echo("No days with both current and voltage readings.")
