from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the telemetry service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def upload_rows(self, path: Path, chunk_size: Optional[int] = None) -> Dict[str, Any]:
        if not path.exists():
            raise typer.BadParameter(f"File {path} does not exist.")
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")

        size = chunk_size or self._config.chunk_size
        try:
            with path.open("rb") as handle:
                response = self._client.post(
                    "/data",
                    content=_iter_chunks(handle, size),
                    headers={"Content-Type": "text/plain"},
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        payload = response.json()
        if not isinstance(payload, dict) or "success" not in payload:
            raise typer.BadParameter("Unexpected response payload when uploading readings.")
        return payload

    def query(self, from_time: str, to_time: str) -> List[Dict[str, Any]]:
        try:
            response = self._client.get("/data", params={"from": from_time, "to": to_time})
            if response.status_code == 400:
                raise typer.BadParameter(response.json().get("detail", "Invalid query window."))
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _iter_chunks(handle, size: int) -> Iterator[bytes]:
    while True:
        chunk = handle.read(size)
        if not chunk:
            return
        yield chunk
