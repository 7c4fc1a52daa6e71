from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 30.0
DEFAULT_CHUNK_SIZE = 64 * 1024

_BASE_URL_ENV = "API_BASE_URL"
_TIMEOUT_ENV = "CLI_TIMEOUT"
_CHUNK_SIZE_ENV = "CLI_CHUNK_SIZE"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE


def _read_float(value: Optional[str], default: float) -> float:
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def load_config(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    chunk_size: Optional[int] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if timeout is None:
        timeout = _read_float(os.getenv(_TIMEOUT_ENV), DEFAULT_TIMEOUT)
    if chunk_size is None:
        chunk_size = _read_int(os.getenv(_CHUNK_SIZE_ENV), DEFAULT_CHUNK_SIZE)
    return CLIConfig(
        base_url=url.rstrip("/"),
        timeout=timeout,
        chunk_size=chunk_size,
    )
