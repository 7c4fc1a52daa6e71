from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_LOG_LEVEL_ENV = "LOG_LEVEL"
_BUFFER_PARTIAL_ROWS_ENV = "INGEST_BUFFER_PARTIAL_ROWS"
_ENCODING_ENV = "INGEST_ENCODING"
_SORT_POWER_ENV = "POWER_SORT_BY_DAY"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    log_level: str
    buffer_partial_rows: bool
    ingest_encoding: str
    sort_power_by_day: bool


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        log_level=_read_log_level("INFO"),
        buffer_partial_rows=_read_bool_env(_BUFFER_PARTIAL_ROWS_ENV, False),
        ingest_encoding=_read_str_env(_ENCODING_ENV, "utf-8"),
        sort_power_by_day=_read_bool_env(_SORT_POWER_ENV, True),
    )
