from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Any, Iterable, Sequence

from settings import get_settings

_DEFAULT_EXTRA_KEYS = (
    "session_id",
    "chunk_index",
    "channel",
    "row",
    "reason",
    "status",
    "accepted_rows",
    "rejected_rows",
    "failed_chunks",
    "from_time",
    "to_time",
    "result_count",
)

_configured = False


class ContextualFormatter(logging.Formatter):
    """Append ``extra=`` context to each line as ``key=value`` pairs.

    Timestamps are rendered in UTC to match the ``Z`` suffix of the format.
    Values containing whitespace (raw sensor rows, rejection reasons) are
    quoted so a single log line stays machine splittable.
    """

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        extra_keys: Iterable[str] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._extra_keys: Sequence[str] = tuple(extra_keys or _DEFAULT_EXTRA_KEYS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{key}={_render_value(getattr(record, key))}"
            for key in self._extra_keys
            if getattr(record, key, None) is not None
        )
        if context:
            return f"{message} | {context}"
        return message


def _render_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        value = "; ".join(str(item) for item in value)
    text = str(value)
    if not text or any(char.isspace() for char in text):
        return repr(text)
    return text


def configure_logging(level: str | int | None = None) -> None:
    """Configure application-wide logging with contextual formatting."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    log_level = level if level is not None else settings.log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                    "style": "%",
                    "extra_keys": list(_DEFAULT_EXTRA_KEYS),
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
