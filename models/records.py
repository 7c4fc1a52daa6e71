"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class Channel(str, Enum):
    """Measurement channels accepted by the ingest pipeline."""

    voltage = "Voltage"
    current = "Current"


@dataclass(frozen=True, slots=True)
class Reading:
    """A single channel-tagged reading parsed from an ingest row."""

    time: int
    value: float
    channel: Channel


@dataclass(frozen=True, slots=True)
class StoredReading:
    """A reading as held by the store; the channel is the partition key."""

    time: int
    value: float


@dataclass(frozen=True, slots=True)
class BatchEntry:
    key: int
    reading: StoredReading


@dataclass(frozen=True, slots=True)
class RawPoint:
    """A stored reading rendered for query output."""

    time: str
    value: float


@dataclass(frozen=True, slots=True)
class PowerPoint:
    """Average current times average voltage for one UTC day."""

    time: str
    value: str
    name: str = "Power"


def utc_datetime(epoch_seconds: int) -> datetime:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    rendered = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")
