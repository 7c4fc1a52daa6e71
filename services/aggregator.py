"""Aggregation logic for sensor readings."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Dict, Iterable, List, Optional

from models.records import Channel, PowerPoint, StoredReading, format_timestamp, utc_datetime

_CENTS = Decimal("0.01")
# Wide enough for any finite float once fixed at two decimals.
_POWER_CONTEXT = Context(prec=400)


@dataclass
class DayBucket:
    """Readings of one UTC calendar day, split by channel."""

    day_start: datetime
    values: Dict[Channel, List[float]] = field(default_factory=dict)

    def add(self, channel: Channel, value: float) -> None:
        self.values.setdefault(channel, []).append(value)

    def mean(self, channel: Channel) -> Optional[float]:
        values = self.values.get(channel)
        if not values:
            return None
        return sum(values) / len(values)


def format_power(value: float) -> str:
    """Two-decimal rendering with ties rounded away from zero.

    Rounding works on the exact binary value of ``value``, so 0.125 becomes
    "0.13" while 1.005 (stored as 1.00499...) becomes "1.00".
    """

    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return str(Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP, context=_POWER_CONTEXT))


def day_start(epoch_seconds: int) -> datetime:
    moment = utc_datetime(epoch_seconds)
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


class PowerAggregator:
    """Derives the daily Power series from current and voltage readings."""

    def __init__(self, sort_by_day: bool = True) -> None:
        self.sort_by_day = sort_by_day

    def bucket_by_day(
        self,
        current: Iterable[StoredReading],
        voltage: Iterable[StoredReading],
    ) -> Dict[datetime, DayBucket]:
        buckets: Dict[datetime, DayBucket] = {}
        for channel, readings in ((Channel.current, current), (Channel.voltage, voltage)):
            for reading in readings:
                start = day_start(reading.time)
                bucket = buckets.get(start)
                if bucket is None:
                    bucket = buckets[start] = DayBucket(day_start=start)
                bucket.add(channel, reading.value)
        return buckets

    def compute_power(
        self,
        current: Iterable[StoredReading],
        voltage: Iterable[StoredReading],
    ) -> List[PowerPoint]:
        buckets = self.bucket_by_day(current, voltage)
        days = sorted(buckets) if self.sort_by_day else list(buckets)

        power: list[PowerPoint] = []
        for day in days:
            bucket = buckets[day]
            avg_current = bucket.mean(Channel.current)
            avg_voltage = bucket.mean(Channel.voltage)
            # Days with a single channel get no partial estimate.
            if avg_current is None or avg_voltage is None:
                continue
            power.append(
                PowerPoint(
                    time=format_timestamp(day),
                    value=format_power(avg_current * avg_voltage),
                )
            )
        return power
