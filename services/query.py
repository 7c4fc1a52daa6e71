"""Range queries combining raw readings with the derived Power series."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Union

from datastore.time_series_store import TimeSeriesStore, build_default_store
from models.records import Channel, PowerPoint, RawPoint, StoredReading, format_timestamp, utc_datetime
from services.aggregator import PowerAggregator
from services.errors import QueryInputError
from settings import get_settings

logger = logging.getLogger(__name__)

TimeBound = Union[str, datetime]
QueryPoint = Union[RawPoint, PowerPoint]


def parse_time_bound(value: TimeBound, name: str) -> int:
    """Convert an ISO-8601 date or date-time to epoch seconds (floored)."""

    if isinstance(value, datetime):
        parsed = value
    else:
        candidate = (value or "").strip()
        if not candidate:
            raise QueryInputError(f"Query parameter {name!r} is required.")
        if candidate.endswith(("Z", "z")):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError as exc:
            raise QueryInputError(
                f"Query parameter {name!r} is not an ISO-8601 date-time: {value!r}"
            ) from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return math.floor(parsed.timestamp())


def _raw_point(reading: StoredReading) -> RawPoint:
    return RawPoint(time=format_timestamp(utc_datetime(reading.time)), value=reading.value)


class QueryService:
    """Reads both channels in a window and appends the daily Power series."""

    def __init__(self, store: TimeSeriesStore, aggregator: PowerAggregator) -> None:
        self.store = store
        self.aggregator = aggregator

    def query(self, from_time: TimeBound, to_time: TimeBound) -> List[QueryPoint]:
        start = parse_time_bound(from_time, "from")
        end = parse_time_bound(to_time, "to")
        if start > end:
            raise QueryInputError("Query parameter 'from' must not be later than 'to'.")

        def in_window(reading: StoredReading) -> bool:
            return start < reading.time < end

        current = self.store.read(Channel.current, in_window)
        voltage = self.store.read(Channel.voltage, in_window)
        power = self.aggregator.compute_power(current, voltage)

        results: list[QueryPoint] = [_raw_point(reading) for reading in current]
        results.extend(_raw_point(reading) for reading in voltage)
        results.extend(power)

        logger.info(
            "Query served",
            extra={
                "from_time": start,
                "to_time": end,
                "result_count": len(results),
            },
        )
        return results


@lru_cache
def build_default_query_service() -> QueryService:
    settings = get_settings()
    return QueryService(
        store=build_default_store(),
        aggregator=PowerAggregator(sort_by_day=settings.sort_power_by_day),
    )
