from __future__ import annotations

from functools import lru_cache
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from models.records import BatchEntry, Channel, StoredReading

ReadingPredicate = Callable[[StoredReading], bool]


class TimeSeriesStore:
    """In-memory readings partitioned by channel and keyed by epoch seconds.

    A write for an existing ``(channel, key)`` replaces the stored reading.
    Each call runs under the store lock; a bulk write is applied as one unit
    but nothing spans several calls, so concurrent ingest sessions interleave
    at batch granularity and readers may see a partially ingested upload.
    """

    def __init__(self, name: str = "readings") -> None:
        self.name = name
        self._partitions: Dict[Channel, Dict[int, StoredReading]] = {}
        self._lock = Lock()

    def upsert(self, channel: Channel, key: int, reading: StoredReading) -> StoredReading:
        with self._lock:
            self._partitions.setdefault(channel, {})[key] = reading
        return reading

    def upsert_bulk(self, channel: Channel, batch: Sequence[BatchEntry]) -> Sequence[BatchEntry]:
        with self._lock:
            partition = self._partitions.setdefault(channel, {})
            for entry in batch:
                partition[entry.key] = entry.reading
        return batch

    def get(self, channel: Channel, key: int) -> Optional[StoredReading]:
        with self._lock:
            partition = self._partitions.get(channel)
            if partition is None:
                return None
            return partition.get(key)

    def read(
        self,
        channel: Channel,
        predicate: Optional[ReadingPredicate] = None,
    ) -> List[StoredReading]:
        """Return readings of ``channel`` accepted by ``predicate``.

        Unknown channels yield an empty list without calling the predicate.
        """

        with self._lock:
            partition = self._partitions.get(channel)
            if not partition:
                return []
            readings: Iterable[StoredReading] = list(partition.values())
        if predicate is None:
            return list(readings)
        return [reading for reading in readings if predicate(reading)]

    def count(self, channel: Optional[Channel] = None) -> int:
        with self._lock:
            if channel is not None:
                return len(self._partitions.get(channel, {}))
            return sum(len(partition) for partition in self._partitions.values())


@lru_cache
def build_default_store(name: Optional[str] = None) -> TimeSeriesStore:
    return TimeSeriesStore(name=name or "readings")
