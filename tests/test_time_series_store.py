"""Unit tests for the in-memory time-series store."""

from __future__ import annotations

from datastore.time_series_store import TimeSeriesStore, build_default_store
from models.records import BatchEntry, Channel, StoredReading


def _entry(time: int, value: float) -> BatchEntry:
    return BatchEntry(key=time, reading=StoredReading(time=time, value=value))


def test_upsert_returns_stored_reading() -> None:
    store = TimeSeriesStore()
    reading = StoredReading(time=100, value=1.0)

    assert store.upsert(Channel.current, 100, reading) is reading
    assert store.get(Channel.current, 100) == reading


def test_upsert_is_idempotent() -> None:
    store = TimeSeriesStore()
    reading = StoredReading(time=100, value=1.0)

    store.upsert(Channel.current, 100, reading)
    snapshot = store.read(Channel.current)
    store.upsert(Channel.current, 100, reading)

    assert store.read(Channel.current) == snapshot
    assert store.count() == 1


def test_last_write_wins() -> None:
    store = TimeSeriesStore()

    store.upsert(Channel.current, 100, StoredReading(time=100, value=1.0))
    store.upsert(Channel.current, 100, StoredReading(time=100, value=2.0))

    assert store.read(Channel.current, lambda reading: reading.time == 100) == [
        StoredReading(time=100, value=2.0)
    ]


def test_channels_are_separate_partitions() -> None:
    store = TimeSeriesStore()

    store.upsert(Channel.current, 100, StoredReading(time=100, value=1.0))
    store.upsert(Channel.voltage, 100, StoredReading(time=100, value=230.0))

    assert store.get(Channel.current, 100) == StoredReading(time=100, value=1.0)
    assert store.get(Channel.voltage, 100) == StoredReading(time=100, value=230.0)
    assert store.count(Channel.current) == 1
    assert store.count(Channel.voltage) == 1


def test_upsert_bulk_applies_in_order_and_returns_batch() -> None:
    store = TimeSeriesStore()
    batch = [_entry(10, 1.0), _entry(20, 2.0), _entry(10, 3.0)]

    returned = store.upsert_bulk(Channel.voltage, batch)

    assert returned is batch
    assert store.get(Channel.voltage, 10) == StoredReading(time=10, value=3.0)
    assert store.count(Channel.voltage) == 2


def test_read_filters_with_exclusive_window() -> None:
    store = TimeSeriesStore()
    store.upsert_bulk(Channel.current, [_entry(10, 1.0), _entry(20, 2.0), _entry(30, 3.0)])

    selected = store.read(Channel.current, lambda reading: 10 < reading.time < 30)

    assert selected == [StoredReading(time=20, value=2.0)]


def test_read_unknown_channel_returns_empty_without_calling_predicate() -> None:
    store = TimeSeriesStore()

    def exploding(_reading: StoredReading) -> bool:
        raise AssertionError("predicate must not run for an empty partition")

    assert store.read(Channel.voltage, exploding) == []
    assert store.get(Channel.voltage, 1) is None


def test_default_store_is_shared_until_cache_cleared() -> None:
    build_default_store.cache_clear()
    try:
        first = build_default_store()
        assert build_default_store() is first
        build_default_store.cache_clear()
        assert build_default_store() is not first
    finally:
        build_default_store.cache_clear()
