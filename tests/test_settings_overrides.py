from __future__ import annotations

from typing import Iterable

from datastore.time_series_store import build_default_store
from services.ingest import build_default_pipeline
from services.query import build_default_query_service
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


CACHES = (
    get_settings,
    build_default_store,
    build_default_pipeline,
    build_default_query_service,
)


def test_environment_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", " debug ")
    monkeypatch.setenv("INGEST_BUFFER_PARTIAL_ROWS", "yes")
    monkeypatch.setenv("INGEST_ENCODING", "latin-1")
    monkeypatch.setenv("POWER_SORT_BY_DAY", "off")
    _clear_caches(CACHES)

    try:
        settings = get_settings()
        pipeline = build_default_pipeline()
        query_service = build_default_query_service()

        assert settings.log_level == "DEBUG"
        assert pipeline.buffer_partial_rows is True
        assert pipeline.encoding == "latin-1"
        assert query_service.aggregator.sort_by_day is False
        assert pipeline.store is query_service.store is build_default_store()
    finally:
        _clear_caches(CACHES)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "   ")
    monkeypatch.setenv("INGEST_BUFFER_PARTIAL_ROWS", "maybe")
    monkeypatch.setenv("INGEST_ENCODING", "")
    monkeypatch.delenv("POWER_SORT_BY_DAY", raising=False)
    get_settings.cache_clear()

    try:
        settings = get_settings()
        assert settings.log_level == "INFO"
        assert settings.buffer_partial_rows is False
        assert settings.ingest_encoding == "utf-8"
        assert settings.sort_power_by_day is True
    finally:
        get_settings.cache_clear()
