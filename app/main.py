from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from datastore.time_series_store import build_default_store
from logging_config import configure_logging
from services.ingest import build_default_pipeline
from services.query import build_default_query_service


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    build_default_store()
    try:
        yield
    finally:
        # Readings live for the process only; drop them with the app.
        build_default_query_service.cache_clear()
        build_default_pipeline.cache_clear()
        build_default_store.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Power Telemetry",
        description="Streams voltage and current readings into memory and serves daily power.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
