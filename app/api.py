"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from app.schemas import HealthResponse, IngestResponse, QueryItem, ReadingResponse
from datastore.time_series_store import TimeSeriesStore, build_default_store
from models.records import Channel
from services.errors import QueryInputError, StreamTransportError
from services.ingest import IngestPipeline, build_default_pipeline
from services.query import QueryService, build_default_query_service

router = APIRouter()


def get_pipeline() -> IngestPipeline:
    return build_default_pipeline()


def get_query_service() -> QueryService:
    return build_default_query_service()


def get_store() -> TimeSeriesStore:
    return build_default_store()


def _is_plain_text(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower() == "text/plain"


@router.post(
    "/data",
    response_model=IngestResponse,
    summary="Stream newline separated sensor rows into the store.",
)
async def store_data(
    request: Request,
    pipeline: IngestPipeline = Depends(get_pipeline),
):
    if not _is_plain_text(request):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid content type",
        )

    session = pipeline.open_session()
    try:
        summary = await session.ingest_stream(request.stream())
    except StreamTransportError:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "session_id": session.session_id},
        )
    return IngestResponse(
        success=True,
        session_id=summary.session_id,
        status=summary.status,
        accepted_rows=summary.accepted_rows,
        rejected_rows=summary.rejected_rows,
        failed_chunks=summary.failed_chunks,
    )


@router.get(
    "/data",
    response_model=List[QueryItem],
    response_model_exclude_none=True,
    summary="Raw readings and daily Power within an exclusive time window.",
)
async def get_data(
    from_time: str = Query(..., alias="from", description="Window start (ISO-8601, exclusive)."),
    to_time: str = Query(..., alias="to", description="Window end (ISO-8601, exclusive)."),
    service: QueryService = Depends(get_query_service),
) -> List[QueryItem]:
    try:
        points = service.query(from_time, to_time)
    except QueryInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return [QueryItem.model_validate(point) for point in points]


@router.get(
    "/data/{channel}/{time}",
    response_model=ReadingResponse,
    summary="Fetch the reading stored for one channel and timestamp.",
)
async def get_reading(
    channel: Channel,
    time: int,
    store: TimeSeriesStore = Depends(get_store),
) -> ReadingResponse:
    reading = store.get(channel, time)
    if reading is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {channel.value} reading stored at {time}.",
        )
    return ReadingResponse.model_validate(reading)


def _health(store: TimeSeriesStore, detail: str | None = None) -> HealthResponse:
    counts = {channel.value: store.count(channel) for channel in Channel}
    return HealthResponse(status="ok", detail=detail, readings=counts)


@router.get(
    "/health",
    response_model=HealthResponse,
    response_model_exclude_none=True,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(store: TimeSeriesStore = Depends(get_store)) -> HealthResponse:
    return _health(store)


@router.get(
    "/",
    response_model=HealthResponse,
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root(store: TimeSeriesStore = Depends(get_store)) -> HealthResponse:
    return _health(store, detail="See /health for service status.")
