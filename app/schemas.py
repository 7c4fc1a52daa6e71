"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from services.ingest import SessionStatus


class IngestResponse(BaseModel):
    """Outcome of streaming one upload into the store."""

    success: bool
    session_id: Optional[str] = None
    status: Optional[SessionStatus] = None
    accepted_rows: int = Field(default=0, ge=0)
    rejected_rows: int = Field(default=0, ge=0)
    failed_chunks: int = Field(default=0, ge=0)


class QueryItem(BaseModel):
    """A raw reading (``time``, ``value``) or a Power point (with ``name``)."""

    model_config = ConfigDict(from_attributes=True)

    time: str = Field(..., description="ISO-8601 UTC timestamp.")
    value: Union[float, str] = Field(
        ..., description="Reading value, or the Power value formatted to two decimals."
    )
    name: Optional[str] = None


class ReadingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    time: int
    value: float


class HealthResponse(BaseModel):
    status: str
    detail: Optional[str] = None
    readings: Dict[str, int] = Field(default_factory=dict)
