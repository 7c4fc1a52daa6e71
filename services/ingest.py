"""Streaming ingestion of sensor rows into the time-series store."""

from __future__ import annotations

import codecs
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import AsyncIterable, Callable, Dict, Iterable, Iterator, List, Optional, Union
from uuid import uuid4

from datastore.time_series_store import TimeSeriesStore, build_default_store
from models.records import BatchEntry, Channel, StoredReading
from services.errors import ChunkProcessingError, RowValidationError, StreamTransportError
from services.row_parser import parse_row
from settings import get_settings

logger = logging.getLogger(__name__)

RejectHandler = Callable[[RowValidationError], None]


class SessionStatus(str, Enum):
    """Lifecycle of one inbound stream."""

    open = "open"
    completed = "completed"
    failed = "failed"


@dataclass
class IngestSummary:
    session_id: str
    status: SessionStatus = SessionStatus.open
    chunks: int = 0
    accepted_rows: int = 0
    rejected_rows: int = 0
    failed_chunks: int = 0


class IngestSession:
    """Consumes one upload chunk by chunk and writes accepted rows.

    Rows are split inside each chunk. Unless ``buffer_partial_rows`` is set,
    a row cut by a chunk boundary turns into two rejected fragments; with it,
    the text after a chunk's last newline is held back for the next chunk and
    flushed when the stream completes.

    Bytes are decoded incrementally per session, so a multibyte character cut
    by a chunk boundary is joined again; undecodable bytes become U+FFFD and
    the rows around them are kept.
    """

    def __init__(
        self,
        store: TimeSeriesStore,
        session_id: Optional[str] = None,
        buffer_partial_rows: bool = False,
        encoding: str = "utf-8",
        on_reject: Optional[RejectHandler] = None,
    ) -> None:
        self.store = store
        self.buffer_partial_rows = buffer_partial_rows
        self.encoding = encoding
        self.on_reject = on_reject
        self.summary = IngestSummary(session_id=session_id or uuid4().hex)
        self._pending = ""
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")

    @property
    def session_id(self) -> str:
        return self.summary.session_id

    def ingest_chunk(self, chunk: Union[bytes, str]) -> None:
        if self.summary.status is not SessionStatus.open:
            raise StreamTransportError(
                f"Ingest session {self.session_id} is already {self.summary.status.value}."
            )

        chunk_index = self.summary.chunks
        self.summary.chunks += 1
        with self._chunk_guard(chunk_index):
            text = self._decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
            if self.buffer_partial_rows:
                text, _, self._pending = (self._pending + text).rpartition("\n")
            self._process_rows(text.split("\n"), chunk_index)

    def complete(self) -> IngestSummary:
        if self.summary.status is not SessionStatus.open:
            return self.summary

        pending = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        if pending:
            with self._chunk_guard(self.summary.chunks):
                self._process_rows([pending], self.summary.chunks)

        self.summary.status = SessionStatus.completed
        logger.info(
            "Ingest session completed",
            extra={
                "session_id": self.session_id,
                "status": self.summary.status.value,
                "accepted_rows": self.summary.accepted_rows,
                "rejected_rows": self.summary.rejected_rows,
                "failed_chunks": self.summary.failed_chunks,
            },
        )
        return self.summary

    def error(self, exc: BaseException) -> IngestSummary:
        self.summary.status = SessionStatus.failed
        self._pending = ""
        logger.error(
            "Ingest stream failed: %s",
            exc,
            extra={
                "session_id": self.session_id,
                "status": self.summary.status.value,
                "accepted_rows": self.summary.accepted_rows,
            },
        )
        return self.summary

    async def ingest_stream(self, chunks: AsyncIterable[Union[bytes, str]]) -> IngestSummary:
        """Drive the session from an async chunk source until it ends."""

        try:
            async for chunk in chunks:
                self.ingest_chunk(chunk)
        except Exception as exc:
            self.error(exc)
            raise StreamTransportError(str(exc) or type(exc).__name__) from exc
        return self.complete()

    @contextmanager
    def _chunk_guard(self, chunk_index: int) -> Iterator[None]:
        try:
            yield
        except Exception as exc:
            failure = ChunkProcessingError(chunk_index, exc)
            self.summary.failed_chunks += 1
            logger.error(
                str(failure),
                exc_info=exc,
                extra={"session_id": self.session_id, "chunk_index": chunk_index},
            )

    def _process_rows(self, rows: Iterable[str], chunk_index: int) -> None:
        batches: Dict[Channel, List[BatchEntry]] = {}
        for row in rows:
            if not row.strip():
                continue
            try:
                reading = parse_row(row).unwrap()
            except RowValidationError as exc:
                self._reject(exc, chunk_index)
                continue
            batches.setdefault(reading.channel, []).append(
                BatchEntry(
                    key=reading.time,
                    reading=StoredReading(time=reading.time, value=reading.value),
                )
            )

        for channel, batch in batches.items():
            self.store.upsert_bulk(channel, batch)
            self.summary.accepted_rows += len(batch)
            logger.debug(
                "Stored batch",
                extra={
                    "session_id": self.session_id,
                    "chunk_index": chunk_index,
                    "channel": channel.value,
                    "accepted_rows": len(batch),
                },
            )

    def _reject(self, error: RowValidationError, chunk_index: int) -> None:
        self.summary.rejected_rows += 1
        logger.warning(
            "Skipping row",
            extra={
                "session_id": self.session_id,
                "chunk_index": chunk_index,
                "row": error.row,
                "reason": error.reasons,
            },
        )
        if self.on_reject is not None:
            self.on_reject(error)


class IngestPipeline:
    """Opens ingest sessions that share one store."""

    def __init__(
        self,
        store: TimeSeriesStore,
        buffer_partial_rows: bool = False,
        encoding: str = "utf-8",
        on_reject: Optional[RejectHandler] = None,
    ) -> None:
        self.store = store
        self.buffer_partial_rows = buffer_partial_rows
        self.encoding = encoding
        self.on_reject = on_reject

    def open_session(self, session_id: Optional[str] = None) -> IngestSession:
        return IngestSession(
            store=self.store,
            session_id=session_id,
            buffer_partial_rows=self.buffer_partial_rows,
            encoding=self.encoding,
            on_reject=self.on_reject,
        )

    async def ingest_stream(
        self,
        chunks: AsyncIterable[Union[bytes, str]],
        session_id: Optional[str] = None,
    ) -> IngestSummary:
        return await self.open_session(session_id).ingest_stream(chunks)


@lru_cache
def build_default_pipeline() -> IngestPipeline:
    """Factory that wires the pipeline to the shared default store."""
    settings = get_settings()
    return IngestPipeline(
        store=build_default_store(),
        buffer_partial_rows=settings.buffer_partial_rows,
        encoding=settings.ingest_encoding,
    )
