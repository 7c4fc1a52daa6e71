"""Error taxonomy for the ingest and query paths."""

from __future__ import annotations

from typing import Sequence


class RowValidationError(ValueError):
    """A row is missing one or more of time, value and channel."""

    def __init__(self, row: str, reasons: Sequence[str]) -> None:
        self.row = row
        self.reasons = list(reasons)
        super().__init__("; ".join(self.reasons))


class ChunkProcessingError(RuntimeError):
    """Unexpected failure while parsing or forwarding one stream chunk."""

    def __init__(self, chunk_index: int, cause: BaseException) -> None:
        self.chunk_index = chunk_index
        self.cause = cause
        super().__init__(f"Chunk {chunk_index} could not be processed: {cause}")


class StreamTransportError(RuntimeError):
    """The inbound stream itself failed; terminal for that ingest session."""


class QueryInputError(ValueError):
    """Malformed query window parameters."""
