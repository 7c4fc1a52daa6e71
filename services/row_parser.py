"""Tolerant parsing of whitespace separated sensor rows."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Pattern, Sequence

from models.records import Channel, Reading
from services.errors import RowValidationError

# Matched anywhere inside a token, so "ts=1700000000" still yields a time.
_TIME_PATTERN = re.compile(r"\d{10}")
_VALUE_PATTERN = re.compile(r"\d+\.\d+")

_LEADING_INT = re.compile(r"[+-]?\d+")
_LEADING_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_CHANNEL_NAMES = {channel.value: channel for channel in Channel}


@dataclass
class RowParseResult:
    ok: bool
    data: Optional[Reading] = None
    reason: List[str] = field(default_factory=list)
    row: str = ""

    def unwrap(self) -> Reading:
        if not self.ok or self.data is None:
            raise RowValidationError(self.row, self.reason)
        return self.data


def _find_token(tokens: Sequence[str], pattern: Pattern[str]) -> Optional[re.Match[str]]:
    for token in tokens:
        match = pattern.search(token)
        if match is not None:
            return match
    return None


def _leading_number(match: re.Match[str], prefix: Pattern[str], convert: Callable[[str], float]):
    # Prefer the token's own numeric prefix ("1.5A" -> 1.5) and fall back to
    # the matched run for tokens such as "v=3.3".
    head = prefix.match(match.string)
    return convert(head.group(0) if head else match.group(0))


def parse_row(row: str) -> RowParseResult:
    """Extract time, value and channel from ``row`` in any token order.

    Each field is located independently as the first token that fits its
    shape, so garbage tokens are tolerated and one token may satisfy several
    fields. A rejected result lists one reason per missing field and never
    carries a partial reading.
    """

    tokens = row.split()
    joined = " ".join(tokens)

    time_match = _find_token(tokens, _TIME_PATTERN)
    value_match = _find_token(tokens, _VALUE_PATTERN)
    channel = next((_CHANNEL_NAMES[token] for token in tokens if token in _CHANNEL_NAMES), None)

    reasons: list[str] = []
    if time_match is None:
        reasons.append(f"missing time: {joined}")
    if value_match is None:
        reasons.append(f"missing value: {joined}")
    if channel is None:
        reasons.append(f"unrecognized channel: {joined}")

    if time_match is None or value_match is None or channel is None:
        return RowParseResult(ok=False, reason=reasons, row=row)

    reading = Reading(
        time=_leading_number(time_match, _LEADING_INT, int),
        value=_leading_number(value_match, _LEADING_FLOAT, float),
        channel=channel,
    )
    return RowParseResult(ok=True, data=reading, row=row)
