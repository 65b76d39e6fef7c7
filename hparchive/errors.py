"""Structured error raised by every fetch, parse and download failure."""
from datetime import date as date_type, datetime
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure kinds callers can branch on."""

    UNKNOWN_MARKET = "unknown_market"
    OUT_OF_RANGE = "out_of_range"
    TRANSPORT_FAILURE = "transport_failure"
    EMPTY_OR_MALFORMED_RESPONSE = "empty_or_malformed_response"
    VALIDATION = "validation"
    INVALID_INPUT = "invalid_input"
    DATE_MISMATCH = "date_mismatch"
    # Only ever logged as a warning
    OFFSET_MISMATCH = "offset_mismatch"
    BATCH_FAILED = "batch_failed"
    DOWNLOAD_FAILED = "download_failed"


def format_datetime(value: date_type) -> str:
    """Format a date for diagnostics, e.g. "2019-05-23 00:00:00 Asia/Shanghai (+08:00)"."""
    if not isinstance(value, datetime):
        return value.isoformat()
    text = value.strftime("%Y-%m-%d %H:%M:%S")
    if value.tzinfo is None:
        return text
    offset = value.strftime("%z")
    offset = f"{offset[:3]}:{offset[3:]}" if offset else ""
    name = getattr(value.tzinfo, "key", None)
    if name and name != offset:
        return f"{text} {name} ({offset})"
    return f"{text} {offset}"


class ArchiveError(Exception):
    """Failure carrying the market, dates and offset it happened for."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        market: Optional[str] = None,
        date: Optional[date_type] = None,
        offset: Optional[int] = None,
        response_date: Optional[date_type] = None,
        cause: Optional[BaseException] = None,
        failures: Optional[dict[str, Exception]] = None,
    ):
        self.kind = kind
        self.message = message
        self.market = market
        self.date = date
        self.offset = offset
        self.response_date = response_date
        self.cause = cause
        self.failures = failures or {}
        super().__init__(self._render())
        if cause is not None:
            self.__cause__ = cause

    def _render(self) -> str:
        parts = []
        if self.market is not None:
            parts.append(f"Market: {self.market}")
        if self.date is not None:
            parts.append(f"Date: {format_datetime(self.date)}")
        if self.offset is not None:
            parts.append(f"Offset: {self.offset}")
        if self.response_date is not None:
            parts.append(f"Response Date: {format_datetime(self.response_date)}")
        if self.failures:
            parts.append(f"Failed: {', '.join(self.failures)}")
        if self.cause is not None:
            parts.append(f"Cause: {self.cause}")
        if not parts:
            return self.message
        return f"{self.message}. {', '.join(parts)}"
