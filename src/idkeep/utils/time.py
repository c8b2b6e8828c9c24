"""
Timestamp helpers.
Timestamps are UTC, ISO 8601 formatted, and never go backwards within a process.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from ..config import TIMESTAMP_FORMAT


class MonotonicClock:
    """
    UTC clock whose readings never repeat or decrease.
    Keeps creation timestamps ordered even when the wall clock stalls.
    """

    def __init__(self):
        self._last: Optional[datetime] = None

    def now(self) -> str:
        current = datetime.now(timezone.utc)
        if self._last is not None and current <= self._last:
            current = self._last + timedelta(microseconds=1)
        self._last = current
        return current.strftime(TIMESTAMP_FORMAT)


_clock = MonotonicClock()


def now() -> str:
    """Current monotonic UTC timestamp."""
    return _clock.now()


def parse_timestamp(timestamp_str: str) -> datetime:
    """
    Parse a timestamp produced by now().

    Raises:
        ValueError: If the format is invalid
    """
    try:
        return datetime.strptime(timestamp_str, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise ValueError(f"Invalid timestamp format: {e}")
