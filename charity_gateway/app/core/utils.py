"""Utility functions for the gateway application."""

import time
from datetime import datetime, timezone


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def format_epoch_ms(timestamp_ms: int) -> str:
    """Render an epoch-millisecond timestamp as an ISO-8601 UTC string.

    Examples:
        >>> format_epoch_ms(0)
        '1970-01-01T00:00:00.000Z'
    """
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def to_iso_z(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision.

    Naive datetimes are assumed to already be in UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_epoch_ms(int(value.timestamp() * 1000))
