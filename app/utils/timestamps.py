"""
Timestamp normalization.

Firestore hands back DatetimeWithNanoseconds / protobuf Timestamps, the JSON
snapshot store hands back ISO strings, and callers pass plain datetimes. Every
value is converted to a timezone-aware UTC datetime at the store boundary.
"""

from datetime import datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse various timestamp formats to timezone-aware datetime (UTC).

    Returns None for None or anything that cannot be interpreted.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, str):
        try:
            return _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)

    # protobuf Timestamp / firestore Timestamp interfaces
    if hasattr(value, "ToDatetime"):
        return _as_utc(value.ToDatetime())
    if hasattr(value, "to_datetime"):
        return _as_utc(value.to_datetime())
    if hasattr(value, "timestamp"):
        return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
    return None
