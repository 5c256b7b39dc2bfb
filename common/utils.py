"""Timestamp helpers shared by the store and the wire model."""

from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive values are assumed to already be UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def datetime_from_ns(ns: int) -> datetime:
    """
    Convert a nanosecond epoch timestamp (os.stat st_mtime_ns) to datetime.

    Truncates to microseconds, the precision carried on the wire.
    """
    return EPOCH + timedelta(microseconds=ns // 1000)


def datetime_to_ns(value: datetime) -> int:
    """Convert a datetime to nanoseconds since the epoch without float rounding."""
    return ((to_utc(value) - EPOCH) // _MICROSECOND) * 1000
