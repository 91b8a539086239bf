import time
from datetime import datetime, timedelta, timezone

TIMEZONE_INFO = timezone.utc


def utc_now() -> datetime:
    return datetime.now(TIMEZONE_INFO)


def utc_now_iso() -> str:
    """ISO-8601 timestamp with millisecond precision, e.g. 2025-01-25T10:30:00.123Z"""
    return to_iso(utc_now())


def to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=TIMEZONE_INFO)
    return dt.astimezone(TIMEZONE_INFO).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=TIMEZONE_INFO)
    return dt


def window_start_iso(window_seconds: float, now: datetime | None = None) -> str:
    """Start of a trailing window measured back from now."""
    now = now or utc_now()
    return to_iso(now - timedelta(seconds=window_seconds))


def epoch_ms() -> int:
    return int(time.time() * 1000)
