from datetime import datetime, timezone as dt_timezone


def now_utc() -> datetime:
    """Current time as UTC-naive, the form every timestamp column stores."""
    return datetime.now(dt_timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt: datetime | None) -> datetime | None:
    """
    Normalize any datetime to UTC-naive (tzinfo=None) for consistent storage/comparison.
    - Aware datetimes are converted to UTC and tzinfo is stripped
    - Naive datetimes are returned as-is (assumed UTC)
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(dt_timezone.utc).replace(tzinfo=None)


def days_since(dt: datetime | None, now: datetime | None = None) -> int:
    """Whole days elapsed since ``dt`` (0 when unknown or in the future)."""
    if dt is None:
        return 0
    now = now or now_utc()
    delta = now - to_utc_naive(dt)
    return max(delta.days, 0)


def epoch_millis(now: datetime | None = None) -> int:
    now = now or datetime.now(dt_timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt_timezone.utc)
    return int(now.timestamp() * 1000)
