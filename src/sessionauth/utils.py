from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, as returned by MongoDB without tz_aware."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision, which BSON dates cannot store."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)
