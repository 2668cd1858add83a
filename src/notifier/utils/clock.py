"""UTC helpers shared by the aggregates and the scheduler."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalize a datetime to an aware UTC value.

    Naive values are assumed to already be in UTC, which is how the memory
    and SQL providers hand them back.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
