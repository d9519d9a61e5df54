"""Freshness rules for cached provider payloads."""

from datetime import UTC, datetime, timedelta

from alset_api.models.property_record import PropertyRecord

FRESHNESS_WINDOW = timedelta(hours=24)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def is_fresh(
    last_refreshed_at: datetime | None,
    now: datetime | None = None,
    window: timedelta = FRESHNESS_WINDOW,
) -> bool:
    """Whether a payload refreshed at ``last_refreshed_at`` is still usable.

    Args:
        last_refreshed_at: Time of the last successful provider fetch.
        now: Current time; defaults to ``datetime.now(UTC)``.
        window: Maximum payload age.

    Returns:
        True when ``now - last_refreshed_at < window``.  Never-refreshed
        payloads are never fresh.
    """
    if last_refreshed_at is None:
        return False
    current = as_utc(now) if now is not None else datetime.now(UTC)
    return current - as_utc(last_refreshed_at) < window


def needs_refresh(
    record: PropertyRecord,
    now: datetime | None = None,
    window: timedelta = FRESHNESS_WINDOW,
    *,
    force: bool = False,
) -> bool:
    """Whether a lookup of ``record`` must go to the provider."""
    return (
        force
        or not record.provider_data_fresh
        or not is_fresh(record.last_refreshed_at, now, window)
        or not record.has_provider_data
    )
