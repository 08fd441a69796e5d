import datetime as dt
from zoneinfo import ZoneInfo

from legalai.config import settings


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime | None) -> dt.datetime | None:
    # SQLite hands back naive values; everything is stored in UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def local_today(tz_name: str | None = None) -> dt.date:
    """Calendar date in the quota timezone (not a rolling 24h window)."""
    return dt.datetime.now(tz=ZoneInfo(tz_name or settings.quota_timezone)).date()


def end_of_day_utc(day: dt.date) -> dt.datetime:
    return dt.datetime.combine(day, dt.time.max, tzinfo=dt.timezone.utc)


def iso(value: dt.datetime | None) -> str | None:
    value = as_utc(value)
    return value.isoformat() if value else None
