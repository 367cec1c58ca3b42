"""Date helpers. Datetimes are stored as naive UTC."""

from datetime import date, datetime, timezone
from typing import Optional

from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    """Aware datetimes are converted to UTC, naive ones are assumed UTC"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month"""
    first = date(year, month, 1)
    return first, first + relativedelta(months=1, days=-1)


def parse_rfc3339(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp from Google into naive UTC"""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_utc_naive(datetime.fromisoformat(value))


def format_rfc3339(value: datetime) -> str:
    """Naive UTC (or aware) datetime to an RFC 3339 UTC string"""
    return to_utc_naive(value).replace(microsecond=0).isoformat() + "Z"
