"""Helpers for UTC timestamps, ISO-8601 parsing and local calendar math."""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timezone
from typing import Optional, Union

UTC = timezone.utc


def parse_iso_datetime(s: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime string.

    Date-only values become local midnight. Returns ``None`` for blank or
    unparseable input.
    """

    if not s:
        return None

    value = s.strip()
    if not value:
        return None

    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.combine(date.fromisoformat(value), time.min)
    except ValueError:
        return None


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat()


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_local_naive(dt: Optional[Union[datetime, date]]) -> Optional[datetime]:
    """Express ``dt`` as a naive datetime in the server's local timezone."""

    if dt is None:
        return None
    if not isinstance(dt, datetime):
        return datetime.combine(dt, time.min)
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_now_naive() -> datetime:
    """Current UTC time without tzinfo, the form stored in timestamp columns."""

    return utc_now().replace(tzinfo=None)


def local_now() -> datetime:
    return datetime.now()


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_month(dt: datetime) -> datetime:
    """Last representable instant of the calendar month containing ``dt``."""

    last_day = calendar.monthrange(dt.year, dt.month)[1]
    return datetime.combine(date(dt.year, dt.month, last_day), time.max, tzinfo=dt.tzinfo)


__all__ = [
    "UTC",
    "end_of_month",
    "ensure_utc",
    "local_now",
    "parse_iso_datetime",
    "start_of_day",
    "to_iso",
    "to_local_naive",
    "utc_now",
    "utc_now_naive",
]
