"""
Local-day resolution in the configured civil timezone.

Turns an instant (or a literal YYYY-MM-DD) into the civil date plus the UTC
instants of local 00:00:00.000 and 23:59:59.999 on that date.

The UTC offset is sampled at the target wall-clock moment itself (read as a
UTC instant, re-formatted in the zone and diffed), never at call time, so a
date that straddles a DST transition gets that day's offset rather than
today's. The zone formatter works at whole-second precision, which is why an
end-of-day instant carries a .998 millisecond tail:

    get_utc_range_for_date("2025-11-15", "Australia/Sydney")
        start 2025-11-14T13:00:00.000Z   end 2025-11-15T13:00:00.998Z

Public API
----------
get_local_day_range(at, tz_name)        -> LocalDayRange
get_utc_range_for_date(value, tz_name)  -> UtcRange
parse_date_string(value)                -> date
local_date_of(instant, tz_name)         -> date
format_utc_iso(instant)                 -> str
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

import pytz

from app.core.config import settings
from app.core.errors import InvalidDateFormatError

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_END_OF_DAY = (23, 59, 59, 999_000)


@dataclass(frozen=True)
class UtcRange:
    start: datetime   # aware, UTC
    end: datetime     # aware, UTC

    @property
    def start_iso(self) -> str:
        return format_utc_iso(self.start)

    @property
    def end_iso(self) -> str:
        return format_utc_iso(self.end)


@dataclass(frozen=True)
class LocalDayRange(UtcRange):
    date: date

    def to_dict(self) -> dict[str, str]:
        return {
            "date": self.date.isoformat(),
            "start": self.start_iso,
            "end": self.end_iso,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def get_default_timezone() -> str:
    return settings.APP_TIMEZONE


def _zone(tz_name: Optional[str]):
    return pytz.timezone(tz_name or get_default_timezone())


def _as_utc(instant: datetime) -> datetime:
    """Naive datetimes are read as UTC (SQLite hands them back that way)."""
    if instant.tzinfo is None:
        return pytz.utc.localize(instant)
    return instant.astimezone(pytz.utc)


def format_utc_iso(instant: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a trailing Z."""
    utc = _as_utc(instant)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def _wall_clock(instant: datetime, zone) -> datetime:
    """Civil Y-M-D h:m:s of `instant` in `zone`, as a naive datetime."""
    local = _as_utc(instant).astimezone(zone)
    return local.replace(tzinfo=None, microsecond=0)


def _offset_at(instant: datetime, zone) -> timedelta:
    return _wall_clock(instant, zone) - _as_utc(instant).replace(tzinfo=None)


def _zoned_time_to_utc(wall: datetime, zone) -> datetime:
    naive_utc = pytz.utc.localize(wall)
    return naive_utc - _offset_at(naive_utc, zone)


def _day_bounds(day: date, zone) -> tuple[datetime, datetime]:
    start = _zoned_time_to_utc(datetime(day.year, day.month, day.day), zone)
    end = _zoned_time_to_utc(datetime(day.year, day.month, day.day, *_END_OF_DAY), zone)
    return start, end


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def parse_date_string(value: str) -> date:
    """Parse a strict YYYY-MM-DD string; raise InvalidDateFormatError otherwise."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise InvalidDateFormatError(value)
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidDateFormatError(value) from exc


def local_date_of(instant: datetime, tz_name: Optional[str] = None) -> date:
    """Civil date on which `instant` falls in the given timezone."""
    return _as_utc(instant).astimezone(_zone(tz_name)).date()


def get_local_day_range(
    at: Optional[datetime] = None,
    tz_name: Optional[str] = None,
) -> LocalDayRange:
    """Civil date of `at` (default: now) plus its local-day UTC bounds."""
    zone = _zone(tz_name)
    instant = at if at is not None else datetime.now(tz=pytz.utc)
    wall = _wall_clock(instant, zone)
    day = wall.date()
    start, end = _day_bounds(day, zone)
    return LocalDayRange(start=start, end=end, date=day)


def get_utc_range_for_date(
    value: str | date,
    tz_name: Optional[str] = None,
) -> UtcRange:
    """Same construction as get_local_day_range, from a literal civil date."""
    day = value if isinstance(value, date) else parse_date_string(value)
    start, end = _day_bounds(day, _zone(tz_name))
    return UtcRange(start=start, end=end)


def local_today(tz_name: Optional[str] = None) -> date:
    return get_local_day_range(tz_name=tz_name).date
