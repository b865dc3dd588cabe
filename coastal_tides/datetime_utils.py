"""
Date and time helpers: request windows, source-specific parsing and display formats.

Two window styles are used:
- range_from_now: rolling windows anchored to the current instant
  ("latest" status, 24-hour curve, high/low bracketing)
- range_from_midnight_today: day-aligned windows for the multi-day forecast,
  so day i means the same calendar day for every data source
"""
import re
from dataclasses import dataclass
from datetime import date as date_type
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import List, Optional, Union
from zoneinfo import ZoneInfo

from timezonefinder import TimezoneFinder

NOAA_REQUEST_FORMAT = '%Y%m%d %H:%M'

# NOAA echoes times as "2025-01-26 14:30" in station local time
_NOAA_TIME_PATTERN = re.compile(r'(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2})')


@dataclass(frozen=True)
class DateRange:
    """A [begin, end) request window."""
    begin: datetime
    end: datetime

    @property
    def begin_param(self) -> str:
        return format_noaa_date(self.begin)

    @property
    def end_param(self) -> str:
        return format_noaa_date(self.end)

    @property
    def duration(self) -> timedelta:
        """Real elapsed time between the bounds (DST aware)."""
        return _to_utc(self.end) - _to_utc(self.begin)

    def days(self) -> List[date_type]:
        """Calendar dates covered by a midnight-anchored window."""
        first = self.begin.date()
        return [first + timedelta(days=offset) for offset in range((self.end.date() - first).days)]


@lru_cache(maxsize=1)
def _timezone_finder() -> TimezoneFinder:
    return TimezoneFinder()


def get_timezone(lat: float, lon: float, timezone_str: Optional[str] = None) -> ZoneInfo:
    """
    Station time zone: the explicit name when given, otherwise the zone
    containing the coordinates. Unknown names and open-ocean points map to UTC.
    """
    name = timezone_str or _timezone_finder().timezone_at(lat=lat, lng=lon) or 'UTC'
    try:
        return ZoneInfo(name)
    except (ValueError, KeyError):
        return ZoneInfo('UTC')


def _to_utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo is None else dt.astimezone(timezone.utc)


def _resolve_now(now: Optional[datetime], tz: Optional[tzinfo]) -> datetime:
    if now is None:
        return datetime.now(tz)
    if tz is not None and now.tzinfo is not None:
        return now.astimezone(tz)
    return now


def _shift_hours(now: datetime, hours: float) -> datetime:
    """Move an instant by real hours and express the result in its own zone."""
    if now.tzinfo is None:
        return now + timedelta(hours=hours)
    return (_to_utc(now) + timedelta(hours=hours)).astimezone(now.tzinfo)


def range_from_now(
    start_offset_hours: float = 0,
    end_offset_hours: float = 24,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> DateRange:
    """
    Build a window relative to the current instant.

    Offsets are real elapsed hours, so a 24-hour window spans 24 hours even
    on a DST change day, and its bounds are always valid local times.

    Args:
        start_offset_hours: Hours from now for the start (negative = past)
        end_offset_hours: Hours from now for the end (negative = past)
        now: Reference instant (defaults to the current time in tz)
        tz: Time zone of the returned bounds (naive local time when None)

    Returns:
        DateRange(begin, end)
    """
    now = _resolve_now(now, tz)
    return DateRange(
        begin=_shift_hours(now, start_offset_hours),
        end=_shift_hours(now, end_offset_hours),
    )


def range_from_midnight_today(
    num_days: int = 7,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> DateRange:
    """
    Build a window from local midnight today spanning num_days calendar days.

    The result does not depend on the time of day of `now`, only on its date.
    Arithmetic is wall-clock in tz, so every day boundary is a local midnight
    even across DST transitions.

    Args:
        num_days: Number of calendar days (>= 1)
        now: Reference instant (defaults to the current time in tz)
        tz: Time zone whose midnight anchors the window

    Returns:
        DateRange with begin at 00:00:00.000000 and end = begin + num_days days
    """
    if num_days < 1:
        raise ValueError(f"num_days must be at least 1, got {num_days}")
    now = _resolve_now(now, tz)
    begin = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return DateRange(begin=begin, end=begin + timedelta(days=num_days))


def parse_noaa_local_time(time_string: Optional[str], tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """
    Parse a NOAA local time string ("2025-01-26 14:30").

    Args:
        time_string: Time string as returned by the CO-OPS API
        tz: Station time zone to attach (naive result when None)

    Returns:
        datetime, or None if the string does not match or is not a valid date
    """
    if not time_string or not isinstance(time_string, str):
        return None

    match = _NOAA_TIME_PATTERN.search(time_string)
    if not match:
        return None

    year, month, day, hour, minute = (int(part) for part in match.groups())
    try:
        return datetime(year, month, day, hour, minute, tzinfo=tz)
    except ValueError:
        return None


def parse_iso_time(time_string: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp (NWS style, "Z" suffix allowed)."""
    if not time_string or not isinstance(time_string, str):
        return None
    if time_string.endswith('Z'):
        time_string = time_string[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(time_string)
    except ValueError:
        return None


def format_noaa_date(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime for NOAA begin_date/end_date parameters ("YYYYMMDD HH:MM")."""
    if not isinstance(dt, datetime):
        return None
    return dt.strftime(NOAA_REQUEST_FORMAT)


def _format_clock(hour: int, minute: int) -> str:
    period = 'PM' if hour >= 12 else 'AM'
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {period}"


def format_local_time(dt: Optional[datetime]) -> str:
    """Format for display, e.g. "Jan 13, 2:30 PM"."""
    if not isinstance(dt, datetime):
        return 'N/A'
    return f"{dt.strftime('%b')} {dt.day}, {_format_clock(dt.hour, dt.minute)}"


def format_forecast_date(day: Optional[Union[datetime, date_type]]) -> str:
    """Format a forecast card date, e.g. "Tue 1/13"."""
    if not isinstance(day, date_type):
        return 'N/A'
    return f"{day.strftime('%a')} {day.month}/{day.day}"


def format_time_24_to_12(time24: Optional[str]) -> Optional[str]:
    """
    Convert "HH:MM" to "h:MM AM/PM".

    Unparseable input is returned unchanged.
    """
    if not time24:
        return time24
    try:
        hours, minutes = (int(part) for part in time24.split(':')[:2])
    except ValueError:
        return time24
    return _format_clock(hours, minutes)
