"""
US Naval Observatory astronomy source.

One rstt/oneday request returns sunrise/sunset, moonrise/moonset and the
current moon phase for a date and location.

API Documentation: https://aa.usno.navy.mil/data/api
"""
import logging
from datetime import date, datetime, tzinfo
from typing import Dict, List, Optional

from . import config
from .datetime_utils import format_time_24_to_12
from .fetch import get_json
from .forecast import SunMoonDay

logger = logging.getLogger(__name__)


def utc_offset_hours(day: date, tz: Optional[tzinfo]) -> float:
    """UTC offset of a time zone at noon on a date, in hours (DST included)."""
    if tz is None:
        return 0.0
    offset = datetime(day.year, day.month, day.day, 12, tzinfo=tz).utcoffset()
    return offset.total_seconds() / 3600.0 if offset is not None else 0.0


def find_event(data_array: Optional[List[Dict]], event_type: str) -> Optional[str]:
    """
    Find a phenomenon ("Rise", "Set") in a USNO data array.

    Returns:
        The event time as a 12-hour display string, or None
    """
    if not isinstance(data_array, list):
        return None

    for item in data_array:
        if event_type in (item.get('phen') or '') and item.get('time'):
            return format_time_24_to_12(item['time'])
    return None


def parse_sun_moon_data(data: Optional[Dict], day: date) -> Optional[SunMoonDay]:
    """Parse an rstt/oneday response body."""
    if not data or not data.get('properties'):
        return None

    payload = data['properties'].get('data') or {}
    sun_data = payload.get('sundata')
    moon_data = payload.get('moondata')

    return SunMoonDay(
        date=day,
        sunrise=find_event(sun_data, 'Rise'),
        sunset=find_event(sun_data, 'Set'),
        moonrise=find_event(moon_data, 'Rise'),
        moonset=find_event(moon_data, 'Set'),
        moon_phase=payload.get('curphase'),
        illumination=payload.get('fracillum'),
    )


def fetch_sun_moon_data(lat: float, lon: float, day: date, tz: Optional[tzinfo] = None) -> Optional[SunMoonDay]:
    """
    Fetch sun and moon data for one calendar day.

    Times are requested in the station's local offset for that date so they
    can be displayed as-is.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees
        day: Calendar date
        tz: Station time zone

    Returns:
        SunMoonDay, or None on failure
    """
    params = {
        'date': day.strftime('%Y-%m-%d'),
        'coords': f"{lat:.4f},{lon:.4f}",
        'tz': f"{utc_offset_hours(day, tz):g}",
        'dst': 'false',
    }

    data = get_json(f"{config.USNO_BASE_URL}/rstt/oneday", params, source='USNO')
    if not isinstance(data, dict):
        return None

    if data.get('error'):
        logger.warning(f"USNO API returned error: {data['error']}")
        return None

    return parse_sun_moon_data(data, day)
