"""
NOAA CO-OPS data source.

Fetches water levels, tide predictions, high/low events, water and air
temperature and wind for a tide station.

API Documentation: https://api.tidesandcurrents.noaa.gov/api/prod/

All requests use English units and station local time (lst_ldt); water-level
products are referenced to MLLW. Times are parsed into the station time zone
passed by the caller. Every function returns None (scalars) or an empty list
(series) when the source has nothing usable.
"""
import logging
from datetime import tzinfo
from typing import Dict, List, Optional

from . import config
from .conversions import safe_float
from .datetime_utils import DateRange, parse_noaa_local_time
from .fetch import get_json
from .tide_phase import TideEvent, TideKind, TimePoint

logger = logging.getLogger(__name__)

DATUM = 'MLLW'
SIX_MINUTE_INTERVAL = '6'


def noaa_get(params: Dict) -> Optional[Dict]:
    """
    Base CO-OPS request.

    Returns:
        Decoded JSON body, or None on failure (including NOAA's {"error": ...} bodies)
    """
    all_params = {
        'units': 'english',
        'time_zone': 'lst_ldt',
        'format': 'json',
        'application': config.NOAA_APPLICATION,
    }
    all_params.update(params)

    data = get_json(config.NOAA_BASE_URL, all_params, source='NOAA')
    if not isinstance(data, dict):
        return None

    if data.get('error'):
        logger.warning(f"NOAA API error: {data['error']}")
        return None

    return data


def _series(rows: Optional[List[Dict]], tz: Optional[tzinfo]) -> List[TimePoint]:
    points = []
    for row in rows or []:
        time = parse_noaa_local_time(row.get('t'), tz)
        if time is None:
            continue
        points.append(TimePoint(time=time, value=safe_float(row.get('v'))))
    return points


def fetch_latest_value(station_id: str, product: str, use_datum: bool = False) -> Optional[float]:
    """Fetch the latest reading of a product (e.g. 'water_level', 'water_temperature')."""
    params = {
        'station': station_id,
        'product': product,
        'date': 'latest',
    }
    if use_datum:
        params['datum'] = DATUM

    data = noaa_get(params)
    if not data or not data.get('data'):
        return None

    return safe_float(data['data'][0].get('v'))


def fetch_water_level(station_id: str) -> Optional[float]:
    """Latest observed water level (ft above MLLW)."""
    return fetch_latest_value(station_id, 'water_level', use_datum=True)


def fetch_water_temp(station_id: str) -> Optional[float]:
    """Latest water temperature (°F)."""
    return fetch_latest_value(station_id, 'water_temperature')


def fetch_air_temp(station_id: str) -> Optional[float]:
    """Latest air temperature (°F) from the station sensor."""
    return fetch_latest_value(station_id, 'air_temperature')


def fetch_predictions(
    station_id: str,
    date_range: DateRange,
    interval: str = SIX_MINUTE_INTERVAL,
    tz: Optional[tzinfo] = None,
) -> List[TimePoint]:
    """
    Fetch predicted water levels for a window at a sampling interval.

    Args:
        station_id: CO-OPS station id
        date_range: Request window
        interval: Sampling interval in minutes ('6', '30', '60', ...)
        tz: Station time zone for parsed times

    Returns:
        Chronological predictions (empty on failure)
    """
    params = {
        'station': station_id,
        'product': 'predictions',
        'datum': DATUM,
        'begin_date': date_range.begin_param,
        'end_date': date_range.end_param,
        'interval': interval,
    }

    data = noaa_get(params)
    if not data:
        return []

    return _series(data.get('predictions'), tz)


def fetch_observed_water_levels(
    station_id: str,
    date_range: DateRange,
    tz: Optional[tzinfo] = None,
) -> List[TimePoint]:
    """Fetch measured water levels at 6-minute spacing to match the predictions."""
    params = {
        'station': station_id,
        'product': 'water_level',
        'datum': DATUM,
        'begin_date': date_range.begin_param,
        'end_date': date_range.end_param,
        'interval': SIX_MINUTE_INTERVAL,
    }

    data = noaa_get(params)
    if not data:
        return []

    return _series(data.get('data'), tz)


def fetch_water_temp_history(
    station_id: str,
    date_range: DateRange,
    tz: Optional[tzinfo] = None,
) -> List[TimePoint]:
    """Fetch water temperature readings (°F) for a window."""
    params = {
        'station': station_id,
        'product': 'water_temperature',
        'begin_date': date_range.begin_param,
        'end_date': date_range.end_param,
        'interval': SIX_MINUTE_INTERVAL,
    }

    data = noaa_get(params)
    if not data:
        return []

    return _series(data.get('data'), tz)


def fetch_hilo_events(
    station_id: str,
    date_range: DateRange,
    tz: Optional[tzinfo] = None,
) -> List[TideEvent]:
    """
    Fetch predicted high/low tide events for a window.

    Rows with an unparseable time or unknown type are skipped.
    """
    params = {
        'station': station_id,
        'product': 'predictions',
        'datum': DATUM,
        'begin_date': date_range.begin_param,
        'end_date': date_range.end_param,
        'interval': 'hilo',
    }

    data = noaa_get(params)
    if not data:
        return []

    events = []
    for row in data.get('predictions') or []:
        time = parse_noaa_local_time(row.get('t'), tz)
        kind = TideKind.from_code(row.get('type'))
        if time is None or kind is None:
            continue
        events.append(TideEvent(time=time, level=safe_float(row.get('v')), kind=kind))
    return events


def fetch_station_wind(station_id: str) -> Optional[Dict]:
    """
    Fetch the latest station wind reading.

    Returns:
        Dict with speed and gust (knots), direction (compass text) and
        direction_degrees, or None
    """
    data = noaa_get({
        'station': station_id,
        'product': 'wind',
        'date': 'latest',
    })
    if not data or not data.get('data'):
        return None

    wind = data['data'][0]
    return {
        'speed': safe_float(wind.get('s')),
        'gust': safe_float(wind.get('g')),
        'direction': wind.get('dr') or 'N/A',
        'direction_degrees': safe_float(wind.get('d')),
    }
