"""
National Weather Service data source (api.weather.gov).

Provides the 12-hour wind outlook, barometric pressure with trend, the latest
observed air temperature and per-calendar-day forecast aggregates.

API Documentation: https://www.weather.gov/documentation/services-web-api
"""
import logging
import re
from collections import Counter
from datetime import date
from typing import Dict, List, Optional

import numpy as np

from . import config
from .conversions import fahrenheit_from_celsius, inhg_from_pascals, safe_float
from .datetime_utils import DateRange, parse_iso_time
from .fetch import get_json
from .forecast import DailyWeather
from .tide_phase import TimePoint, calculate_pressure_trend

logger = logging.getLogger(__name__)

# "10 mph", "5 to 10 mph"
_WIND_SPEED_PATTERN = re.compile(r'(\d+)\s*(?:to\s*(\d+))?\s*mph', re.IGNORECASE)

HOURLY_WINDOW = 12
OBSERVATION_LIMIT = 6


def nws_get(url: str, params: Optional[Dict] = None) -> Optional[Dict]:
    """Base NWS request; the API requires a User-Agent header."""
    headers = {
        'User-Agent': config.NWS_USER_AGENT,
        'Accept': 'application/geo+json',
    }
    data = get_json(url, params, headers=headers, source='NWS')
    if not isinstance(data, dict):
        return None
    return data


def fetch_points(lat: float, lon: float) -> Optional[Dict]:
    """
    Resolve the forecast and observation URLs for a location.

    Returns:
        Dict with forecast, forecast_hourly and observation_stations URLs, or None
    """
    data = nws_get(f"{config.NWS_BASE_URL}/points/{lat:.4f},{lon:.4f}")
    if not data or not data.get('properties'):
        return None

    props = data['properties']
    return {
        'forecast': props.get('forecast'),
        'forecast_hourly': props.get('forecastHourly'),
        'observation_stations': props.get('observationStations'),
    }


def parse_wind_speed_mph(text: Optional[str]) -> Optional[float]:
    """Parse "10 mph" or "5 to 10 mph" (mean of the range) into mph."""
    if not text or not isinstance(text, str):
        return None
    match = _WIND_SPEED_PATTERN.search(text)
    if not match:
        return None
    low = int(match.group(1))
    high = int(match.group(2)) if match.group(2) else low
    return (low + high) / 2


def summarize_hourly_wind(periods: List[Dict]) -> Optional[Dict]:
    """
    Aggregate hourly forecast periods.

    Returns:
        Dict with avg_speed, max_speed (mph), predominant direction and the
        first period's sky condition, or None for no periods
    """
    if not periods:
        return None

    speeds = []
    directions = []
    for period in periods:
        speed = parse_wind_speed_mph(period.get('windSpeed'))
        if speed is not None:
            speeds.append(speed)
        if period.get('windDirection'):
            directions.append(period['windDirection'])

    # Counter keeps first-seen order, so ties go to the earliest direction
    predominant = Counter(directions).most_common(1)

    return {
        'avg_speed': float(np.mean(speeds)) if speeds else None,
        'max_speed': float(np.max(speeds)) if speeds else None,
        'direction': predominant[0][0] if predominant else 'N/A',
        'condition': periods[0].get('shortForecast') or 'N/A',
    }


def fetch_forecast_12h(lat: float, lon: float) -> Optional[Dict]:
    """Wind outlook for the next 12 hours."""
    points = fetch_points(lat, lon)
    if not points or not points.get('forecast_hourly'):
        return None

    data = nws_get(points['forecast_hourly'])
    if not data or not data.get('properties') or not data['properties'].get('periods'):
        return None

    return summarize_hourly_wind(data['properties']['periods'][:HOURLY_WINDOW])


def _fetch_latest_observations(lat: float, lon: float) -> List[Dict]:
    """Recent observations from the first observation station near a location."""
    points = fetch_points(lat, lon)
    if not points or not points.get('observation_stations'):
        return []

    stations = nws_get(points['observation_stations'])
    if not stations or not stations.get('features'):
        return []

    station_id = (stations['features'][0].get('properties') or {}).get('stationIdentifier')
    if not station_id:
        return []

    observations = nws_get(
        f"{config.NWS_BASE_URL}/stations/{station_id}/observations",
        {'limit': OBSERVATION_LIMIT},
    )
    if not observations or not observations.get('features'):
        return []

    return [feature.get('properties') or {} for feature in observations['features']]


def _quantity(props: Dict, key: str) -> Optional[float]:
    return safe_float((props.get(key) or {}).get('value'))


def parse_pressure_observations(observations: List[Dict]) -> Optional[Dict]:
    """
    Current pressure and trend from observation properties.

    Sea-level pressure is preferred over station barometric pressure.

    Returns:
        Dict with value (inHg) and trend, or None when no observation has pressure
    """
    samples = []
    for props in observations:
        pressure_pa = _quantity(props, 'seaLevelPressure')
        if pressure_pa is None:
            pressure_pa = _quantity(props, 'barometricPressure')
        time = parse_iso_time(props.get('timestamp'))
        if pressure_pa is None or time is None:
            continue
        samples.append(TimePoint(time=time, value=inhg_from_pascals(pressure_pa)))

    if not samples:
        return None

    samples.sort(key=lambda sample: sample.time, reverse=True)
    return {
        'value': samples[0].value,
        'trend': calculate_pressure_trend(samples, config.PRESSURE_TREND_THRESHOLD_INHG),
    }


def fetch_pressure(lat: float, lon: float) -> Optional[Dict]:
    """Barometric pressure (inHg) and its trend over the latest observations."""
    return parse_pressure_observations(_fetch_latest_observations(lat, lon))


def fetch_temperature(lat: float, lon: float) -> Optional[float]:
    """Latest observed air temperature (°F) near a location."""
    for props in _fetch_latest_observations(lat, lon):
        temp_f = fahrenheit_from_celsius(_quantity(props, 'temperature'))
        if temp_f is not None:
            return temp_f
    return None


def _period_temperature(period: Optional[Dict]) -> Optional[float]:
    if not period:
        return None
    temperature = safe_float(period.get('temperature'))
    if period.get('temperatureUnit') == 'C':
        return fahrenheit_from_celsius(temperature)
    return temperature


def extract_daily_forecast(periods: List[Dict], date_range: DateRange) -> List[DailyWeather]:
    """
    Collapse NWS day/night forecast periods into one record per calendar day.

    The daytime period supplies the description, wind and precipitation; the
    night period supplies the low. NWS drops the daytime period of the current
    date once it is evening, so a date that only has a night period uses the
    night period instead. That fallback follows this source's period layout and
    is not a general day/night rule.

    Args:
        periods: properties.periods from the /forecast endpoint
        date_range: Midnight-anchored window; dates outside it are dropped

    Returns:
        DailyWeather records in date order
    """
    tz = date_range.begin.tzinfo
    first_day = date_range.begin.date()
    last_day = date_range.end.date()

    by_date: Dict[date, Dict[str, Dict]] = {}
    for period in periods or []:
        start = parse_iso_time(period.get('startTime'))
        if start is None:
            continue
        if tz is not None and start.tzinfo is not None:
            start = start.astimezone(tz)
        day = start.date()
        if not (first_day <= day < last_day):
            continue
        slot = 'day' if period.get('isDaytime') else 'night'
        by_date.setdefault(day, {}).setdefault(slot, period)

    results = []
    for day in sorted(by_date):
        day_period = by_date[day].get('day')
        night_period = by_date[day].get('night')
        primary = day_period or night_period

        results.append(DailyWeather(
            date=day,
            temp_high=_period_temperature(day_period),
            temp_low=_period_temperature(night_period),
            precip_probability=_quantity(primary, 'probabilityOfPrecipitation'),
            short_forecast=primary.get('shortForecast'),
            wind_speed=parse_wind_speed_mph(primary.get('windSpeed')),
            wind_gust=parse_wind_speed_mph(primary.get('windGust')),
            wind_direction=primary.get('windDirection'),
            icon=primary.get('icon'),
            from_night_period=day_period is None,
        ))

    return results


def fetch_daily_forecast(lat: float, lon: float, date_range: DateRange) -> List[DailyWeather]:
    """Per-day forecast aggregates for the days of a midnight-anchored window."""
    points = fetch_points(lat, lon)
    if not points or not points.get('forecast'):
        return []

    data = nws_get(points['forecast'])
    if not data or not data.get('properties') or not data['properties'].get('periods'):
        return []

    return extract_daily_forecast(data['properties']['periods'], date_range)
