"""
Unit conversions and null-safe numeric helpers.

Every helper propagates None: a missing reading stays missing and is
never turned into 0. The format_* helpers render None as "N/A".
"""
import math
from typing import Any, Optional

FEET_PER_METER = 3.28084
MPH_PER_KNOT = 1.150779
MPH_PER_METER_SEC = 2.236936
PASCALS_PER_INHG = 3386.389

NOT_AVAILABLE = 'N/A'


def safe_float(value: Any) -> Optional[float]:
    """
    Parse a value to float, returning None instead of raising.

    Args:
        value: Number or numeric string (e.g. NOAA's "2.134")

    Returns:
        The float value, or None for None, "", NaN or unparseable input
    """
    if value is None or value == '' or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _is_missing(value: Optional[float]) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def mph_from_knots(knots: Optional[float]) -> Optional[float]:
    """Convert knots to miles per hour."""
    if _is_missing(knots):
        return None
    return knots * MPH_PER_KNOT


def mph_from_meters_sec(meters_sec: Optional[float]) -> Optional[float]:
    """Convert meters per second to miles per hour."""
    if _is_missing(meters_sec):
        return None
    return meters_sec * MPH_PER_METER_SEC


def inhg_from_pascals(pa: Optional[float]) -> Optional[float]:
    """Convert pascals to inches of mercury."""
    if _is_missing(pa):
        return None
    return pa / PASCALS_PER_INHG


def fahrenheit_from_celsius(celsius: Optional[float]) -> Optional[float]:
    if _is_missing(celsius):
        return None
    return celsius * 9.0 / 5.0 + 32.0


def feet_from_meters(meters: Optional[float]) -> Optional[float]:
    if _is_missing(meters):
        return None
    return meters * FEET_PER_METER


def format_temperature(temp_f: Optional[float]) -> str:
    """Format a Fahrenheit temperature, e.g. "72.5°F"."""
    if temp_f is None:
        return NOT_AVAILABLE
    return f"{temp_f:.1f}°F"


def format_pressure(inhg: Optional[float]) -> str:
    """Format pressure, e.g. "29.92 inHg"."""
    if inhg is None:
        return NOT_AVAILABLE
    return f"{inhg:.2f} inHg"


def format_feet(feet: Optional[float]) -> str:
    """Format a water level, e.g. "2.10 ft"."""
    if feet is None:
        return NOT_AVAILABLE
    return f"{feet:.2f} ft"


def format_delta(delta: Optional[float]) -> str:
    """Format an observed-minus-predicted difference with an explicit sign."""
    if delta is None:
        return NOT_AVAILABLE
    sign = '+' if delta >= 0 else ''
    return f"{sign}{delta:.2f} ft"


def format_wind(speed: Optional[float], gust: Optional[float] = None) -> str:
    """
    Format wind speed in mph, appending gusts only when they exceed the speed.

    Examples:
        format_wind(12.0, 18.0) -> "12.0 mph, gusts 18.0"
        format_wind(None, None) -> "N/A"
    """
    parts = []
    if speed is not None:
        parts.append(f"{speed:.1f} mph")
    if gust is not None and gust > (speed or 0):
        parts.append(f"gusts {gust:.1f}")
    return ', '.join(parts) if parts else NOT_AVAILABLE


def format_precip_probability(percent: Optional[float]) -> str:
    if percent is None:
        return NOT_AVAILABLE
    return f"{round(percent)}%"
