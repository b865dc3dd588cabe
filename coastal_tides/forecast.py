"""
Multi-day forecast assembly.

partition_by_day splits one flat prediction series spanning N days from a
local midnight into exactly N midnight-to-midnight buckets and finds each
day's high and low. The forecast days then join those buckets with the
per-day weather and sun/moon records by calendar date, so day i is the same
calendar day for every source.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .conversions import NOT_AVAILABLE, format_feet
from .datetime_utils import format_forecast_date, format_local_time
from .tide_phase import TimePoint


@dataclass(frozen=True)
class DayBucket:
    """
    One calendar day of a multi-day series: day_start <= time < day_end.

    high and low are None when the day has no usable samples.
    """
    index: int
    day_start: datetime
    day_end: datetime
    points: Tuple[TimePoint, ...]
    high: Optional[TimePoint]
    low: Optional[TimePoint]

    @property
    def date(self) -> date:
        return self.day_start.date()

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def high_text(self) -> str:
        return _describe_extreme(self.high)

    @property
    def low_text(self) -> str:
        return _describe_extreme(self.low)


@dataclass(frozen=True)
class DailyWeather:
    """Per-calendar-day weather aggregate."""
    date: date
    temp_high: Optional[float] = None
    temp_low: Optional[float] = None
    precip_probability: Optional[float] = None
    short_forecast: Optional[str] = None
    wind_speed: Optional[float] = None
    wind_gust: Optional[float] = None
    wind_direction: Optional[str] = None
    icon: Optional[str] = None
    from_night_period: bool = False


@dataclass(frozen=True)
class SunMoonDay:
    """Sun and moon rise/set display times and moon phase for one day."""
    date: date
    sunrise: Optional[str] = None
    sunset: Optional[str] = None
    moonrise: Optional[str] = None
    moonset: Optional[str] = None
    moon_phase: Optional[str] = None
    illumination: Optional[str] = None


@dataclass(frozen=True)
class ForecastDay:
    """Everything one forecast card needs."""
    index: int
    date: date
    tide: DayBucket
    weather: Optional[DailyWeather] = None
    sun_moon: Optional[SunMoonDay] = None
    moon: Dict = field(default_factory=dict)

    @property
    def label(self) -> str:
        return format_forecast_date(self.date)


def _describe_extreme(point: Optional[TimePoint]) -> str:
    if point is None:
        return NOT_AVAILABLE
    return f"{format_feet(point.value)} @ {format_local_time(point.time)}"


def day_high_low(points: Sequence[TimePoint]) -> Tuple[Optional[TimePoint], Optional[TimePoint]]:
    """
    Highest and lowest sample of a day.

    Missing values are ignored; ties go to the first occurrence.

    Returns:
        (high, low), both None when no sample has a value
    """
    if not points:
        return None, None

    values = np.array(
        [point.value if point.value is not None else np.nan for point in points],
        dtype=float,
    )
    if np.all(np.isnan(values)):
        return None, None

    return points[int(np.nanargmax(values))], points[int(np.nanargmin(values))]


def partition_by_day(
    predictions: Optional[Sequence[TimePoint]],
    anchor_midnight: datetime,
    num_days: int = 7,
) -> List[DayBucket]:
    """
    Split a prediction series into calendar-day buckets.

    The caller requests the series for [anchor_midnight, anchor_midnight +
    num_days days). Bucket i covers [anchor + i days, anchor + (i+1) days);
    upper bounds are exclusive so buckets are disjoint. Points outside the
    window belong to no bucket.

    The result depends only on the arguments (no wall-clock reads).

    Args:
        predictions: Time-sorted samples
        anchor_midnight: Local midnight of the first day
        num_days: Number of buckets to produce

    Returns:
        Exactly num_days DayBucket objects; days without samples are empty
        with high/low None
    """
    if num_days < 1:
        raise ValueError(f"num_days must be at least 1, got {num_days}")

    points = list(predictions or [])
    buckets = []
    for day_index in range(num_days):
        day_start = anchor_midnight + timedelta(days=day_index)
        day_end = day_start + timedelta(days=1)
        day_points = tuple(point for point in points if day_start <= point.time < day_end)
        high, low = day_high_low(day_points)
        buckets.append(DayBucket(
            index=day_index,
            day_start=day_start,
            day_end=day_end,
            points=day_points,
            high=high,
            low=low,
        ))
    return buckets


def _index_by_date(records: Optional[Iterable]) -> Dict[date, object]:
    indexed = {}
    for record in records or []:
        if record is not None and record.date not in indexed:
            indexed[record.date] = record
    return indexed


def build_forecast_days(
    buckets: Sequence[DayBucket],
    weather_days: Optional[Iterable[DailyWeather]] = None,
    sun_moon_days: Optional[Iterable[SunMoonDay]] = None,
    moon_phases: Optional[Sequence[Dict]] = None,
) -> List[ForecastDay]:
    """
    Join tide buckets with weather and sun/moon records by calendar date.

    A source missing a day leaves that card's section as None.
    moon_phases, when given, is aligned with buckets by index.
    """
    weather_by_date = _index_by_date(weather_days)
    sun_moon_by_date = _index_by_date(sun_moon_days)

    days = []
    for bucket in buckets:
        moon = {}
        if moon_phases is not None and bucket.index < len(moon_phases):
            moon = moon_phases[bucket.index] or {}
        days.append(ForecastDay(
            index=bucket.index,
            date=bucket.date,
            tide=bucket,
            weather=weather_by_date.get(bucket.date),
            sun_moon=sun_moon_by_date.get(bucket.date),
            moon=moon,
        ))
    return days
