"""
Trend and Phase Engine

Interprets already-fetched water-level data:
- trend labels (rising/falling/steady) with a dead band that suppresses
  flapping from sensor and prediction noise near a turning point
- progress through the current tide cycle between bracketing high/low events
- observed vs predicted comparison at the current instant

Every function here is total: missing or malformed input yields an explicit
Trend.UNKNOWN / None / "n/a" sentinel instead of an exception. Callers render
those sentinels as "N/A".
"""
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional, Sequence

import numpy as np

DEFAULT_TREND_THRESHOLD = 0.05
UNAVAILABLE_TEXT = 'n/a'


class Trend(str, Enum):
    """Direction of a leveled quantity between two samples."""
    RISING = "rising"
    FALLING = "falling"
    STEADY = "steady"
    UNKNOWN = "unknown"


class TideKind(str, Enum):
    """Kind of tide extremum."""
    HIGH = "High"
    LOW = "Low"

    @classmethod
    def from_code(cls, code: Optional[str]) -> Optional["TideKind"]:
        """Map NOAA's hilo type code ("H", "L", "HH", "LL") to a kind."""
        if not code:
            return None
        code = code.strip().upper()
        if code.startswith('H'):
            return cls.HIGH
        if code.startswith('L'):
            return cls.LOW
        return None


@dataclass(frozen=True)
class TimePoint:
    """A single observation or prediction sample. value is None for a missing reading."""
    time: datetime
    value: Optional[float]


@dataclass(frozen=True)
class TideEvent:
    """A high or low extremum of the predicted tide curve."""
    time: datetime
    level: Optional[float]
    kind: TideKind


@dataclass(frozen=True)
class PhaseResult:
    """
    Progress through the current tide cycle.

    fraction_elapsed is nominally 0..1 (it may exceed that range with clock
    skew) and is only meaningful when both events are present.
    """
    fraction_elapsed: Optional[float] = None
    prev_event: Optional[TideEvent] = None
    next_event: Optional[TideEvent] = None
    percent: Optional[int] = None
    arrow: str = ''
    text: str = UNAVAILABLE_TEXT

    @property
    def available(self) -> bool:
        return self.prev_event is not None and self.next_event is not None


@dataclass(frozen=True)
class TideStatus:
    """Observed vs predicted water level at the current instant."""
    observed: Optional[float]
    predicted: Optional[float]
    delta: Optional[float]
    trend: Trend
    phase: PhaseResult

    @property
    def phase_text(self) -> str:
        return self.phase.text


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _instant(dt: datetime) -> datetime:
    # Aware datetimes sharing a tzinfo subtract and compare by wall clock
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc)


def _seconds_between(start: datetime, end: datetime) -> float:
    """Elapsed seconds from start to end, correct across DST transitions."""
    return (_instant(end) - _instant(start)).total_seconds()


def determine_trend(
    current: Optional[float],
    previous: Optional[float],
    threshold: float = DEFAULT_TREND_THRESHOLD,
) -> Trend:
    """
    Determine trend from two consecutive levels.

    Args:
        current: Most recent level
        previous: Level before it
        threshold: Dead band, in the same unit as the levels

    Returns:
        RISING if current - previous > threshold, FALLING if < -threshold,
        STEADY otherwise, UNKNOWN if either level is missing
    """
    if current is None or previous is None:
        return Trend.UNKNOWN
    try:
        diff = float(current) - float(previous)
    except (TypeError, ValueError):
        return Trend.UNKNOWN
    if math.isnan(diff):
        return Trend.UNKNOWN

    threshold = abs(threshold)
    if diff > threshold:
        return Trend.RISING
    if diff < -threshold:
        return Trend.FALLING
    return Trend.STEADY


def calculate_pressure_trend(
    observations: Optional[Iterable[TimePoint]],
    threshold: float = 0.03,
) -> Trend:
    """
    Pressure trend from the newest and oldest of a set of observations.

    Observations are sorted here; input order does not matter.
    """
    samples = [obs for obs in (observations or []) if obs is not None and obs.time is not None]
    if len(samples) < 2:
        return Trend.UNKNOWN

    samples.sort(key=lambda obs: _instant(obs.time), reverse=True)
    return determine_trend(samples[0].value, samples[-1].value, threshold)


def determine_delta(observed: Optional[float], predicted: Optional[float]) -> Optional[float]:
    """Signed observed - predicted difference; None if either side is missing."""
    if observed is None or predicted is None:
        return None
    return observed - predicted


def tide_direction_arrow(prev_kind: Optional[TideKind], next_kind: Optional[TideKind]) -> str:
    """Arrow for the current half-cycle: Low→High rising, High→Low falling."""
    if not prev_kind or not next_kind:
        return ''
    if prev_kind == TideKind.LOW and next_kind == TideKind.HIGH:
        return '↗️'
    if prev_kind == TideKind.HIGH and next_kind == TideKind.LOW:
        return '↘️'
    return '➡️'


def nearest_index(points: Optional[Sequence[TimePoint]], now: datetime) -> Optional[int]:
    """
    Index of the point closest in time to `now`.

    Linear scan over the series; the first occurrence wins on ties.
    Returns None for an empty series.
    """
    if not points:
        return None
    offsets = np.array([abs(_seconds_between(now, point.time)) for point in points])
    return int(np.argmin(offsets))


def nearest_point(points: Optional[Sequence[TimePoint]], now: datetime) -> Optional[TimePoint]:
    idx = nearest_index(points, now)
    if idx is None:
        return None
    return points[idx]


def compute_phase_from_hilo(events: Optional[Iterable[TideEvent]], now: datetime) -> PhaseResult:
    """
    Compute how far we are through the current tide cycle.

    Events are sorted by time here; the upstream order is not trusted.
    A single forward scan keeps the latest event at or before `now` as the
    previous event and stops at the first event strictly after `now`.

    Args:
        events: High/low tide events
        now: Reference instant

    Returns:
        PhaseResult; when fewer than two events exist or `now` is not
        bracketed, both events are None and text is "n/a"
    """
    usable = [event for event in (events or []) if event is not None and event.time is not None]
    if len(usable) < 2:
        return PhaseResult()

    usable.sort(key=lambda event: _instant(event.time))

    prev_event = None
    next_event = None
    for event in usable:
        if _seconds_between(event.time, now) >= 0:
            prev_event = event
        else:
            next_event = event
            break

    if prev_event is None or next_event is None:
        return PhaseResult()

    total = _seconds_between(prev_event.time, next_event.time)
    fraction = _seconds_between(prev_event.time, now) / total
    percent = _round_half_up(fraction * 100)

    arrow = tide_direction_arrow(prev_event.kind, next_event.kind)
    text = f"{percent}% {prev_event.kind.value}→{next_event.kind.value} {arrow}"

    return PhaseResult(
        fraction_elapsed=fraction,
        prev_event=prev_event,
        next_event=next_event,
        percent=percent,
        arrow=arrow,
        text=text,
    )


def next_tides(events: Optional[Iterable[TideEvent]], now: datetime, count: int = 2) -> List[TideEvent]:
    """The first `count` events strictly after `now`, chronologically."""
    upcoming = [
        event for event in (events or [])
        if event is not None and _seconds_between(now, event.time) > 0
    ]
    upcoming.sort(key=lambda event: _instant(event.time))
    return upcoming[:count]


def summarize_tide_now(
    observed_level: Optional[float],
    predictions: Optional[Sequence[TimePoint]],
    events: Optional[Iterable[TideEvent]],
    now: datetime,
    threshold: float = DEFAULT_TREND_THRESHOLD,
) -> TideStatus:
    """
    Combine the latest observation with predictions and high/low events.

    - predicted: value of the prediction sample nearest to `now` (no interpolation)
    - delta: observed - predicted
    - trend: first prediction at or after `now` against the one before it
    - phase: see compute_phase_from_hilo
    """
    predictions = list(predictions or [])

    nearest = nearest_point(predictions, now)
    predicted = nearest.value if nearest is not None else None

    trend = Trend.UNKNOWN
    if len(predictions) >= 2:
        ordered = sorted(predictions, key=lambda point: _instant(point.time))
        now_idx = next(
            (idx for idx, point in enumerate(ordered) if _seconds_between(now, point.time) >= 0), None
        )
        if now_idx is not None and now_idx > 0:
            trend = determine_trend(ordered[now_idx].value, ordered[now_idx - 1].value, threshold)

    return TideStatus(
        observed=observed_level,
        predicted=predicted,
        delta=determine_delta(observed_level, predicted),
        trend=trend,
        phase=compute_phase_from_hilo(events, now),
    )
