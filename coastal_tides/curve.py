"""
24-hour tide curve assembly.

Merges the predicted series (typically 6 hours back to 24 hours ahead) and the
observed series (typically the past 6 hours) into one chart-ready bundle.
The two series keep their own time axes; the charting consumer plots both on
a shared time scale rather than on a synthetic common grid.

Both input series must already be time-sorted.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .tide_phase import TimePoint, nearest_index


@dataclass(frozen=True)
class CurveSeries:
    """One plotted line: parallel time and height arrays."""
    times: List[datetime]
    heights: List[Optional[float]]

    @classmethod
    def from_points(cls, points: Sequence[TimePoint]) -> "CurveSeries":
        return cls(
            times=[point.time for point in points],
            heights=[point.value for point in points],
        )

    def as_xy(self) -> List[Dict]:
        """Time-keyed points, e.g. [{'x': datetime, 'y': 1.2}, ...]."""
        return [{'x': time, 'y': height} for time, height in zip(self.times, self.heights)]

    def __len__(self) -> int:
        return len(self.times)


@dataclass(frozen=True)
class CurveBundle:
    """
    Chart-ready tide curve.

    now_index indexes the predicted series, or the observed series when
    no_predictions is set. observed is None when no observations are
    available; the consumer shows an "observed unavailable" state for it.
    """
    predicted: Optional[CurveSeries]
    observed: Optional[CurveSeries]
    now_index: int
    no_predictions: bool = False

    @property
    def now_time(self) -> datetime:
        reference = self.observed if self.no_predictions else self.predicted
        return reference.times[self.now_index]


def assemble_curve(
    predicted: Optional[Sequence[TimePoint]],
    observed: Optional[Sequence[TimePoint]] = None,
    now: Optional[datetime] = None,
    allow_no_predictions: bool = False,
) -> Optional[CurveBundle]:
    """
    Build the 24-hour curve bundle.

    Args:
        predicted: Predicted levels, time-sorted
        observed: Observed levels, time-sorted (may be None or empty)
        now: Reference instant for the "now" marker
        allow_no_predictions: Accept an observed-only curve for stations
            that publish no predictions

    Returns:
        CurveBundle, or None when there is nothing meaningful to plot
    """
    observed_series = CurveSeries.from_points(observed) if observed else None

    if not predicted:
        if allow_no_predictions and observed_series is not None:
            now = now if now is not None else datetime.now(observed[0].time.tzinfo)
            return CurveBundle(
                predicted=None,
                observed=observed_series,
                now_index=nearest_index(observed, now),
                no_predictions=True,
            )
        return None

    now = now if now is not None else datetime.now(predicted[0].time.tzinfo)
    return CurveBundle(
        predicted=CurveSeries.from_points(predicted),
        observed=observed_series,
        now_index=nearest_index(predicted, now),
    )
