"""
Unit tests for the 24-hour curve bundle
"""
from datetime import timedelta

from conftest import make_series
from coastal_tides.curve import CurveSeries, assemble_curve


class TestAssembleCurve:
    """Tests for merging predicted and observed series."""

    def test_both_series(self, now):
        predicted = make_series(now - timedelta(hours=6), 301)
        observed = make_series(now - timedelta(hours=6), 61)

        bundle = assemble_curve(predicted, observed, now=now)

        assert len(bundle.predicted) == 301
        assert len(bundle.observed) == 61
        assert bundle.now_index == 60
        assert bundle.now_time == now
        assert not bundle.no_predictions

    def test_series_keep_their_own_time_axes(self, now):
        """Observed samples are not resampled onto the prediction grid."""
        predicted = make_series(now - timedelta(hours=6), 31, step_minutes=60)
        observed = make_series(now - timedelta(minutes=30), 6)

        bundle = assemble_curve(predicted, observed, now=now)

        assert bundle.observed.times == [point.time for point in observed]
        assert bundle.predicted.times == [point.time for point in predicted]

    def test_empty_observed_is_none(self, now):
        predicted = make_series(now - timedelta(hours=6), 301)
        assert assemble_curve(predicted, [], now=now).observed is None
        assert assemble_curve(predicted, None, now=now).observed is None

    def test_no_predictions_without_fallback(self, now):
        observed = make_series(now - timedelta(hours=6), 61)
        assert assemble_curve([], observed, now=now) is None
        assert assemble_curve(None, observed, now=now) is None

    def test_no_predictions_with_fallback(self, now):
        """Stations without predictions can still plot observed levels."""
        observed = make_series(now - timedelta(hours=6), 61)

        bundle = assemble_curve([], observed, now=now, allow_no_predictions=True)

        assert bundle.no_predictions
        assert bundle.predicted is None
        assert bundle.now_index == 60
        assert bundle.now_time == observed[60].time

    def test_nothing_to_plot(self, now):
        assert assemble_curve([], [], now=now, allow_no_predictions=True) is None

    def test_now_index_in_range(self, now):
        predicted = make_series(now + timedelta(hours=1), 10)
        bundle = assemble_curve(predicted, now=now)
        assert bundle.now_index == 0


def test_as_xy(now):
    series = CurveSeries.from_points(make_series(now, 2, values=[1.0, None]))
    assert series.as_xy() == [
        {'x': now, 'y': 1.0},
        {'x': now + timedelta(minutes=6), 'y': None},
    ]
