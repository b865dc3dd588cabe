"""
Tests for the NOAA CO-OPS client against canned responses
"""
import socket
import urllib.error
from datetime import datetime, timedelta

import pytest

from conftest import CENTRAL
from coastal_tides import config, noaa_client
from coastal_tides.datetime_utils import range_from_now
from coastal_tides.tide_phase import TideKind

STATION = "8771450"


@pytest.fixture
def window(now):
    return range_from_now(-6, 24, now=now)


class TestLatestValues:
    """Tests for single latest readings."""

    def test_water_level(self, fake_http):
        fake_http.add({"data": [{"t": "2026-01-13 13:00", "v": "1.234"}]}, "product=water_level")

        assert noaa_client.fetch_water_level(STATION) == pytest.approx(1.234)

        url = fake_http.requests[0]
        assert "date=latest" in url
        assert "datum=MLLW" in url
        assert "units=english" in url
        assert "time_zone=lst_ldt" in url

    def test_water_temp_has_no_datum(self, fake_http):
        fake_http.add({"data": [{"t": "2026-01-13 13:00", "v": "61.2"}]}, "product=water_temperature")

        assert noaa_client.fetch_water_temp(STATION) == pytest.approx(61.2)
        assert "datum" not in fake_http.requests[0]

    def test_blank_value_is_none(self, fake_http):
        """An empty reading must not turn into 0."""
        fake_http.add({"data": [{"t": "2026-01-13 13:00", "v": ""}]}, "product=air_temperature")
        assert noaa_client.fetch_air_temp(STATION) is None

    def test_error_body_is_none(self, fake_http):
        fake_http.add({"error": {"message": "No data was found."}}, "product=water_level")
        assert noaa_client.fetch_water_level(STATION) is None

    def test_empty_data_is_none(self, fake_http):
        fake_http.add({"data": []}, "product=water_level")
        assert noaa_client.fetch_water_level(STATION) is None


class TestSeries:
    """Tests for prediction and observation series."""

    def test_predictions(self, fake_http, window):
        fake_http.add({"predictions": [
            {"t": "2026-01-13 07:00", "v": "0.512"},
            {"t": "2026-01-13 07:06", "v": "0.540"},
            {"t": "bad time", "v": "0.600"},
        ]}, "product=predictions")

        points = noaa_client.fetch_predictions(STATION, window, tz=CENTRAL)

        assert len(points) == 2
        assert points[0].time == datetime(2026, 1, 13, 7, 0, tzinfo=CENTRAL)
        assert points[1].value == pytest.approx(0.54)

        url = fake_http.requests[0]
        assert "interval=6" in url
        assert "begin_date=20260113+07%3A00" in url
        assert "end_date=20260114+13%3A00" in url

    def test_observed_levels_keep_missing_values(self, fake_http, window):
        fake_http.add({"data": [
            {"t": "2026-01-13 07:00", "v": "0.5"},
            {"t": "2026-01-13 07:06", "v": ""},
        ]}, "product=water_level")

        points = noaa_client.fetch_observed_water_levels(STATION, window, tz=CENTRAL)

        assert [point.value for point in points] == [0.5, None]

    def test_water_temp_history(self, fake_http, window):
        fake_http.add({"data": [{"t": "2026-01-13 07:00", "v": "60.1"}]}, "product=water_temperature")
        points = noaa_client.fetch_water_temp_history(STATION, window, tz=CENTRAL)
        assert points[0].value == pytest.approx(60.1)

    def test_failure_is_empty(self, fake_http, window):
        fake_http.add(urllib.error.HTTPError("url", 500, "Server Error", {}, None), "product=predictions")
        assert noaa_client.fetch_predictions(STATION, window, tz=CENTRAL) == []


class TestHiloEvents:
    """Tests for high/low event parsing."""

    def test_events(self, fake_http, now):
        fake_http.add({"predictions": [
            {"t": "2026-01-13 10:00", "v": "1.8", "type": "H"},
            {"t": "2026-01-13 16:00", "v": "0.1", "type": "L"},
            {"t": "2026-01-13 22:00", "v": "1.2", "type": "?"},
        ]}, "interval=hilo")

        window = range_from_now(-24, 48, now=now)
        events = noaa_client.fetch_hilo_events(STATION, window, tz=CENTRAL)

        assert [event.kind for event in events] == [TideKind.HIGH, TideKind.LOW]
        assert events[0].level == pytest.approx(1.8)
        assert events[1].time == datetime(2026, 1, 13, 16, 0, tzinfo=CENTRAL)
        assert window.begin == now - timedelta(hours=24)


class TestStationWind:
    """Tests for station wind readings."""

    def test_wind(self, fake_http):
        fake_http.add({"data": [{"t": "2026-01-13 13:00", "s": "10.0", "d": "135.0", "dr": "SE", "g": "14.2"}]},
                      "product=wind")

        wind = noaa_client.fetch_station_wind(STATION)

        assert wind == {"speed": 10.0, "gust": 14.2, "direction": "SE", "direction_degrees": 135.0}

    def test_missing_direction(self, fake_http):
        fake_http.add({"data": [{"s": "4.0", "g": ""}]}, "product=wind")
        wind = noaa_client.fetch_station_wind(STATION)
        assert wind["direction"] == "N/A"
        assert wind["gust"] is None


class TestTransportFailures:
    """Each failure mode should yield absent data, not an exception."""

    def test_timeout(self, fake_http):
        fake_http.add(socket.timeout("timed out"), "product=water_level")
        assert noaa_client.fetch_water_level(STATION) is None

    def test_unreachable(self, fake_http):
        assert noaa_client.fetch_water_level(STATION) is None

    def test_malformed_json(self, fake_http):
        fake_http.add("<html>maintenance</html>", "product=water_level")
        assert noaa_client.fetch_water_level(STATION) is None

    def test_oversized_body(self, fake_http, monkeypatch):
        monkeypatch.setattr("coastal_tides.config.MAX_RESPONSE_SIZE", 16)
        fake_http.add({"data": [{"t": "2026-01-13 13:00", "v": "1.234"}]}, "product=water_level")
        assert noaa_client.fetch_water_level(STATION) is None

    def test_declared_length_too_large(self, fake_http):
        fake_http.add({"data": []}, "product=water_level", headers={"Content-Length": str(50 * 1024 * 1024)})
        assert noaa_client.fetch_water_level(STATION) is None

    def test_request_uses_timeout(self, fake_http, monkeypatch):
        seen = {}

        def urlopen(request, timeout=None):
            seen["timeout"] = timeout
            raise urllib.error.URLError("down")

        monkeypatch.setattr("urllib.request.urlopen", urlopen)
        noaa_client.fetch_water_level(STATION)
        assert seen["timeout"] == config.API_TIMEOUT_SECONDS
