"""
Unit tests for moon phase naming and source resolution
"""
import threading
from datetime import datetime, timezone

import pytest

from coastal_tides.astronomy_service import (
    DEFAULT_MOON_EMOJI,
    LocalMoonPhase,
    moon_emoji,
    moon_illumination,
    moon_phase_name,
    resolve_moon_phase,
)


class StubCalculator:
    """Local calculator returning a fixed phase angle."""

    def __init__(self, angle=None, error=None):
        self.angle = angle
        self.error = error
        self.calls = []

    def describe(self, when):
        self.calls.append(when)
        if self.error is not None:
            raise self.error
        return {
            "phase": moon_phase_name(self.angle),
            "phase_angle": self.angle,
            "illumination": moon_illumination(self.angle),
        }


class TestMoonPhaseName:
    """Tests for phase angle names."""

    @pytest.mark.parametrize("angle, expected", [
        (0, "New Moon"),
        (358, "New Moon"),
        (356, "New Moon"),
        (355, "Waning Crescent"),
        (5, "Waxing Crescent"),
        (85, "First Quarter"),
        (95, "Waxing Gibbous"),
        (45, "Waxing Crescent"),
        (90, "First Quarter"),
        (135, "Waxing Gibbous"),
        (180, "Full Moon"),
        (225, "Waning Gibbous"),
        (270, "Last Quarter"),
        (315, "Waning Crescent"),
        (540, "Full Moon"),
    ])
    def test_names(self, angle, expected):
        assert moon_phase_name(angle) == expected


class TestMoonIllumination:
    """Tests for illuminated fraction."""

    def test_new_and_full(self):
        assert moon_illumination(0) == 0
        assert moon_illumination(180) == 100

    def test_quarter(self):
        assert moon_illumination(90) == 50


class TestMoonEmoji:
    """Tests for phase emoji lookup."""

    def test_known_phases(self):
        assert moon_emoji("Full Moon") == "🌕"
        assert moon_emoji("waxing crescent") == "🌒"
        assert moon_emoji("Third Quarter") == "🌗"

    def test_unknown_phase(self):
        assert moon_emoji("Blue Moon") == DEFAULT_MOON_EMOJI
        assert moon_emoji(None) == DEFAULT_MOON_EMOJI


class TestResolveMoonPhase:
    """The remote descriptor wins; the local calculation is only a fallback."""

    def test_remote_phase_is_authoritative(self):
        local = StubCalculator(angle=180).describe(datetime(2026, 1, 13, 12))
        moon = resolve_moon_phase("Waning Crescent", local)

        assert moon == {"phase": "Waning Crescent", "emoji": "🌘", "source": "usno"}

    def test_local_fallback(self):
        local = StubCalculator(angle=90).describe(datetime(2026, 1, 13, 12))
        moon = resolve_moon_phase(None, local)

        assert moon["phase"] == "First Quarter"
        assert moon["emoji"] == "🌓"
        assert moon["illumination"] == 50
        assert moon["source"] == "local"

    def test_local_result_is_not_mutated(self):
        local = StubCalculator(angle=180).describe(datetime(2026, 1, 13, 12))
        resolve_moon_phase(None, local)
        assert "source" not in local

    def test_missing_local_result(self):
        """A calculation that failed or timed out leaves the phase unavailable."""
        moon = resolve_moon_phase("", None)

        assert moon == {"phase": None, "emoji": DEFAULT_MOON_EMOJI, "source": None}

    def test_no_sources(self):
        assert resolve_moon_phase(None)["source"] is None


class TestLocalMoonPhase:
    """Tests for the Skyfield calculator wiring."""

    def test_ephemeris_is_loaded_lazily(self):
        calculator = LocalMoonPhase()
        assert calculator._eph is None

    def test_naive_times_are_utc(self, monkeypatch):
        seen = {}

        class FakeTimescale:
            def from_datetime(self, when):
                seen["when"] = when
                return when

        class FakeAngle:
            degrees = 90.0

        monkeypatch.setattr("coastal_tides.astronomy_service.almanac.moon_phase", lambda eph, t: FakeAngle())

        calculator = LocalMoonPhase()
        calculator._eph = object()
        calculator._ts = FakeTimescale()

        result = calculator.describe(datetime(2026, 1, 13, 12))

        assert seen["when"].tzinfo == timezone.utc
        assert result == {"phase": "First Quarter", "phase_angle": 90.0, "illumination": 50}

    def test_concurrent_first_use_loads_once(self, monkeypatch):
        """Threads racing on the first calculation share one ephemeris load."""
        loads = []
        release = threading.Event()

        def slow_load(name):
            loads.append(name)
            release.wait(1)
            return object()

        monkeypatch.setattr("coastal_tides.astronomy_service.load", slow_load)
        slow_load.timescale = lambda: object()

        calculator = LocalMoonPhase()
        threads = [threading.Thread(target=calculator._ensure_loaded) for _ in range(4)]
        for thread in threads:
            thread.start()
        release.set()
        for thread in threads:
            thread.join(2)

        assert loads == ["de421.bsp"]
        assert calculator._eph is not None


@pytest.fixture
def service():
    """Calculator backed by the real DE421 ephemeris (downloaded on first use)."""
    return LocalMoonPhase()


class TestLocalMoonPhaseEphemeris:
    """Checks against published lunar phases."""

    def test_full_moon(self, service):
        """Full moon of 3 January 2026, 10:03 UTC."""
        result = service.describe(datetime(2026, 1, 3, 10, 3, tzinfo=timezone.utc))

        assert result["phase"] == "Full Moon"
        assert result["illumination"] >= 99
        assert 175 <= result["phase_angle"] <= 185

    def test_new_moon(self, service):
        """New moon of 18 January 2026, 19:52 UTC."""
        result = service.describe(datetime(2026, 1, 18, 19, 52, tzinfo=timezone.utc))

        assert result["phase"] == "New Moon"
        assert result["illumination"] <= 1

    def test_waxing_between_new_and_full(self, service):
        result = service.describe(datetime(2026, 1, 22, 12, 0, tzinfo=timezone.utc))

        assert result["phase"] == "Waxing Crescent"
        assert 0 < result["phase_angle"] < 90
