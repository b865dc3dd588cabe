"""
Moon phase with a single source of truth.

The USNO descriptor is authoritative when it is available. When it is not,
the phase is computed locally from the DE421 ephemeris with Skyfield.
"""
import logging
import math
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from skyfield import almanac
from skyfield.api import load

logger = logging.getLogger(__name__)

MOON_EMOJI = {
    'new moon': '🌑',
    'waxing crescent': '🌒',
    'first quarter': '🌓',
    'waxing gibbous': '🌔',
    'full moon': '🌕',
    'waning gibbous': '🌖',
    'last quarter': '🌗',
    'third quarter': '🌗',
    'waning crescent': '🌘',
}
DEFAULT_MOON_EMOJI = '🌙'

# Exclusive upper bound of each named band, in degrees past new moon.
# Principal phases get a +/-5 degree band around 0, 90, 180 and 270.
_PHASE_BANDS = (
    (5, "New Moon"),
    (85, "Waxing Crescent"),
    (95, "First Quarter"),
    (175, "Waxing Gibbous"),
    (185, "Full Moon"),
    (265, "Waning Gibbous"),
    (275, "Last Quarter"),
    (360, "Waning Crescent"),
)


def moon_phase_name(angle: float) -> str:
    """Named phase for an ecliptic longitude difference (0 = new, 180 = full)."""
    angle = angle % 360
    if angle > 355:
        return "New Moon"
    return next((name for upper, name in _PHASE_BANDS if angle < upper), "Waning Crescent")


def moon_illumination(angle: float) -> int:
    """Illuminated fraction of the disc (0-100) for a phase angle."""
    angle = angle % 360
    return round((1 - math.cos(math.radians(angle))) / 2 * 100)


def moon_emoji(phase_description: Optional[str]) -> str:
    if not phase_description:
        return DEFAULT_MOON_EMOJI
    return MOON_EMOJI.get(phase_description.strip().lower(), DEFAULT_MOON_EMOJI)


class LocalMoonPhase:
    """
    Local moon phase calculator (Skyfield + DE421).

    The ephemeris is loaded (and downloaded when missing) on first use, so a
    calculation can be slow. Callers that must stay responsive run it with a
    deadline. Loading is serialized across threads.
    """

    def __init__(self, ephemeris: str = "de421.bsp"):
        self.ephemeris = ephemeris
        self._eph = None
        self._ts = None
        self._load_lock = threading.Lock()

    def _ensure_loaded(self):
        if self._eph is not None:
            return
        with self._load_lock:
            if self._eph is None:
                self._ts = load.timescale()
                self._eph = load(self.ephemeris)

    def phase_angle(self, when: datetime) -> float:
        """Moon phase angle in degrees at an instant (naive datetimes are taken as UTC)."""
        self._ensure_loaded()
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return float(almanac.moon_phase(self._eph, self._ts.from_datetime(when)).degrees)

    def describe(self, when: datetime) -> Dict[str, Any]:
        angle = self.phase_angle(when)
        return {
            "phase": moon_phase_name(angle),
            "phase_angle": round(angle, 1),
            "illumination": moon_illumination(angle),
        }


def resolve_moon_phase(
    remote_phase: Optional[str],
    local_phase: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Pick the moon phase to display.

    Args:
        remote_phase: USNO curphase descriptor, if the request succeeded
        local_phase: LocalMoonPhase.describe() result, if it was computed in time

    Returns:
        Dict with phase, emoji and source ("usno", "local" or None when
        neither is available)
    """
    if remote_phase:
        return {"phase": remote_phase, "emoji": moon_emoji(remote_phase), "source": "usno"}

    if local_phase and local_phase.get("phase"):
        resolved = dict(local_phase)
        resolved.update({"emoji": moon_emoji(resolved["phase"]), "source": "local"})
        return resolved

    return {"phase": None, "emoji": DEFAULT_MOON_EMOJI, "source": None}
