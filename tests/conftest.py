"""
Shared fixtures: station time zone, sample series and a fake HTTP layer.
"""
import io
import json
import threading
import urllib.error
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from coastal_tides.tide_phase import TideEvent, TideKind, TimePoint

CENTRAL = ZoneInfo("America/Chicago")


class FakeResponse:
    """Minimal stand-in for the object urllib.request.urlopen returns."""

    def __init__(self, body, headers=None):
        if not isinstance(body, (bytes, str)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode()
        self._stream = io.BytesIO(body)
        self.headers = headers or {}

    def read(self, size=-1):
        return self._stream.read(size)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class FakeHTTP:
    """
    Routes requests by URL substrings to canned bodies or exceptions.

    The first route whose substrings all appear in the URL wins; unmatched
    requests raise URLError like an unreachable host.
    """

    def __init__(self):
        self.routes = []
        self.requests = []
        self._lock = threading.Lock()

    def add(self, body, *fragments, headers=None):
        self.routes.append((fragments, body, headers))

    def urls_containing(self, *fragments):
        return [url for url in self.requests if all(fragment in url for fragment in fragments)]

    def __call__(self, request, timeout=None):
        url = request.full_url if hasattr(request, 'full_url') else request
        with self._lock:
            self.requests.append(url)
        for fragments, body, headers in self.routes:
            if all(fragment in url for fragment in fragments):
                if isinstance(body, BaseException):
                    raise body
                return FakeResponse(body, headers)
        raise urllib.error.URLError(f"no route for {url}")


@pytest.fixture
def fake_http(monkeypatch):
    """Replace urllib.request.urlopen for the duration of a test."""
    fake = FakeHTTP()
    monkeypatch.setattr("urllib.request.urlopen", fake)
    return fake


@pytest.fixture
def central():
    return CENTRAL


@pytest.fixture
def now():
    """Mid-afternoon in Texas, well away from DST transitions."""
    return datetime(2026, 1, 13, 13, 0, tzinfo=CENTRAL)


@pytest.fixture
def hilo_events():
    """A high at 10:00 and a low at 16:00 bracketing 13:00."""
    return [
        TideEvent(time=datetime(2026, 1, 13, 4, 0, tzinfo=CENTRAL), level=-0.2, kind=TideKind.LOW),
        TideEvent(time=datetime(2026, 1, 13, 10, 0, tzinfo=CENTRAL), level=1.8, kind=TideKind.HIGH),
        TideEvent(time=datetime(2026, 1, 13, 16, 0, tzinfo=CENTRAL), level=0.1, kind=TideKind.LOW),
        TideEvent(time=datetime(2026, 1, 13, 22, 30, tzinfo=CENTRAL), level=1.6, kind=TideKind.HIGH),
    ]


def make_series(start, count, step_minutes=6, values=None):
    """Evenly spaced series; values default to a slow ramp."""
    points = []
    for idx in range(count):
        value = values[idx] if values is not None else round(0.01 * idx, 3)
        points.append(TimePoint(time=start + timedelta(minutes=step_minutes * idx), value=value))
    return points
