"""
Station and forecast loading.

A user action (station click, forecast click) fans out every data-source
request it needs concurrently and joins once all of them have settled. Each
request fails on its own: a timeout or error in one source leaves that
section empty and never blocks the others. A newer selection cancels the
previous batch; jobs that have not started are skipped and results of a
superseded batch are discarded.

The presentation layer renders the StationReport / ForecastReport records
and owns the ChartRegistry.
"""
import logging
import threading
import uuid
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from . import config
from . import noaa_client, nws_client, usno_client
from .astronomy_service import LocalMoonPhase, resolve_moon_phase
from .conversions import mph_from_knots
from .curve import CurveBundle, assemble_curve
from .datetime_utils import DateRange, get_timezone, range_from_midnight_today, range_from_now
from .forecast import ForecastDay, SunMoonDay, build_forecast_days, partition_by_day
from .stations import Station
from .tide_phase import TideEvent, TideStatus, TimePoint, next_tides, summarize_tide_now

logger = logging.getLogger(__name__)

STATION_SLOT = 'station'
FORECAST_SLOT = 'forecast'


class FetchBatch:
    """A fan-out of named, independent jobs with a shared cancellation token."""

    def __init__(self, executor: Executor, label: str = 'batch'):
        self.label = label
        self._executor = executor
        self._futures: Dict[str, Future] = {}
        self._cancel_event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def submit(self, name: str, fn: Callable, *args, **kwargs) -> None:
        if name in self._futures:
            raise ValueError(f"Duplicate job name: {name}")
        self._futures[name] = self._executor.submit(self._run, name, fn, args, kwargs)

    def _run(self, name: str, fn: Callable, args, kwargs) -> Any:
        if self.cancelled:
            return None
        try:
            return fn(*args, **kwargs)
        except Exception:
            error_id = uuid.uuid4().hex[:8]
            logger.exception(f"Error {error_id} in {self.label} job {name}")
            return None

    def cancel(self) -> None:
        """Skip jobs that have not started; running requests finish but are ignored."""
        self._cancel_event.set()
        for future in self._futures.values():
            future.cancel()

    def join(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Wait for every job to settle.

        Returns:
            Mapping of job name to result; failed, cancelled or unfinished
            jobs map to None
        """
        wait(list(self._futures.values()), timeout=timeout)
        results = {}
        for name, future in self._futures.items():
            if future.cancelled() or not future.done():
                results[name] = None
            else:
                results[name] = future.result()
        return results


class ChartRegistry:
    """
    At most one chart per canvas slot.

    Charts are any object with a destroy() method.
    """

    def __init__(self):
        self._charts: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def replace(self, slot_id: str, chart: Any) -> Any:
        """Destroy the slot's current chart, if any, and register the new one."""
        with self._lock:
            previous = self._charts.pop(slot_id, None)
            if previous is not None and previous is not chart:
                previous.destroy()
            self._charts[slot_id] = chart
        return chart

    def get(self, slot_id: str) -> Optional[Any]:
        with self._lock:
            return self._charts.get(slot_id)

    def release(self, slot_id: str) -> None:
        with self._lock:
            chart = self._charts.pop(slot_id, None)
            if chart is not None:
                chart.destroy()

    def clear(self) -> None:
        with self._lock:
            charts = list(self._charts.values())
            self._charts.clear()
            for chart in charts:
                chart.destroy()

    def __contains__(self, slot_id: str) -> bool:
        with self._lock:
            return slot_id in self._charts

    def __len__(self) -> int:
        with self._lock:
            return len(self._charts)


@dataclass
class StationReport:
    """Display-ready data for one station popup. Absent sections are None."""
    station: Station
    generated_at: datetime
    tide_status: Optional[TideStatus] = None
    next_tides: List[TideEvent] = field(default_factory=list)
    curve: Optional[CurveBundle] = None
    water_temp: Optional[float] = None
    water_temp_history: List[TimePoint] = field(default_factory=list)
    air_temp: Optional[float] = None
    wind: Optional[Dict] = None
    wind_forecast: Optional[Dict] = None
    pressure: Optional[Dict] = None
    sun_moon: Optional[SunMoonDay] = None
    moon: Dict = field(default_factory=dict)
    error: Optional[str] = None


@dataclass
class ForecastReport:
    """Display-ready multi-day forecast for one station."""
    station: Station
    date_range: DateRange
    days: List[ForecastDay] = field(default_factory=list)
    predictions: List[TimePoint] = field(default_factory=list)
    error: Optional[str] = None


def _wind_in_mph(wind: Optional[Dict]) -> Optional[Dict]:
    if not wind:
        return None
    converted = dict(wind)
    converted['speed_mph'] = mph_from_knots(wind.get('speed'))
    converted['gust_mph'] = mph_from_knots(wind.get('gust'))
    return converted


def _all_absent(results: Dict[str, Any]) -> bool:
    return all(value is None or value == [] for value in results.values())


def _unavailable_message(station: Station) -> str:
    return f"Unable to fetch data for {station.name}. Please try again later."


class StationDashboard:
    """
    Loads station and forecast data for the presentation layer.

    Args:
        executor: Executor shared by all batches (a thread pool is created if None)
        moon_calculator: Local moon phase fallback
        timezone_str: Force a time zone instead of detecting it from coordinates
    """

    def __init__(
        self,
        executor: Optional[Executor] = None,
        moon_calculator: Optional[LocalMoonPhase] = None,
        timezone_str: Optional[str] = None,
    ):
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=config.FETCH_WORKERS, thread_name_prefix='coastal-tides'
        )
        self._moon_calculator = moon_calculator if moon_calculator is not None else LocalMoonPhase()
        self._timezone_str = timezone_str
        self._batches: Dict[str, FetchBatch] = {}
        self._lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self) -> None:
        with self._lock:
            batches = list(self._batches.values())
            self._batches.clear()
        for batch in batches:
            batch.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def _start_batch(self, slot: str, label: str) -> FetchBatch:
        batch = FetchBatch(self._executor, label)
        with self._lock:
            previous = self._batches.get(slot)
            self._batches[slot] = batch
        if previous is not None:
            previous.cancel()
        return batch

    def _is_current(self, slot: str, batch: FetchBatch) -> bool:
        with self._lock:
            return self._batches.get(slot) is batch and not batch.cancelled

    def _station_now(self, station: Station, now: Optional[datetime]):
        tz = get_timezone(station.lat, station.lon, self._timezone_str)
        if now is None:
            now = datetime.now(tz)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=tz)
        else:
            now = now.astimezone(tz)
        return tz, now

    @staticmethod
    def _fetch_air_temp(station: Station) -> Optional[float]:
        """Station sensor first, nearest NWS observation otherwise."""
        if station.has_product('air_temperature'):
            temp = noaa_client.fetch_air_temp(station.id)
            if temp is not None:
                return temp
        logger.info(f"No air temp from NOAA station {station.id}, trying NWS for ({station.lat}, {station.lon})")
        return nws_client.fetch_temperature(station.lat, station.lon)

    def _local_moon_phases(self, label: str, instants: Dict[str, datetime]) -> Dict[str, Optional[Dict]]:
        """
        Compute the local moon phase for each named instant.

        Runs on the shared executor with the request deadline, so a slow
        ephemeris download or a failing calculation leaves that phase absent
        instead of stalling the load.
        """
        if not instants:
            return {}
        batch = FetchBatch(self._executor, label)
        for name, when in instants.items():
            batch.submit(name, self._moon_calculator.describe, when)
        results = batch.join(timeout=config.API_TIMEOUT_SECONDS)
        batch.cancel()
        return results

    def load_station(self, station: Station, now: Optional[datetime] = None) -> Optional[StationReport]:
        """
        Fetch and assemble everything the station popup shows.

        Returns:
            StationReport (with error set when every source failed), or None
            when a newer station selection superseded this one
        """
        tz, now = self._station_now(station, now)
        has_predictions = station.has_product('predictions')
        has_water_temp = station.has_product('water_temperature')

        batch = self._start_batch(STATION_SLOT, f"station {station.id}")
        batch.submit('water_level', noaa_client.fetch_water_level, station.id)
        batch.submit(
            'observed', noaa_client.fetch_observed_water_levels, station.id,
            range_from_now(-config.CURVE_LOOKBACK_HOURS, 0, now, tz), tz,
        )
        if has_predictions:
            # One prediction window serves both the curve and the status
            batch.submit(
                'predictions', noaa_client.fetch_predictions, station.id,
                range_from_now(-config.CURVE_LOOKBACK_HOURS, config.CURVE_LOOKAHEAD_HOURS, now, tz),
                noaa_client.SIX_MINUTE_INTERVAL, tz,
            )
            batch.submit(
                'hilo', noaa_client.fetch_hilo_events, station.id,
                range_from_now(-config.HILO_LOOKBACK_HOURS, config.HILO_LOOKAHEAD_HOURS, now, tz), tz,
            )
        if has_water_temp:
            batch.submit('water_temp', noaa_client.fetch_water_temp, station.id)
            batch.submit(
                'water_temp_history', noaa_client.fetch_water_temp_history, station.id,
                range_from_now(-config.WATER_TEMP_HISTORY_HOURS, 0, now, tz), tz,
            )
        if station.has_product('wind'):
            batch.submit('wind', noaa_client.fetch_station_wind, station.id)
        batch.submit('air_temp', self._fetch_air_temp, station)
        batch.submit('wind_forecast', nws_client.fetch_forecast_12h, station.lat, station.lon)
        batch.submit('pressure', nws_client.fetch_pressure, station.lat, station.lon)
        batch.submit('sun_moon', usno_client.fetch_sun_moon_data, station.lat, station.lon, now.date(), tz)

        results = batch.join()
        if not self._is_current(STATION_SLOT, batch):
            logger.info(f"Discarding superseded results for station {station.id}")
            return None

        report = StationReport(station=station, generated_at=now)
        if _all_absent(results):
            report.error = _unavailable_message(station)
            return report

        predictions = results.get('predictions') or []
        events = results.get('hilo') or []
        observed = results.get('observed') or []

        if results['water_level'] is not None or predictions or events:
            report.tide_status = summarize_tide_now(
                results['water_level'], predictions, events, now, config.TREND_THRESHOLD_FT
            )
        report.next_tides = next_tides(events, now)
        report.curve = assemble_curve(predictions, observed, now, allow_no_predictions=not has_predictions)
        report.water_temp = results.get('water_temp')
        report.water_temp_history = results.get('water_temp_history') or []
        report.air_temp = results.get('air_temp')
        report.wind = _wind_in_mph(results.get('wind'))
        report.wind_forecast = results.get('wind_forecast')
        report.pressure = results.get('pressure')
        report.sun_moon = results.get('sun_moon')

        remote_phase = report.sun_moon.moon_phase if report.sun_moon else None
        local_phase = None
        if not remote_phase:
            local_phase = self._local_moon_phases(f"moon {station.id}", {'now': now}).get('now')
            if not self._is_current(STATION_SLOT, batch):
                return None
        report.moon = resolve_moon_phase(remote_phase, local_phase)
        return report

    def load_forecast(
        self,
        station: Station,
        now: Optional[datetime] = None,
        num_days: Optional[int] = None,
    ) -> Optional[ForecastReport]:
        """
        Fetch and assemble the multi-day forecast.

        Tide, weather and astronomy requests share one midnight-anchored
        window so that day i is the same calendar day for every source.

        Returns:
            ForecastReport, or None when a newer forecast request superseded this one
        """
        tz, now = self._station_now(station, now)
        num_days = num_days or config.FORECAST_DAYS
        date_range = range_from_midnight_today(num_days, now, tz)

        batch = self._start_batch(FORECAST_SLOT, f"forecast {station.id}")
        if station.has_product('predictions'):
            batch.submit(
                'tides', noaa_client.fetch_predictions, station.id, date_range,
                config.FORECAST_PREDICTION_INTERVAL, tz,
            )
        batch.submit('weather', nws_client.fetch_daily_forecast, station.lat, station.lon, date_range)
        for index, day in enumerate(date_range.days()):
            batch.submit(f"sun_moon_{index}", usno_client.fetch_sun_moon_data, station.lat, station.lon, day, tz)

        results = batch.join()
        if not self._is_current(FORECAST_SLOT, batch):
            logger.info(f"Discarding superseded forecast for station {station.id}")
            return None

        report = ForecastReport(station=station, date_range=date_range)
        if _all_absent(results):
            report.error = _unavailable_message(station)
            return report

        predictions = results.get('tides') or []
        buckets = partition_by_day(predictions, date_range.begin, num_days)
        sun_moon_days = [results.get(f"sun_moon_{index}") for index in range(num_days)]

        remote_phases = [sun_moon.moon_phase if sun_moon else None for sun_moon in sun_moon_days]
        middays = {
            f"day_{index}": date_range.begin + timedelta(days=index, hours=12)
            for index, remote_phase in enumerate(remote_phases) if not remote_phase
        }
        local_phases = self._local_moon_phases(f"forecast moon {station.id}", middays)
        if not self._is_current(FORECAST_SLOT, batch):
            return None
        moon_phases = [
            resolve_moon_phase(remote_phase, local_phases.get(f"day_{index}"))
            for index, remote_phase in enumerate(remote_phases)
        ]

        report.predictions = predictions
        report.days = build_forecast_days(buckets, results.get('weather'), sun_moon_days, moon_phases)
        return report
