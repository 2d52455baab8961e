"""Client-side lookup session: caching, throttling and view state.

A ``WeatherSession`` is what a UI drives. Every fetch goes through the same
gate before touching the network:

1. a fresh cache entry is served directly (no throttle check);
2. a stale entry is evicted;
3. a call already in flight for the key is not duplicated;
4. a non-forced call within the throttle interval is skipped.

Skipped calls fall back to the cached value, if any. Results that arrive
after the user moved to another location still update the cache but leave
the displayed view alone.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal, Protocol

from ..exceptions import WeatherClientError
from ..models import ExtendedOutlook, WeatherSnapshot
from .cache import DEFAULT_TTL_MS, ResponseCache, epoch_ms
from .coordinator import DEFAULT_THROTTLE_MS, RequestCoordinator
from .location import LocationProvider
from .preferences import (
    EXTENDED_CACHE_KEY,
    MAX_LOCATIONS,
    MAX_RECENT,
    WEATHER_CACHE_KEY,
    PreferenceStore,
    SavedTemperature,
    Theme,
    normalize_locations,
)
from .units import SpeedUnit, TempUnit, Units

Status = Literal["idle", "loading", "ready", "error"]
FetchOutcome = Literal["cache", "network", "skipped", "error"]

MAX_SUGGESTIONS = 6
GEO_UNSUPPORTED = "Geolocation is not supported on this host."
GEO_DENIED = "Unable to access your location. Check permissions."


class WeatherBackend(Protocol):
    async def fetch_weather(self, location: str) -> WeatherSnapshot: ...

    async def fetch_extended(self, location: str) -> ExtendedOutlook: ...


@dataclass(slots=True)
class ViewState:
    """``idle -> loading -> ready | error`` for one panel of the UI."""

    status: Status = "idle"
    error: str = ""

    def start(self) -> None:
        self.status = "loading"
        self.error = ""

    def succeed(self) -> None:
        self.status = "ready"
        self.error = ""

    def fail(self, message: str) -> None:
        self.status = "error"
        self.error = message

    def reset(self) -> None:
        self.status = "idle"
        self.error = ""


class WeatherSession:
    """Owns the caches, the request coordinator and the persisted preferences."""

    def __init__(
        self,
        backend: WeatherBackend,
        preferences: PreferenceStore,
        logger: logging.Logger,
        *,
        cache_ttl_ms: int = DEFAULT_TTL_MS,
        throttle_ms: int = DEFAULT_THROTTLE_MS,
        clock: Callable[[], float] = epoch_ms,
        location_provider: LocationProvider | None = None,
    ) -> None:
        self.backend = backend
        self.preferences = preferences
        self.logger = logger
        self.location_provider = location_provider
        self.coordinator = RequestCoordinator(throttle_ms=throttle_ms, clock=clock)

        self.weather_cache: ResponseCache[WeatherSnapshot] = ResponseCache(
            WeatherSnapshot, ttl_ms=cache_ttl_ms, clock=clock
        )
        self.weather_cache.load(preferences.load_cache(WEATHER_CACHE_KEY))
        self.extended_cache: ResponseCache[ExtendedOutlook] = ResponseCache(
            ExtendedOutlook, ttl_ms=cache_ttl_ms, clock=clock
        )
        self.extended_cache.load(preferences.load_cache(EXTENDED_CACHE_KEY))

        self.quick_locations = preferences.load_quick_locations()
        self.saved_temps = preferences.load_saved_temps()
        self.recent_searches = preferences.load_recent_searches()
        self.units = preferences.load_units()
        self.theme: Theme = preferences.load_theme()

        self.active_location = ""
        self.weather: WeatherSnapshot | None = None
        self.current_view = ViewState()
        self.extended_data: ExtendedOutlook | None = None
        self.extended_view = ViewState()
        self._extended_location = ""
        self.geo_error = ""
        self.is_locating = False
        self.loading_temps: set[str] = set()

    # ----- current conditions -----

    async def fetch_weather(self, location: str, *, force: bool = False) -> FetchOutcome:
        """Show current conditions for ``location``, from cache when fresh."""
        cleaned = location.strip()
        if not cleaned:
            return "skipped"
        cached, fresh = self.weather_cache.lookup(cleaned)
        if cached is not None and not fresh:
            self._persist_weather_cache()

        self.geo_error = ""
        self._set_active_location(cleaned)
        if fresh and cached is not None and not force:
            self._show_weather(cleaned, cached.value)
            return "cache"

        key = f"weather:{cleaned.lower()}"
        skip = self.coordinator.try_begin(key, force=force)
        if skip is not None:
            self.logger.debug("Skipping weather fetch for %r (%s)", cleaned, skip)
            if cached is not None:
                self._show_weather(cleaned, cached.value)
            return "skipped"

        self.current_view.start()
        try:
            snapshot = await self.backend.fetch_weather(cleaned)
        except WeatherClientError as exc:
            self.logger.warning("Weather fetch for %r failed: %s", cleaned, exc)
            if self.active_location == cleaned:
                self.current_view.fail(str(exc))
            return "error"
        finally:
            self.coordinator.finish(key)

        self.weather_cache.put(cleaned, snapshot)
        self._persist_weather_cache()
        self.record_saved_temp(cleaned, snapshot)
        self.add_recent_search(cleaned)
        if self.active_location == cleaned:
            self.weather = snapshot
            self.current_view.succeed()
        return "network"

    async def fetch_quick_temperature(self, location: str) -> FetchOutcome:
        """Refresh a quick location's saved temperature without changing the view."""
        cleaned = location.strip()
        if not cleaned:
            return "skipped"
        cached, fresh = self.weather_cache.lookup(cleaned)
        if cached is not None and not fresh:
            self._persist_weather_cache()
        if cached is not None and fresh:
            self.record_saved_temp(cleaned, cached.value)
            return "cache"

        key = f"quick:{cleaned.lower()}"
        if self.coordinator.try_begin(key) is not None:
            return "skipped"
        self.loading_temps.add(cleaned)
        try:
            snapshot = await self.backend.fetch_weather(cleaned)
        except WeatherClientError as exc:
            self.logger.warning("Quick temperature for %r failed: %s", cleaned, exc)
            return "error"
        finally:
            self.loading_temps.discard(cleaned)
            self.coordinator.finish(key)

        self.weather_cache.put(cleaned, snapshot)
        self._persist_weather_cache()
        self.record_saved_temp(cleaned, snapshot)
        return "network"

    async def refresh_quick_temperatures(self) -> dict[str, FetchOutcome]:
        outcomes: dict[str, FetchOutcome] = {}
        for location in list(self.quick_locations):
            outcomes[location] = await self.fetch_quick_temperature(location)
        return outcomes

    async def show_cached_weather(self, location: str) -> FetchOutcome:
        """Display a fresh cached entry, or force a refresh when there is none."""
        cleaned = location.strip()
        if not cleaned:
            return "skipped"
        cached, fresh = self.weather_cache.lookup(cleaned)
        if cached is not None and fresh:
            self._set_active_location(cleaned)
            self._show_weather(cleaned, cached.value, record_temp=False)
            return "cache"
        return await self.fetch_weather(cleaned, force=True)

    async def use_my_location(self) -> FetchOutcome:
        """Look up the weather at the host's current position."""
        if self.location_provider is None:
            self.geo_error = GEO_UNSUPPORTED
            return "error"
        self.is_locating = True
        self.geo_error = ""
        try:
            position = await self.location_provider.current_position()
        finally:
            self.is_locating = False
        if not position.ok:
            self.logger.info("Position lookup failed: %s", position.error)
            self.geo_error = GEO_DENIED
            return "error"
        return await self.fetch_weather(position.as_query(), force=True)

    # ----- extended outlook -----

    async def fetch_extended(self, location: str, *, force: bool = False) -> FetchOutcome:
        """Show the history/forecast outlook for ``location``."""
        cleaned = location.strip()
        if not cleaned:
            return "skipped"
        cached, fresh = self.extended_cache.lookup(cleaned)
        if cached is not None and not fresh:
            self._persist_extended_cache()

        self._extended_location = cleaned
        if fresh and cached is not None and not force:
            self._show_extended(cached.value)
            return "cache"

        key = f"extended:{cleaned.lower()}"
        if self.coordinator.try_begin(key, force=force) is not None:
            if cached is not None:
                self._show_extended(cached.value)
            return "skipped"

        self.extended_view.start()
        try:
            outlook = await self.backend.fetch_extended(cleaned)
        except WeatherClientError as exc:
            self.logger.warning("Extended fetch for %r failed: %s", cleaned, exc)
            if self._extended_location == cleaned:
                self.extended_view.fail(str(exc))
            return "error"
        finally:
            self.coordinator.finish(key)

        self.extended_cache.put(cleaned, outlook)
        self._persist_extended_cache()
        if self._extended_location == cleaned:
            self._show_extended(outlook)
        return "network"

    # ----- preferences -----

    def record_saved_temp(self, location: str, snapshot: WeatherSnapshot) -> None:
        temperature = snapshot.current.temperature_c
        if temperature is None:
            return
        key = next(
            (item for item in self.quick_locations if item.lower() == location.lower()),
            location,
        )
        self.saved_temps[key] = SavedTemperature(
            temperature=temperature,
            fetched_at=snapshot.fetched_at.isoformat(),
        )
        self.preferences.save_saved_temps(self.saved_temps)

    def add_recent_search(self, value: str) -> None:
        cleaned = value.strip()
        if not cleaned:
            return
        rest = [item for item in self.recent_searches if item.lower() != cleaned.lower()]
        self.recent_searches = [cleaned, *rest][:MAX_RECENT]
        self.preferences.save_recent_searches(self.recent_searches)

    def set_quick_locations(self, value: str) -> list[str]:
        """Replace quick locations from comma-separated input; blank input is ignored."""
        locations = normalize_locations(value)
        if locations:
            self.quick_locations = locations
            self.preferences.save_quick_locations(locations)
        return self.quick_locations

    def add_quick_location(self, location: str) -> bool:
        cleaned = location.strip()
        if not cleaned or len(self.quick_locations) >= MAX_LOCATIONS:
            return False
        if any(item.lower() == cleaned.lower() for item in self.quick_locations):
            return False
        self.quick_locations = [*self.quick_locations, cleaned]
        self.preferences.save_quick_locations(self.quick_locations)
        return True

    def remove_quick_location(self, location: str) -> bool:
        remaining = [item for item in self.quick_locations if item.lower() != location.lower()]
        if len(remaining) == len(self.quick_locations):
            return False
        self.quick_locations = remaining
        self.preferences.save_quick_locations(remaining)
        return True

    def set_units(self, *, temp: TempUnit | None = None, speed: SpeedUnit | None = None) -> Units:
        self.units = Units(temp=temp or self.units.temp, speed=speed or self.units.speed)
        self.preferences.save_units(self.units)
        return self.units

    def toggle_theme(self) -> Theme:
        self.theme = "light" if self.theme == "dark" else "dark"
        self.preferences.save_theme(self.theme)
        return self.theme

    def suggestions(self, text: str) -> list[str]:
        """Known locations containing ``text``, excluding an exact match."""
        needle = text.strip().lower()
        if not needle:
            return []
        results: list[str] = []
        seen: set[str] = set()
        for item in [*self.recent_searches, *self.quick_locations, *self.weather_cache]:
            cleaned = str(item).strip()
            lower = cleaned.lower()
            if not cleaned or needle not in lower or lower == needle or lower in seen:
                continue
            seen.add(lower)
            results.append(cleaned)
            if len(results) >= MAX_SUGGESTIONS:
                break
        return results

    @property
    def status_message(self) -> str:
        if self.geo_error:
            return self.geo_error
        status = self.current_view.status
        if status == "loading":
            return "Gathering conditions..."
        if status == "error":
            return f"{self.current_view.error} Try another city or check your connection."
        if status == "ready":
            local_time = self.weather.location.local_time if self.weather else ""
            return f"Local time {local_time}" if local_time else "Weather updated"
        return "Search for a city or choose a quick location."

    # ----- internals -----

    def _set_active_location(self, location: str) -> None:
        if location == self.active_location:
            return
        self.active_location = location
        self.extended_data = None
        self.extended_view.reset()
        self._extended_location = ""

    def _show_weather(
        self, location: str, snapshot: WeatherSnapshot, *, record_temp: bool = True
    ) -> None:
        self.weather = snapshot
        if record_temp:
            self.record_saved_temp(location, snapshot)
        self.add_recent_search(location)
        self.current_view.succeed()

    def _show_extended(self, outlook: ExtendedOutlook) -> None:
        self.extended_data = outlook
        self.extended_view.succeed()

    def _persist_weather_cache(self) -> None:
        self.weather_cache.prune()
        self.preferences.save_cache(WEATHER_CACHE_KEY, self.weather_cache.dump())

    def _persist_extended_cache(self) -> None:
        self.extended_cache.prune()
        self.preferences.save_cache(EXTENDED_CACHE_KEY, self.extended_cache.dump())
