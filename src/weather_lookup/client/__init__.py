"""Lookup client: backend calls, response caching, throttling and preferences."""

from .api import BackendClient
from .cache import CacheEntry, ResponseCache, parse_cached_at
from .coordinator import RequestCoordinator
from .location import (
    FixedLocationProvider,
    LocationProvider,
    LocationResult,
    UnavailableLocationProvider,
)
from .preferences import PreferenceStore, SavedTemperature
from .session import ViewState, WeatherSession
from .store import JsonFileStore, MemoryStore, Store

__all__ = [
    "BackendClient",
    "CacheEntry",
    "FixedLocationProvider",
    "JsonFileStore",
    "LocationProvider",
    "LocationResult",
    "MemoryStore",
    "PreferenceStore",
    "RequestCoordinator",
    "ResponseCache",
    "SavedTemperature",
    "Store",
    "UnavailableLocationProvider",
    "ViewState",
    "WeatherSession",
    "parse_cached_at",
]
