"""Persisted client state: each key parsed independently with a fallback."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, Literal, TypeVar

from pydantic import ValidationError

from ..models import WireModel
from .store import Store
from .units import Units

QUICK_LOCATIONS_KEY = "quickLocations"
SAVED_TEMPS_KEY = "savedTemps"
THEME_KEY = "theme"
UNITS_KEY = "units"
RECENT_SEARCHES_KEY = "recentSearches"
WEATHER_CACHE_KEY = "weatherCache"
EXTENDED_CACHE_KEY = "extendedCache"

DEFAULT_LOCATIONS = ("Copenhagen", "Kyoto", "Berlin", "Dubai")
MAX_LOCATIONS = 6
MAX_RECENT = 6

Theme = Literal["light", "dark"]
T = TypeVar("T")


class SavedTemperature(WireModel):
    """Last known temperature for a quick location."""

    temperature: float
    fetched_at: str


def _clean_strings(values: list[Any]) -> list[str]:
    return [str(item).strip() for item in values if str(item).strip()]


def normalize_locations(value: str) -> list[str]:
    """Split comma-separated user input into at most ``MAX_LOCATIONS`` names."""
    return [item.strip() for item in value.split(",") if item.strip()][:MAX_LOCATIONS]


class PreferenceStore:
    """Typed accessors over a ``Store``; malformed values load as defaults."""

    def __init__(self, store: Store) -> None:
        self.store = store

    def _load(self, key: str, parse: Callable[[Any], T], default: T) -> T:
        raw = self.store.get(key)
        if raw is None:
            return default
        try:
            return parse(json.loads(raw))
        except (ValueError, TypeError, ValidationError):
            return default

    def _save(self, key: str, value: Any) -> None:
        self.store.set(key, json.dumps(value, ensure_ascii=False))

    def load_quick_locations(self) -> list[str]:
        def parse(value: Any) -> list[str]:
            if not isinstance(value, list):
                raise TypeError("quick locations must be a list")
            cleaned = _clean_strings(value)
            if not cleaned:
                raise ValueError("no usable quick locations")
            return cleaned

        return self._load(QUICK_LOCATIONS_KEY, parse, list(DEFAULT_LOCATIONS))

    def save_quick_locations(self, locations: list[str]) -> None:
        self._save(QUICK_LOCATIONS_KEY, locations)

    def load_saved_temps(self) -> dict[str, SavedTemperature]:
        def parse(value: Any) -> dict[str, SavedTemperature]:
            if not isinstance(value, dict):
                raise TypeError("saved temperatures must be an object")
            return {str(key): SavedTemperature.model_validate(item) for key, item in value.items()}

        return self._load(SAVED_TEMPS_KEY, parse, {})

    def save_saved_temps(self, temps: dict[str, SavedTemperature]) -> None:
        self._save(SAVED_TEMPS_KEY, {key: item.to_wire() for key, item in temps.items()})

    def load_units(self) -> Units:
        def parse(value: Any) -> Units:
            if not isinstance(value, dict):
                raise TypeError("units must be an object")
            return Units(
                temp="f" if value.get("temp") == "f" else "c",
                speed="mph" if value.get("speed") == "mph" else "kph",
            )

        return self._load(UNITS_KEY, parse, Units())

    def save_units(self, units: Units) -> None:
        self._save(UNITS_KEY, units.model_dump())

    def load_recent_searches(self) -> list[str]:
        def parse(value: Any) -> list[str]:
            if not isinstance(value, list):
                raise TypeError("recent searches must be a list")
            return _clean_strings(value)[:MAX_RECENT]

        return self._load(RECENT_SEARCHES_KEY, parse, [])

    def save_recent_searches(self, searches: list[str]) -> None:
        self._save(RECENT_SEARCHES_KEY, searches)

    def load_theme(self, default: Theme = "light") -> Theme:
        # Stored as a bare string, or a JSON string from older writes.
        raw = self.store.get(THEME_KEY)
        if raw is None:
            return default
        try:
            value = json.loads(raw)
        except ValueError:
            value = raw
        if value == "dark":
            return "dark"
        if value == "light":
            return "light"
        return default

    def save_theme(self, theme: Theme) -> None:
        self.store.set(THEME_KEY, theme)

    def load_cache(self, key: str) -> dict[str, Any]:
        def parse(value: Any) -> dict[str, Any]:
            if not isinstance(value, dict):
                raise TypeError("cache must be an object")
            return value

        return self._load(key, parse, {})

    def save_cache(self, key: str, dumped: dict[str, Any]) -> None:
        self._save(key, dumped)
