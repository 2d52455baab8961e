"""Display conversions and formatting for temperatures and speeds."""

from __future__ import annotations

import math
import re
from typing import Any, Literal

from pydantic import BaseModel

TempUnit = Literal["c", "f"]
SpeedUnit = Literal["kph", "mph"]
WeatherEffect = Literal["snow", "rain", "mist", "clouds", "clear"]

KM_PER_MILE = 1.60934
MISSING = "--"

_EFFECT_PATTERNS: tuple[tuple[WeatherEffect, re.Pattern[str]], ...] = (
    ("snow", re.compile(r"snow|sleet|blizzard|ice|freezing")),
    ("rain", re.compile(r"rain|drizzle|thunder|storm")),
    ("mist", re.compile(r"mist|fog|haze|smoke")),
    ("clouds", re.compile(r"cloud|overcast")),
)


class Units(BaseModel):
    temp: TempUnit = "c"
    speed: SpeedUnit = "kph"


def to_fahrenheit(celsius: float) -> float:
    return celsius * 9 / 5 + 32


def to_celsius(fahrenheit: float) -> float:
    return (fahrenheit - 32) * 5 / 9


def to_mph(kph: float) -> float:
    return kph / KM_PER_MILE


def _numeric(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(numeric) else numeric


def _round_half_up(value: float) -> int:
    # Half-up: 21.5 -> 22, -0.5 -> 0.
    return math.floor(value + 0.5)


def format_value(value: Any, suffix: str = "") -> str:
    if value is None:
        return MISSING
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value}{suffix}"


def format_temp(value: Any, unit: TempUnit) -> str:
    """Format a Celsius reading in the requested unit, e.g. ``"71 F"``."""
    numeric = _numeric(value)
    if numeric is None:
        return MISSING
    converted = to_fahrenheit(numeric) if unit == "f" else numeric
    return f"{_round_half_up(converted)} {unit.upper()}"


def format_speed(value: Any, unit: SpeedUnit) -> str:
    """Format a km/h reading in the requested unit, e.g. ``"12 km/h"``."""
    numeric = _numeric(value)
    if numeric is None:
        return MISSING
    converted = to_mph(numeric) if unit == "mph" else numeric
    suffix = "mph" if unit == "mph" else "km/h"
    return f"{_round_half_up(converted)} {suffix}"


def weather_effect(condition: str | None) -> WeatherEffect:
    """Classify a condition description into a coarse visual effect."""
    normalized = (condition or "").lower()
    for effect, pattern in _EFFECT_PATTERNS:
        if pattern.search(normalized):
            return effect
    return "clear"
