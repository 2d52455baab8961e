"""Tests for unit conversion, display formatting and condition effects."""

from __future__ import annotations

import pytest

from weather_lookup.client.units import (
    format_speed,
    format_temp,
    format_value,
    to_celsius,
    to_fahrenheit,
    to_mph,
    weather_effect,
)


def test_celsius_fahrenheit_round_trip() -> None:
    assert to_fahrenheit(21.5) == pytest.approx(70.7)
    assert to_celsius(to_fahrenheit(21.5)) == pytest.approx(21.5)
    assert to_fahrenheit(-40) == -40


def test_temperatures_are_rounded_half_up() -> None:
    assert format_temp(21.5, "c") == "22 C"
    assert format_temp(21.5, "f") == "71 F"
    assert format_temp(-0.5, "c") == "0 C"
    assert format_temp(None, "c") == "--"
    assert format_temp("n/a", "f") == "--"


def test_speeds_convert_to_mph() -> None:
    assert to_mph(16.0934) == pytest.approx(10.0)
    assert format_speed(12.2, "kph") == "12 km/h"
    assert format_speed(12.2, "mph") == "8 mph"
    assert format_speed(None, "mph") == "--"


def test_format_value_drops_integral_decimals() -> None:
    assert format_value(60.0, "%") == "60%"
    assert format_value(1013.5, " mb") == "1013.5 mb"
    assert format_value(None, " km") == "--"


@pytest.mark.parametrize(
    ("condition", "effect"),
    [
        ("Patchy light snow", "snow"),
        ("Moderate rain at times", "rain"),
        ("Thundery outbreaks possible", "rain"),
        ("Mist", "mist"),
        ("Partly cloudy", "clouds"),
        ("Overcast", "clouds"),
        ("Sunny", "clear"),
        ("", "clear"),
        (None, "clear"),
    ],
)
def test_weather_effect(condition: str | None, effect: str) -> None:
    assert weather_effect(condition) == effect
