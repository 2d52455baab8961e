"""Offline smoke tests for the weather-lookup CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from weather_lookup import cli
from weather_lookup.exceptions import WeatherClientError
from weather_lookup.models import (
    CurrentConditions,
    ExtendedOutlook,
    ForecastDay,
    HistoryDay,
    LocationInfo,
    WeatherSnapshot,
)


class FakeBackendClient:
    """Stands in for BackendClient; unknown cities fail like the backend would."""

    calls: list[tuple[str, str]] = []

    def __init__(self, settings: Any, logger: Any) -> None:
        self.settings = settings

    async def __aenter__(self) -> FakeBackendClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        return None

    async def fetch_weather(self, location: str) -> WeatherSnapshot:
        self.calls.append(("weather", location))
        if location == "Atlantis":
            raise WeatherClientError("No matching location found.")
        return WeatherSnapshot(
            location=LocationInfo(name=location, country="Germany", local_time="2026-10-19 14:05"),
            current=CurrentConditions(
                temperature_c=21.5,
                wind_kph=12.2,
                wind_dir="WSW",
                humidity_pct=60,
                description="Light rain",
            ),
            query=location,
        )

    async def fetch_extended(self, location: str) -> ExtendedOutlook:
        self.calls.append(("extended", location))
        return ExtendedOutlook(
            location=LocationInfo(name=location),
            history=[HistoryDay(date="2026-10-18", max_temp=18.0, min_temp=9.0, total_precip=2.0)],
            forecast=[],
            forecast_error="Forecast unavailable",
        )


def _set_env(monkeypatch: Any, tmp_path: Path) -> Path:
    state_file = tmp_path / "state.json"
    monkeypatch.setenv("WEATHER_API_URL", "http://backend.test")
    monkeypatch.setenv("WEATHER_STATE_FILE", str(state_file))
    monkeypatch.setattr(cli, "BackendClient", FakeBackendClient)
    FakeBackendClient.calls = []
    return state_file


def test_show_prints_converted_conditions(monkeypatch: Any, tmp_path: Path, capsys: Any) -> None:
    state_file = _set_env(monkeypatch, tmp_path)

    exit_code = cli.main(["show", "Berlin", "--units", "f", "--speed", "mph"])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Berlin, Germany" in out
    assert "71 F" in out
    assert "8 mph WSW" in out
    assert "effect=rain" in out

    state = json.loads(state_file.read_text(encoding="utf-8"))
    assert json.loads(state["recentSearches"]) == ["Berlin"]
    assert json.loads(state["units"]) == {"temp": "f", "speed": "mph"}


def test_show_extended_prints_history_and_notes(
    monkeypatch: Any, tmp_path: Path, capsys: Any
) -> None:
    _set_env(monkeypatch, tmp_path)

    assert cli.main(["show", "Kyoto", "--extended"]) == 0
    out = capsys.readouterr().out
    assert "Outlook for Kyoto" in out
    assert "2026-10-18" in out
    assert "Note: Forecast unavailable" in out
    assert FakeBackendClient.calls == [("weather", "Kyoto"), ("extended", "Kyoto")]


def test_second_show_is_served_from_persisted_cache(
    monkeypatch: Any, tmp_path: Path, capsys: Any
) -> None:
    _set_env(monkeypatch, tmp_path)

    assert cli.main(["show", "Berlin"]) == 0
    assert cli.main(["show", "Berlin"]) == 0
    assert FakeBackendClient.calls == [("weather", "Berlin")]

    assert cli.main(["show", "Berlin", "--force"]) == 0
    assert len(FakeBackendClient.calls) == 2


def test_show_lookup_failure_exits_4(monkeypatch: Any, tmp_path: Path, capsys: Any) -> None:
    _set_env(monkeypatch, tmp_path)

    assert cli.main(["show", "Atlantis", "--extended"]) == 4
    out = capsys.readouterr().out
    assert "No matching location found." in out
    assert FakeBackendClient.calls == [("weather", "Atlantis")]


def test_invalid_client_config_exits_2(monkeypatch: Any, tmp_path: Path) -> None:
    _set_env(monkeypatch, tmp_path)
    monkeypatch.setenv("WEATHER_CACHE_TTL_MS", "0")
    assert cli.main(["show", "Berlin"]) == 2


def test_unreadable_state_file_exits_3(monkeypatch: Any, tmp_path: Path) -> None:
    _set_env(monkeypatch, tmp_path)
    monkeypatch.setenv("WEATHER_STATE_FILE", str(tmp_path))
    assert cli.main(["show", "Berlin"]) == 3


def test_parse_args_serve_overrides() -> None:
    args = cli.parse_args(["serve", "--port", "8080"])
    assert args.command == "serve"
    assert args.port == 8080
    assert args.host is None
