"""WeatherAPI.com provider implementation."""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from typing import Any

import httpx

from ..config import Settings
from ..models import (
    CurrentConditions,
    ForecastDay,
    HistoryDay,
    LocationInfo,
    WeatherSnapshot,
)
from ..redaction import sanitize_text
from .base import WeatherProvider
from .models import UpstreamFailure, UpstreamResult


def normalize_icon_url(icon: Any) -> str:
    """Turn the provider's protocol-relative icon paths into https URLs."""
    if not isinstance(icon, str) or not icon:
        return ""
    return icon if icon.startswith("http") else f"https:{icon}"


class WeatherApiProvider(WeatherProvider):
    """Fetches and normalizes payloads from api.weatherapi.com."""

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self._client = httpx.AsyncClient(
            timeout=settings.weather_timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> WeatherApiProvider:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def current(self, query: str) -> WeatherSnapshot | UpstreamFailure:
        """Fetch current conditions, returning a failure value instead of raising."""
        result = await self._request_json("current.json", {"q": query, "aqi": "no"})
        if result.failure is not None:
            return result.failure
        return self.map_current(result.data or {}, query=query)

    async def forecast(self, query: str, days: int) -> UpstreamResult:
        return await self._request_json(
            "forecast.json",
            {"q": query, "days": days, "aqi": "no", "alerts": "no"},
        )

    async def history(self, query: str, on_date: date) -> UpstreamResult:
        return await self._request_json(
            "history.json",
            {"q": query, "dt": on_date.isoformat()},
        )

    async def _request_json(self, path: str, params: dict[str, Any]) -> UpstreamResult:
        url = f"{self.settings.weatherapi_base_url}/{path}"
        query_params = {"key": self.settings.weatherapi_key or "", **params}
        try:
            response = await self._client.get(url, params=query_params)
        except httpx.HTTPError as exc:
            self.logger.warning(
                "WeatherAPI %s request failed (%s): %s",
                path, type(exc).__name__, sanitize_text(str(exc)),
            )
            return UpstreamResult.unreachable()

        try:
            payload = response.json()
        except ValueError:
            self.logger.warning(
                "WeatherAPI %s returned non-JSON response (HTTP %d)",
                path, response.status_code,
            )
            return UpstreamResult.unreachable()

        if not isinstance(payload, dict):
            self.logger.warning(
                "WeatherAPI %s returned unexpected payload type %s",
                path, type(payload).__name__,
            )
            return UpstreamResult.rejected()

        error = payload.get("error")
        if response.is_error or error:
            message = error.get("message") if isinstance(error, dict) else None
            self.logger.warning(
                "WeatherAPI %s rejected request (HTTP %d): %s",
                path, response.status_code, message or "no message",
            )
            return UpstreamResult.rejected(message if isinstance(message, str) else None)
        return UpstreamResult.success(payload)

    @classmethod
    def map_current(cls, payload: dict[str, Any], *, query: str) -> WeatherSnapshot:
        current = cls._as_dict(payload.get("current"))
        condition = cls._as_dict(current.get("condition"))
        return WeatherSnapshot(
            location=cls.map_location(payload, query=query),
            current=CurrentConditions(
                temperature_c=cls._as_float(current.get("temp_c")),
                feels_like_c=cls._as_float(current.get("feelslike_c")),
                humidity_pct=cls._as_float(current.get("humidity")),
                wind_kph=cls._as_float(current.get("wind_kph")),
                wind_dir=cls._as_str(current.get("wind_dir")),
                pressure_mb=cls._as_float(current.get("pressure_mb")),
                visibility_km=cls._as_float(current.get("vis_km")),
                precip_mm=cls._as_float(current.get("precip_mm")),
                description=cls._as_str(condition.get("text")) or "",
                icon_url=normalize_icon_url(condition.get("icon")),
            ),
            query=query,
            fetched_at=datetime.now(UTC),
        )

    @classmethod
    def map_location(cls, payload: dict[str, Any], *, query: str) -> LocationInfo:
        location = cls._as_dict(payload.get("location"))
        return LocationInfo(
            name=cls._as_str(location.get("name")) or query,
            country=cls._as_str(location.get("country")) or "",
            local_time=cls._as_str(location.get("localtime")) or "",
        )

    @classmethod
    def map_forecast_day(cls, item: dict[str, Any]) -> ForecastDay:
        day = cls._as_dict(item.get("day"))
        condition = cls._as_dict(day.get("condition"))
        return ForecastDay(
            date=cls._as_str(item.get("date")) or "",
            max_temp=cls._as_float(day.get("maxtemp_c")),
            min_temp=cls._as_float(day.get("mintemp_c")),
            avg_temp=cls._as_float(day.get("avgtemp_c")),
            chance_of_rain=cls._as_float(day.get("daily_chance_of_rain")),
            condition=cls._as_str(condition.get("text")) or "",
            icon_url=normalize_icon_url(condition.get("icon")),
        )

    @classmethod
    def map_history_day(cls, item: dict[str, Any]) -> HistoryDay:
        day = cls._as_dict(item.get("day"))
        condition = cls._as_dict(day.get("condition"))
        return HistoryDay(
            date=cls._as_str(item.get("date")) or "",
            max_temp=cls._as_float(day.get("maxtemp_c")),
            min_temp=cls._as_float(day.get("mintemp_c")),
            avg_temp=cls._as_float(day.get("avgtemp_c")),
            total_precip=cls._as_float(day.get("totalprecip_mm")),
            max_wind=cls._as_float(day.get("maxwind_kph")),
            condition=cls._as_str(condition.get("text")) or "",
            icon_url=normalize_icon_url(condition.get("icon")),
        )

    @staticmethod
    def forecast_days(payload: dict[str, Any] | None) -> list[dict[str, Any]]:
        """Return the ``forecast.forecastday`` list, tolerating missing levels."""
        if not isinstance(payload, dict):
            return []
        forecast = payload.get("forecast")
        if not isinstance(forecast, dict):
            return []
        days = forecast.get("forecastday")
        if not isinstance(days, list):
            return []
        return [item for item in days if isinstance(item, dict)]

    @staticmethod
    def _as_dict(value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @staticmethod
    def _as_str(value: Any) -> str | None:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @staticmethod
    def _as_float(value: Any) -> float | None:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return float(value)
        return None
