"""HTTP client for the weather API backend."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import ClientSettings
from ..exceptions import WeatherClientError
from ..models import ExtendedOutlook, WeatherSnapshot

DEFAULT_WEATHER_ERROR = "Unable to fetch weather data"
DEFAULT_EXTENDED_ERROR = "Unable to fetch extended weather data"


class BackendClient:
    """Calls ``/api/weather`` and ``/api/weather/extended`` on the backend."""

    def __init__(
        self,
        settings: ClientSettings,
        logger: logging.Logger,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self._client = httpx.AsyncClient(
            base_url=settings.api_url,
            timeout=settings.timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_weather(self, location: str) -> WeatherSnapshot:
        payload = await self._get_json("/api/weather", location, DEFAULT_WEATHER_ERROR)
        try:
            return WeatherSnapshot.model_validate(payload)
        except ValidationError as exc:
            raise WeatherClientError(DEFAULT_WEATHER_ERROR) from exc

    async def fetch_extended(self, location: str) -> ExtendedOutlook:
        payload = await self._get_json(
            "/api/weather/extended", location, DEFAULT_EXTENDED_ERROR
        )
        try:
            return ExtendedOutlook.model_validate(payload)
        except ValidationError as exc:
            raise WeatherClientError(DEFAULT_EXTENDED_ERROR) from exc

    async def _get_json(self, path: str, location: str, fallback: str) -> dict[str, Any]:
        try:
            response = await self._client.get(path, params={"query": location})
        except httpx.HTTPError as exc:
            self.logger.warning("Backend %s request failed (%s)", path, type(exc).__name__)
            raise WeatherClientError(fallback) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise WeatherClientError(fallback) from exc
        if not isinstance(payload, dict):
            raise WeatherClientError(fallback)

        error = payload.get("error")
        if response.is_error or error:
            raise WeatherClientError(error if isinstance(error, str) and error else fallback)
        return payload
