"""Provider-agnostic weather interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from ..models import WeatherSnapshot
from .models import UpstreamFailure, UpstreamResult


class WeatherProvider(ABC):
    """Base contract for upstream weather providers used by the API."""

    @abstractmethod
    async def current(self, query: str) -> WeatherSnapshot | UpstreamFailure:
        """Fetch and normalize current conditions for a free-text query."""

    @abstractmethod
    async def forecast(self, query: str, days: int) -> UpstreamResult:
        """Fetch the raw multi-day forecast payload."""

    @abstractmethod
    async def history(self, query: str, on_date: date) -> UpstreamResult:
        """Fetch the raw history payload for a single calendar date."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release provider resources."""
