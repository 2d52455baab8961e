"""Shared typed models for normalized weather payloads.

Every model serializes with camelCase aliases, which is the JSON shape served
by the API and stored in the client caches.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for API payload models (camelCase on the wire, snake_case in Python)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump to the JSON-compatible camelCase shape."""
        return self.model_dump(mode="json", by_alias=True)


def utc_now() -> datetime:
    return datetime.now(UTC)


class LocationInfo(WireModel):
    """Resolved location metadata reported by the provider."""

    name: str
    country: str = ""
    local_time: str = ""


class CurrentConditions(WireModel):
    """Current conditions mapped from the provider's ``current`` object."""

    temperature_c: float | None = None
    feels_like_c: float | None = None
    humidity_pct: float | None = None
    wind_kph: float | None = None
    wind_dir: str | None = None
    pressure_mb: float | None = None
    visibility_km: float | None = None
    precip_mm: float | None = None
    description: str = ""
    icon_url: str = ""


class WeatherSnapshot(WireModel):
    """Current conditions for one query, as served by ``/api/weather``."""

    location: LocationInfo
    current: CurrentConditions
    query: str
    fetched_at: datetime = Field(default_factory=utc_now)


class DaySummary(WireModel):
    """Fields shared by history and forecast days."""

    date: str = ""
    max_temp: float | None = None
    min_temp: float | None = None
    avg_temp: float | None = None
    condition: str = ""
    icon_url: str = ""


class HistoryDay(DaySummary):
    total_precip: float | None = None
    max_wind: float | None = None


class ForecastDay(DaySummary):
    chance_of_rain: float | None = None


class ExtendedOutlook(WireModel):
    """Two days of history plus the upcoming forecast days for one query.

    ``history_error``/``forecast_error`` carry a user-displayable note when the
    corresponding half could not be filled; the other half is still returned.
    """

    location: LocationInfo
    history: list[HistoryDay] = Field(default_factory=list)
    forecast: list[ForecastDay] = Field(default_factory=list)
    history_error: str | None = None
    forecast_error: str | None = None
    fetched_at: datetime = Field(default_factory=utc_now)


class HealthStatus(BaseModel):
    status: str = "ok"
    time: datetime = Field(default_factory=utc_now)


class ErrorBody(BaseModel):
    error: str
