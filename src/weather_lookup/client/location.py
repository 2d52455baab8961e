"""Host-provided "where am I" capability."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LocationResult:
    """Either coordinates or an error message, never both."""

    latitude: float | None = None
    longitude: float | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.latitude is not None and self.longitude is not None

    def as_query(self) -> str:
        """Format as the ``"lat,lon"`` query the backend accepts."""
        return f"{self.latitude:.4f},{self.longitude:.4f}"


class LocationProvider(ABC):
    @abstractmethod
    async def current_position(self) -> LocationResult:
        """Resolve the host's current position."""


class FixedLocationProvider(LocationProvider):
    """Always reports the same coordinates (configured or test positions)."""

    def __init__(self, latitude: float, longitude: float) -> None:
        if not (-90 <= latitude <= 90):
            raise ValueError(f"Invalid latitude {latitude}; expected between -90 and 90.")
        if not (-180 <= longitude <= 180):
            raise ValueError(f"Invalid longitude {longitude}; expected between -180 and 180.")
        self.latitude = latitude
        self.longitude = longitude

    async def current_position(self) -> LocationResult:
        return LocationResult(latitude=self.latitude, longitude=self.longitude)


class UnavailableLocationProvider(LocationProvider):
    """Position lookups always fail, e.g. when permission was refused."""

    def __init__(self, reason: str = "Position unavailable") -> None:
        self.reason = reason

    async def current_position(self) -> LocationResult:
        return LocationResult(error=self.reason)
