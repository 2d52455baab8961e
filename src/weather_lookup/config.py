"""Typed settings loaders for the weather API server and the lookup client."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

DEFAULT_WEATHERAPI_BASE_URL = "http://api.weatherapi.com/v1"
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Server settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    weatherapi_base_url: str = Field(
        default=DEFAULT_WEATHERAPI_BASE_URL,
        alias="WEATHERAPI_BASE_URL",
    )
    # Requests fail with HTTP 500 while unset.
    weatherapi_key: str | None = Field(default=None, alias="WEATHERAPI_KEY", repr=False)
    weather_timeout_seconds: float = Field(default=10.0, alias="WEATHER_TIMEOUT_SECONDS")

    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=3001, alias="PORT")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    rate_limit_window_ms: int = Field(default=60_000, alias="RATE_LIMIT_WINDOW_MS")
    rate_limit_max: int = Field(default=5, alias="RATE_LIMIT_MAX")

    @field_validator("weatherapi_key", mode="before")
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat an empty env-string key as unset."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @model_validator(mode="after")
    def validate_values(self) -> Settings:
        """Validate ranges and formats that pydantic types cannot express."""
        base_url = self.weatherapi_base_url.strip().rstrip("/")
        if not base_url.startswith(("http://", "https://")):
            raise ValueError("WEATHERAPI_BASE_URL must start with http:// or https://.")
        self.weatherapi_base_url = base_url
        if self.weather_timeout_seconds <= 0:
            raise ValueError("WEATHER_TIMEOUT_SECONDS must be > 0.")
        if not (0 < self.port < 65536):
            raise ValueError("PORT must be between 1 and 65535.")
        if self.rate_limit_window_ms <= 0:
            raise ValueError("RATE_LIMIT_WINDOW_MS must be > 0.")
        if self.rate_limit_max <= 0:
            raise ValueError("RATE_LIMIT_MAX must be > 0.")
        self.log_level = self.log_level.strip().upper()
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}.")
        return self

    @property
    def cors_origin_list(self) -> list[str]:
        origins = [item.strip() for item in self.cors_origins.split(",") if item.strip()]
        return origins or ["*"]

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging (no credentials)."""
        return {
            "weatherapi_base_url": self.weatherapi_base_url,
            "weatherapi_key_set": self.weatherapi_key is not None,
            "weather_timeout_seconds": self.weather_timeout_seconds,
            "host": self.host,
            "port": self.port,
            "cors_origins": self.cors_origin_list,
            "rate_limit_window_ms": self.rate_limit_window_ms,
            "rate_limit_max": self.rate_limit_max,
        }


class ClientSettings(BaseSettings):
    """Lookup client settings: backend location, cache TTL and throttle."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_url: str = Field(default="http://localhost:3001", alias="WEATHER_API_URL")
    cache_ttl_ms: int = Field(default=5 * 60 * 1000, alias="WEATHER_CACHE_TTL_MS")
    request_throttle_ms: int = Field(default=1200, alias="WEATHER_REQUEST_THROTTLE_MS")
    timeout_seconds: float = Field(default=10.0, alias="WEATHER_CLIENT_TIMEOUT_SECONDS")
    state_file: Path = Field(
        default=Path("~/.weather-lookup/state.json"),
        alias="WEATHER_STATE_FILE",
    )

    @model_validator(mode="after")
    def validate_values(self) -> ClientSettings:
        """Validate client-side knobs."""
        api_url = self.api_url.strip().rstrip("/")
        if not api_url.startswith(("http://", "https://")):
            raise ValueError("WEATHER_API_URL must start with http:// or https://.")
        self.api_url = api_url
        if self.cache_ttl_ms <= 0:
            raise ValueError("WEATHER_CACHE_TTL_MS must be > 0.")
        if self.request_throttle_ms < 0:
            raise ValueError("WEATHER_REQUEST_THROTTLE_MS must be >= 0.")
        if self.timeout_seconds <= 0:
            raise ValueError("WEATHER_CLIENT_TIMEOUT_SECONDS must be > 0.")
        self.state_file = self.state_file.expanduser()
        return self


def load_settings() -> Settings:
    """Load and validate server settings, raising ConfigError on failure."""
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc


def load_client_settings() -> ClientSettings:
    """Load and validate client settings, raising ConfigError on failure."""
    try:
        return ClientSettings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid client configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc
