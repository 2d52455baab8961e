"""Application exception classes."""

from __future__ import annotations


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""


class ApiError(Exception):
    """Base for errors rendered by the HTTP surface as ``{"error": message}``."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MissingInputError(ApiError):
    """Raised when a required query parameter is absent."""

    status_code = 400


class MissingCredentialError(ApiError):
    """Raised when the provider access key is not configured."""

    status_code = 500


class UpstreamRejectedError(ApiError):
    """Raised when the provider answered with an error status or payload."""

    status_code = 502


class UpstreamUnreachableError(ApiError):
    """Raised when the provider could not be reached at all."""

    status_code = 502


class RateLimitedError(ApiError):
    """Raised when a client exceeded its request allowance for the window."""

    status_code = 429

    def __init__(self, message: str, *, retry_after_seconds: int) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class WeatherClientError(Exception):
    """Raised when the backend API call from the client layer fails."""


class StoreError(Exception):
    """Raised when a persistent store backend cannot be used."""
