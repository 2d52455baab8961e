"""FastAPI application exposing the weather proxy routes."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import date

import httpx
from fastapi import FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import Settings, load_settings
from ..exceptions import ApiError, MissingCredentialError, MissingInputError, RateLimitedError
from ..log_setup import setup_logger
from ..models import ErrorBody, ExtendedOutlook, HealthStatus, WeatherSnapshot
from ..redaction import register_secret
from ..weather.aggregator import ExtendedOutlookAggregator, utc_today
from ..weather.models import UpstreamFailure
from ..weather.weatherapi import WeatherApiProvider
from .rate_limit import RateLimiter, client_key

APP_NAME = "Weather Lookup API"
WEATHER_ROUTE_PREFIX = "/api/weather"
RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


def _error_response(exc: ApiError) -> JSONResponse:
    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitedError):
        headers["Retry-After"] = str(exc.retry_after_seconds)
    return JSONResponse(
        ErrorBody(error=exc.message).model_dump(),
        status_code=exc.status_code,
        headers=headers,
    )


def _require_query(query: str | None, location: str | None) -> str:
    cleaned = (query or location or "").strip()
    if not cleaned:
        raise MissingInputError("Missing query parameter")
    return cleaned


def _require_credential(settings: Settings) -> None:
    if not settings.weatherapi_key:
        raise MissingCredentialError("WEATHERAPI_KEY is not set")


def create_app(
    settings: Settings | None = None,
    *,
    logger: logging.Logger | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    rate_limiter: RateLimiter | None = None,
    today: Callable[[], date] = utc_today,
) -> FastAPI:
    """Build the API app; provider and limiter live for the app's lifespan."""
    settings = settings or load_settings()
    logger = logger or setup_logger(level=settings.log_level)
    register_secret(settings.weatherapi_key)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        provider = WeatherApiProvider(settings=settings, logger=logger, transport=transport)
        app.state.provider = provider
        app.state.aggregator = ExtendedOutlookAggregator(provider, logger, today=today)
        # RateLimiter defines __len__, so an empty injected limiter is falsy.
        if rate_limiter is not None:
            app.state.rate_limiter = rate_limiter
        else:
            app.state.rate_limiter = RateLimiter(
                window_ms=settings.rate_limit_window_ms,
                max_requests=settings.rate_limit_max,
            )
        logger.info("API starting: %s", settings.safe_summary())
        try:
            yield
        finally:
            await provider.aclose()
            logger.info("API stopped")

    app = FastAPI(title=APP_NAME, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings

    @app.middleware("http")
    async def rate_limit_weather_routes(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.method == "OPTIONS" or not request.url.path.startswith(WEATHER_ROUTE_PREFIX):
            return await call_next(request)
        limiter: RateLimiter = request.app.state.rate_limiter
        key = client_key(request.headers, request.client.host if request.client else None)
        decision = limiter.check(key)
        if not decision.allowed:
            logger.info(
                "Rate limited %s on %s",
                key, request.url.path,
                extra={
                    "fields": {
                        "client": key,
                        "count": decision.count,
                        "retry_after_s": decision.retry_after_seconds,
                    }
                },
            )
            return _error_response(
                RateLimitedError(
                    RATE_LIMIT_MESSAGE,
                    retry_after_seconds=decision.retry_after_seconds,
                )
            )
        return await call_next(request)

    # Added last so CORS wraps the rate-limit gate, 429s included.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
        return _error_response(exc)

    @app.get("/api/health")
    async def health() -> HealthStatus:
        return HealthStatus()

    @app.get(WEATHER_ROUTE_PREFIX)
    async def weather(
        request: Request,
        query: str | None = Query(default=None),
        location: str | None = Query(default=None),
    ) -> WeatherSnapshot:
        cleaned = _require_query(query, location)
        _require_credential(settings)
        provider: WeatherApiProvider = request.app.state.provider
        result = await provider.current(cleaned)
        if isinstance(result, UpstreamFailure):
            raise result.to_error()
        return result

    @app.get(f"{WEATHER_ROUTE_PREFIX}/extended")
    async def weather_extended(
        request: Request,
        query: str | None = Query(default=None),
        location: str | None = Query(default=None),
    ) -> ExtendedOutlook:
        cleaned = _require_query(query, location)
        _require_credential(settings)
        aggregator: ExtendedOutlookAggregator = request.app.state.aggregator
        result = await aggregator.build(cleaned)
        if isinstance(result, UpstreamFailure):
            raise result.to_error()
        return result

    return app
