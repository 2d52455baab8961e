"""HTTP-level tests for the weather API routes."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx
from fastapi.testclient import TestClient

from weather_lookup.config import Settings
from weather_lookup.server.app import RATE_LIMIT_MESSAGE, create_app
from weather_lookup.server.rate_limit import RateLimiter

CURRENT_PAYLOAD: dict[str, Any] = {
    "location": {"name": "Lisbon", "country": "Portugal", "localtime": "2026-10-19 10:00"},
    "current": {
        "temp_c": 19.0,
        "feelslike_c": 18.4,
        "humidity": 72,
        "wind_kph": 9.0,
        "wind_dir": "N",
        "condition": {"text": "Clear", "icon": "//cdn.example.com/clear.png"},
    },
}


def _forecast_payload() -> dict[str, Any]:
    days = [
        {"date": day, "day": {"maxtemp_c": 22.0, "mintemp_c": 14.0, "daily_chance_of_rain": 10}}
        for day in ("2026-10-19", "2026-10-20", "2026-10-21")
    ]
    return {"location": {"name": "Lisbon", "country": "Portugal"}, "forecast": {"forecastday": days}}


class Upstream:
    """Scriptable stand-in for the provider, keyed by endpoint file name."""

    def __init__(self, responses: dict[str, httpx.Response] | None = None) -> None:
        self.responses = responses or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.rsplit("/", 1)[-1]
        response = self.responses.get(endpoint)
        if response is None:
            raise httpx.ConnectError("unreachable", request=request)
        return response


def _make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "WEATHERAPI_KEY": "test-key",
        "WEATHERAPI_BASE_URL": "https://weather.example.com/v1",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _make_client(
    upstream: Upstream,
    *,
    settings: Settings | None = None,
    max_requests: int = 100,
    rate_limiter: RateLimiter | None = None,
) -> TestClient:
    app = create_app(
        settings or _make_settings(),
        logger=logging.getLogger("test_api_routes"),
        transport=httpx.MockTransport(upstream),
        rate_limiter=(
            rate_limiter
            if rate_limiter is not None
            else RateLimiter(window_ms=60_000, max_requests=max_requests)
        ),
        today=lambda: date(2026, 10, 19),
    )
    return TestClient(app)


def test_health_reports_ok() -> None:
    with _make_client(Upstream()) as client:
        response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert "time" in body


def test_weather_returns_normalized_snapshot() -> None:
    upstream = Upstream({"current.json": httpx.Response(200, json=CURRENT_PAYLOAD)})
    with _make_client(upstream) as client:
        response = client.get("/api/weather", params={"query": "Lisbon"})

    assert response.status_code == 200
    body = response.json()
    assert body["query"] == "Lisbon"
    assert body["location"] == {
        "name": "Lisbon",
        "country": "Portugal",
        "localTime": "2026-10-19 10:00",
    }
    assert body["current"]["temperatureC"] == 19.0
    assert body["current"]["iconUrl"] == "https://cdn.example.com/clear.png"
    assert upstream.requests[0].url.params["q"] == "Lisbon"


def test_location_parameter_is_accepted_as_alias() -> None:
    upstream = Upstream({"current.json": httpx.Response(200, json=CURRENT_PAYLOAD)})
    with _make_client(upstream) as client:
        response = client.get("/api/weather", params={"location": "  Lisbon  "})
    assert response.status_code == 200
    assert upstream.requests[0].url.params["q"] == "Lisbon"


def test_missing_query_is_400_without_upstream_call() -> None:
    upstream = Upstream({"current.json": httpx.Response(200, json=CURRENT_PAYLOAD)})
    with _make_client(upstream) as client:
        missing = client.get("/api/weather")
        blank = client.get("/api/weather/extended", params={"query": "   "})

    assert missing.status_code == 400
    assert missing.json() == {"error": "Missing query parameter"}
    assert blank.status_code == 400
    assert upstream.requests == []


def test_missing_key_is_500_without_upstream_call() -> None:
    upstream = Upstream({"current.json": httpx.Response(200, json=CURRENT_PAYLOAD)})
    settings = _make_settings(WEATHERAPI_KEY="")
    with _make_client(upstream, settings=settings) as client:
        response = client.get("/api/weather", params={"query": "Lisbon"})

    assert response.status_code == 500
    assert "error" in response.json()
    assert upstream.requests == []


def test_upstream_error_message_is_forwarded_as_502() -> None:
    upstream = Upstream(
        {
            "current.json": httpx.Response(
                400, json={"error": {"code": 1006, "message": "No matching location found."}}
            )
        }
    )
    with _make_client(upstream) as client:
        response = client.get("/api/weather", params={"query": "Atlantis"})
    assert response.status_code == 502
    assert response.json() == {"error": "No matching location found."}


def test_unreachable_upstream_is_502() -> None:
    with _make_client(Upstream()) as client:
        response = client.get("/api/weather", params={"query": "Lisbon"})
    assert response.status_code == 502
    assert response.json() == {"error": "Unable to reach weather service"}


def test_extended_is_partial_when_history_fails() -> None:
    upstream = Upstream(
        {
            "forecast.json": httpx.Response(200, json=_forecast_payload()),
            "history.json": httpx.Response(
                403, json={"error": {"message": "History not available on your plan."}}
            ),
        }
    )
    with _make_client(upstream) as client:
        response = client.get("/api/weather/extended", params={"query": "Lisbon"})

    assert response.status_code == 200
    body = response.json()
    assert body["location"]["name"] == "Lisbon"
    assert body["history"] == []
    assert body["historyError"] == "History not available on your plan."
    assert [day["date"] for day in body["forecast"]] == ["2026-10-20", "2026-10-21"]
    assert body["forecast"][0]["chanceOfRain"] == 10
    assert body["forecastError"] is None

    history_dates = sorted(
        request.url.params["dt"]
        for request in upstream.requests
        if request.url.path.endswith("/history.json")
    )
    assert history_dates == ["2026-10-17", "2026-10-18"]


def test_extended_forecast_failure_is_502() -> None:
    upstream = Upstream(
        {
            "forecast.json": httpx.Response(
                401, json={"error": {"message": "API key is invalid."}}
            ),
        }
    )
    with _make_client(upstream) as client:
        response = client.get("/api/weather/extended", params={"query": "Lisbon"})
    assert response.status_code == 502
    assert response.json() == {"error": "API key is invalid."}


def test_rate_limit_rejects_with_retry_after() -> None:
    upstream = Upstream({"current.json": httpx.Response(200, json=CURRENT_PAYLOAD)})
    with _make_client(upstream, max_requests=2) as client:
        statuses = [
            client.get("/api/weather", params={"query": "Lisbon"}).status_code for _ in range(2)
        ]
        limited = client.get("/api/weather", params={"query": "Lisbon"})
        # Health is outside the limited prefix.
        health = client.get("/api/health")

    assert statuses == [200, 200]
    assert limited.status_code == 429
    assert limited.json() == {"error": RATE_LIMIT_MESSAGE}
    assert int(limited.headers["Retry-After"]) >= 1
    assert health.status_code == 200
    assert len(upstream.requests) == 2


def test_rate_limit_counts_requests_that_fail_validation() -> None:
    with _make_client(Upstream(), max_requests=1) as client:
        first = client.get("/api/weather")
        second = client.get("/api/weather/extended")
    assert first.status_code == 400
    assert second.status_code == 429


def test_rate_limit_buckets_by_forwarded_for() -> None:
    upstream = Upstream({"current.json": httpx.Response(200, json=CURRENT_PAYLOAD)})
    with _make_client(upstream, max_requests=1) as client:
        first = client.get(
            "/api/weather", params={"query": "Lisbon"}, headers={"X-Forwarded-For": "198.51.100.1"}
        )
        second = client.get(
            "/api/weather", params={"query": "Lisbon"}, headers={"X-Forwarded-For": "198.51.100.2"}
        )
        repeat = client.get(
            "/api/weather",
            params={"query": "Lisbon"},
            headers={"X-Forwarded-For": "198.51.100.1, 10.0.0.1"},
        )
    assert first.status_code == 200
    assert second.status_code == 200
    assert repeat.status_code == 429


def test_injected_rate_limiter_is_used_even_when_empty() -> None:
    limiter = RateLimiter(window_ms=60_000, max_requests=1)
    assert len(limiter) == 0
    upstream = Upstream({"current.json": httpx.Response(200, json=CURRENT_PAYLOAD)})
    with _make_client(upstream, rate_limiter=limiter) as client:
        assert client.app.state.rate_limiter is limiter
        first = client.get("/api/weather", params={"query": "Lisbon"})
        second = client.get("/api/weather", params={"query": "Lisbon"})
    assert first.status_code == 200
    assert second.status_code == 429
    assert len(limiter) == 1


def test_rate_limited_response_carries_cors_header() -> None:
    origin = "https://ui.example.com"
    upstream = Upstream({"current.json": httpx.Response(200, json=CURRENT_PAYLOAD)})
    settings = _make_settings(CORS_ORIGINS=origin)
    with _make_client(upstream, settings=settings, max_requests=1) as client:
        allowed = client.get("/api/weather", params={"query": "Lisbon"}, headers={"Origin": origin})
        limited = client.get("/api/weather", params={"query": "Lisbon"}, headers={"Origin": origin})

    assert allowed.status_code == 200
    assert allowed.headers["access-control-allow-origin"] == origin
    assert limited.status_code == 429
    assert limited.headers["access-control-allow-origin"] == origin
    assert int(limited.headers["Retry-After"]) >= 1


def test_preflight_requests_do_not_use_the_quota() -> None:
    origin = "https://ui.example.com"
    upstream = Upstream({"current.json": httpx.Response(200, json=CURRENT_PAYLOAD)})
    settings = _make_settings(CORS_ORIGINS=origin)
    with _make_client(upstream, settings=settings, max_requests=1) as client:
        preflight = client.options(
            "/api/weather",
            headers={"Origin": origin, "Access-Control-Request-Method": "GET"},
        )
        response = client.get("/api/weather", params={"query": "Lisbon"}, headers={"Origin": origin})

    assert preflight.status_code == 200
    assert response.status_code == 200
