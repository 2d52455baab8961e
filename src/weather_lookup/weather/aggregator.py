"""Extended outlook: merge one forecast call with two history calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta

from ..models import ExtendedOutlook, HistoryDay
from .base import WeatherProvider
from .models import UpstreamFailure, UpstreamResult
from .weatherapi import WeatherApiProvider

FORECAST_DAYS_REQUESTED = 3
HISTORY_OFFSETS = (1, 2)
FORECAST_UNAVAILABLE = "Forecast unavailable"
HISTORY_UNAVAILABLE = "History unavailable"


def utc_today() -> date:
    return datetime.now(UTC).date()


class ExtendedOutlookAggregator:
    """Fan out the forecast and history calls and merge what came back.

    The forecast call is required: its failure fails the whole outlook, since
    it also supplies the location metadata. History calls are best effort and
    their failures only surface as ``history_error``.
    """

    def __init__(
        self,
        provider: WeatherProvider,
        logger: logging.Logger,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self.provider = provider
        self.logger = logger
        self._today = today

    async def build(self, query: str) -> ExtendedOutlook | UpstreamFailure:
        """Return the merged outlook, or the forecast failure."""
        forecast_result, *history_results = await asyncio.gather(
            self.provider.forecast(query, FORECAST_DAYS_REQUESTED),
            *(self._history(query, offset) for offset in HISTORY_OFFSETS),
        )
        if forecast_result.failure is not None:
            self.logger.warning(
                "Extended outlook for %r failed: forecast call %s (%s)",
                query, forecast_result.failure.kind, forecast_result.failure.message,
            )
            return forecast_result.failure

        history = self.merge_history(history_results)
        history_error: str | None = None
        if not history:
            history_error = next(
                (result.error_message for result in history_results if not result.ok),
                HISTORY_UNAVAILABLE,
            )

        # Day 0 is today; only the following days are kept.
        forecast = [
            WeatherApiProvider.map_forecast_day(item)
            for item in WeatherApiProvider.forecast_days(forecast_result.data)[1:]
        ]
        forecast_error = None if forecast else FORECAST_UNAVAILABLE

        if history_error or forecast_error:
            self.logger.info(
                "Extended outlook for %r is partial (history=%s, forecast=%s)",
                query, history_error or "ok", forecast_error or "ok",
            )
        return ExtendedOutlook(
            location=WeatherApiProvider.map_location(forecast_result.data or {}, query=query),
            history=history,
            forecast=forecast,
            history_error=history_error,
            forecast_error=forecast_error,
        )

    async def _history(self, query: str, offset: int) -> UpstreamResult:
        # Each call derives its own date from the clock.
        on_date = self._today() - timedelta(days=offset)
        return await self.provider.history(query, on_date)

    @staticmethod
    def merge_history(results: list[UpstreamResult]) -> list[HistoryDay]:
        """Keep the first day of every successful history call, in request order."""
        days: list[HistoryDay] = []
        for result in results:
            if not result.ok:
                continue
            forecast_days = WeatherApiProvider.forecast_days(result.data)
            if forecast_days:
                days.append(WeatherApiProvider.map_history_day(forecast_days[0]))
        return days
