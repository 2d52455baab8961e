"""Upstream weather provider integrations."""

from .aggregator import ExtendedOutlookAggregator
from .base import WeatherProvider
from .models import UpstreamFailure, UpstreamResult
from .weatherapi import WeatherApiProvider, normalize_icon_url

__all__ = [
    "ExtendedOutlookAggregator",
    "UpstreamFailure",
    "UpstreamResult",
    "WeatherApiProvider",
    "WeatherProvider",
    "normalize_icon_url",
]
