"""City weather lookup: WeatherAPI.com proxy plus a caching lookup client."""

__version__ = "0.1.0"
