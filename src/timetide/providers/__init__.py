"""Weather data providers."""

from timetide.providers.base import (
    AuthenticationError,
    ProviderError,
    RateLimitError,
    WeatherProvider,
)
from timetide.providers.openweather import OpenWeatherProvider

__all__ = [
    "WeatherProvider",
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    "OpenWeatherProvider",
]
