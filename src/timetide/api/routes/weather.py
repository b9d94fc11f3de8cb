"""Weather proxy route.

Forwards a coordinate query to OpenWeatherMap and relays the response.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from timetide.config import Settings
from timetide.models.location import Coordinates
from timetide.providers.base import ProviderError, WeatherProvider
from timetide.providers.openweather import OpenWeatherProvider

logger = logging.getLogger(__name__)

router = APIRouter()

MISSING_KEY_ERROR = "Weather API key not configured. Set OPENWEATHER_API_KEY in environment."
UPSTREAM_ERROR = "Failed to fetch weather data"


async def get_weather_provider(request: Request) -> AsyncGenerator[WeatherProvider | None, None]:
    """Provide a weather gateway for the request, or None if unconfigured."""
    settings: Settings = request.app.state.settings

    if not settings.weather_configured:
        yield None
        return

    async with OpenWeatherProvider(
        api_key=settings.openweather_api_key,
        base_url=settings.openweather_base_url,
        timeout=settings.weather_timeout_seconds,
    ) as provider:
        yield provider


@router.get("/weather")
async def get_weather(
    lat: str | None = Query(None, description="Latitude in decimal degrees"),
    lon: str | None = Query(None, description="Longitude in decimal degrees"),
    provider: WeatherProvider | None = Depends(get_weather_provider),
) -> JSONResponse:
    """Get current weather for a location.

    The credential is checked before the coordinates, and coordinates the
    upstream API would reject are reported like any other upstream failure.
    """
    if provider is None:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": MISSING_KEY_ERROR},
        )

    try:
        coordinates = Coordinates(latitude=lat, longitude=lon)
        data = await provider.get_current_weather(coordinates)
    except ValidationError as e:
        logger.error(f"Weather request rejected, invalid coordinates lat={lat!r} lon={lon!r}: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": UPSTREAM_ERROR},
        )
    except ProviderError as e:
        logger.error(f"Weather API error ({e.provider}, status={e.status_code}): {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": UPSTREAM_ERROR},
        )

    return JSONResponse(content=data)
