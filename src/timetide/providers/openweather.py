"""OpenWeatherMap current weather provider.

## Endpoint
- URL: https://api.openweathermap.org/data/2.5/weather
- Example: .../weather?lat=40.7128&lon=-74.006&appid=YOUR_KEY&units=metric

## Authentication
- API key passed as the `appid` query parameter
- Invalid keys are answered with 401

## Request Parameters
| Parameter | Description |
|-----------|-------------|
| lat, lon | Coordinates in decimal degrees |
| appid | API key |
| units | standard, metric, imperial (we always request metric) |

## Response Format
```json
{
  "coord": {"lon": -74.006, "lat": 40.7128},
  "weather": [{"id": 800, "main": "Clear", "description": "clear sky", "icon": "01d"}],
  "main": {"temp": 21.3, "feels_like": 21.0, "pressure": 1015, "humidity": 55},
  "wind": {"speed": 3.6, "deg": 200},
  "name": "New York",
  ...
}
```

The payload is relayed to clients as-is.
"""

from __future__ import annotations

from typing import Any

from timetide.models.location import Coordinates
from timetide.providers.base import WeatherProvider

UNITS = "metric"


class OpenWeatherProvider(WeatherProvider):
    """OpenWeatherMap provider.

    Example:
        ```python
        async with OpenWeatherProvider(api_key="your-api-key") as provider:
            data = await provider.get_current_weather(
                Coordinates(latitude=40.7128, longitude=-74.0060)
            )
        ```
    """

    name = "openweather"
    base_url = "https://api.openweathermap.org/data/2.5"
    requires_api_key = True

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: float = 30.0,
    ):
        super().__init__(api_key=api_key, user_agent=user_agent, timeout=timeout)
        if base_url:
            self.base_url = base_url.rstrip("/")

    async def get_current_weather(self, coordinates: Coordinates) -> Any:
        params: dict[str, Any] = {
            **coordinates.to_query_params(),
            "appid": self.api_key,
            "units": UNITS,
        }
        response = await self._fetch(f"{self.base_url}/weather", params=params)
        return self._decode(response)
