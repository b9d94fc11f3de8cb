"""Base weather provider abstraction.

Weather providers are thin gateways: they issue exactly one request per call
and hand the upstream JSON back unchanged. There is no caching, no retry and
no rate limiting on our side.

## Errors

Every failure is raised as a `ProviderError` (or subclass) so route handlers
can translate it into a single generic response:

- Transport failures and timeouts
- Any non-2xx status (401 -> AuthenticationError, 429 -> RateLimitError)
- Response bodies that are not valid JSON
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from timetide.models.location import Coordinates


class ProviderError(Exception):
    """Base exception for weather provider errors."""

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.response_body = response_body


class RateLimitError(ProviderError):
    """Raised when provider rate limit is exceeded."""

    def __init__(
        self,
        provider: str,
        retry_after: int | None = None,
        status_code: int | None = None,
    ):
        super().__init__(
            f"Rate limit exceeded for {provider}",
            provider=provider,
            status_code=status_code,
        )
        self.retry_after = retry_after


class AuthenticationError(ProviderError):
    """Raised when authentication fails."""

    pass


class WeatherProvider(ABC):
    """Abstract base class for weather gateways.

    Attributes:
        name: Human-readable provider name
        base_url: Base URL for the API
        requires_api_key: Whether this provider requires an API key

    Example:
        ```python
        class MyProvider(WeatherProvider):
            name = "my_provider"
            base_url = "https://api.example.com"

            async def get_current_weather(self, coordinates):
                response = await self._fetch(f"{self.base_url}/now", params=...)
                return self._decode(response)
        ```
    """

    name: str
    base_url: str
    requires_api_key: bool = False

    def __init__(
        self,
        api_key: str | None = None,
        user_agent: str | None = None,
        timeout: float = 30.0,
    ):
        """Initialize the provider.

        Args:
            api_key: API key if required by the provider
            user_agent: User-Agent string for requests
            timeout: Request timeout in seconds
        """
        if self.requires_api_key and not api_key:
            raise ValueError(f"{self.name} requires an API key")

        self.api_key = api_key
        self.user_agent = user_agent or "timetide-api/0.1.0"
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> WeatherProvider:
        """Enter async context manager."""
        self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def _get_default_headers(self) -> dict[str, str]:
        """Get default headers for requests."""
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }

    async def _fetch(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Issue a single GET request.

        Args:
            url: Full URL to fetch
            params: Query parameters
            headers: Additional headers

        Returns:
            HTTP response with a 2xx status

        Raises:
            ProviderError: If the request fails or returns a non-2xx status
            AuthenticationError: If the API rejects the credential
            RateLimitError: If rate limit is exceeded
        """
        client = self._get_client()
        request_headers = self._get_default_headers()
        if headers:
            request_headers.update(headers)

        try:
            response = await client.get(url, params=params, headers=request_headers)
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Request to {self.name} failed: {type(e).__name__}",
                provider=self.name,
            ) from e

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                self.name,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                status_code=429,
            )

        if response.status_code == 401:
            raise AuthenticationError(
                f"Authentication failed for {self.name}",
                provider=self.name,
                status_code=401,
                response_body=response.text,
            )

        if not response.is_success:
            raise ProviderError(
                f"API request failed: {response.status_code}",
                provider=self.name,
                status_code=response.status_code,
                response_body=response.text,
            )

        return response

    def _decode(self, response: httpx.Response) -> Any:
        """Decode a JSON response body.

        Raises:
            ProviderError: If the body is not valid JSON
        """
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(
                f"Invalid JSON from {self.name}",
                provider=self.name,
                status_code=response.status_code,
                response_body=response.text,
            ) from e

    @abstractmethod
    async def get_current_weather(self, coordinates: Coordinates) -> Any:
        """Get current conditions for a location.

        Args:
            coordinates: Location coordinates

        Returns:
            The provider's JSON payload, unchanged

        Raises:
            ProviderError: If the weather cannot be retrieved
        """
        pass
