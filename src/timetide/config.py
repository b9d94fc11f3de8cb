"""Application configuration.

Configuration is loaded from environment variables using pydantic-settings.
The resulting `Settings` object is frozen: it is built once at process start
and handed to every component that needs it.

## Environment Variables

- PORT: Listen port (default: 5000)
- NODE_ENV: `production` enables CORS, secure cookies, proxy trust and
  hides error details (default: development)
- MONGO_URI: MongoDB connection string. When unset the server still starts,
  but sessions are not persisted.
- MONGO_SERVER_SELECTION_TIMEOUT_MS / MONGO_SOCKET_TIMEOUT_MS: Driver
  timeouts (default: 15000 / 45000)
- MONGO_TLS_ALLOW_INVALID_CERT / MONGO_TLS_ALLOW_INVALID_HOSTNAME: Relax TLS
  validation for debugging. Rejected in production.
- SESSION_SECRET: Key used to sign session cookies. Required in production.
- FRONTEND_ORIGIN: Comma-separated list of allowed CORS origins (production)
- FORWARDED_ALLOW_IPS: Proxy addresses whose X-Forwarded-* headers are
  trusted in production (default: *, any peer)
- OPENWEATHER_API_KEY: OpenWeatherMap credential for /api/weather

## Example .env file

```
NODE_ENV=development
MONGO_URI=mongodb://localhost:27017/timetide
SESSION_SECRET=change-me
OPENWEATHER_API_KEY=your-openweather-key
```
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Self

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Used outside production only; production refuses to start without a secret.
DEFAULT_SESSION_SECRET = "timetide-secret-key"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application
    app_name: str = "TimeTide API"
    app_version: str = "0.1.0"
    node_env: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=5000, ge=1, le=65535)
    frontend_origin: str | None = Field(
        default=None,
        description="Comma-separated CORS allowlist, used in production only",
    )
    dev_frontend_url: str = "http://localhost:3001"
    forwarded_allow_ips: str = Field(
        default="*",
        description="Comma-separated proxy addresses trusted for X-Forwarded-* headers (production)",
    )

    # Database
    mongo_uri: str | None = None
    mongo_database: str = "timetide"
    mongo_server_selection_timeout_ms: int = Field(default=15000, ge=0)
    mongo_socket_timeout_ms: int = Field(default=45000, ge=0)
    mongo_tls_allow_invalid_cert: bool = False
    mongo_tls_allow_invalid_hostname: bool = False
    mongo_connect_attempts: int = Field(default=5, ge=1, le=20)

    # Session
    session_secret: str | None = None
    session_cookie_name: str = "connect.sid"
    session_max_age_seconds: int = Field(default=60 * 60 * 24, ge=1)  # 24 hours
    session_collection: str = "sessions"

    # Weather
    openweather_api_key: str | None = None
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"
    weather_timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator("node_env", mode="before")
    @classmethod
    def normalize_node_env(cls, v: Any) -> Any:
        """Lowercase NODE_ENV, falling back to development when blank."""
        if isinstance(v, str):
            return v.strip().lower() or "development"
        return v

    @field_validator("mongo_uri", "session_secret", "openweather_api_key", mode="before")
    @classmethod
    def blank_as_unset(cls, v: Any) -> Any:
        """Treat empty strings from the environment as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def check_production_safety(self) -> Self:
        """Refuse insecure settings in production."""
        if not self.is_production:
            return self

        if not self.session_secret:
            raise ValueError("SESSION_SECRET must be set when NODE_ENV=production")
        if self.mongo_tls_allow_invalid_cert or self.mongo_tls_allow_invalid_hostname:
            raise ValueError(
                "MONGO_TLS_ALLOW_INVALID_CERT/HOSTNAME must not be enabled in production"
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.node_env == "production"

    @property
    def cors_origins(self) -> list[str]:
        """Allowed CORS origins parsed from FRONTEND_ORIGIN.

        An empty list means no cross-origin request is allowed.
        """
        if not self.frontend_origin:
            return []
        return [origin.strip() for origin in self.frontend_origin.split(",") if origin.strip()]

    @property
    def session_signing_key(self) -> str:
        """Key for signing session cookies."""
        return self.session_secret or DEFAULT_SESSION_SECRET

    @property
    def uses_default_session_secret(self) -> bool:
        return self.session_secret is None

    @property
    def weather_configured(self) -> bool:
        """Check if the weather API credential is configured."""
        return bool(self.openweather_api_key)

    def mongo_client_options(self) -> dict[str, Any]:
        """Keyword arguments for the MongoDB client."""
        options: dict[str, Any] = {
            "serverSelectionTimeoutMS": self.mongo_server_selection_timeout_ms,
            "socketTimeoutMS": self.mongo_socket_timeout_ms,
        }
        if self.mongo_tls_allow_invalid_cert:
            options["tlsAllowInvalidCertificates"] = True
        if self.mongo_tls_allow_invalid_hostname:
            options["tlsAllowInvalidHostnames"] = True
        return options


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached. To reload, clear the cache:
    ```python
    get_settings.cache_clear()
    ```
    """
    return Settings()
