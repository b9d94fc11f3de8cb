"""FastAPI application factory.

Creates and configures the FastAPI application with all routes and middleware.

## Usage

```python
from timetide.api import create_app
from timetide.config import get_settings

app = create_app(get_settings())

# Run with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=5000)
```

## Request Pipeline

1. Proxy headers (production only, so secure cookies work behind a proxy)
2. CORS (production only, origins from FRONTEND_ORIGIN)
3. Sessions
4. Routing: collaborators, weather, health
5. Exception handlers: unknown routes and unhandled errors
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from timetide.api.routes import ROUTE_PREFIXES, default_collaborators
from timetide.auth.middleware import SessionMiddleware
from timetide.config import Settings, get_settings
from timetide.database.connection import MongoConnector
from timetide.database.session_store import SessionStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown tasks:
    - Start connecting to MongoDB in the background
    - Log startup banners
    - Close the connection on shutdown
    """
    settings: Settings = app.state.settings
    connector: MongoConnector = app.state.connector

    connector.start()

    logger.info(f"{settings.app_name} Server running on http://localhost:{settings.port}")
    if settings.is_production:
        logger.info(f"App available at http://localhost:{settings.port}")
    else:
        logger.info(f"Frontend should be running on {settings.dev_frontend_url}")
        logger.info(f"API endpoints available at http://localhost:{settings.port}/api")

    yield

    logger.info("Shutting down")
    await connector.close()


async def route_not_found_handler(request: Request, exc: StarletteHTTPException):
    """Answer unmatched routes with the API-only notice.

    A known path requested with the wrong method counts as unmatched. Other
    HTTP errors raised by route handlers keep FastAPI's default rendering.
    """
    unmatched = (
        exc.status_code == status.HTTP_404_NOT_FOUND and "endpoint" not in request.scope
    ) or exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
    if unmatched:
        settings: Settings = request.app.state.settings
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "error": "Route not found",
                "message": (
                    "This is the API server. The frontend should be running on "
                    f"{settings.dev_frontend_url}."
                ),
            },
        )
    return await http_exception_handler(request, exc)


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unhandled errors and return a generic 500."""
    settings: Settings = request.app.state.settings
    logger.exception(f"Server error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "message": "Something went wrong" if settings.is_production else str(exc),
        },
    )


def create_app(
    settings: Settings | None = None,
    connector: MongoConnector | None = None,
    collaborators: Mapping[str, APIRouter] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings (default: loaded from the environment)
        connector: MongoDB connector (default: built from settings)
        collaborators: Routers replacing the defaults, keyed by prefix

    Returns:
        Configured FastAPI application

    Raises:
        ValueError: If a collaborator prefix is not one of ROUTE_PREFIXES
    """
    settings = settings or get_settings()
    connector = connector or MongoConnector(settings)

    unknown = set(collaborators or {}) - set(ROUTE_PREFIXES)
    if unknown:
        raise ValueError(f"Unknown route prefixes: {sorted(unknown)}")
    mounts = {**default_collaborators(), **(collaborators or {})}

    if settings.uses_default_session_secret:
        logger.warning("SESSION_SECRET is not set; using the development default")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="TimeTide backend API",
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        openapi_url=None if settings.is_production else "/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.connector = connector

    # Middleware added last runs first
    store = SessionStore(connector, settings.session_collection) if connector.is_configured else None
    app.add_middleware(SessionMiddleware, settings=settings, store=store)

    if settings.is_production:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
            allow_headers=["*"],
        )
        app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.forwarded_allow_ips)

    # Include routers
    from timetide.api.routes import health, weather

    for prefix in ROUTE_PREFIXES:
        app.include_router(mounts[prefix], prefix=prefix, tags=[prefix.rsplit("/", 1)[-1].title()])

    app.include_router(weather.router, prefix="/api", tags=["Weather"])
    app.include_router(health.router, prefix="/api", tags=["Health"])

    app.add_exception_handler(StarletteHTTPException, route_not_found_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    return app
