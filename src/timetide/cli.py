"""Command-line interface for the TimeTide API."""

import argparse
import logging
import sys

from pydantic import ValidationError

from timetide import __version__
from timetide.config import Settings, get_settings

SECRET_FIELDS = {"session_secret", "openweather_api_key", "mongo_uri"}


def configure_logging(settings: Settings) -> None:
    """Send application and uvicorn logs to stdout."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )


def serve(settings: Settings, host: str | None, port: int | None) -> int:
    import uvicorn

    from timetide.api import create_app

    configure_logging(settings)
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        proxy_headers=settings.is_production,
        forwarded_allow_ips=settings.forwarded_allow_ips,
        log_config=None,
    )
    return 0


def check_config(settings: Settings) -> int:
    """Print the resolved settings with secrets masked."""
    for name, value in sorted(settings.model_dump().items()):
        if name in SECRET_FIELDS and value:
            value = "***"
        print(f"{name} = {value}")
    print(f"cors_origins = {settings.cors_origins if settings.is_production else '(disabled)'}")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="TimeTide API - sessions, weather proxy and app routes"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", help="Interface to bind (default: HOST or 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, help="Port to listen on (default: PORT or 5000)")

    subparsers.add_parser("check-config", help="Validate the environment and print settings")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return 1

    if args.command == "serve":
        return serve(settings, args.host, args.port)
    return check_config(settings)


if __name__ == "__main__":
    sys.exit(main())
