"""CLI entry-point for running the flowmeter service."""
from __future__ import annotations

import sys

import uvicorn

from flowmeter.core.config import ConfigError, get_settings
from flowmeter.main import create_app


def main() -> None:
    """Run the ASGI application using uvicorn."""
    try:
        settings = get_settings()
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)

    uvicorn.run(
        create_app(settings),
        host=settings.http_ip,
        port=settings.http_port,
        log_level=settings.log_level.lower(),
        timeout_graceful_shutdown=2,
        access_log=False,
    )


if __name__ == "__main__":
    main()
