"""CLI entry point for the webhook logger server.

Usage:
    python -m webhook_logger
    python -m webhook_logger --port 8080 --log-level DEBUG
"""

from __future__ import annotations

import argparse
import os

import uvicorn

from webhook_logger.config import get_settings


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="webhook-logger",
        description="Receive, verify and record inbound webhooks",
    )
    parser.add_argument("--host", default=settings.host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.port, help="Listen port")
    parser.add_argument("--log-level", default=settings.log_level, help="Root log level")
    parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    args = parser.parse_args(argv)

    # Propagate CLI overrides to the settings read by the app factory
    os.environ["WEBHOOK_LOGGER_PORT"] = str(args.port)
    os.environ["WEBHOOK_LOGGER_LOG_LEVEL"] = args.log_level
    get_settings.cache_clear()

    uvicorn.run(
        "webhook_logger.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
