"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from webhook_logger.activity_log import configure_logging
from webhook_logger.config import Settings, get_settings
from webhook_logger.records.store import RecordStore
from webhook_logger.webhooks.coordinator import IngestionCoordinator
from webhook_logger.webhooks.handlers import router as webhook_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, *, configure_logs: bool = True) -> FastAPI:
    """Build the webhook logger app.

    Args:
        settings: Explicit settings (tests); defaults to the environment
        configure_logs: Install console/daily-file logging on startup
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if configure_logs:
            configure_logging(settings)
        base = f"http://localhost:{settings.port}"
        logger.info("Webhook server running on %s", base)
        logger.info("Webhook endpoint: %s/webhook/{source}", base)
        logger.info("Example: %s/webhook/github", base)
        if settings.verification_enabled:
            logger.info("GitHub signature verification enabled")
        else:
            logger.info("GITHUB_SECRET not set, github webhooks are accepted unverified")
        yield

    app = FastAPI(title="Webhook Logger", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = RecordStore(settings.webhooks_dir)
    app.state.coordinator = IngestionCoordinator(app.state.store, settings)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    app.include_router(webhook_router)
    return app
