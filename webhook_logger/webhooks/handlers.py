"""Webhook HTTP handlers: FastAPI routes for ingestion and retrieval.

Routes:
- POST /webhook/{source}      ingest one webhook (200 / 401 / 500)
- GET  /api/webhooks          every stored record, newest first
- GET  /api/webhooks/stats    totals derived from the stored records

Security contract:
- Never return error details to the caller (info disclosure)
- Post-processing runs after the response is sent and cannot change it
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool

from webhook_logger.records.models import WebhookRecord
from webhook_logger.records.store import RecordStore, StoreError
from webhook_logger.webhooks.coordinator import IngestionCoordinator, IngestOutcome
from webhook_logger.webhooks.summaries import process_record

logger = logging.getLogger(__name__)

RETRIEVAL_ERROR = "Internal Server Error"

router = APIRouter(tags=["webhooks"])


def _store(request: Request) -> RecordStore:
    return request.app.state.store


def _coordinator(request: Request) -> IngestionCoordinator:
    return request.app.state.coordinator


@router.post("/webhook/{source}")
async def receive_webhook(request: Request, source: str) -> JSONResponse:
    """Receive a webhook from any source."""
    result = await _coordinator(request).ingest(source, request.headers, request.stream())

    background = None
    if result.outcome is IngestOutcome.ACCEPTED and result.record is not None:
        background = BackgroundTask(process_record, result.record)

    return JSONResponse(result.body, status_code=result.status_code, background=background)


@router.get("/api/webhooks")
async def list_webhooks(request: Request) -> JSONResponse:
    """All stored webhooks, newest first."""
    try:
        records = await run_in_threadpool(_store(request).list_all)
    except StoreError as e:
        logger.error("Error fetching webhooks: %s", e)
        return JSONResponse({"error": RETRIEVAL_ERROR}, status_code=500)

    return JSONResponse([r.to_dict() for r in records])


def compute_stats(records: list[WebhookRecord], today: str | None = None) -> dict:
    """Totals over newest-first records; *today* is a YYYY-MM-DD UTC date."""
    today = today or datetime.now(timezone.utc).date().isoformat()
    by_source = Counter(r.source for r in records)
    return {
        "total": len(records),
        "today": sum(1 for r in records if r.timestamp.startswith(today)),
        "recentSource": records[0].source if records else None,
        "bySource": dict(by_source),
    }


@router.get("/api/webhooks/stats")
async def webhook_stats(request: Request) -> JSONResponse:
    """Receive counts for the dashboard header."""
    try:
        records = await run_in_threadpool(_store(request).list_all)
    except StoreError as e:
        logger.error("Error fetching webhook stats: %s", e)
        return JSONResponse({"error": RETRIEVAL_ERROR}, status_code=500)

    return JSONResponse(compute_stats(records))
