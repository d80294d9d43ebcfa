"""Ingestion coordinator: sequences one inbound webhook end to end.

Per request: Start -> BodyCollected -> (SignatureChecked) -> Persisted,
or a terminal Rejected / Failed.

Security contract:
- Never return error details to the caller (info disclosure)
- Return 401 only for signature failures; rejected webhooks are never stored
- A transport failure mid-body never produces a partial record
- Storage runs in a worker thread so a slow write never stalls other requests
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Mapping

from starlette.concurrency import run_in_threadpool

from webhook_logger.config import Settings
from webhook_logger.records.models import WebhookRecord
from webhook_logger.records.store import RecordStore, StoreError
from webhook_logger.webhooks.body import BodyCollectionError, collect_body
from webhook_logger.webhooks.verification import (
    SIGNATURE_HEADER,
    requires_verification,
    signed_bytes,
    verify_signature,
)

logger = logging.getLogger(__name__)

ACCEPTED_MESSAGE = "Webhook received"
INVALID_SIGNATURE_ERROR = "Invalid signature"
PROCESSING_ERROR = "Failed to process webhook"


class IngestOutcome(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    FAILED = "failed"


_STATUS_CODES = {
    IngestOutcome.ACCEPTED: 200,
    IngestOutcome.REJECTED: 401,
    IngestOutcome.FAILED: 500,
}


@dataclass
class IngestResult:
    """Outcome of one ingestion, ready to be rendered as a response."""

    outcome: IngestOutcome
    body: dict[str, Any] = field(default_factory=dict)
    record: WebhookRecord | None = None

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.outcome]


def _failed() -> IngestResult:
    return IngestResult(IngestOutcome.FAILED, {"error": PROCESSING_ERROR})


class IngestionCoordinator:
    """Stateless per-request orchestration over a shared record store."""

    def __init__(self, store: RecordStore, settings: Settings):
        self._store = store
        self._settings = settings

    async def ingest(
        self,
        source: str,
        headers: Mapping[str, str],
        chunks: AsyncIterator[bytes],
    ) -> IngestResult:
        """Collect, verify and persist one webhook.

        Args:
            source: Channel name from the request path
            headers: Request headers (any case; stored lower-cased)
            chunks: The request body stream

        Returns:
            IngestResult for ACCEPTED (200), REJECTED (401) or FAILED (500)
        """
        try:
            return await self._ingest(source, headers, chunks)
        except Exception:
            logger.exception("Error processing webhook from %s", source)
            return _failed()

    async def _ingest(
        self,
        source: str,
        headers: Mapping[str, str],
        chunks: AsyncIterator[bytes],
    ) -> IngestResult:
        # 1. Collect body
        try:
            body = await collect_body(chunks, idle_timeout=self._settings.body_idle_timeout or None)
        except BodyCollectionError as e:
            logger.error("Error processing webhook from %s: %s", source, e)
            return _failed()

        record = WebhookRecord(
            source=source,
            headers={k.lower(): v for k, v in headers.items()},
            payload=body.payload,
        )

        # 2. Verify signature (github channel with a configured secret only)
        secret = self._settings.github_secret
        if requires_verification(source, secret):
            signed = signed_bytes(body.raw, body.payload, self._settings.signature_payload)
            is_valid = verify_signature(signed, record.headers.get(SIGNATURE_HEADER), secret)
            record.signature_valid = is_valid
            if not is_valid:
                logger.warning("Invalid %s signature!", source)
                return IngestResult(
                    IngestOutcome.REJECTED,
                    {"error": INVALID_SIGNATURE_ERROR},
                    record=record,
                )

        # 3. Persist
        try:
            record_id = await run_in_threadpool(self._store.append, record)
        except StoreError as e:
            logger.error("Error processing webhook from %s: %s", source, e)
            return _failed()

        logger.info("Webhook received from %s", source)
        return IngestResult(
            IngestOutcome.ACCEPTED,
            {"success": True, "message": ACCEPTED_MESSAGE, "id": record_id},
            record=record,
        )
