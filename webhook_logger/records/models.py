"""Webhook record data model.

A WebhookRecord is created once by the ingestion coordinator and never
mutated after it is persisted. The store assigns ``id`` at write time;
on disk the id is the file name, so it is not part of the stored body.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class RecordStatus(str, Enum):
    """Record processing states. Only RECEIVED is produced today."""
    RECEIVED = "received"


def utc_timestamp() -> str:
    """Current instant as ISO-8601 UTC text with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class WebhookRecord:
    """One inbound webhook as persisted by the record store."""

    source: str
    payload: Any
    headers: dict[str, str] = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_timestamp)
    processed: bool = False
    status: str = RecordStatus.RECEIVED.value
    signature_valid: bool | None = None  # None = verification not attempted
    id: str | None = None

    def to_dict(self, include_id: bool = True) -> dict[str, Any]:
        """Serialize using the wire field names (camelCase signatureValid)."""
        data: dict[str, Any] = {}
        if include_id and self.id is not None:
            data["id"] = self.id
        data.update(
            {
                "timestamp": self.timestamp,
                "source": self.source,
                "headers": dict(self.headers),
                "payload": self.payload,
                "processed": self.processed,
                "status": self.status,
            }
        )
        if self.signature_valid is not None:
            data["signatureValid"] = self.signature_valid
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], record_id: str | None = None) -> WebhookRecord:
        """Rebuild a record from its stored form.

        Raises:
            ValueError: if required fields are missing or mistyped
        """
        source = data.get("source")
        if not isinstance(source, str) or not source:
            raise ValueError("record has no source")
        headers = data.get("headers") or {}
        if not isinstance(headers, dict):
            raise ValueError("record headers must be an object")
        signature_valid = data.get("signatureValid")
        if signature_valid is not None and not isinstance(signature_valid, bool):
            raise ValueError("signatureValid must be a boolean")

        return cls(
            source=source,
            payload=data.get("payload", {}),
            headers={str(k): str(v) for k, v in headers.items()},
            timestamp=str(data.get("timestamp", "")),
            processed=bool(data.get("processed", False)),
            status=str(data.get("status", RecordStatus.RECEIVED.value)),
            signature_valid=signature_valid,
            id=record_id,
        )
