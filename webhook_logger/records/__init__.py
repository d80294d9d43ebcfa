"""Durable, append-only storage for webhook records."""

from webhook_logger.records.models import RecordStatus, WebhookRecord
from webhook_logger.records.store import IdAllocator, RecordStore, StoreError

__all__ = ["IdAllocator", "RecordStatus", "RecordStore", "StoreError", "WebhookRecord"]
