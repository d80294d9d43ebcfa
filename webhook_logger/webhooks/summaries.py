"""Post-processing: human-readable summaries for known payload shapes.

Runs after a record is persisted. Summaries are informational only: they
are logged, never stored, and a failure here never affects the response.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Any, Callable

from webhook_logger.records.models import WebhookRecord

logger = logging.getLogger(__name__)

# Maximum summary field length
_MAX_FIELD_LENGTH = 200


def _sanitize_field(value: Any) -> str:
    """Sanitize a payload field value for safe inclusion in a log line."""
    if value is None:
        return ""
    s = str(value)
    s = re.sub(r"<[^>]+>", "", s)
    s = html.unescape(s)
    s = re.sub(r"\s+", " ", s).strip()
    if len(s) > _MAX_FIELD_LENGTH:
        s = s[:_MAX_FIELD_LENGTH] + "..."
    return s


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _summarize_github(record: WebhookRecord) -> str | None:
    event = record.headers.get("x-github-event")
    payload = _as_dict(record.payload)

    if event == "push":
        commits = payload.get("commits")
        count = len(commits) if isinstance(commits, list) else 0
        ref = payload.get("ref")
        branch = _sanitize_field(ref.split("/")[-1]) if isinstance(ref, str) else "unknown"
        return f"Received {count} commits to branch {branch}"

    summary = f"GitHub event: {_sanitize_field(event) or 'unknown'}"

    if event in ("pull_request", "issues"):
        item = _as_dict(payload.get("pull_request" if event == "pull_request" else "issue"))
        number = _sanitize_field(item.get("number") or payload.get("number"))
        action = _sanitize_field(payload.get("action"))
        title = _sanitize_field(item.get("title"))
        summary += f" #{number} {action}: {title}".rstrip(": ")

    repo = _sanitize_field(_as_dict(payload.get("repository")).get("full_name"))
    if repo:
        summary += f" ({repo})"
    return summary


def _summarize_stripe(record: WebhookRecord) -> str | None:
    payload = _as_dict(record.payload)
    event_type = _sanitize_field(payload.get("type"))
    if not event_type:
        return None

    obj = _as_dict(_as_dict(payload.get("data")).get("object"))
    amount = obj.get("amount") or obj.get("amount_total")
    currency = _sanitize_field(obj.get("currency", "usd")).upper()

    if isinstance(amount, (int, float)) and not isinstance(amount, bool):
        # Stripe amounts are in cents
        amount_fmt = f"${int(amount) / 100:.2f} {currency}"
    else:
        amount_fmt = ""

    obj_id = _sanitize_field(obj.get("id", ""))
    return f"Stripe {event_type}: {obj_id} {amount_fmt}".strip().rstrip(":")


_SUMMARIZERS: dict[str, Callable[[WebhookRecord], str | None]] = {
    "github": _summarize_github,
    "stripe": _summarize_stripe,
}


def summarize(record: WebhookRecord) -> str | None:
    """Return a one-line summary for a known source, else None."""
    summarizer = _SUMMARIZERS.get(record.source)
    if summarizer is None:
        return None
    return summarizer(record)


def process_record(record: WebhookRecord) -> None:
    """Best-effort post-processing of a persisted record. Never raises."""
    try:
        logger.info("Processing webhook from %s...", record.source)
        summary = summarize(record)
        if summary:
            logger.info("%s", summary)
    except Exception:
        logger.exception("Post-processing failed for webhook %s", record.id)
