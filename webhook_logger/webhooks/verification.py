"""Webhook signature verification: constant-time HMAC-SHA256.

Security contract:
- Only the github channel is authenticated, and only when a secret is set
- Expected signature: "sha256=" + hex(HMAC-SHA256(secret, signed bytes))
- Comparison uses hmac.compare_digest() (constant-time, no timing attacks)
- Missing signature or length mismatch -> False, never an exception
- Signed bytes are the raw received body by default; re-encoding a parsed
  payload does not reproduce the sender's key order / whitespace
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

# Channel whose deliveries are signature-checked
AUTHENTICATED_SOURCE = "github"

# GitHub sends: X-Hub-Signature-256: sha256=<hex digest>
SIGNATURE_HEADER = "x-hub-signature-256"
SIGNATURE_PREFIX = "sha256="


def serialize_payload(payload: Any) -> bytes:
    """Compact JSON re-encoding of a decoded payload (legacy signing input)."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def compute_signature(body: bytes, secret: str) -> str:
    """Return the expected signature header value for *body*."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(body: bytes, signature_header: str | None, secret: str) -> bool:
    """Verify a GitHub-style HMAC-SHA256 signature.

    Args:
        body: Bytes the sender signed
        signature_header: Value of X-Hub-Signature-256 (may be None)
        secret: Shared secret

    Returns:
        True only on an exact match
    """
    if not signature_header:
        return False

    expected = compute_signature(body, secret).encode("utf-8")
    try:
        provided = signature_header.encode("utf-8")
    except UnicodeEncodeError:
        return False

    if len(provided) != len(expected):
        return False
    return hmac.compare_digest(provided, expected)


def requires_verification(source: str, secret: str) -> bool:
    """True when deliveries on *source* must carry a valid signature."""
    return source == AUTHENTICATED_SOURCE and bool(secret)


def signed_bytes(raw: bytes, payload: Any, mode: str = "raw") -> bytes:
    """Pick the byte sequence the signature is checked against."""
    if mode == "reserialized":
        return serialize_payload(payload)
    return raw
