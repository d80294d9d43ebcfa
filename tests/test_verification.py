"""Tests for GitHub signature verification (constant-time HMAC-SHA256)."""

from __future__ import annotations

import hashlib
import hmac
from unittest.mock import patch

from hypothesis import given
from hypothesis import strategies as st

from webhook_logger.webhooks.verification import (
    compute_signature,
    requires_verification,
    serialize_payload,
    signed_bytes,
    verify_signature,
)

SECRET = "github-test-secret"

# HMAC zero-pads short keys, so "a" and "a\x00" sign identically
secrets_st = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789-_", min_size=1, max_size=40)


def _sign(body: bytes, secret: str = SECRET) -> str:
    """Compute a valid X-Hub-Signature-256 value independently."""
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class TestComputeSignature:

    def test_matches_reference_hmac(self):
        body = b'{"zen": "Keep it logically awesome."}'
        assert compute_signature(body, SECRET) == _sign(body)

    def test_prefixed_hex_digest(self):
        sig = compute_signature(b"", SECRET)
        assert sig.startswith("sha256=")
        assert len(sig) == len("sha256=") + 64


class TestVerifySignature:

    def test_valid_signature(self):
        body = b'{"ref": "refs/heads/main"}'
        assert verify_signature(body, _sign(body), SECRET) is True

    def test_tampered_body(self):
        sig = _sign(b'{"id": 123}')
        assert verify_signature(b'{"id": 456}', sig, SECRET) is False

    def test_wrong_secret(self):
        body = b'{"id": 123}'
        assert verify_signature(body, _sign(body, "other-secret"), SECRET) is False

    def test_missing_signature(self):
        assert verify_signature(b"body", None, SECRET) is False
        assert verify_signature(b"body", "", SECRET) is False

    def test_length_mismatch_is_false_not_error(self):
        assert verify_signature(b"body", "sha256=abc", SECRET) is False
        assert verify_signature(b"body", _sign(b"body") + "00", SECRET) is False

    def test_non_ascii_signature(self):
        assert verify_signature(b"body", "sha256=" + "é" * 32, SECRET) is False

    def test_missing_prefix(self):
        body = b"body"
        bare = hmac.new(SECRET.encode(), body, hashlib.sha256).hexdigest()
        assert verify_signature(body, bare, SECRET) is False

    def test_uses_constant_time_compare(self):
        body = b"body"
        with patch("webhook_logger.webhooks.verification.hmac.compare_digest", return_value=True) as cmp:
            assert verify_signature(body, _sign(body), SECRET) is True
        cmp.assert_called_once()

    @given(st.binary(), secrets_st)
    def test_own_signature_always_verifies(self, body, secret):
        sig = compute_signature(body, secret)
        assert verify_signature(body, sig, secret) is True
        # Deterministic
        assert verify_signature(body, sig, secret) is True

    @given(st.binary(), secrets_st, secrets_st)
    def test_different_secret_fails(self, body, secret, other):
        if secret == other:
            return
        assert verify_signature(body, compute_signature(body, other), secret) is False


class TestSignedBytes:
    """Raw bytes vs re-serialized payload as signing input."""

    def test_raw_mode_uses_received_bytes(self):
        raw = b'{ "a" : 1 }'
        assert signed_bytes(raw, {"a": 1}, "raw") == raw

    def test_reserialized_mode_is_compact_json(self):
        assert signed_bytes(b'{ "a" : 1 }', {"a": 1, "b": [1, 2]}, "reserialized") == b'{"a":1,"b":[1,2]}'

    def test_serialize_keeps_unicode(self):
        assert serialize_payload({"name": "café"}) == '{"name":"café"}'.encode()

    def test_reserialized_differs_from_pretty_sender(self):
        """A sender's whitespace is lost by re-encoding, so signatures diverge."""
        raw = b'{\n  "a": 1\n}'
        sig = _sign(raw)
        assert verify_signature(signed_bytes(raw, {"a": 1}, "raw"), sig, SECRET) is True
        assert verify_signature(signed_bytes(raw, {"a": 1}, "reserialized"), sig, SECRET) is False


class TestRequiresVerification:

    def test_github_with_secret(self):
        assert requires_verification("github", SECRET) is True

    def test_github_without_secret(self):
        assert requires_verification("github", "") is False

    def test_other_source_with_secret(self):
        assert requires_verification("stripe", SECRET) is False

    def test_source_is_case_sensitive(self):
        assert requires_verification("GitHub", SECRET) is False
