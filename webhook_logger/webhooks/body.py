"""Request body collection and payload decoding.

Contract:
- The body stream is consumed exactly once
- Invalid JSON is not an error: the payload becomes {"raw": <text>}
- Numbers that overflow to +/-inf count as invalid JSON
- Lone surrogate escapes (\\ud800) decode to U+FFFD
- Empty body decodes to {}
- A dropped connection or idle timeout raises BodyCollectionError
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, AsyncIterator

from starlette.requests import ClientDisconnect

logger = logging.getLogger(__name__)


class BodyCollectionError(Exception):
    """The request body could not be read to completion."""


@dataclass
class CollectedBody:
    """Raw bytes as received plus the decoded payload."""

    raw: bytes
    payload: Any


def _reject_constant(name: str) -> Any:
    # NaN / Infinity / -Infinity are not valid JSON text
    raise ValueError(f"invalid JSON constant: {name}")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        # 1e999 parses to inf, which has no JSON encoding
        raise ValueError(f"number out of range: {literal[:32]}")
    return value


_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def _replace_surrogates(value: Any) -> Any:
    # Paired escapes are already combined by json.loads; only lone halves remain
    if isinstance(value, str):
        return _LONE_SURROGATE.sub("\ufffd", value)
    if isinstance(value, dict):
        return {_replace_surrogates(k): _replace_surrogates(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_replace_surrogates(v) for v in value]
    return value


def decode_payload(raw: bytes) -> Any:
    """Decode a request body into a JSON value, or a raw-text fallback."""
    if not raw:
        return {}
    text = raw.decode("utf-8", errors="replace")
    try:
        value = json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)
        return _replace_surrogates(value)
    except (ValueError, RecursionError):
        logger.debug("Body is not valid JSON (%d bytes), keeping raw text", len(raw))
        return {"raw": text}


async def _next_chunk(chunks: AsyncIterator[bytes], timeout: float | None) -> bytes:
    if timeout:
        return await asyncio.wait_for(chunks.__anext__(), timeout=timeout)
    return await chunks.__anext__()


async def read_body(chunks: AsyncIterator[bytes], idle_timeout: float | None = None) -> bytes:
    """Accumulate a streamed body.

    Args:
        chunks: Async iterator of body chunks (e.g. Request.stream())
        idle_timeout: Max seconds to wait for any single chunk; None/0 disables

    Raises:
        BodyCollectionError: on client disconnect or idle timeout
    """
    buf = bytearray()
    while True:
        try:
            chunk = await _next_chunk(chunks, idle_timeout)
        except StopAsyncIteration:
            break
        except ClientDisconnect as e:
            raise BodyCollectionError("client disconnected while sending body") from e
        except asyncio.TimeoutError as e:
            raise BodyCollectionError(f"no body data received for {idle_timeout}s") from e
        except OSError as e:
            raise BodyCollectionError(f"transport error while reading body: {e}") from e
        buf.extend(chunk)
    return bytes(buf)


async def collect_body(chunks: AsyncIterator[bytes], idle_timeout: float | None = None) -> CollectedBody:
    """Read the whole body and decode it."""
    raw = await read_body(chunks, idle_timeout=idle_timeout)
    return CollectedBody(raw=raw, payload=decode_payload(raw))
