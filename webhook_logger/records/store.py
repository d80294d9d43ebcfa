"""Record store: one JSON file per webhook record, append-only.

Storage contract:
- Record ids are ``webhook_<ms>_<seq>``; zero-padded so byte order == creation order
- Ids are strictly increasing per process (IdAllocator) even on a frozen clock
- Each record is written to a hidden temp file, fsynced, then hard-linked
  into place; a reader sees either no file or the complete record
- os.link never overwrites: a name taken by another process means retry with
  the next id
- Records are never edited or deleted here
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import threading
import time
from pathlib import Path

from webhook_logger.records.models import WebhookRecord

logger = logging.getLogger(__name__)

_ID_PREFIX = "webhook_"
_RECORD_SUFFIX = ".json"
_TEMP_PREFIX = ".tmp-"
_SEQ_LIMIT = 1_000_000  # seq is rendered with 6 digits
_MAX_LINK_ATTEMPTS = 100

_RECORD_NAME = re.compile(r"^webhook_\d{13}_\d{6}\.json$")


class StoreError(Exception):
    """Storage layer failure (unwritable or unreadable store)."""


class IdAllocator:
    """Thread-safe, strictly increasing timestamp-derived identifiers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_ms = -1
        self._last_seq = -1

    def next_id(self) -> str:
        now_ms = round(time.time() * 1000)
        with self._lock:
            if now_ms > self._last_ms:
                self._last_ms, self._last_seq = now_ms, 0
            else:
                # Same millisecond, or the clock stepped back
                self._last_seq += 1
                if self._last_seq >= _SEQ_LIMIT:
                    self._last_ms, self._last_seq = self._last_ms + 1, 0
            return f"{_ID_PREFIX}{self._last_ms:013d}_{self._last_seq:06d}"


class RecordStore:
    """Filesystem-backed webhook record store."""

    def __init__(self, directory: str | os.PathLike[str], allocator: IdAllocator | None = None):
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._ids = allocator or IdAllocator()

    @property
    def directory(self) -> Path:
        return self._dir

    def append(self, record: WebhookRecord) -> str:
        """Persist a new record and return its id.

        The record is visible to list_all() before this returns.

        Raises:
            StoreError: if the record could not be written
        """
        try:
            body = json.dumps(
                record.to_dict(include_id=False), indent=2, ensure_ascii=False, allow_nan=False
            ).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise StoreError(f"record is not serializable as JSON: {e}") from e

        try:
            fd, tmp_name = tempfile.mkstemp(prefix=_TEMP_PREFIX, suffix=".part", dir=self._dir)
        except OSError as e:
            raise StoreError(f"cannot create record in {self._dir}: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(body)
                f.flush()
                os.fsync(f.fileno())

            for _ in range(_MAX_LINK_ATTEMPTS):
                record_id = self._ids.next_id()
                try:
                    os.link(tmp_name, self._path_for(record_id))
                except FileExistsError:
                    logger.debug("Record id %s already taken, allocating next", record_id)
                    continue
                break
            else:
                raise StoreError("could not allocate a free record id")
        except OSError as e:
            raise StoreError(f"failed to write record: {e}") from e
        finally:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            except OSError:
                logger.warning("Could not remove temp file %s", tmp_name, exc_info=True)

        record.id = record_id
        logger.info("Webhook saved: %s", record_id)
        return record_id

    def list_all(self) -> list[WebhookRecord]:
        """Return every record, newest first.

        Corrupt record files are skipped and logged. An unreadable
        store directory raises StoreError.
        """
        try:
            names = [n for n in os.listdir(self._dir) if _RECORD_NAME.match(n)]
        except OSError as e:
            raise StoreError(f"cannot list {self._dir}: {e}") from e

        records: list[WebhookRecord] = []
        for name in sorted(names, reverse=True):
            record_id = name[: -len(_RECORD_SUFFIX)]
            path = self._dir / name
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError:
                # Removed by an administrator between listdir and read
                continue
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.warning("Skipping corrupt record %s: %s", name, e)
                continue
            except OSError as e:
                raise StoreError(f"cannot read {path}: {e}") from e

            if not isinstance(data, dict):
                logger.warning("Skipping corrupt record %s: not a JSON object", name)
                continue
            try:
                records.append(WebhookRecord.from_dict(data, record_id=record_id))
            except ValueError as e:
                logger.warning("Skipping corrupt record %s: %s", name, e)

        return records

    def _path_for(self, record_id: str) -> Path:
        return self._dir / f"{record_id}{_RECORD_SUFFIX}"
