"""Activity logging: console plus one append-only log file per UTC day.

Line format: [2025-10-11T09:30:00.123Z] [INFO] Webhook saved: webhook_...
Files: <logs_dir>/2025-10-11.log
"""

from __future__ import annotations

import logging
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path

from webhook_logger.config import Settings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"

_configured = False
_configure_lock = threading.Lock()


class UTCISOFormatter(logging.Formatter):
    """Formatter that renders asctime as ISO-8601 UTC with milliseconds."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return created.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class DailyFileHandler(logging.Handler):
    """Appends formatted records to <directory>/<YYYY-MM-DD>.log (UTC day)."""

    def __init__(self, directory: str | Path, level: int = logging.NOTSET):
        super().__init__(level)
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, record: logging.LogRecord) -> Path:
        day = datetime.fromtimestamp(record.created, tz=timezone.utc).date().isoformat()
        return self.directory / f"{day}.log"

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record) + "\n"
            path = self.path_for(record)
            with self.lock:
                with open(path, "a", encoding="utf-8") as f:
                    f.write(line)
        except Exception:
            self.handleError(record)


def configure_logging(settings: Settings) -> None:
    """Install console and daily-file handlers on the root logger, once."""
    global _configured
    with _configure_lock:
        if _configured:
            return

        formatter = UTCISOFormatter(LOG_FORMAT)

        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)

        daily = DailyFileHandler(settings.logs_dir)
        daily.setFormatter(formatter)

        root = logging.getLogger()
        root.setLevel(settings.log_level.upper())
        root.addHandler(console)
        root.addHandler(daily)
        _configured = True
