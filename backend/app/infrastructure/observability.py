"""Structured Logging — JSON lines for the API, the cron updaters and the provider clients.

Invariants:
    - Every line carries timestamp, level, logger and message
    - Updater and request context (task_id, data_source, records, dollar_type, path...) is
      surfaced only when the call site passed it in `extra`
    - API keys and bearer secrets never reach the output, in the message or in an extra
    - setup_logging is idempotent: a second call replaces the handler instead of stacking one

Design Decisions:
    - httpx and sqlalchemy.engine are held at WARNING: httpx logs every provider URL at INFO
      and the cron runs would drown the updater summaries
"""

import logging
import json
import re
from datetime import datetime, timezone

EXTRA_KEYS = (
    "error_code", "path", "status_code", "url", "attempt",
    "task_id", "data_source", "records", "dollar_type",
)

NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")

_SECRET_PATTERNS = (
    re.compile(r"ask_[0-9a-f]{8,}"),
    re.compile(r"(?i)(bearer\s+)\S+"),
)

_HANDLER_NAME = "argenstats"


def redact(text: str) -> str:
    """Mask API keys and bearer tokens."""
    text = _SECRET_PATTERNS[0].sub("ask_***", text)
    return _SECRET_PATTERNS[1].sub(r"\1***", text)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
        }
        for key in EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = redact(val) if isinstance(val, str) else val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class RedactingFormatter(logging.Formatter):
    """Human-readable lines for local runs, with the same secret masking."""

    def format(self, record: logging.LogRecord) -> str:
        return redact(super().format(record))


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(RedactingFormatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
