"""Structured Logging — JSON formatter and setup for the canvas service.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Canvas extras (cell, ordering_key, account_id, error_code, counts) surfaced when present
    - Decimal ordering keys serialized as exact strings, never floats
    - setup_logging installs exactly one handler, however often it is called
    - httpx request lines held at WARNING: mirror-node polling would flood INFO

Design Decisions:
    - JSONFormatter on stdlib logging: no extra dependency
    - setup_logging called once on startup via lifespan
"""

import logging
import json
from datetime import datetime, timezone
from decimal import Decimal

_EXTRA_KEYS = (
    "cell", "ordering_key", "account_id", "error_code", "transaction_id",
    "pixel_count", "record_count", "pending_count", "path",
)
_QUIET_LOGGERS = ("httpx", "httpcore")


def _json_default(value):
    if isinstance(value, Decimal):
        return str(value)
    return repr(value)


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=_json_default)


class _CanvasHandler(logging.StreamHandler):
    """Marker type so repeated setup_logging calls replace, not stack."""


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    handler = _CanvasHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s - %(message)s",
        ))
    for existing in [h for h in logging.root.handlers if isinstance(h, _CanvasHandler)]:
        logging.root.removeHandler(existing)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
