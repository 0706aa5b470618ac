"""
Central logging configuration for the backend.

- JSON logs when LOG_JSON=1 (or when running on a host that sets
  RAILWAY_ENVIRONMENT / RENDER); human-readable lines otherwise.
- LOG_LEVEL from env (default INFO).
- Never log PII: no emails, passwords, tokens or amounts in messages.
  Log ids and counts with getLogger(__name__) instead.
"""
import json
import logging
import os
import sys
from typing import Any

NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "passlib", "sqlalchemy.engine")


def _json_serial(obj: Any):
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    return str(obj)


class JsonFormatter(logging.Formatter):
    """Single-line JSON records for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0]:
            payload["exception"] = self.formatException(record.exc_info)
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            for k, v in extra.items():
                if k not in payload and v is not None:
                    payload[k] = v
        return json.dumps(payload, default=_json_serial)


def _use_json() -> bool:
    if os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes"):
        return True
    return bool(os.getenv("RAILWAY_ENVIRONMENT") or os.getenv("RENDER"))


def configure_logging() -> None:
    """Configure the root logger once at startup."""
    level_name = (os.getenv("LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    # Avoid duplicate handlers when reloading
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if _use_json():
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
