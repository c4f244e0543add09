"""
Structured JSON logging for the system tools (stdlib-only).

Goals:
- One JSON object per log line (stdout)
- Consistent core fields across tools:
  - service, env, version, sha
  - correlation_id
  - event_type, severity
- correlation_id falls back to the process-wide id when the record has none
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Optional

from theatre.common.config import LoggingSettings, normalize_level


_RESERVED_ATTRS: frozenset[str] = frozenset(
    {
        # logging.LogRecord built-ins
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        # our injected keys
        "service",
        "env",
        "version",
        "sha",
        "correlation_id",
        "event_type",
        "severity",
        "message",
        "timestamp",
    }
)


def _utc_ts() -> str:
    return datetime.now(timezone.utc).isoformat()


def _clean_text(v: Any, *, max_len: int = 2000) -> str:
    s = "" if v is None else str(v)
    s = s.replace("\n", " ").replace("\r", " ").strip()
    if len(s) > max_len:
        s = s[: max_len - 1] + "…"
    return s


def _json_default(v: Any) -> str:
    if isinstance(v, datetime):
        return v.isoformat()
    return str(v)


def _process_correlation_id() -> Optional[str]:
    # Imported lazily: correlation logs through this module.
    from theatre.observability.correlation import get_correlation_id

    return get_correlation_id()


class JsonLogFormatter(logging.Formatter):
    def __init__(self, settings: Optional[LoggingSettings] = None) -> None:
        super().__init__()
        self._settings = settings or LoggingSettings.from_env()

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (format required by logging)
        s = self._settings
        severity = normalize_level(getattr(record, "severity", None) or record.levelname)
        event_type = _clean_text(getattr(record, "event_type", None) or "", max_len=128) or "log"
        cid = getattr(record, "correlation_id", None) or _process_correlation_id()

        payload: dict[str, Any] = {
            "timestamp": _utc_ts(),
            "severity": severity,
            "service": _clean_text(getattr(record, "service", None) or s.service, max_len=128),
            "env": _clean_text(getattr(record, "env", None) or s.env, max_len=64),
            "version": _clean_text(getattr(record, "version", None) or s.version, max_len=128),
            "sha": _clean_text(getattr(record, "sha", None) or s.sha, max_len=64),
            "correlation_id": _clean_text(cid, max_len=128) if cid else None,
            "event_type": event_type,
            "message": _clean_text(record.getMessage(), max_len=4000),
            "logger": _clean_text(record.name, max_len=256),
        }

        if record.exc_info:
            payload["exception"] = "".join(traceback.format_exception(*record.exc_info))[-8000:]
        elif record.stack_info:
            payload["stack"] = _clean_text(record.stack_info, max_len=8000)

        # Include any extra fields provided via logger.*(..., extra={...})
        for k, v in record.__dict__.items():
            if k in _RESERVED_ATTRS or k.startswith("_"):
                continue
            payload[str(k)] = v

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=_json_default)


def init_structured_logging(
    settings: Optional[LoggingSettings] = None,
    *,
    level: str | int | None = None,
) -> None:
    """
    Configure stdlib logging to emit JSON lines to stdout.

    Safe to call multiple times (last call wins).
    """
    s = settings or LoggingSettings.from_env()
    lvl = normalize_level(level or s.level)
    root = logging.getLogger()
    root.setLevel(lvl)

    # Replace handlers to ensure JSON output.
    root.handlers = []
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(lvl)
    handler.setFormatter(JsonLogFormatter(s))
    root.addHandler(handler)

    logging.captureWarnings(s.capture_warnings)


def log_event(
    logger: logging.Logger,
    event_type: str,
    *,
    severity: str = "INFO",
    message: str | None = None,
    **fields: Any,
) -> None:
    """
    Convenience wrapper for semantic events with stable `event_type`.
    """
    lvl = getattr(logging, normalize_level(severity), logging.INFO)
    logger.log(
        lvl,
        message or event_type,
        extra={"event_type": _clean_text(event_type, max_len=128), **fields},
    )
