from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from catalogs_api.core.config import LOG_LEVEL
from catalogs_api.core.request_context import get_request_context

# Keys whose values never reach the log output.
MASKED_KEYS = ("token", "password", "secret")

_BEARER_RE = re.compile(r"(authorization\s*[:=]\s*bearer\s+)[^\s\"]+", re.IGNORECASE)
_KEY_VALUE_RE = re.compile(
    r"((?:%s)\s*[:=]\s*)[^\s\",}]+" % "|".join(MASKED_KEYS),
    re.IGNORECASE,
)

CONTEXT_FIELDS = ("request_id", "tenant_id", "user_id")
HTTP_FIELDS = ("endpoint", "method", "status_code")


def mask_sensitive(value: str) -> str:
    return _KEY_VALUE_RE.sub(r"\1***", _BEARER_RE.sub(r"\1***", value))


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Request ids come from the record's ``extra`` when given, otherwise from the
    request context bound at the time the record is formatted.
    """

    def format(self, record: logging.LogRecord) -> str:
        context = get_request_context()
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
        }
        for name in CONTEXT_FIELDS:
            entry[name] = getattr(record, name, None) or getattr(context, name)
        entry["module"] = record.name
        entry["message"] = mask_sensitive(record.getMessage())
        entry["duration_ms"] = getattr(record, "duration_ms", None)

        entry.update(
            (name, getattr(record, name))
            for name in HTTP_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info:
            entry["exception"] = mask_sensitive(self.formatException(record.exc_info))
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(level: str = LOG_LEVEL, stream: Optional[TextIO] = None) -> None:
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(level)
