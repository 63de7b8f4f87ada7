from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone

from .context import get_log_context
from .redact import redact_fields, redact_string


def _timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _exception_fields(record: logging.LogRecord) -> dict[str, str]:
    exc_type, exc_value, exc_tb = record.exc_info or (None, None, None)
    if exc_type is None:
        return {}
    return {
        "exc_type": exc_type.__name__,
        "exc_msg": redact_string(str(exc_value)) if exc_value is not None else "",
        "stack": redact_string("".join(traceback.format_exception(exc_type, exc_value, exc_tb))),
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, bound context, then structured fields."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, object] = {
            "ts_iso_utc": _timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": redact_string(record.getMessage()),
            **get_log_context(),
        }
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            line.update(redact_fields(extra_fields))
        line.update(_exception_fields(record))
        return json.dumps(line, separators=(",", ":"), ensure_ascii=False, default=str)
