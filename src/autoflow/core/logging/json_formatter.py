from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from .context import get_log_context


class JSONFormatter(logging.Formatter):
    """One JSON object per line; context vars and ``extra_fields`` are merged in."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts_iso_utc": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(get_log_context())

        event = getattr(record, "event", None)
        if event:
            payload["event"] = event

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            payload.update(extra_fields)

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_type"] = record.exc_info[0].__name__
            payload["exc_msg"] = str(record.exc_info[1] or "")
            payload["stack"] = self.formatException(record.exc_info)

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def log_event(logger: logging.Logger, level: int, event: str, msg: str, **fields: Any) -> None:
    logger.log(level, msg, extra={"event": event, "extra_fields": fields})
