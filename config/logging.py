import json
import logging
import random
from datetime import datetime, timezone

# Attributes every LogRecord carries; anything else arrived through `extra`.
_RECORD_ATTRS = frozenset(logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__) | {
    "message",
    "asctime",
    "taskName",
}


def event_of(record: logging.LogRecord) -> str:
    """Return the structured event name of a record.

    Service actions pass it as the ``event`` extra; plain calls such as
    ``logger.info("loan_status_changed", extra=...)`` use the message itself.
    """
    event = getattr(record, "event", None)
    if isinstance(event, str) and event:
        return event
    return record.msg if isinstance(record.msg, str) else ""


class JsonFormatter(logging.Formatter):
    """One JSON object per line for production logs.

    Base fields are time (ISO-8601 UTC), level, logger name, event and
    message; context passed through ``extra`` (ref_no, actor_id, status_to,
    ...) is merged at the top level. Dict messages are merged the same way.
    Exceptions are rendered under ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "event": event_of(record),
        }
        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in payload:
                continue
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = str(value)
            payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class SamplingFilter(logging.Filter):
    """Drop a fraction of routine records while keeping the audit trail.

    - `rate`: fraction in [0.0, 1.0] of sampled records to keep.
    - `levels`: level names subject to sampling; other levels always pass.
    - `allow_events`: event names (see ``event_of``) that always pass, so
      loan state transitions survive any sampling rate.
    """

    def __init__(self, rate: float = 1.0, levels: list[str] | None = None, allow_events: list[str] | None = None):
        super().__init__()
        try:
            self.rate = min(1.0, max(0.0, float(rate)))
        except (TypeError, ValueError):
            self.rate = 1.0
        self.levels = set(levels or ["INFO"])
        self.allow_events = set(allow_events or [])

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if record.levelname not in self.levels:
            return True
        if event_of(record) in self.allow_events:
            return True
        if self.rate >= 1.0:
            return True
        if self.rate <= 0.0:
            return False
        return random.random() < self.rate
