# afterhours/logging_config.py
import json
import logging
from datetime import datetime, timezone

from afterhours.config import Settings


class JsonFormatter(logging.Formatter):
    """One JSON object per line; picks known keys out of `extra=`."""

    EXTRA_FIELDS = (
        "path", "method", "status_code", "latency_ms",
        "event_id", "event_type", "object_id", "amount", "currency",
        "price_id", "error", "code",
    )

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in self.EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(settings: Settings) -> None:
    handler = logging.StreamHandler()
    if settings.log_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.log_level, logging.INFO))
    root.handlers = [handler]
