"""
Structured JSON logging for the resource client and the CLI.

Transport, resource clients and the dashboard log event names as the message
("api_request", "resource_operation_failed", "envelope_unrecognized", ...) and put the
context in extra=; only whitelisted extras are emitted, request bodies never are.
"""
import json
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime, timezone
from typing import Any

from shopadmin.core.config import Settings, settings as default_settings

# Third-party loggers that would duplicate api_request lines (and print full URLs)
NOISY_LOGGERS = ("httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    """JSON log formatter with support for extra fields."""

    # Fields to extract from log record's extra dict
    EXTRA_FIELDS = (
        # transport
        "request_id", "method", "path", "status_code", "latency_ms",
        # resource clients
        "resource", "entity_id", "operation", "error", "error_kind", "envelope_shape", "count",
        # dashboard
        "failures",
    )

    def __init__(self, static_fields: dict[str, Any] | None = None) -> None:
        super().__init__()
        self.static_fields = dict(static_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self.static_fields,
        }

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        # Decimal / datetime / enum values in extras
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(settings: Settings | None = None) -> logging.Logger:
    """
    Install JSON handlers on the root logger at settings.log_level.
    Calling it again replaces the handlers instead of stacking them.
    """
    settings = settings or default_settings
    formatter = JsonFormatter({"service": "shopadmin", "api_base_url": settings.api_base_url})
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [handler]
    if settings.log_file:
        file_handler = RotatingFileHandler(
            settings.log_file,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root = logging.getLogger()
    root.setLevel(settings.log_level)
    root.handlers = handlers
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))
    return root
