import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Optional

from adops.core.context import get_account_id, get_request_id, get_user_id
from adops.core.settings import settings

AUDIT_LOGGER = "adops.audit"
CONTEXT_FIELDS = ("account_id", "request_id", "user_id")
_STANDARD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", *CONTEXT_FIELDS}


class RequestContextFilter(logging.Filter):
    """Stamp the current account, request and user ids on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.account_id = get_account_id()
        record.request_id = get_request_id()
        record.user_id = get_user_id()
        return True


class JsonFormatter(logging.Formatter):
    def __init__(self, stream_label: str = "transactional") -> None:
        super().__init__()
        self.stream_label = stream_label

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "stream": self.stream_label,
            "message": record.getMessage(),
        }
        payload.update({field: getattr(record, field, "-") for field in CONTEXT_FIELDS})
        # Anything passed through ``extra=`` ends up under its own key.
        extra = {key: value for key, value in vars(record).items() if key not in _STANDARD_ATTRS}
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _stdout_handler(formatter: str, level: str) -> dict[str, Any]:
    return {
        "class": "logging.StreamHandler",
        "level": level,
        "formatter": formatter,
        "filters": ["request_context"],
        "stream": "ext://sys.stdout",
    }


def build_logging_config(level: str) -> dict[str, Any]:
    routed = {"handlers": ["default"], "level": level, "propagate": False}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_context": {"()": RequestContextFilter}},
        "formatters": {
            "json": {"()": JsonFormatter},
            "audit_json": {"()": JsonFormatter, "stream_label": "audit"},
        },
        "handlers": {
            "default": _stdout_handler("json", level),
            "audit": _stdout_handler("audit_json", level),
        },
        "loggers": {
            "": dict(routed),
            AUDIT_LOGGER: {"handlers": ["audit"], "level": level, "propagate": False},
            **{name: dict(routed) for name in ("uvicorn", "uvicorn.error", "uvicorn.access")},
        },
    }


def configure_logging(level: Optional[str] = None) -> None:
    logging.config.dictConfig(build_logging_config((level or settings.log_level).upper()))
    logging.getLogger(__name__).info(
        "Logging configured for environment=%s storage_provider=%s",
        settings.environment,
        settings.storage_provider,
    )


def get_audit_logger() -> logging.Logger:
    """Logger for ACL, permission and membership changes."""
    return logging.getLogger(AUDIT_LOGGER)
