"""Structured JSON logging for ExportDesk.

One JSON object per line on stdout. Compliance code passes document context
through `extra`:

    logger.info("Status set to ready", extra={"doc_id": doc.id, "status": DocumentStatus.READY})

and the formatter lifts the known context fields into the line. Enum values
are written as their string value. Scheduler callbacks run outside any HTTP
request and are logged with request_id "no-request-id".
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Optional

NO_REQUEST_ID = "no-request-id"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Record attributes copied into the JSON line when present
CONTEXT_FIELDS = (
    "doc_id",
    "doc_key",
    "shipment_id",
    "tracking_id",
    "actor",
    "action",
    "status",
    "portal_behavior",
    "stage",
    "mirror_type",
)

QUIET_LOGGERS = ("uvicorn.access",)


def generate_request_id() -> str:
    return uuid.uuid4().hex


def get_request_id() -> str:
    return request_id_var.get() or NO_REQUEST_ID


def bind_request_id(request_id: str) -> Token:
    """Bind a request id to the current context; pass the token to reset_request_id."""
    return request_id_var.set(request_id)


def reset_request_id(token: Token) -> None:
    request_id_var.reset(token)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


class RequestIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


class JSONFormatter(logging.Formatter):
    """Render a record and its compliance context as one JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", NO_REQUEST_ID),
            "message": record.getMessage(),
        }
        payload.update(
            {field: _plain(getattr(record, field)) for field in CONTEXT_FIELDS if hasattr(record, field)}
        )
        if record.exc_info:
            payload["error"] = repr(record.exc_info[1])
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    quiet_loggers: Iterable[str] = QUIET_LOGGERS,
) -> None:
    """Install a single stdout handler on the root logger.

    Calling it again replaces the handler, so app factories and tests can
    reconfigure freely.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines when True, a human-readable format otherwise
        quiet_loggers: Loggers raised to WARNING
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDFilter())
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s")
        )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)
