"""Logging configuration for the semantic RAG service.

Development logs are single human-readable lines; production logs are one
JSON object per line. Both carry the current request id and any structured
fields passed through `extra={"extra_fields": {...}}`.
"""

import json
import logging
import sys
from contextvars import ContextVar
from typing import Any, Dict, Optional

from semantic_rag.config import Settings
from semantic_rag.utils.errors import RAGException

ROOT_LOGGER = "semantic_rag"

# Set by RequestIDMiddleware; survives awaits within one request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Standard LogRecord attributes; anything else on a record came from `extra=`
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "extra_fields", "request_id", "taskName"}

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "openai", "qdrant_client")


def _structured_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields: Dict[str, Any] = dict(getattr(record, "extra_fields", None) or {})
    for key, value in vars(record).items():
        if key not in _RECORD_ATTRS:
            fields[key] = value
    return fields


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shipping in production."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id
        entry.update(_structured_fields(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class StandardFormatter(logging.Formatter):
    """Readable single-line format; structured fields are appended as key=value."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s [%(request_id)s] %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = request_id_var.get() or "-"
        line = super().format(record)
        fields = _structured_fields(record)
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


def setup_logging(settings: Settings) -> logging.Logger:
    """Configure the `semantic_rag` logger tree from settings.

    Calling it again replaces the handler instead of adding a second one.
    """
    level = getattr(logging, settings.log_level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if settings.is_production else StandardFormatter())

    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("LiteLLM").setLevel(logging.INFO if settings.debug else logging.WARNING)

    logger.debug(
        f"Logging configured: level={settings.log_level}, "
        f"format={'json' if settings.is_production else 'text'}"
    )
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return `semantic_rag.<name>`, or the package logger itself."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def log_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    **fields: Any,
) -> None:
    """Log one completed HTTP request."""
    get_logger("http").info(
        f"{method} {path} -> {status_code} in {duration_ms:.1f}ms",
        extra={
            "extra_fields": {
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                **{k: v for k, v in fields.items() if v is not None},
            }
        },
    )


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    **fields: Any,
) -> None:
    """
    Log an error at the HTTP boundary.

    Service errors are logged with their code, status and details (which
    include the failing pipeline stage); anything else with its traceback.
    """
    extra_fields: Dict[str, Any] = {
        "error_type": type(error).__name__,
        **(context or {}),
        **fields,
    }
    logger = get_logger("error")

    if isinstance(error, RAGException):
        extra_fields.update(
            {"code": error.code, "status_code": error.status_code, **error.details}
        )
        logger.error(f"{error.code}: {error.message}", extra={"extra_fields": extra_fields})
        return

    logger.error(
        f"{type(error).__name__}: {error}",
        exc_info=error,
        extra={"extra_fields": extra_fields},
    )
