"""Structured logging with correlation IDs.

Each log line is a JSON object. Besides the correlation ID of the HTTP
request or task, lines written while a chat message is being moderated
carry the channel account ID and the chat message ID.
"""

import json
import logging
import sys
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Iterator, Optional

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
moderation_context_var: ContextVar[dict[str, Any]] = ContextVar(
    "moderation_context", default={}
)

# Attributes every LogRecord has; anything else on a record is an extra field
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "correlation_id",
    "moderation",
}


def get_correlation_id() -> str:
    """Return the current correlation ID, generating one on first use."""
    cid = correlation_id_var.get()
    if cid is None:
        cid = uuid.uuid4().hex
        correlation_id_var.set(cid)
    return cid


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    correlation_id_var.set(None)


@contextmanager
def moderation_context(**fields: Any) -> Iterator[None]:
    """Attach fields such as account_id and message_id to every log line
    written inside the block.
    """
    token = moderation_context_var.set({**moderation_context_var.get(), **fields})
    try:
        yield
    finally:
        moderation_context_var.reset(token)


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


class StructuredFormatter(logging.Formatter):
    """Render log records as single-line JSON."""

    def __init__(self, include_stack_trace: bool = True):
        super().__init__()
        self.include_stack_trace = include_stack_trace

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.utcfromtimestamp(record.created).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None) or get_correlation_id(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        moderation = getattr(record, "moderation", None) or moderation_context_var.get()
        if moderation:
            payload["moderation"] = {k: _jsonable(v) for k, v in moderation.items()}

        extra = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info and record.exc_info[0] is not None:
            error: dict[str, Any] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
            }
            if self.include_stack_trace:
                error["stack_trace"] = traceback.format_exception(*record.exc_info)
            payload["error"] = error

        return json.dumps(payload, default=str)


class CorrelationIdFilter(logging.Filter):
    """Stamp records with the correlation ID and moderation context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        record.moderation = moderation_context_var.get()
        return True


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    include_stack_trace: bool = True,
) -> None:
    """Configure the root logger to write to stdout.

    Args:
        level: Log level name
        json_format: Emit JSON lines instead of plain text
        include_stack_trace: Include tracebacks in JSON error output
    """
    log_level = getattr(logging, level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(CorrelationIdFilter())
    if json_format:
        handler.setFormatter(StructuredFormatter(include_stack_trace=include_stack_trace))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(correlation_id)s] %(message)s"
        ))

    root = logging.getLogger()
    root.setLevel(log_level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpx", "celery.beat"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def log_info(logger: logging.Logger, message: str, **extra: Any) -> None:
    logger.info(message, extra={**extra, "correlation_id": get_correlation_id()})


def log_warning(logger: logging.Logger, message: str, **extra: Any) -> None:
    logger.warning(message, extra={**extra, "correlation_id": get_correlation_id()})


def log_error(
    logger: logging.Logger,
    message: str,
    exception: Optional[Exception] = None,
    **extra: Any,
) -> None:
    """Log an error, with the exception's traceback when one is given."""
    logger.error(
        message,
        exc_info=exception,
        extra={**extra, "correlation_id": get_correlation_id()},
    )
