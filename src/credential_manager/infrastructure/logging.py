"""Shared logging configuration helpers for long-running processes."""

from __future__ import annotations

import logging
from contextvars import ContextVar

import structlog

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] [request_id=%(request_id)s] %(message)s"
_NO_REQUEST_ID = "-"

_request_id_var: ContextVar[str | None] = ContextVar("credential_request_id", default=None)


def bind_request_id(request_id: str) -> None:
    """Attach a correlation id to log records emitted in the current context."""

    _request_id_var.set(request_id)


def current_request_id() -> str | None:
    """Return the correlation id bound to the current context, if any."""

    return _request_id_var.get()


class RequestIdFilter(logging.Filter):
    """Copy the bound correlation id onto every record as ``request_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = _request_id_var.get() or _NO_REQUEST_ID
        return True


def _json_formatter() -> logging.Formatter:
    pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
    )


def configure_logging(*, level: str, log_format: str = "text") -> None:
    """Configure process logging with consistent format and runtime level."""

    normalized_level = level.strip().upper() if level.strip() else "INFO"
    resolved_level = getattr(logging, normalized_level, logging.INFO)

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    if log_format == "json":
        handler.setFormatter(_json_formatter())
    else:
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))

    logging.basicConfig(
        level=resolved_level,
        handlers=[handler],
        force=True,
    )
