"""Closed error taxonomy for the HTTP boundary and its envelope rendering."""

from __future__ import annotations

import logging
from enum import Enum

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from credential_manager.infrastructure.http.envelope import EnvelopeResponse, failure_response

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    """Error kinds with their status code and default public message."""

    VALIDATION = (400, "invalid input")
    BAD_REQUEST = (400, "bad request")
    NOT_FOUND = (404, "not found")
    METHOD_NOT_ALLOWED = (405, "method not allowed")
    CONFLICT = (409, "conflict")
    UNSUPPORTED_MEDIA_TYPE = (415, "unsupported content type")
    STORE = (500, "internal error")
    DEPENDENCY_UNAVAILABLE = (503, "service unavailable")

    def __init__(self, status_code: int, default_message: str) -> None:
        self.status_code = status_code
        self.default_message = default_message


class ApiError(Exception):
    """Terminal request error rendered as a failure envelope.

    ``public_message`` is sent to the caller. ``internal_detail`` is logged
    only and never leaves the process.
    """

    def __init__(
        self,
        kind: ErrorKind,
        public_message: str | None = None,
        *,
        internal_detail: str | None = None,
    ) -> None:
        self.kind = kind
        self.public_message = public_message or kind.default_message
        self.internal_detail = internal_detail
        super().__init__(self.public_message)


async def _handle_api_error(request: Request, exc: ApiError) -> EnvelopeResponse:
    if exc.kind.status_code >= 500 or exc.internal_detail is not None:
        logger.log(
            logging.ERROR if exc.kind.status_code >= 500 else logging.INFO,
            "request_failed kind=%s path=%s detail=%s",
            exc.kind.name,
            request.url.path,
            exc.internal_detail,
        )
    return failure_response(exc.kind.status_code, exc.public_message)


async def _handle_http_exception(
    request: Request,
    exc: StarletteHTTPException,
) -> EnvelopeResponse:
    _ = request
    if exc.status_code >= 500:
        return failure_response(exc.status_code, ErrorKind.STORE.default_message)
    return failure_response(exc.status_code, str(exc.detail).lower())


async def _handle_request_validation(request: Request, exc: Exception) -> EnvelopeResponse:
    _ = request, exc
    return failure_response(ErrorKind.BAD_REQUEST.status_code, ErrorKind.BAD_REQUEST.default_message)


async def render_unexpected_error(request: Request, exc: Exception) -> EnvelopeResponse:
    """Log an unhandled exception and answer with a redacted 500 envelope."""

    logger.error("request_unhandled_error path=%s", request.url.path, exc_info=exc)
    return failure_response(ErrorKind.STORE.status_code, ErrorKind.STORE.default_message)


def install_error_handlers(app: FastAPI) -> None:
    """Render every framework and application error as a failure envelope."""

    app.add_exception_handler(ApiError, _handle_api_error)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(Exception, render_unexpected_error)
