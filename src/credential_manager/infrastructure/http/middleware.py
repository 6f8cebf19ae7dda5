"""Request-processing stages wrapped around every route handler.

Stages are Starlette middlewares; each one either answers the request itself
or passes it on through ``call_next``. Registration order is handled by
``install_request_pipeline`` so the effective chain is, outermost first:
security headers, request identification, request logging, route handler.
"""

from __future__ import annotations

import logging
import re
import secrets
import time

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from credential_manager.infrastructure.http.errors import render_unexpected_error
from credential_manager.infrastructure.logging import bind_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Content-Security-Policy": "default-src 'self'",
    "Server": "",
}
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


def resolve_request_id(inbound: str | None) -> str:
    """Reuse a well-formed inbound correlation id or generate a fresh one."""

    if inbound is not None and _REQUEST_ID_PATTERN.fullmatch(inbound):
        return inbound
    return secrets.token_hex(8)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Set the fixed hardening headers on every outgoing response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        return response


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag the request, its log records and its response with a correlation id."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        bind_request_id(request_id)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Emit one structured log line per request once the response is known."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            # Unhandled errors still get the envelope and the outer stages' headers.
            response = await render_unexpected_error(request, exc)
        self._log(request, status_code=response.status_code, started_at=start)
        return response

    def _log(self, request: Request, *, status_code: int, started_at: float) -> None:
        duration_ms = int((time.perf_counter() - started_at) * 1000)
        request_id = getattr(request.state, "request_id", None)
        remote_addr = request.client.host if request.client is not None else None
        logger.info(
            "http_request method=%s path=%s status=%s duration_ms=%s remote_addr=%s",
            request.method,
            request.url.path,
            status_code,
            duration_ms,
            remote_addr,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": status_code,
                "duration_ms": duration_ms,
                "remote_addr": remote_addr,
                "request_id": request_id,
            },
        )


def install_request_pipeline(app: FastAPI) -> None:
    """Register the request stages; Starlette runs the last added outermost."""

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
