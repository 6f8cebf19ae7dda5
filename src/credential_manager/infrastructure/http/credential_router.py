"""FastAPI router for liveness and credential signup/reset endpoints."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import cast

from fastapi import APIRouter, Request
from python_multipart.multipart import parse_options_header
from starlette.datastructures import FormData
from starlette.formparsers import FormParser, MultiPartException, MultiPartParser

from credential_manager.application.ports.credential_store_port import CredentialStoreError
from credential_manager.application.services.credential_service import (
    CredentialOutcome,
    CredentialResult,
    CredentialService,
    check_credentials,
)
from credential_manager.domain.credentials import ViolationReason, violation_message
from credential_manager.infrastructure.http.envelope import EnvelopeResponse, success_response
from credential_manager.infrastructure.http.errors import ApiError, ErrorKind
from credential_manager.infrastructure.security.password_hasher import PasswordHashingError

MAX_BODY_BYTES = 1024 * 1024
FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
_ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


@dataclass(frozen=True)
class CredentialForm:
    """Username/password pair extracted from one request body."""

    username: str
    password: str


def _require_method(request: Request, expected: str) -> None:
    if request.method != expected:
        raise ApiError(ErrorKind.METHOD_NOT_ALLOWED)


def _require_form_content_type(request: Request) -> None:
    content_type = request.headers.get("content-type", "")
    if content_type and not any(kind in content_type for kind in FORM_CONTENT_TYPES):
        raise ApiError(ErrorKind.UNSUPPORTED_MEDIA_TYPE)


def _first_value(form: FormData, field: str) -> str | None:
    """Return the first value whose key matches ``field`` case-insensitively."""

    for key, value in form.multi_items():
        if key.lower() == field and isinstance(value, str):
            return value
    return None


async def _capped_body(request: Request) -> AsyncGenerator[bytes, None]:
    """Yield body chunks, abandoning the stream once it exceeds MAX_BODY_BYTES."""

    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > MAX_BODY_BYTES:
            raise ApiError(
                ErrorKind.BAD_REQUEST,
                "invalid form data",
                internal_detail=f"body exceeded {MAX_BODY_BYTES} bytes",
            )
        yield chunk


async def _parse_form(request: Request) -> FormData:
    content_type, _ = parse_options_header(request.headers.get("content-type"))
    if content_type == b"multipart/form-data":
        parser: FormParser | MultiPartParser = MultiPartParser(
            request.headers,
            _capped_body(request),
            max_part_size=MAX_BODY_BYTES,
        )
    elif content_type == b"application/x-www-form-urlencoded":
        parser = FormParser(request.headers, _capped_body(request), max_part_size=MAX_BODY_BYTES)
    else:
        return FormData()
    return await parser.parse()


async def read_credential_form(request: Request) -> CredentialForm:
    """Parse a size-capped form body into a credential pair or raise ApiError."""

    declared_length = request.headers.get("content-length")
    if declared_length is not None and declared_length.isdigit():
        if int(declared_length) > MAX_BODY_BYTES:
            raise ApiError(ErrorKind.BAD_REQUEST, "invalid form data")

    try:
        form = await _parse_form(request)
    except (MultiPartException, ValueError) as exc:
        raise ApiError(
            ErrorKind.BAD_REQUEST,
            "invalid form data",
            internal_detail=f"form parse failed: {type(exc).__name__}",
        ) from exc

    try:
        username = _first_value(form, "username")
        password = _first_value(form, "password")
    finally:
        await form.close()
    if username is None or password is None or not username.strip() or not password:
        raise ApiError(ErrorKind.BAD_REQUEST, "username and password are required")
    return CredentialForm(username=username.strip(), password=password)


def _raise_for_invalid_input(result: CredentialResult | None) -> None:
    if result is None or result.outcome is not CredentialOutcome.INVALID_INPUT:
        return
    raise ApiError(
        ErrorKind.VALIDATION,
        violation_message(
            field=cast(str, result.field),
            reason=cast(ViolationReason, result.reason),
        ),
    )


def build_credential_router(*, credential_service: CredentialService) -> APIRouter:
    """Build router exposing liveness, health, signup and reset endpoints."""

    router = APIRouter(tags=["credentials"])

    @router.get("/ping")
    async def ping() -> EnvelopeResponse:
        return success_response(200, "PONG")

    @router.get("/health")
    async def health() -> EnvelopeResponse:
        try:
            await credential_service.check_store()
        except CredentialStoreError as exc:
            raise ApiError(
                ErrorKind.DEPENDENCY_UNAVAILABLE,
                internal_detail=f"store ping failed: {exc.__cause__ or exc}",
            ) from exc
        return success_response(200, "OK")

    @router.api_route("/signup", methods=_ROUTED_METHODS)
    async def signup(request: Request) -> EnvelopeResponse:
        _require_method(request, "POST")
        _require_form_content_type(request)
        form = await read_credential_form(request)
        _raise_for_invalid_input(
            check_credentials(username=form.username, password=form.password)
        )

        try:
            result = await credential_service.signup(
                username=form.username,
                password=form.password,
            )
        except (CredentialStoreError, PasswordHashingError) as exc:
            raise ApiError(
                ErrorKind.STORE,
                "failed to create user",
                internal_detail=f"signup failed username={form.username}: {exc.__cause__ or exc}",
            ) from exc

        _raise_for_invalid_input(result)
        if result.outcome is CredentialOutcome.ALREADY_EXISTS:
            raise ApiError(ErrorKind.CONFLICT, "user already exists")
        return success_response(201, "Signup Successful")

    @router.api_route("/reset", methods=_ROUTED_METHODS)
    async def reset(request: Request) -> EnvelopeResponse:
        _require_method(request, "PUT")
        _require_form_content_type(request)
        form = await read_credential_form(request)
        _raise_for_invalid_input(
            check_credentials(username=form.username, password=form.password)
        )

        try:
            result = await credential_service.reset(
                username=form.username,
                password=form.password,
            )
        except (CredentialStoreError, PasswordHashingError) as exc:
            raise ApiError(
                ErrorKind.STORE,
                "failed to update password",
                internal_detail=f"reset failed username={form.username}: {exc.__cause__ or exc}",
            ) from exc

        _raise_for_invalid_input(result)
        if result.outcome is CredentialOutcome.NOT_FOUND:
            # Same body for every missing account; the username is logged only.
            raise ApiError(
                ErrorKind.NOT_FOUND,
                "user not found or password update failed",
                internal_detail=f"reset target missing username={form.username}",
            )
        return success_response(200, "Password Updated")

    return router
