"""JSON response type rendering the response envelope."""

from __future__ import annotations

from starlette.responses import JSONResponse

from credential_manager.application.dto.envelope_models import ResponseEnvelope

JSON_MEDIA_TYPE = "application/json; charset=utf-8"


class EnvelopeResponse(JSONResponse):
    """JSON response whose status line always matches the envelope code."""

    media_type = JSON_MEDIA_TYPE

    def __init__(self, envelope: ResponseEnvelope) -> None:
        super().__init__(
            content=envelope.model_dump(exclude_none=True),
            status_code=envelope.code,
        )


def success_response(code: int, msg: str) -> EnvelopeResponse:
    """Render a success envelope."""

    return EnvelopeResponse(ResponseEnvelope.success(code, msg))


def failure_response(code: int, error: str) -> EnvelopeResponse:
    """Render a failure envelope."""

    return EnvelopeResponse(ResponseEnvelope.failure(code, error))
