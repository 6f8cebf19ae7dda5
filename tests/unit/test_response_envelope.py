from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from credential_manager.application.dto.envelope_models import ResponseEnvelope
from credential_manager.infrastructure.http.envelope import failure_response, success_response


def test_success_envelope_carries_reason_phrase_and_msg_only() -> None:
    response = success_response(201, "Signup Successful")

    assert response.status_code == 201
    assert response.headers["content-type"] == "application/json; charset=utf-8"
    assert json.loads(response.body) == {
        "code": 201,
        "status": "Created",
        "msg": "Signup Successful",
    }


def test_failure_envelope_carries_error_only() -> None:
    response = failure_response(415, "unsupported content type")

    assert json.loads(response.body) == {
        "code": 415,
        "status": "Unsupported Media Type",
        "error": "unsupported content type",
    }


def test_envelope_rejects_both_msg_and_error() -> None:
    with pytest.raises(ValidationError):
        ResponseEnvelope(code=200, status="OK", msg="ok", error="boom")


def test_envelope_rejects_neither_msg_nor_error() -> None:
    with pytest.raises(ValidationError):
        ResponseEnvelope(code=200, status="OK")
