"""Pydantic model for the uniform JSON response envelope."""

from __future__ import annotations

from http import HTTPStatus

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ResponseEnvelope(BaseModel):
    """Terminal response body carrying exactly one of ``msg`` or ``error``."""

    model_config = ConfigDict(extra="forbid")

    code: int = Field(ge=100, le=599)
    status: str
    msg: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _require_single_payload(self) -> ResponseEnvelope:
        if (self.msg is None) == (self.error is None):
            raise ValueError("exactly one of msg or error must be set")
        return self

    @classmethod
    def success(cls, code: int, msg: str) -> ResponseEnvelope:
        """Build a success envelope with the reason phrase for ``code``."""

        return cls(code=code, status=HTTPStatus(code).phrase, msg=msg)

    @classmethod
    def failure(cls, code: int, error: str) -> ResponseEnvelope:
        """Build a failure envelope with the reason phrase for ``code``."""

        return cls(code=code, status=HTTPStatus(code).phrase, error=error)
