"""Policy checks for username and password credential inputs."""

from __future__ import annotations

import unicodedata
from enum import StrEnum

import email_validator
from email_validator import EmailNotValidError, validate_email

MAX_USERNAME_LENGTH = 254
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128

# Usernames are identifiers checked against address grammar only, so reserved
# names such as localhost and .test are accepted.
email_validator.SPECIAL_USE_DOMAIN_NAMES.clear()


class ViolationReason(StrEnum):
    """Policy rules a credential input can violate."""

    EMPTY = "empty"
    TOO_LONG = "too_long"
    TOO_SHORT = "too_short"
    TOO_WEAK = "too_weak"
    MALFORMED_ADDRESS = "malformed_address"


_MESSAGES: dict[tuple[str, ViolationReason], str] = {
    ("username", ViolationReason.EMPTY): "username cannot be empty",
    ("username", ViolationReason.TOO_LONG): "email exceeds maximum length",
    ("username", ViolationReason.MALFORMED_ADDRESS): "invalid email format",
    ("password", ViolationReason.EMPTY): "password cannot be empty",
    ("password", ViolationReason.TOO_SHORT): (
        f"password must be at least {MIN_PASSWORD_LENGTH} characters"
    ),
    ("password", ViolationReason.TOO_LONG): "password exceeds maximum length",
    ("password", ViolationReason.TOO_WEAK): (
        "password must contain at least one letter and one number"
    ),
}


def validate_username(raw: str) -> ViolationReason | None:
    """Return the first username rule violated, or None when the value is valid."""

    username = raw.strip()
    if not username:
        return ViolationReason.EMPTY
    if len(username) > MAX_USERNAME_LENGTH:
        return ViolationReason.TOO_LONG
    try:
        validate_email(
            username,
            check_deliverability=False,
            globally_deliverable=False,
            allow_quoted_local=True,
            allow_display_name=False,
        )
    except EmailNotValidError:
        return ViolationReason.MALFORMED_ADDRESS
    return None


def validate_password(raw: str) -> ViolationReason | None:
    """Return the first password rule violated, or None when the value is valid."""

    if not raw.strip():
        return ViolationReason.EMPTY
    if len(raw) < MIN_PASSWORD_LENGTH:
        return ViolationReason.TOO_SHORT
    if len(raw) > MAX_PASSWORD_LENGTH:
        return ViolationReason.TOO_LONG

    has_letter = any(unicodedata.category(char).startswith("L") for char in raw)
    has_number = any(unicodedata.category(char).startswith("N") for char in raw)
    if not (has_letter and has_number):
        return ViolationReason.TOO_WEAK
    return None


def violation_message(*, field: str, reason: ViolationReason) -> str:
    """Render the client-facing text naming the violated rule."""

    return _MESSAGES.get((field, reason), f"{field} is invalid")
