"""Common schemas used across the API."""

import re
from typing import Any

from pydantic import BaseModel

_WHITESPACE_RE = re.compile(r"\s+")

# 8-16 chars, at least one uppercase letter and one special character
PASSWORD_RE = re.compile(r"^(?=.*[A-Z])(?=.*[!@#$%^&*]).{8,16}$")
PASSWORD_MESSAGE = (
    "Password must be 8-16 characters long, contain at least one uppercase "
    "letter and one special character"
)


def clean_text(value: Any) -> Any:
    """Trim a string and collapse inner whitespace; other values pass through."""
    if isinstance(value, str):
        return _WHITESPACE_RE.sub(" ", value.strip())
    return value


def check_password_strength(value: str) -> str:
    """Validate the password policy."""
    if not PASSWORD_RE.match(value):
        raise ValueError(PASSWORD_MESSAGE)
    return value


class ErrorDetail(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
