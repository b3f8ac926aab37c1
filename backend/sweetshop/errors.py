# Overview: Typed application errors and their mapping to HTTP responses.

"""
Error taxonomy for the sweet shop API.

Services raise one of the AppError subclasses below; each carries the HTTP
status it maps to. The app-level error handler (see create_app) turns them
into JSON bodies of the form {"error": message[, "details": ...]}.

status_for_message() is the legacy message-based mapping kept for errors
that do not carry a status (plain exceptions raised by older callers).
"""

from __future__ import annotations

from typing import Any


UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


class AppError(Exception):
    """Base error carrying a client-safe message and an HTTP status."""

    status_code = 500
    default_message = UNEXPECTED_ERROR_MESSAGE

    def __init__(self, message: str | None = None, status_code: int | None = None, details: Any = None):
        self.message = message or self.default_message
        super().__init__(self.message)
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    """400-level input problem."""
    status_code = 400
    default_message = "Validation failed"


class Unauthenticated(AppError):
    """No credentials were supplied."""
    status_code = 401
    default_message = "Authentication required"


class InvalidCredentials(AppError):
    status_code = 401
    default_message = "Invalid credentials"


class InvalidToken(AppError):
    """Credentials were supplied but could not be verified."""
    status_code = 403
    default_message = "Invalid or expired token"


class Forbidden(AppError):
    status_code = 403
    default_message = "Admin access required"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    """409-level business rule conflict (e.g., duplicate sweet name)."""
    status_code = 409
    default_message = "Conflict"


class InsufficientStock(AppError):
    status_code = 400
    default_message = "Insufficient quantity in stock"


# Exact messages produced by earlier versions of the API
LEGACY_STATUS_BY_MESSAGE = {
    "Sweet not found": 404,
    "User not found": 404,
    "Invalid credentials": 401,
    "Authentication required": 401,
    "Admin access required": 403,
    "Insufficient quantity in stock": 400,
    "Username or email already exists": 409,
    "Sweet with this name already exists": 409,
}

# Checked in order against the lowercased message
LEGACY_STATUS_BY_SUBSTRING = (
    ("not found", 404),
    ("already exists", 409),
    ("duplicate", 409),
    ("insufficient", 400),
    ("unauthorized", 401),
    ("admin", 403),
)


def status_for_message(message: str | None) -> int:
    """Legacy fallback: derive an HTTP status from an error message."""
    if not message:
        return 500
    if message in LEGACY_STATUS_BY_MESSAGE:
        return LEGACY_STATUS_BY_MESSAGE[message]
    lowered = message.lower()
    for fragment, status in LEGACY_STATUS_BY_SUBSTRING:
        if fragment in lowered:
            return status
    return 500


def error_response(exc: BaseException | None) -> tuple[dict, int]:
    """
    Build the (body, status) pair for any exception.

    AppError subclasses use their explicit status. Anything else goes through
    the legacy message table; unmatched errors become an opaque 500 so
    internal messages never reach the client.
    """
    if isinstance(exc, AppError):
        return exc.to_dict(), exc.status_code

    message = str(exc) if exc is not None else ""
    status = status_for_message(message)
    if status == 500:
        return {"error": UNEXPECTED_ERROR_MESSAGE}, 500
    return {"error": message}, status
