"""
Domain errors raised by services.

Each error carries the HTTP status it maps to; the FastAPI app translates
them into ``{"detail": message}`` responses.
"""

from typing import Optional


class BoardError(Exception):
    """Base class for errors that reach the client."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BoardError):
    """Missing, malformed or oversized input."""

    status_code = 400
    default_message = "Invalid input"


class AuthenticationError(BoardError):
    status_code = 401
    default_message = "Invalid credentials"


class AuthorizationError(BoardError):
    """Caller is not the owner of the resource."""

    status_code = 403
    default_message = "Not authorized to modify this announcement"


class NotFoundError(BoardError):
    status_code = 404
    default_message = "Not found"


class RateLimitError(BoardError):
    status_code = 429
    default_message = "Too many login attempts, try again later"


class ConfigurationError(BoardError):
    """Server is misconfigured; details are logged, never returned."""

    status_code = 500
    default_message = "Server configuration error"
