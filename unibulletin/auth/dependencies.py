"""
FastAPI dependencies for authentication and caller identity.
"""

from typing import Optional

from fastapi import Request

from unibulletin.auth.jwt import get_bearer_token, verify_token
from unibulletin.auth.rate_limit import RateLimiter, build_login_limiter
from unibulletin.errors import AuthenticationError


def get_login_limiter(request: Request) -> RateLimiter:
    """
    Login limiter stored on app.state by the lifespan handler.

    Built lazily (process-local) when the app runs without lifespan,
    e.g. under an ASGI test transport.
    """
    limiter = getattr(request.app.state, "login_limiter", None)
    if limiter is None:
        limiter = build_login_limiter()
        request.app.state.login_limiter = limiter
    return limiter


def get_token_subject(request: Request) -> Optional[str]:
    """
    Subject of the bearer token, or None if no token was sent.

    Raises 401 if a token was sent but is invalid or expired.
    """
    token = get_bearer_token(request)
    if not token:
        return None

    payload = verify_token(token)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    return str(payload["user_id"])


def resolve_caller_id(request: Request, body_author_id: Optional[str] = None) -> Optional[str]:
    """
    Identity of the caller of a mutating request.

    Precedence: bearer token subject, then the body's authorId, then the
    X-User-Id header.
    """
    subject = get_token_subject(request)
    if subject:
        return subject
    if body_author_id:
        return str(body_author_id)
    return request.headers.get("X-User-Id")
