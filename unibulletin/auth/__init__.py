"""Authentication module."""

from unibulletin.auth.jwt import create_access_token, verify_token
from unibulletin.auth.permissions import authorize, ensure_author
from unibulletin.auth.rate_limit import (
    InMemoryRateLimiter,
    RateLimiter,
    RedisRateLimiter,
    build_login_limiter,
)
from unibulletin.auth.service import authenticate

__all__ = [
    "create_access_token",
    "verify_token",
    "authorize",
    "ensure_author",
    "authenticate",
    "RateLimiter",
    "InMemoryRateLimiter",
    "RedisRateLimiter",
    "build_login_limiter",
]
