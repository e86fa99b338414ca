"""
JWT token management.

Tokens are returned to the client and sent back as ``Authorization: Bearer``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from unibulletin.config import Settings, settings as default_settings
from unibulletin.errors import ConfigurationError

logger = logging.getLogger(__name__)

# JWT configuration
ALGORITHM = "HS256"
TOKEN_TYPE = "access"

# Only ever used outside production; see resolve_secret_key
DEV_FALLBACK_SECRET = "unibulletin-dev-only-secret"


def resolve_secret_key(settings: Optional[Settings] = None) -> str:
    """
    Return the signing secret.

    Without a configured secret, production refuses to sign (fail closed)
    and development falls back to a fixed, loudly logged secret.
    """
    settings = settings or default_settings
    if settings.secret_key:
        return settings.secret_key
    if settings.is_production:
        logger.error("SECRET_KEY is not configured; refusing to issue tokens in production")
        raise ConfigurationError()
    logger.warning("SECRET_KEY is not configured; using the development fallback secret")
    return DEV_FALLBACK_SECRET


def create_access_token(
    user_id: int,
    role: str,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: User's database ID
        role: User's role (teacher/student)
        expires_delta: Optional custom expiration time
        settings: Settings override (tests)

    Returns:
        Encoded JWT token string

    Raises:
        ConfigurationError: no secret configured in production
    """
    settings = settings or default_settings
    secret = resolve_secret_key(settings)

    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(hours=settings.jwt_expire_hours)

    payload = {
        "sub": str(user_id),
        "role": role,
        "exp": expire,
        "type": TOKEN_TYPE,
        "iat": now,
    }

    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def verify_token(token: str, settings: Optional[Settings] = None) -> Optional[dict]:
    """
    Verify and decode a JWT token.

    Returns:
        Dict with 'user_id' and 'role', or None if the token is
        invalid, expired or cannot be checked
    """
    try:
        secret = resolve_secret_key(settings)
    except ConfigurationError:
        return None

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
        )

        if payload.get("type") != TOKEN_TYPE:
            return None

        user_id = payload.get("sub")
        role = payload.get("role")

        if not user_id or not role:
            return None

        return {
            "user_id": int(user_id),
            "role": role,
        }

    except (JWTError, ValueError):
        return None


def get_bearer_token(request) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer`` header."""
    header = request.headers.get("Authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
