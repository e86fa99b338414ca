"""
Login flow: credential check, rate limiting and token issuance.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from unibulletin.auth.jwt import create_access_token
from unibulletin.auth.rate_limit import RateLimiter
from unibulletin.config import Settings
from unibulletin.errors import AuthenticationError, RateLimitError, ValidationError
from unibulletin.models import User
from unibulletin.schemas.auth import LoginResponse, LoginUser
from unibulletin.utils.password import verify_password

logger = logging.getLogger(__name__)


async def authenticate(
    db: AsyncSession,
    reg_id: Optional[str],
    password: Optional[str],
    client_key: Optional[str],
    limiter: RateLimiter,
    settings: Optional[Settings] = None,
) -> LoginResponse:
    """
    Validate credentials and issue a bearer token.

    Order matters: malformed input is rejected before the limiter is
    touched or the database is queried, and an unknown regId is
    indistinguishable from a wrong password.

    Raises:
        ValidationError: missing or malformed regId/password
        RateLimitError: too many attempts from client_key
        AuthenticationError: unknown user or wrong password
        ConfigurationError: token signing refused (no secret in production)
    """
    if not isinstance(reg_id, str) or not reg_id.strip():
        raise ValidationError("regId and password are required")
    if not isinstance(password, str) or not password:
        raise ValidationError("regId and password are required")

    if not await limiter.check(client_key or "unknown"):
        logger.warning(f"Login rate limit exceeded for {client_key}")
        raise RateLimitError()

    result = await db.execute(
        select(User).where(User.reg_id == reg_id.strip())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(password, user.password_hash):
        logger.info(f"Failed login for regId={reg_id.strip()!r} from {client_key}")
        raise AuthenticationError()

    token = create_access_token(user.id, user.role.value, settings=settings)
    logger.info(f"User {user.id} ({user.role.value}) logged in")

    return LoginResponse(
        token=token,
        user=LoginUser(id=user.id, reg_id=user.reg_id, role=user.role.value),
    )
