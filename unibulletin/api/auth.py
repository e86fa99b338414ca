"""
Authentication API endpoints.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from unibulletin.auth.dependencies import get_login_limiter
from unibulletin.auth.rate_limit import RateLimiter
from unibulletin.auth.service import authenticate
from unibulletin.config import settings
from unibulletin.db import get_db
from unibulletin.schemas.auth import LoginRequest, LoginResponse
from unibulletin.utils.client import get_client_ip

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
    limiter: RateLimiter = Depends(get_login_limiter),
):
    """
    Authenticate by regId and password and return a bearer token.

    Attempts are rate limited per client address; unknown users and wrong
    passwords get the same 401 response.
    """
    return await authenticate(
        db,
        credentials.reg_id,
        credentials.password,
        get_client_ip(request, settings.trust_proxy_headers),
        limiter,
    )
