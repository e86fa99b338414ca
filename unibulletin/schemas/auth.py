"""Authentication schemas."""

from pydantic import Field

from unibulletin.schemas.announcement import CamelModel


class LoginRequest(CamelModel):
    """Login request body."""

    reg_id: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=256)


class LoginUser(CamelModel):
    id: int
    reg_id: str
    role: str


class LoginResponse(CamelModel):
    """Login response."""

    token: str
    user: LoginUser
