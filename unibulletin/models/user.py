"""
User model for authentication.
"""

from enum import Enum

from sqlalchemy import String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from unibulletin.models.base import BaseModel


class UserRole(str, Enum):
    """User roles."""
    TEACHER = "teacher"
    STUDENT = "student"


class User(BaseModel):
    """
    User account model.

    Accounts are created by the seed script or at startup, never through
    the public API.

    - teacher: may post announcements and manage their own
    - student: reads the feed
    """

    __tablename__ = "users"

    reg_id: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        SQLAlchemyEnum(
            UserRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, reg_id='{self.reg_id}', role={self.role})>"
