"""
Database models.

All models are exported here for convenient imports:
    from unibulletin.models import Announcement, User, etc.
"""

from unibulletin.models.announcement import Announcement, Attachment, Audience, Category
from unibulletin.models.base import Base, BaseModel, CreatedAtMixin
from unibulletin.models.user import User, UserRole

__all__ = [
    # Announcement
    "Announcement",
    "Attachment",
    "Audience",
    "Category",
    # Base
    "Base",
    "BaseModel",
    "CreatedAtMixin",
    # User
    "User",
    "UserRole",
]
