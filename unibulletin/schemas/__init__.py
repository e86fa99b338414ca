"""Pydantic schemas for request/response validation."""

from unibulletin.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementPage,
    AnnouncementResponse,
    AnnouncementUpdate,
    AttachmentDeleteResponse,
    AttachmentResponse,
    AuthorRequest,
    DeleteResponse,
    Recipient,
    RecipientListResponse,
    RegenerateImageRequest,
    UploadResponse,
)
from unibulletin.schemas.auth import LoginRequest, LoginResponse, LoginUser

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "LoginUser",
    # Announcement
    "AnnouncementCreate",
    "AnnouncementUpdate",
    "AnnouncementResponse",
    "AnnouncementPage",
    "AttachmentResponse",
    "AttachmentDeleteResponse",
    "AuthorRequest",
    "DeleteResponse",
    "RegenerateImageRequest",
    "UploadResponse",
    # Recipients
    "Recipient",
    "RecipientListResponse",
]
