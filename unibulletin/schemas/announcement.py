"""Pydantic schemas for announcements."""

import json
from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from unibulletin.models.announcement import Audience, Category


class CamelModel(BaseModel):
    """Base for wire models: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Recipient(BaseModel):
    """Student or staff entry; regId/staffId are accepted for id."""

    name: Optional[str] = None
    id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("id", "regId", "staffId"),
    )
    email: Optional[str] = None

    @field_validator("name", "id", "email", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)


def _split_tags(v: Any) -> Any:
    # Multipart clients send tags either as a JSON array or "a, b, c"
    if isinstance(v, str):
        text = v.strip()
        if text.startswith("["):
            return json.loads(text)
        return [t.strip() for t in text.split(",") if t.strip()]
    return v


def _load_recipients(v: Any) -> Any:
    if isinstance(v, str):
        text = v.strip()
        return json.loads(text) if text else []
    return v


class _AnnouncementFields(CamelModel):
    @field_validator("tags", mode="before", check_fields=False)
    @classmethod
    def parse_tags(cls, v: Any) -> Any:
        return _split_tags(v)

    @field_validator("students", "staff", mode="before", check_fields=False)
    @classmethod
    def parse_recipients(cls, v: Any) -> Any:
        return _load_recipients(v)

    @field_validator("author_id", mode="before", check_fields=False)
    @classmethod
    def stringify_author(cls, v: Any) -> Any:
        if isinstance(v, int):
            return str(v)
        return v


class AnnouncementCreate(_AnnouncementFields):
    title: str
    description: str
    tags: list[str] = Field(default_factory=list)
    category: Category = Category.ALL
    audience: Audience = Audience.BOTH
    students: list[Recipient] = Field(default_factory=list)
    staff: list[Recipient] = Field(default_factory=list)
    author_id: str
    summary: Optional[str] = None


class AnnouncementUpdate(_AnnouncementFields):
    """
    Partial update. None means "not provided".

    summary="" is an explicit request to regenerate the summary and is
    distinct from omitting the field.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    category: Optional[Category] = None
    audience: Optional[Audience] = None
    students: Optional[list[Recipient]] = None
    staff: Optional[list[Recipient]] = None
    summary: Optional[str] = None
    author_id: Optional[str] = None


class RegenerateImageRequest(_AnnouncementFields):
    custom_image_url: Optional[str] = None
    author_id: Optional[str] = None


class AuthorRequest(_AnnouncementFields):
    """Body of delete requests: identifies the caller."""
    author_id: Optional[str] = None


class AttachmentResponse(CamelModel):
    id: int
    file_name: str
    file_url: str
    file_size: int
    file_type: str
    uploaded_at: datetime


class AnnouncementResponse(CamelModel):
    id: int
    title: str
    original_description: str
    summary: str
    image_url: str
    tags: list[str] = Field(default_factory=list)
    category: Category
    audience: Audience
    students: list[Recipient] = Field(default_factory=list)
    staff: list[Recipient] = Field(default_factory=list)
    attachments: list[AttachmentResponse] = Field(default_factory=list)
    author_id: str
    created_at: datetime


class AnnouncementPage(CamelModel):
    total: int
    page: int
    per_page: int
    total_pages: int
    data: list[AnnouncementResponse]


class UploadResponse(CamelModel):
    attachments: list[AttachmentResponse]
    announcement: AnnouncementResponse


class AttachmentDeleteResponse(CamelModel):
    announcement: AnnouncementResponse


class DeleteResponse(CamelModel):
    message: str
    id: int


class RecipientListResponse(CamelModel):
    recipients: list[Recipient]
    skipped: int = 0
