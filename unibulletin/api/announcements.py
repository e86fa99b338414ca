"""
Announcement API endpoints.

Create and update accept either a JSON body or multipart form data with
files; list fields (tags, students, staff) may be sent in a form as JSON
strings, and tags also as a comma-separated string.
"""

import json
from typing import Optional, Tuple, Type, TypeVar

import pydantic
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from unibulletin.auth.dependencies import resolve_caller_id
from unibulletin.db import get_db
from unibulletin.errors import ValidationError
from unibulletin.models import Category
from unibulletin.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementPage,
    AnnouncementResponse,
    AnnouncementUpdate,
    AttachmentDeleteResponse,
    AttachmentResponse,
    AuthorRequest,
    DeleteResponse,
    RegenerateImageRequest,
    UploadResponse,
)
from unibulletin.services.announcements import AnnouncementService
from unibulletin.services.content import ContentGenerator, get_content_generator
from unibulletin.services.listing import list_announcements
from unibulletin.services.storage import AttachmentStorage, IncomingFile, get_attachment_storage

router = APIRouter(prefix="/announcements", tags=["Announcements"])

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def get_announcement_service(
    db: AsyncSession = Depends(get_db),
    content: ContentGenerator = Depends(get_content_generator),
    storage: AttachmentStorage = Depends(get_attachment_storage),
) -> AnnouncementService:
    return AnnouncementService(db, content, storage)


async def read_payload(request: Request) -> Tuple[dict, list[IncomingFile]]:
    """Read a JSON or form body into (fields, files)."""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        fields: dict = {}
        files: list[IncomingFile] = []
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if value.filename:
                    files.append(
                        IncomingFile(
                            file_name=value.filename,
                            content=await value.read(),
                            content_type=value.content_type or "application/octet-stream",
                        )
                    )
            elif key in fields:
                # Repeated form keys (tags=a&tags=b) become a list
                previous = fields[key]
                fields[key] = (previous if isinstance(previous, list) else [previous]) + [value]
            else:
                fields[key] = value
        return fields, files

    body = await request.body()
    if not body.strip():
        return {}, []
    try:
        data = json.loads(body)
    except ValueError:
        raise ValidationError("Malformed JSON body")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data, []


def parse_model(model: Type[ModelT], data: dict) -> ModelT:
    """Validate a payload, reporting the first problem as a 400."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "body"
        raise ValidationError(f"{field}: {error['msg']}")


def parse_category(value: Optional[str]) -> Optional[Category]:
    if value is None or value == "":
        return None
    try:
        return Category(value)
    except ValueError:
        raise ValidationError(f"Unknown category: {value}")


@router.get("", response_model=AnnouncementPage)
async def get_announcements(
    author_id: Optional[str] = Query(None, alias="authorId"),
    category: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
):
    """Newest-first feed, optionally filtered by author and category."""
    return await list_announcements(
        db,
        author_id=author_id,
        category=parse_category(category),
        page=page,
        per_page=limit,
    )


@router.get("/{announcement_id}", response_model=AnnouncementResponse)
async def get_announcement(
    announcement_id: int,
    service: AnnouncementService = Depends(get_announcement_service),
):
    announcement = await service.get(announcement_id)
    return AnnouncementResponse.model_validate(announcement)


@router.post("", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    request: Request,
    service: AnnouncementService = Depends(get_announcement_service),
):
    """Create an announcement; summary and image are generated unless supplied."""
    fields, files = await read_payload(request)
    data = parse_model(AnnouncementCreate, fields)
    announcement = await service.create(data, files)
    return AnnouncementResponse.model_validate(announcement)


@router.put("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: int,
    request: Request,
    service: AnnouncementService = Depends(get_announcement_service),
):
    """
    Partially update an announcement.

    Send ``summary: ""`` to force a fresh summary; new files are appended
    to the existing attachments.
    """
    fields, files = await read_payload(request)
    data = parse_model(AnnouncementUpdate, fields)
    caller_id = resolve_caller_id(request, data.author_id)
    announcement = await service.update(announcement_id, data, caller_id, files)
    return AnnouncementResponse.model_validate(announcement)


@router.delete("/{announcement_id}", response_model=DeleteResponse)
async def delete_announcement(
    announcement_id: int,
    request: Request,
    service: AnnouncementService = Depends(get_announcement_service),
):
    fields, _ = await read_payload(request)
    data = parse_model(AuthorRequest, fields)
    await service.delete(announcement_id, resolve_caller_id(request, data.author_id))
    return DeleteResponse(message="Announcement deleted", id=announcement_id)


@router.post("/{announcement_id}/regenerate-image", response_model=AnnouncementResponse)
async def regenerate_image(
    announcement_id: int,
    request: Request,
    service: AnnouncementService = Depends(get_announcement_service),
):
    """Set a custom image URL, or generate a new image from title and tags."""
    fields, _ = await read_payload(request)
    data = parse_model(RegenerateImageRequest, fields)
    announcement = await service.regenerate_image(
        announcement_id,
        resolve_caller_id(request, data.author_id),
        data.custom_image_url,
    )
    return AnnouncementResponse.model_validate(announcement)


@router.post("/{announcement_id}/upload", response_model=UploadResponse)
async def upload_attachments(
    announcement_id: int,
    request: Request,
    service: AnnouncementService = Depends(get_announcement_service),
):
    """Append up to five files to an announcement (multipart ``files``)."""
    fields, files = await read_payload(request)
    data = parse_model(AuthorRequest, fields)
    attachments, announcement = await service.upload_attachments(
        announcement_id,
        resolve_caller_id(request, data.author_id),
        files,
    )
    return UploadResponse(
        attachments=[AttachmentResponse.model_validate(a) for a in attachments],
        announcement=AnnouncementResponse.model_validate(announcement),
    )


@router.delete(
    "/{announcement_id}/attachment/{attachment_id}",
    response_model=AttachmentDeleteResponse,
)
async def delete_attachment(
    announcement_id: int,
    attachment_id: int,
    request: Request,
    service: AnnouncementService = Depends(get_announcement_service),
):
    fields, _ = await read_payload(request)
    data = parse_model(AuthorRequest, fields)
    announcement = await service.delete_attachment(
        announcement_id,
        attachment_id,
        resolve_caller_id(request, data.author_id),
    )
    return AttachmentDeleteResponse(
        announcement=AnnouncementResponse.model_validate(announcement),
    )
