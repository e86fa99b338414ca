"""
Announcement record manager.

Owns create/update/delete and the sub-operations on images and
attachments. Derived fields follow independent regenerate-or-retain
rules:

summary (update), first match wins:
    1. non-empty manual summary that differs from the stored one -> use it
    2. description changed                                       -> regenerate
    3. manual summary explicitly sent as ""                      -> regenerate
    4. otherwise                                                 -> keep

image_url (update): regenerate when title or tags changed, else keep.

attachments: appended on create/update/upload, removed one at a time by
delete_attachment, and all removed with the announcement.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from unibulletin.auth.permissions import Identity, ensure_author
from unibulletin.config import Settings, settings as default_settings
from unibulletin.errors import NotFoundError, ValidationError
from unibulletin.models import Announcement, Attachment
from unibulletin.models.base import utcnow
from unibulletin.schemas.announcement import AnnouncementCreate, AnnouncementUpdate, Recipient
from unibulletin.services.content import ContentGenerator
from unibulletin.services.storage import AttachmentStorage, IncomingFile
from unibulletin.utils.security import find_unsafe

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200


def _recipient_text(recipients: Optional[Sequence[Recipient]]) -> List[Optional[str]]:
    return [value for r in recipients or [] for value in (r.name, r.id, r.email)]


class AnnouncementService:
    """Create, update and delete announcements for one database session."""

    def __init__(
        self,
        db: AsyncSession,
        content: ContentGenerator,
        storage: AttachmentStorage,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.content = content
        self.storage = storage
        self.settings = settings or default_settings

    # ---- Queries ----

    async def get(self, announcement_id: int) -> Announcement:
        """Load an announcement with its attachments, or raise NotFoundError."""
        result = await self.db.execute(
            select(Announcement)
            .where(Announcement.id == announcement_id)
            .execution_options(populate_existing=True)
        )
        announcement = result.scalar_one_or_none()
        if not announcement:
            raise NotFoundError("Announcement not found")
        return announcement

    # ---- Create / update / delete ----

    async def create(
        self,
        data: AnnouncementCreate,
        files: Sequence[IncomingFile] = (),
    ) -> Announcement:
        if not data.title.strip() or not data.description.strip() or not data.author_id.strip():
            raise ValidationError("Title, description, and authorId are required")
        self._check_title(data.title)
        self._check_safe(
            data.title, data.description, data.summary, *data.tags,
            *_recipient_text(data.students), *_recipient_text(data.staff),
        )
        self._check_file_count(files)

        if data.summary and data.summary.strip():
            summary = data.summary
        else:
            summary = await self.content.summarize(data.description)
        image_url = await self.content.image(data.title.strip(), data.tags)

        now = utcnow()
        attachments = self._store_files(files, now)
        announcement = Announcement(
            title=data.title.strip(),
            original_description=data.description,
            summary=summary,
            image_url=image_url,
            tags=list(data.tags),
            category=data.category,
            audience=data.audience,
            students=[r.model_dump() for r in data.students],
            staff=[r.model_dump() for r in data.staff],
            author_id=data.author_id.strip(),
            created_at=now,
            attachments=attachments,
        )
        self.db.add(announcement)
        await self._commit_or_discard(attachments)

        logger.info(
            f"Announcement {announcement.id} created by {announcement.author_id} "
            f"({len(attachments)} attachments)"
        )
        return await self.get(announcement.id)

    async def update(
        self,
        announcement_id: int,
        data: AnnouncementUpdate,
        caller_id: Identity,
        files: Sequence[IncomingFile] = (),
    ) -> Announcement:
        announcement = await self.get(announcement_id)
        ensure_author(caller_id, announcement.author_id)

        if data.title is not None:
            if not data.title.strip():
                raise ValidationError("Title cannot be empty")
            self._check_title(data.title)
        if data.description is not None and not data.description.strip():
            raise ValidationError("Description cannot be empty")
        self._check_safe(
            data.title, data.description, data.summary, *(data.tags or []),
            *_recipient_text(data.students), *_recipient_text(data.staff),
        )
        self._check_file_count(files)

        summary = await self._next_summary(announcement, data)

        new_title = data.title.strip() if data.title is not None else announcement.title
        new_tags = list(data.tags) if data.tags is not None else list(announcement.tags or [])
        title_changed = new_title != announcement.title
        tags_changed = data.tags is not None and new_tags != list(announcement.tags or [])
        if title_changed or tags_changed:
            image_url = await self.content.image(new_title, new_tags)
        else:
            image_url = announcement.image_url

        announcement.title = new_title
        announcement.tags = new_tags
        if data.description is not None:
            announcement.original_description = data.description
        if data.category is not None:
            announcement.category = data.category
        if data.audience is not None:
            announcement.audience = data.audience
        if data.students is not None:
            announcement.students = [r.model_dump() for r in data.students]
        if data.staff is not None:
            announcement.staff = [r.model_dump() for r in data.staff]
        summary_changed = summary != announcement.summary
        announcement.summary = summary
        announcement.image_url = image_url

        attachments = self._store_files(files, utcnow())
        announcement.attachments.extend(attachments)
        await self._commit_or_discard(attachments)

        logger.info(
            f"Announcement {announcement_id} updated "
            f"(summary {'changed' if summary_changed else 'kept'}, "
            f"image {'regenerated' if title_changed or tags_changed else 'kept'})"
        )
        return await self.get(announcement_id)

    async def delete(self, announcement_id: int, caller_id: Identity) -> None:
        """Delete an announcement and, best effort, its attachment files."""
        announcement = await self.get(announcement_id)
        ensure_author(caller_id, announcement.author_id)

        for attachment in announcement.attachments:
            self._remove_file(attachment.file_url)

        await self.db.delete(announcement)
        await self.db.commit()
        logger.info(f"Announcement {announcement_id} deleted by {caller_id}")

    # ---- Image and attachment sub-operations ----

    async def regenerate_image(
        self,
        announcement_id: int,
        caller_id: Identity,
        custom_image_url: Optional[str] = None,
    ) -> Announcement:
        announcement = await self.get(announcement_id)
        ensure_author(caller_id, announcement.author_id)

        custom = (custom_image_url or "").strip()
        if custom:
            self._check_safe(custom)
            announcement.image_url = custom
        else:
            announcement.image_url = await self.content.image(
                announcement.title, list(announcement.tags or [])
            )

        await self.db.commit()
        logger.info(
            f"Announcement {announcement_id} image "
            f"{'set to custom URL' if custom else 'regenerated'}"
        )
        return await self.get(announcement_id)

    async def upload_attachments(
        self,
        announcement_id: int,
        caller_id: Identity,
        files: Sequence[IncomingFile],
    ) -> Tuple[List[Attachment], Announcement]:
        """Append files to the announcement; returns (new attachments, announcement)."""
        announcement = await self.get(announcement_id)
        ensure_author(caller_id, announcement.author_id)

        if not files:
            raise ValidationError("No files uploaded")
        self._check_file_count(files)

        attachments = self._store_files(files, utcnow())
        announcement.attachments.extend(attachments)
        await self._commit_or_discard(attachments)

        logger.info(f"{len(attachments)} attachments added to announcement {announcement_id}")
        return attachments, await self.get(announcement_id)

    async def delete_attachment(
        self,
        announcement_id: int,
        attachment_id: int,
        caller_id: Identity,
    ) -> Announcement:
        announcement = await self.get(announcement_id)

        attachment = next(
            (a for a in announcement.attachments if a.id == attachment_id),
            None,
        )
        if not attachment:
            raise NotFoundError("Attachment not found")
        ensure_author(caller_id, announcement.author_id)

        self._remove_file(attachment.file_url)
        announcement.attachments.remove(attachment)
        await self.db.commit()

        logger.info(f"Attachment {attachment_id} removed from announcement {announcement_id}")
        return await self.get(announcement_id)

    # ---- Helpers ----

    async def _next_summary(self, announcement: Announcement, data: AnnouncementUpdate) -> str:
        manual = data.summary
        description_changed = (
            data.description is not None
            and data.description != announcement.original_description
        )

        if manual is not None and manual.strip() and manual != announcement.summary:
            return manual
        if description_changed:
            return await self.content.summarize(data.description)
        if manual is not None and not manual.strip():
            source = data.description if data.description is not None else announcement.original_description
            return await self.content.summarize(source)
        return announcement.summary

    def _check_title(self, title: str) -> None:
        if len(title.strip()) > TITLE_MAX_LENGTH:
            raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters")

    def _check_safe(self, *values: Optional[str]) -> None:
        if find_unsafe(values) is not None:
            raise ValidationError("Input contains potentially dangerous content")

    def _check_file_count(self, files: Sequence[IncomingFile]) -> None:
        limit = self.settings.max_files_per_upload
        if len(files) > limit:
            raise ValidationError(f"At most {limit} files can be uploaded at once")

    def _store_files(self, files: Sequence[IncomingFile], uploaded_at: datetime) -> List[Attachment]:
        # Validate everything first so a rejected file leaves nothing on disk
        for file in files:
            self.storage.check(file)

        attachments = []
        for file in files:
            stored = self.storage.save(file)
            attachments.append(
                Attachment(
                    file_name=stored.file_name,
                    file_url=stored.file_url,
                    file_size=stored.file_size,
                    file_type=stored.file_type,
                    uploaded_at=uploaded_at,
                )
            )
        return attachments

    async def _commit_or_discard(self, new_attachments: List[Attachment]) -> None:
        """Commit; if that fails, remove files written for this request."""
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            for attachment in new_attachments:
                self._remove_file(attachment.file_url)
            raise

    def _remove_file(self, file_url: str) -> None:
        try:
            self.storage.remove(file_url)
        except Exception as e:
            logger.warning(f"Could not remove attachment file {file_url}: {e}")
