"""Business logic services."""

from unibulletin.services.announcements import AnnouncementService
from unibulletin.services.content import (
    ContentGenerationAdapter,
    ContentGenerator,
    generate_fallback_summary,
    get_content_generator,
)
from unibulletin.services.listing import list_announcements
from unibulletin.services.recipients import parse_recipient_file
from unibulletin.services.storage import AttachmentStorage, IncomingFile, get_attachment_storage

__all__ = [
    "AnnouncementService",
    "ContentGenerationAdapter",
    "ContentGenerator",
    "generate_fallback_summary",
    "get_content_generator",
    "list_announcements",
    "parse_recipient_file",
    "AttachmentStorage",
    "IncomingFile",
    "get_attachment_storage",
]
