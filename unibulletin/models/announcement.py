"""Announcement and attachment models."""

from datetime import datetime
from enum import Enum
from typing import List

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from unibulletin.models.base import Base, BaseModel, utcnow


class Category(str, Enum):
    """Feed categories. ALL on a record means it belongs to every tab."""
    ALL = "All"
    ACADEMIC = "Academic"
    ADMINISTRATIVE = "Administrative/Misc"
    CO_CURRICULAR = "Co-curricular/Sports/Cultural"
    PLACEMENT = "Placement"
    BENEFITS = "Benefits"


class Audience(str, Enum):
    FACULTY = "Faculty"
    STUDENTS = "Students"
    BOTH = "Both"


class Announcement(BaseModel):
    """
    Announcement posted by a teacher.

    summary and image_url are derived from original_description and
    title/tags but may also carry manual overrides. author_id is fixed
    at creation and is the only identity allowed to mutate the record.
    """

    __tablename__ = "announcements"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    original_description: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    category: Mapped[Category] = mapped_column(
        SQLAlchemyEnum(
            Category,
            name="announcement_category",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=Category.ALL,
        nullable=False,
        index=True,
    )
    audience: Mapped[Audience] = mapped_column(
        SQLAlchemyEnum(
            Audience,
            name="announcement_audience",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=Audience.BOTH,
        nullable=False,
    )
    # Recipient lists are informational: [{"name", "id", "email"}]
    students: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    staff: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    author_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Relationships
    attachments: Mapped[List["Attachment"]] = relationship(
        "Attachment",
        back_populates="announcement",
        cascade="all, delete-orphan",
        order_by="Attachment.id",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Announcement(id={self.id}, title='{self.title[:30]}', author_id='{self.author_id}')>"


class Attachment(Base):
    """File attached to exactly one announcement."""

    __tablename__ = "announcement_attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    announcement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("announcements.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    file_type: Mapped[str] = mapped_column(String(100), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    announcement = relationship("Announcement", back_populates="attachments")
