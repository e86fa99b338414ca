"""
Pytest configuration and fixtures.
"""

import os

# Set required env vars before importing unibulletin modules
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("IS_PRODUCTION", "false")

from typing import List, Sequence, Tuple

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from unibulletin.models import Base
from unibulletin.services.announcements import AnnouncementService
from unibulletin.services.storage import AttachmentStorage, IncomingFile


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeContent:
    """ContentGenerator stand-in that records calls and never repeats a value."""

    def __init__(self):
        self.summary_calls: List[str] = []
        self.image_calls: List[Tuple[str, Tuple[str, ...]]] = []

    async def summarize(self, text: str) -> str:
        self.summary_calls.append(text)
        return f"AI summary #{len(self.summary_calls)}: {text[:20]}"

    async def image(self, title: str, tags: Sequence[str]) -> str:
        self.image_calls.append((title, tuple(tags)))
        return f"https://images.test/{len(self.image_calls)}.jpg"


def make_file(name: str = "notice.pdf", size: int = 16, content_type: str = "application/pdf") -> IncomingFile:
    return IncomingFile(file_name=name, content=b"x" * size, content_type=content_type)


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def fake_content():
    return FakeContent()


@pytest.fixture
def storage(tmp_path):
    return AttachmentStorage(str(tmp_path / "uploads"), "/uploads", max_bytes=1024)


@pytest.fixture
def service(db_session, fake_content, storage):
    return AnnouncementService(db_session, fake_content, storage)
