"""
Announcement feed queries: filtering and pagination.
"""

import math
from typing import Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from unibulletin.models import Announcement, Category
from unibulletin.schemas.announcement import AnnouncementPage, AnnouncementResponse

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100


def clamp_pagination(page: Optional[int], per_page: Optional[int]) -> Tuple[int, int]:
    """Clamp page to >= 1 and per_page to [1, 100], applying defaults."""
    page = DEFAULT_PAGE if page is None else max(1, page)
    per_page = DEFAULT_PER_PAGE if per_page is None else min(max(1, per_page), MAX_PER_PAGE)
    return page, per_page


def count_pages(total: int, per_page: int) -> int:
    return math.ceil(total / per_page)


async def list_announcements(
    db: AsyncSession,
    author_id: Optional[str] = None,
    category: Optional[Category] = None,
    page: Optional[int] = None,
    per_page: Optional[int] = None,
) -> AnnouncementPage:
    """
    Newest-first page of announcements.

    author_id and category are exact-match filters; Category.ALL (or no
    category) means every category.
    """
    page, per_page = clamp_pagination(page, per_page)

    filters = []
    if author_id:
        filters.append(Announcement.author_id == author_id)
    if category is not None and category != Category.ALL:
        filters.append(Announcement.category == category)

    count_query = select(func.count(Announcement.id))
    query = select(Announcement)
    for condition in filters:
        count_query = count_query.where(condition)
        query = query.where(condition)

    total = (await db.execute(count_query)).scalar_one()

    # Pages past the end are empty; huge offsets never reach the driver
    offset = (page - 1) * per_page
    announcements = []
    if offset < total:
        result = await db.execute(
            query
            .order_by(Announcement.created_at.desc(), Announcement.id.desc())
            .offset(offset)
            .limit(per_page)
        )
        announcements = result.scalars().all()

    return AnnouncementPage(
        total=total,
        page=page,
        per_page=per_page,
        total_pages=count_pages(total, per_page),
        data=[AnnouncementResponse.model_validate(a) for a in announcements],
    )
