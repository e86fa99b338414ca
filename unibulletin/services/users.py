"""
Default account management.

Accounts are never created through the public API; the app seeds the
defaults on an empty database outside production, and
scripts/manage_users.py creates them or resets their passwords.
"""

import logging
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from unibulletin.models import User, UserRole
from unibulletin.utils.password import hash_password

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNTS = (
    ("teacher1", UserRole.TEACHER),
    ("student1", UserRole.STUDENT),
)


async def seed_default_users(db: AsyncSession, password: str) -> List[User]:
    """Create the default accounts if the user table is empty."""
    count = (await db.execute(select(func.count(User.id)))).scalar_one()
    if count:
        return []

    password_hash = hash_password(password)
    users = [
        User(reg_id=reg_id, password_hash=password_hash, role=role)
        for reg_id, role in DEFAULT_ACCOUNTS
    ]
    db.add_all(users)
    await db.flush()
    logger.info(f"Default users created: {', '.join(u.reg_id for u in users)}")
    return users


async def upsert_default_users(db: AsyncSession, password: str) -> List[User]:
    """Create missing default accounts and reset the password of existing ones."""
    password_hash = hash_password(password)
    result = await db.execute(
        select(User).where(User.reg_id.in_([reg_id for reg_id, _ in DEFAULT_ACCOUNTS]))
    )
    existing = {u.reg_id: u for u in result.scalars().all()}

    users = []
    for reg_id, role in DEFAULT_ACCOUNTS:
        user = existing.get(reg_id)
        if user:
            user.password_hash = password_hash
            logger.info(f"Password reset for {reg_id}")
        else:
            user = User(reg_id=reg_id, password_hash=password_hash, role=role)
            db.add(user)
            logger.info(f"Created {role.value} account {reg_id}")
        users.append(user)

    await db.flush()
    return users
