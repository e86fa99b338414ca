"""
Create the default accounts or reset their passwords.

Usage:
    python scripts/manage_users.py

Or with a custom password / database:
    SEED_PASSWORD="..." DATABASE_URL="postgresql://..." python scripts/manage_users.py

Accounts:
- teacher1 (teacher)
- student1 (student)
"""

import asyncio
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from unibulletin.config import settings
from unibulletin.db import get_db_context
from unibulletin.services.users import upsert_default_users


async def main() -> int:
    try:
        async with get_db_context() as db:
            users = await upsert_default_users(db, settings.seed_password)
    except Exception as e:
        print(f"Error: {e}")
        return 1

    print("\nLogin credentials:")
    for user in users:
        print(f"   {user.role.value.title()}: regId={user.reg_id}, password={settings.seed_password}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
