"""Create the first admin account, or promote an existing one.

Usage:
    python scripts/create_admin.py admin admin@example.com 'a-strong-password'
"""

import asyncio
import sys

from sqlalchemy import func, select

from arena.models import User, UserRole
from arena.services.auth import AuthService
from arena.services.users import UserService
from arena.utils.db import close_db, get_db_session


async def create_admin(username: str, email: str, password: str) -> None:
    async with get_db_session() as session:
        result = await session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        user = result.scalar_one_or_none()
        if user is None:
            print(f"Creating user {username}...")
            registered = await AuthService(session).register(username, email, password)
            user = registered["user"]
        elif user.role == UserRole.ADMIN.value:
            print(f"{user.username} is already an admin.")
            return

        await UserService(session).set_role(user.id, UserRole.ADMIN)
        print(f"{user.username} ({user.email}) is now an admin.")


async def main(argv: list[str]) -> int:
    if len(argv) != 3:
        print(__doc__)
        return 1
    try:
        await create_admin(*argv)
    finally:
        await close_db()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
