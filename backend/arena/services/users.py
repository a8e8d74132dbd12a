"""User profiles and back-office user management."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from arena.models.user import DelegateScreen, User, UserRole, UserStatus
from arena.services.settings import SettingsService
from arena.utils.errors import ArenaError, ErrorCode

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset({"game_uid", "game_name", "avatar_url", "phone", "whatsapp_number"})


class UserError(ArenaError):
    """User management error."""


class UserService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, user_id: str) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            raise UserError(ErrorCode.USER_NOT_FOUND, "User not found", {"userId": user_id})
        return user

    async def update_profile(self, user: User, data: dict[str, Any]) -> User:
        """Update the self-editable profile fields; anything else is ignored."""
        for key, value in data.items():
            if key not in PROFILE_FIELDS:
                continue
            if isinstance(value, str):
                value = value.strip() or None
            setattr(user, key, value)
        await self.session.flush()
        return user

    async def list_users(
        self,
        *,
        search: str | None = None,
        role: UserRole | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[User], int]:
        """Page of users matching a username, email or game uid search."""
        query = select(User)
        count_query = select(func.count()).select_from(User)
        if search:
            pattern = f"%{search.strip().lower()}%"
            condition = or_(
                User.username_lower.like(pattern),
                func.lower(User.email).like(pattern),
                User.game_uid == search.strip(),
                User.referral_code == search.strip().upper(),
            )
            query = query.where(condition)
            count_query = count_query.where(condition)
        if role:
            query = query.where(User.role == role.value)
            count_query = count_query.where(User.role == role.value)

        query = query.order_by(User.created_at.desc()).offset(offset).limit(limit)
        users = list((await self.session.execute(query)).scalars().all())
        total = (await self.session.execute(count_query)).scalar_one()
        return users, total

    async def set_role(
        self,
        user_id: str,
        role: UserRole,
        permissions: dict[str, bool] | None = None,
    ) -> User:
        """Change a role. Delegate permissions are kept only for delegates."""
        user = await self.get(user_id)
        user.role = role.value
        if role == UserRole.DELEGATE:
            allowed = {screen.value for screen in DelegateScreen}
            user.delegate_permissions = {
                key: bool(value) for key, value in (permissions or {}).items() if key in allowed
            }
        else:
            user.delegate_permissions = {}
        await self.session.flush()
        logger.info(f"User role changed: user={user.id[:8]}... role={role.value}")
        return user

    async def set_status(self, user_id: str, status: UserStatus) -> User:
        user = await self.get(user_id)
        user.status = status.value
        await self.session.flush()
        logger.info(f"User status changed: user={user.id[:8]}... status={status.value}")
        return user

    async def apply_inactivity_policy(self, now: datetime | None = None) -> int:
        """Suspend regular users inactive for longer than the threshold plus hold period."""
        now = now or datetime.now(timezone.utc)
        policy = await SettingsService(self.session).inactivity()
        cutoff = now - timedelta(days=policy.days_inactive + policy.hold_period)

        result = await self.session.execute(
            update(User)
            .where(
                User.role == UserRole.USER.value,
                User.status == UserStatus.ACTIVE.value,
                or_(
                    User.last_login < cutoff,
                    (User.last_login.is_(None)) & (User.created_at < cutoff),
                ),
            )
            .values(status=UserStatus.SUSPENDED.value)
            .execution_options(synchronize_session=False)
        )
        count = result.rowcount or 0
        if count:
            logger.info(f"Inactive users suspended: count={count} cutoff={cutoff.isoformat()}")
        return count
