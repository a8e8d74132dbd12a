"""In-app notification service."""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from arena.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def notify(
        self,
        user_id: str,
        message: str,
        *,
        title: str | None = None,
        type: NotificationType = NotificationType.INFO,
        link: str | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type.value,
            link=link,
        )
        self.session.add(notification)
        await self.session.flush()
        logger.debug(f"Notification created: user={user_id[:8]}... type={type.value}")
        return notification

    async def list_for_user(
        self,
        user_id: str,
        *,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc()).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def unread_count(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        )
        return result.scalar_one()

    async def mark_read(self, user_id: str, notification_id: str | None = None) -> int:
        """Mark one notification, or all of a user's notifications, as read."""
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        if notification_id:
            stmt = stmt.where(Notification.id == notification_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0
