"""User maintenance tasks."""

import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from arena.config import get_settings
from arena.services.users import UserService
from arena.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="arena.tasks.users.apply_inactivity_policy_task",
    max_retries=3,
    default_retry_delay=300,  # 5 minutes
    autoretry_for=(Exception,),
    retry_backoff=True,
)
def apply_inactivity_policy_task(self):
    """Suspend regular accounts that stayed away past the inactivity threshold."""
    logger.info(f"Starting inactivity policy run (attempt {self.request.retries + 1})")
    result = asyncio.run(_apply_inactivity_policy())
    logger.info(f"Inactivity policy run complete: {result}")
    return result


async def _apply_inactivity_policy(now: datetime | None = None) -> dict:
    engine = create_async_engine(get_settings().database_url)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with session_factory() as session:
            suspended = await UserService(session).apply_inactivity_policy(now)
            await session.commit()
        return {
            "suspended": suspended,
            "processed_at": datetime.now(timezone.utc).isoformat(),
        }
    finally:
        await engine.dispose()
