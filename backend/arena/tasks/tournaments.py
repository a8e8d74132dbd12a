"""Tournament scheduling tasks."""

import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from arena.config import get_settings
from arena.services.tournament import TournamentService
from arena.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="arena.tasks.tournaments.advance_tournament_statuses_task",
    max_retries=3,
    default_retry_delay=30,
    autoretry_for=(Exception,),
    retry_backoff=True,
)
def advance_tournament_statuses_task(self):
    """Set upcoming tournaments whose start time has passed to live."""
    result = asyncio.run(_advance_statuses())
    if result["went_live"]:
        logger.info(f"Tournament status progression: {result}")
    return result


async def _advance_statuses(now: datetime | None = None) -> dict:
    # Each run owns its engine: the worker starts a fresh event loop per task
    engine = create_async_engine(get_settings().database_url)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with session_factory() as session:
            count = await TournamentService(session).advance_statuses(now)
            await session.commit()
        return {
            "went_live": count,
            "processed_at": datetime.now(timezone.utc).isoformat(),
        }
    finally:
        await engine.dispose()
