"""Offer wall postbacks.

The offer network calls back once per completed offer. Every
``required_completions`` distinct offers earn the configured points.
"""

import logging
from typing import Any

from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.models.base import to_money
from arena.models.reward import CpaOfferCompletion
from arena.models.user import User
from arena.models.wallet import TransactionType
from arena.services.settings import SettingsService
from arena.services.wallet import WalletService
from arena.utils.errors import ArenaError, ErrorCode

logger = logging.getLogger(__name__)


class OfferError(ArenaError):
    """Offer postback error."""


class OfferService:
    def __init__(self, session: AsyncSession, redis: Redis | None = None) -> None:
        self.session = session
        self._redis = redis
        self.settings = SettingsService(session)

    async def handle_postback(
        self,
        user_id: str | None,
        key: str | None,
        offer_url_id: str | None,
        offer_name: str | None = None,
    ) -> dict[str, Any]:
        """Record one offer completion and pay out at the milestone.

        Raises:
            OfferError: Missing parameters or a wrong postback key
        """
        if not user_id or not key or not offer_url_id:
            raise OfferError(
                ErrorCode.MISSING_FIELD,
                "Missing parameters",
                {"fields": ["sub1", "sub2", "offer_url_id"]},
            )

        config = await self.settings.cpa_grip()
        if not config.postback_key or key != config.postback_key:
            logger.warning(f"Offer postback with invalid key for user={user_id[:8]}...")
            raise OfferError(ErrorCode.OFFER_KEY_FORBIDDEN, "Invalid secret key")

        user = await self.session.get(User, user_id)
        if user is None:
            raise OfferError(ErrorCode.USER_NOT_FOUND, "User not found", {"userId": user_id})

        existing = await self.session.execute(
            select(CpaOfferCompletion.id).where(
                CpaOfferCompletion.user_id == user.id,
                CpaOfferCompletion.offer_url_id == offer_url_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            logger.info(f"Offer already completed: user={user.id[:8]}... offer={offer_url_id}")
            return {"duplicate": True, "progress": user.cpa_progress, "awarded": None}

        self.session.add(
            CpaOfferCompletion(
                user_id=user.id,
                offer_url_id=offer_url_id,
                offer_name=offer_name or "Unknown",
            )
        )
        user.cpa_progress = (user.cpa_progress or 0) + 1

        awarded = None
        if user.cpa_progress >= config.required_completions:
            points = to_money(config.points)
            if points > 0:
                await WalletService(self.session, self._redis).credit(
                    user.id,
                    points,
                    TransactionType.CPA_GRIP_REWARD,
                    description=(
                        f"Reward for completing {config.required_completions} offers. "
                        f"Last offer: {offer_name or 'Unknown'}"
                    ),
                )
                awarded = points
            user.cpa_progress = 0

        await self.session.flush()
        logger.info(
            f"Offer completed: user={user.id[:8]}... offer={offer_url_id} "
            f"progress={user.cpa_progress}/{config.required_completions} awarded={awarded}"
        )
        return {"duplicate": False, "progress": user.cpa_progress, "awarded": awarded}
