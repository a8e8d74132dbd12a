"""Daily login rewards.

A seven-day cycle: claiming on consecutive days walks through the configured
reward table and wraps back to day 1 after day 7. Missing a day restarts the
cycle. Days are calendar days in the reward timezone.
"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any
from zoneinfo import ZoneInfo

from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.config import get_settings
from arena.models.base import to_money
from arena.models.reward import DailyRewardClaim
from arena.models.user import User
from arena.models.wallet import TransactionType
from arena.services.content import ContentService
from arena.services.settings import SettingsService
from arena.services.wallet import WalletService
from arena.utils.errors import ArenaError, ErrorCode

logger = logging.getLogger(__name__)
settings = get_settings()

CYCLE_DAYS = 7


class DailyRewardError(ArenaError):
    """Daily reward error."""


class DailyRewardService:
    def __init__(
        self,
        session: AsyncSession,
        redis: Redis | None = None,
        content: ContentService | None = None,
    ) -> None:
        self.session = session
        self._redis = redis
        self.settings = SettingsService(session)
        self.content = content or ContentService()
        self.tz = ZoneInfo(settings.reward_timezone)

    def _now(self) -> datetime:
        return datetime.now(self.tz)

    def _local_date(self, moment: datetime | None) -> date | None:
        if moment is None:
            return None
        return moment.astimezone(self.tz).date()

    def day_to_claim(self, user: User, today: date) -> int:
        """Next day in the cycle: continues only when the last claim was yesterday."""
        last = self._local_date(user.last_login_reward_claim)
        if last is None or last != today - timedelta(days=1):
            return 1
        return ((user.daily_login_streak or 0) % CYCLE_DAYS) + 1

    async def _claimed_on(self, user_id: str, day: date) -> bool:
        result = await self.session.execute(
            select(DailyRewardClaim.id).where(
                DailyRewardClaim.user_id == user_id,
                DailyRewardClaim.claim_date == day,
            )
        )
        return result.scalar_one_or_none() is not None

    async def status(self, user: User) -> dict[str, Any]:
        config = await self.settings.daily_login_rewards()
        today = self._now().date()
        claimed_today = (
            self._local_date(user.last_login_reward_claim) == today
            or await self._claimed_on(user.id, today)
        )
        day = self.day_to_claim(user, today)
        return {
            "enabled": config.enabled,
            "can_claim": config.enabled and not claimed_today,
            "day_to_claim": day,
            "reward": self._reward_for(config.rewards, day),
            "streak": user.daily_login_streak or 0,
            "rewards": config.rewards,
        }

    @staticmethod
    def _reward_for(rewards: list[Decimal], day: int) -> Decimal:
        if 1 <= day <= len(rewards):
            return to_money(rewards[day - 1])
        return Decimal("0")

    async def claim(self, user: User) -> dict[str, Any]:
        """Claim today's reward.

        Raises:
            DailyRewardError: Rewards disabled or already claimed today
        """
        config = await self.settings.daily_login_rewards()
        if not config.enabled:
            raise DailyRewardError(
                ErrorCode.DAILY_REWARD_DISABLED,
                "Daily rewards are currently disabled",
            )

        now = self._now()
        today = now.date()
        if self._local_date(user.last_login_reward_claim) == today or await self._claimed_on(
            user.id, today
        ):
            raise DailyRewardError(
                ErrorCode.DAILY_REWARD_ALREADY_CLAIMED,
                "You have already claimed today's reward",
                {"nextClaimDate": (today + timedelta(days=1)).isoformat()},
            )

        day = self.day_to_claim(user, today)
        amount = self._reward_for(config.rewards, day)

        # Generated before the credit: the wallet row stays locked until commit
        message = await self.content.reward_message(day, amount)

        if amount > 0:
            await WalletService(self.session, self._redis).credit(
                user.id,
                amount,
                TransactionType.DAILY_LOGIN_REWARD,
                description=f"Daily Reward - Day {day}",
            )

        self.session.add(
            DailyRewardClaim(
                user_id=user.id,
                claim_date=today,
                streak_day=day,
                amount=amount,
            )
        )
        user.daily_login_streak = day
        user.last_login_reward_claim = now
        await self.session.flush()

        logger.info(f"Daily reward claimed: user={user.id[:8]}... day={day} amount={amount}")
        return {
            "day": day,
            "amount": amount,
            "heading": f"Day {day} Reward Claimed!",
            "message": message,
        }
