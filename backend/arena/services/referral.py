"""Referral service: signup codes and the share-and-earn bonus."""

import logging
import secrets
import string
from decimal import Decimal
from typing import Any

from redis.asyncio import Redis
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.models.base import to_money
from arena.models.user import User, UserRole
from arena.models.wallet import TransactionType
from arena.services.settings import SettingsService
from arena.services.wallet import WalletService
from arena.utils.errors import ArenaError, ErrorCode

logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits


class ReferralError(ArenaError):
    """Referral operation error."""


def generate_referral_code(username: str, suffix_length: int = 4) -> str:
    """First four characters of the username plus four random base-36 characters."""
    prefix = username.replace(" ", "").upper()[:4]
    suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(suffix_length))
    return f"{prefix}{suffix}"


class ReferralService:
    def __init__(self, session: AsyncSession, redis: Redis | None = None) -> None:
        self.session = session
        self.wallet = WalletService(session, redis)
        self.settings = SettingsService(session)

    async def generate_unique_code(self, username: str, attempts: int = 10) -> str:
        for _ in range(attempts):
            code = generate_referral_code(username)
            if await self.get_referrer_by_code(code) is None:
                return code
        raise ReferralError(ErrorCode.INTERNAL_ERROR, "Could not generate a unique referral code")

    async def get_referrer_by_code(self, code: str) -> User | None:
        result = await self.session.execute(
            select(User).where(User.referral_code == code.strip().upper())
        )
        return result.scalar_one_or_none()

    async def apply_referral(self, new_user: User, code: str) -> dict[str, Any]:
        """Link a new user to a referrer and pay the signup bonus to both.

        The bonus is only paid when share-and-earn is enabled and a positive
        bonus amount is configured; the link is recorded either way.

        Raises:
            ReferralError: Unknown code, self referral, or a code already applied
        """
        code = code.strip().upper()
        if new_user.applied_referral_code:
            raise ReferralError(
                ErrorCode.REFERRAL_ALREADY_APPLIED,
                "A referral code has already been applied to this account",
            )

        referrer = await self.get_referrer_by_code(code)
        if referrer is None:
            raise ReferralError(
                ErrorCode.REFERRAL_CODE_NOT_FOUND,
                "The referral code used is invalid or does not exist",
                {"code": code},
            )
        if referrer.id == new_user.id:
            raise ReferralError(ErrorCode.REFERRAL_SELF, "Users cannot refer themselves")

        new_user.applied_referral_code = code
        if referrer.role == UserRole.DELEGATE.value:
            new_user.referred_by_delegate_id = referrer.id

        general = await self.settings.general()
        bonus = to_money(general.referral_bonus_amount)
        if not general.share_and_earn_enabled or bonus <= 0:
            await self.session.flush()
            logger.info(f"Referral linked without bonus: user={new_user.id[:8]}... code={code}")
            return {"bonus_amount": Decimal("0"), "referrer_username": referrer.username}

        await self.wallet.credit(
            new_user.id,
            bonus,
            TransactionType.REFERRAL_BONUS_RECEIVED,
            description=f"Signup bonus for using code {code} from {referrer.username}",
        )
        new_user.referral_bonus_received = to_money(new_user.referral_bonus_received) + bonus

        await self.wallet.credit(
            referrer.id,
            bonus,
            TransactionType.REFERRAL_COMMISSION_EARNED,
            description=f"Commission for referring {new_user.username}",
        )
        referrer.total_referral_commissions_earned = (
            to_money(referrer.total_referral_commissions_earned) + bonus
        )
        await self.session.flush()

        logger.info(
            f"Referral bonus paid: user={new_user.id[:8]}... "
            f"referrer={referrer.id[:8]}... amount={bonus}"
        )
        return {"bonus_amount": bonus, "referrer_username": referrer.username}

    async def get_referral_stats(self, user: User) -> dict[str, Any]:
        result = await self.session.execute(
            select(func.count(User.id)).where(User.applied_referral_code == user.referral_code)
        )
        total_referrals = result.scalar() or 0

        result = await self.session.execute(
            select(User)
            .where(User.applied_referral_code == user.referral_code)
            .order_by(User.created_at.desc())
            .limit(10)
        )
        recent = result.scalars().all()

        general = await self.settings.general()
        return {
            "referral_code": user.referral_code,
            "total_referrals": total_referrals,
            "total_commissions": to_money(user.total_referral_commissions_earned),
            "bonus_amount": to_money(general.referral_bonus_amount),
            "share_and_earn_enabled": general.share_and_earn_enabled,
            "recent_referrals": [
                {"username": u.username, "joined_at": u.created_at} for u in recent
            ],
        }
