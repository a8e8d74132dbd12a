"""Redeem codes: admin-issued codes that credit a fixed amount."""

import logging
from decimal import Decimal

from redis.asyncio import Redis
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from arena.models.base import to_money
from arena.models.redeem import RedeemClaim, RedeemCode
from arena.models.user import User
from arena.models.wallet import TransactionType
from arena.services.settings import SettingsService
from arena.services.wallet import WalletService
from arena.utils.errors import ArenaError, ErrorCode

logger = logging.getLogger(__name__)


class RedeemError(ArenaError):
    """Redeem code error."""


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


class RedeemService:
    def __init__(self, session: AsyncSession, redis: Redis | None = None) -> None:
        self.session = session
        self._redis = redis
        self.settings = SettingsService(session)

    async def get_by_code(self, code: str) -> RedeemCode | None:
        result = await self.session.execute(
            select(RedeemCode).where(RedeemCode.code == normalize_code(code))
        )
        return result.scalar_one_or_none()

    # =========================================================================
    # Admin
    # =========================================================================

    async def create_code(
        self,
        code: str,
        amount: Decimal | int | float | str,
        max_uses: int,
        created_by: str | None = None,
    ) -> RedeemCode:
        code = normalize_code(code)
        amount = to_money(amount)
        if not code:
            raise RedeemError(ErrorCode.MISSING_FIELD, "Code is required", {"fields": ["code"]})
        if amount <= 0 or max_uses < 1:
            raise RedeemError(
                ErrorCode.INVALID_AMOUNT,
                "Amount must be positive and max uses at least 1",
            )
        if await self.get_by_code(code) is not None:
            raise RedeemError(
                ErrorCode.REDEEM_CODE_EXISTS,
                f"Code {code} already exists",
            )

        redeem_code = RedeemCode(
            code=code,
            amount=amount,
            max_uses=max_uses,
            created_by=created_by,
        )
        self.session.add(redeem_code)
        await self.session.flush()
        logger.info(f"Redeem code created: code={code} amount={amount} max_uses={max_uses}")
        return redeem_code

    async def list_codes(self, *, limit: int = 100, offset: int = 0) -> list[RedeemCode]:
        result = await self.session.execute(
            select(RedeemCode).order_by(RedeemCode.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    async def deactivate(self, code_id: str) -> RedeemCode:
        redeem_code = await self.session.get(RedeemCode, code_id)
        if redeem_code is None:
            raise RedeemError(ErrorCode.REDEEM_CODE_NOT_FOUND, "Redeem code not found")
        redeem_code.is_active = False
        await self.session.flush()
        return redeem_code

    # =========================================================================
    # Claiming
    # =========================================================================

    async def redeem(self, user: User, code: str) -> dict:
        """Credit a code's amount to the user.

        Raises:
            RedeemError: Feature disabled, unknown, inactive, used up or
                already claimed by this user
        """
        general = await self.settings.general()
        if not general.redeem_code_enabled:
            raise RedeemError(ErrorCode.FORBIDDEN, "Redeem codes are currently disabled")

        redeem_code = await self.get_by_code(code)
        if redeem_code is None:
            raise RedeemError(ErrorCode.REDEEM_CODE_NOT_FOUND, "Invalid redeem code")
        if not redeem_code.is_active:
            raise RedeemError(ErrorCode.REDEEM_CODE_INACTIVE, "This code is no longer active")
        if redeem_code.times_used >= redeem_code.max_uses:
            raise RedeemError(ErrorCode.REDEEM_CODE_LIMIT_REACHED, "This code has reached its usage limit")

        claimed = await self.session.execute(
            select(RedeemClaim.id).where(
                RedeemClaim.code_id == redeem_code.id,
                RedeemClaim.user_id == user.id,
            )
        )
        if claimed.scalar_one_or_none() is not None:
            raise RedeemError(
                ErrorCode.REDEEM_CODE_ALREADY_CLAIMED,
                "You have already used this code",
            )

        # Conditional increment so concurrent claims cannot exceed max_uses
        result = await self.session.execute(
            update(RedeemCode)
            .where(
                RedeemCode.id == redeem_code.id,
                RedeemCode.times_used < RedeemCode.max_uses,
            )
            .values(times_used=RedeemCode.times_used + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise RedeemError(ErrorCode.REDEEM_CODE_LIMIT_REACHED, "This code has reached its usage limit")

        self.session.add(RedeemClaim(code_id=redeem_code.id, user_id=user.id))
        amount = to_money(redeem_code.amount)
        await WalletService(self.session, self._redis).credit(
            user.id,
            amount,
            TransactionType.REDEEM_CODE,
            description=f"Redeemed code {redeem_code.code}",
        )
        await self.session.refresh(redeem_code, attribute_names=["times_used"])

        logger.info(f"Redeem code claimed: code={redeem_code.code} user={user.id[:8]}...")
        return {"code": redeem_code.code, "amount": amount}
