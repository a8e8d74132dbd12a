"""Wallet service for balance operations.

Features:
- Signed transfers with a per-user Redis lock
- Full transaction logging with integrity hash
- Redis caching for balance lookups
- Holds: debits parked as ``on_hold`` until settled by an admin action
"""

import hashlib
import logging
from decimal import Decimal
from uuid import uuid4

from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.config import get_settings
from arena.models.base import to_money
from arena.models.user import User
from arena.models.wallet import (
    Currency,
    TransactionStatus,
    TransactionType,
    WalletTransaction,
)
from arena.utils.errors import ArenaError, ErrorCode
from arena.utils.redis_client import get_redis

logger = logging.getLogger(__name__)
settings = get_settings()

STALE_BALANCE_KEYS = "wallet_stale_balance_keys"


async def invalidate_committed_balances(session: AsyncSession, redis: Redis | None) -> None:
    """Drop balance cache entries for wallets changed by the committed transaction."""
    keys = session.info.pop(STALE_BALANCE_KEYS, None)
    if not keys or redis is None:
        return
    try:
        await redis.delete(*keys)
    except RedisError as e:
        logger.warning(f"Balance cache invalidation failed for {len(keys)} keys: {e}")


class WalletError(ArenaError):
    """Wallet operation error."""


class InsufficientBalanceError(WalletError):
    """Debit exceeds the available balance."""

    def __init__(self, balance: Decimal, required: Decimal):
        super().__init__(
            ErrorCode.INSUFFICIENT_BALANCE,
            f"Insufficient balance: {balance} < {required}",
            {"balance": float(balance), "required": float(required)},
        )


class WalletService:
    """Wallet service for balance operations.

    Services that move money compose this one and share its session, so every
    movement lands in the caller's database transaction.
    """

    BALANCE_KEY_PREFIX = "wallet:balance:"
    LOCK_KEY_PREFIX = "wallet:lock:"

    def __init__(self, session: AsyncSession, redis: Redis | None = None) -> None:
        self.session = session
        self._redis = redis if redis is not None else get_redis()

    @staticmethod
    def _balance_attr(currency: Currency) -> str:
        return "token_wallet" if currency == Currency.TOKEN else "wallet"

    def _cache_key(self, user_id: str, currency: Currency) -> str:
        return f"{self.BALANCE_KEY_PREFIX}{currency.value}:{user_id}"

    async def get_balance(self, user_id: str, currency: Currency = Currency.PKR) -> Decimal:
        """Get a user's balance, served from cache when possible."""
        cache_key = self._cache_key(user_id, currency)
        cached = await self._redis.get(cache_key)
        if cached is not None:
            return Decimal(cached)

        user = await self.session.get(User, user_id)
        if not user:
            raise WalletError(ErrorCode.USER_NOT_FOUND, f"User not found: {user_id}")

        balance = getattr(user, self._balance_attr(currency))
        await self._redis.setex(cache_key, settings.balance_cache_ttl, str(balance))
        return balance

    async def invalidate_cache(self, user_id: str) -> None:
        await self._redis.delete(
            self._cache_key(user_id, Currency.PKR),
            self._cache_key(user_id, Currency.TOKEN),
        )

    async def transfer(
        self,
        user_id: str,
        amount: Decimal | int | float | str,
        tx_type: TransactionType,
        *,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        currency: Currency = Currency.PKR,
        description: str | None = None,
        related_tournament_id: str | None = None,
        related_request_id: str | None = None,
        related_product_id: str | None = None,
        allow_overdraft: bool = False,
    ) -> WalletTransaction:
        """Credit (positive amount) or debit (negative amount) a wallet.

        Raises:
            InsufficientBalanceError: If a debit exceeds the balance
            WalletError: For other errors
        """
        amount = to_money(amount)
        if amount == 0:
            raise WalletError(ErrorCode.INVALID_AMOUNT, "Amount cannot be zero")

        lock_key = f"{self.LOCK_KEY_PREFIX}{user_id}"
        lock_token = str(uuid4())

        lock_acquired = await self._redis.set(
            lock_key,
            lock_token,
            nx=True,
            ex=settings.wallet_lock_ttl,
        )
        if not lock_acquired:
            raise WalletError(ErrorCode.WALLET_LOCKED, "Could not acquire wallet lock, try again")

        try:
            await self.session.flush()
            user = await self.session.get(User, user_id)
            if not user:
                raise WalletError(ErrorCode.USER_NOT_FOUND, f"User not found: {user_id}")

            # Re-read only the balance, row-locked; other pending edits survive
            attr = self._balance_attr(currency)
            await self.session.refresh(user, attribute_names=[attr], with_for_update=True)
            balance_before = to_money(getattr(user, attr))

            if amount < 0 and not allow_overdraft and balance_before < -amount:
                raise InsufficientBalanceError(balance_before, -amount)

            balance_after = balance_before + amount
            setattr(user, attr, balance_after)

            tx = WalletTransaction(
                id=str(uuid4()),
                user_id=user_id,
                tx_type=tx_type.value,
                status=status.value,
                currency=currency.value,
                amount=amount,
                balance_before=balance_before,
                balance_after=balance_after,
                description=description,
                related_tournament_id=related_tournament_id,
                related_request_id=related_request_id,
                related_product_id=related_product_id,
                integrity_hash=self._compute_integrity_hash(
                    user_id=user_id,
                    tx_type=tx_type.value,
                    amount=amount,
                    balance_before=balance_before,
                    balance_after=balance_after,
                ),
            )
            self.session.add(tx)
            await self.session.flush()

            cache_key = self._cache_key(user_id, currency)
            await self._redis.delete(cache_key)
            # A read before commit can re-cache the old balance; cleared again after commit
            self.session.info.setdefault(STALE_BALANCE_KEYS, set()).add(cache_key)

            logger.info(
                f"Wallet transfer: user={user_id[:8]}... type={tx_type.value} "
                f"amount={amount:+} {currency.value} balance={balance_before} -> {balance_after}"
            )
            return tx
        finally:
            current_token = await self._redis.get(lock_key)
            if current_token == lock_token:
                await self._redis.delete(lock_key)

    async def credit(
        self,
        user_id: str,
        amount: Decimal | int | float | str,
        tx_type: TransactionType,
        **kwargs,
    ) -> WalletTransaction:
        """Add a positive amount to the wallet."""
        amount = to_money(amount)
        if amount <= 0:
            raise WalletError(ErrorCode.INVALID_AMOUNT, "Credit amount must be positive")
        return await self.transfer(user_id, amount, tx_type, **kwargs)

    async def debit(
        self,
        user_id: str,
        amount: Decimal | int | float | str,
        tx_type: TransactionType,
        **kwargs,
    ) -> WalletTransaction:
        """Remove a positive amount from the wallet."""
        amount = to_money(amount)
        if amount <= 0:
            raise WalletError(ErrorCode.INVALID_AMOUNT, "Debit amount must be positive")
        return await self.transfer(user_id, -amount, tx_type, **kwargs)

    async def hold(
        self,
        user_id: str,
        amount: Decimal | int | float | str,
        tx_type: TransactionType,
        **kwargs,
    ) -> WalletTransaction:
        """Debit the wallet now, leaving the transaction ``on_hold``."""
        return await self.debit(
            user_id, amount, tx_type, status=TransactionStatus.ON_HOLD, **kwargs
        )

    async def settle_hold(
        self,
        transaction_id: str | None,
        status: TransactionStatus,
        description: str | None = None,
    ) -> WalletTransaction | None:
        """Change the status of a held transaction without moving money.

        Returns None when the request had no hold transaction recorded.
        """
        if not transaction_id:
            return None
        tx = await self.session.get(WalletTransaction, transaction_id)
        if tx is None:
            raise WalletError(
                ErrorCode.TRANSACTION_NOT_FOUND,
                f"Transaction not found: {transaction_id}",
            )
        tx.status = status.value
        if description is not None:
            tx.description = description
        await self.session.flush()
        return tx

    async def adjust_balance(
        self,
        user_id: str,
        amount: Decimal | int | float | str,
        note: str | None = None,
        currency: Currency = Currency.PKR,
    ) -> WalletTransaction:
        """Admin adjustment, positive or negative."""
        return await self.transfer(
            user_id,
            amount,
            TransactionType.ADMIN_ADJUSTMENT,
            currency=currency,
            description=note or "Balance adjusted by admin",
        )

    async def list_transactions(
        self,
        user_id: str,
        *,
        limit: int = 50,
        offset: int = 0,
        tx_type: TransactionType | None = None,
    ) -> tuple[list[WalletTransaction], int]:
        """Get a page of a user's transactions, newest first, plus the total."""
        query = select(WalletTransaction).where(WalletTransaction.user_id == user_id)
        count_query = select(func.count()).select_from(WalletTransaction).where(
            WalletTransaction.user_id == user_id
        )
        if tx_type:
            query = query.where(WalletTransaction.tx_type == tx_type.value)
            count_query = count_query.where(WalletTransaction.tx_type == tx_type.value)

        query = query.order_by(WalletTransaction.created_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(query)
        total = (await self.session.execute(count_query)).scalar_one()
        return list(result.scalars().all()), total

    @staticmethod
    def _compute_integrity_hash(
        user_id: str,
        tx_type: str,
        amount: Decimal,
        balance_before: Decimal,
        balance_after: Decimal,
    ) -> str:
        data = f"{user_id}:{tx_type}:{amount}:{balance_before}:{balance_after}"
        return hashlib.sha256(data.encode()).hexdigest()

    @staticmethod
    def verify_integrity(tx: WalletTransaction) -> bool:
        """Recompute a transaction's hash and compare."""
        expected = WalletService._compute_integrity_hash(
            user_id=tx.user_id,
            tx_type=tx.tx_type,
            amount=to_money(tx.amount),
            balance_before=to_money(tx.balance_before),
            balance_after=to_money(tx.balance_after),
        )
        return tx.integrity_hash == expected
