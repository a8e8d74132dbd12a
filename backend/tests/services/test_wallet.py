"""Tests for WalletService.

Balance reads, signed transfers, holds and integrity verification.
"""

import logging
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import RedisError

from arena.models.wallet import Currency, TransactionStatus, TransactionType
from arena.services.wallet import (
    STALE_BALANCE_KEYS,
    InsufficientBalanceError,
    WalletError,
    WalletService,
    invalidate_committed_balances,
)


def mocked_service() -> WalletService:
    mock_session = MagicMock()
    mock_session.add = MagicMock()
    mock_session.flush = AsyncMock()
    mock_session.refresh = AsyncMock()
    redis = AsyncMock()
    redis.set.return_value = True
    return WalletService(mock_session, redis=redis)


class TestWalletServiceGetBalance:
    """Tests for balance retrieval."""

    @pytest.fixture
    def wallet_service(self):
        return mocked_service()

    @pytest.mark.asyncio
    async def test_get_balance_from_cache(self, wallet_service):
        """Should return cached balance when available."""
        wallet_service._redis.get.return_value = "1250.50"

        balance = await wallet_service.get_balance("user-123")

        assert balance == Decimal("1250.50")
        wallet_service._redis.setex.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_balance_from_db_when_cache_miss(self, wallet_service):
        """Should fetch from DB and cache when cache miss."""
        wallet_service._redis.get.return_value = None
        mock_user = MagicMock()
        mock_user.wallet = Decimal("500.00")
        wallet_service.session.get = AsyncMock(return_value=mock_user)

        balance = await wallet_service.get_balance("user-123")

        assert balance == Decimal("500.00")
        wallet_service._redis.setex.assert_called_once()

    @pytest.mark.asyncio
    async def test_token_balance_reads_token_wallet(self, wallet_service):
        wallet_service._redis.get.return_value = None
        mock_user = MagicMock()
        mock_user.token_wallet = Decimal("7.00")
        wallet_service.session.get = AsyncMock(return_value=mock_user)

        assert await wallet_service.get_balance("user-123", Currency.TOKEN) == Decimal("7.00")

    @pytest.mark.asyncio
    async def test_get_balance_user_not_found(self, wallet_service):
        """Should raise error when user not found."""
        wallet_service._redis.get.return_value = None
        wallet_service.session.get = AsyncMock(return_value=None)

        with pytest.raises(WalletError, match="User not found"):
            await wallet_service.get_balance("nonexistent-user")


class TestWalletServiceTransfer:
    """Tests for signed transfers."""

    @pytest.fixture
    def wallet_service(self):
        return mocked_service()

    @pytest.mark.asyncio
    async def test_transfer_credit(self, wallet_service):
        """Should credit balance correctly."""
        mock_user = MagicMock()
        mock_user.wallet = Decimal("100")
        wallet_service.session.get = AsyncMock(return_value=mock_user)

        tx = await wallet_service.transfer("user-123", 50, TransactionType.PRIZE)

        assert tx.amount == Decimal("50.00")
        assert tx.balance_before == Decimal("100.00")
        assert tx.balance_after == Decimal("150.00")
        assert tx.status == TransactionStatus.COMPLETED.value
        assert mock_user.wallet == Decimal("150.00")
        wallet_service.session.refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_transfer_debit(self, wallet_service):
        """Should debit balance correctly."""
        mock_user = MagicMock()
        mock_user.wallet = Decimal("100")
        wallet_service.session.get = AsyncMock(return_value=mock_user)

        tx = await wallet_service.transfer("user-123", "-30.25", TransactionType.ENTRY_FEE)

        assert tx.amount == Decimal("-30.25")
        assert tx.balance_after == Decimal("69.75")
        assert mock_user.wallet == Decimal("69.75")

    @pytest.mark.asyncio
    async def test_transfer_insufficient_balance(self, wallet_service):
        """Should raise error when insufficient balance."""
        mock_user = MagicMock()
        mock_user.wallet = Decimal("10")
        wallet_service.session.get = AsyncMock(return_value=mock_user)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await wallet_service.transfer("user-123", -50, TransactionType.ENTRY_FEE)

        assert exc_info.value.details == {"balance": 10.0, "required": 50.0}
        assert mock_user.wallet == Decimal("10")

    @pytest.mark.asyncio
    async def test_overdraft_allowed_when_requested(self, wallet_service):
        mock_user = MagicMock()
        mock_user.wallet = Decimal("10")
        wallet_service.session.get = AsyncMock(return_value=mock_user)

        tx = await wallet_service.transfer(
            "user-123", -50, TransactionType.PRIZE, allow_overdraft=True
        )

        assert tx.balance_after == Decimal("-40.00")

    @pytest.mark.asyncio
    async def test_transfer_zero_amount_rejected(self, wallet_service):
        """Should reject zero amount transfer."""
        with pytest.raises(WalletError, match="Amount cannot be zero"):
            await wallet_service.transfer("user-123", 0, TransactionType.PRIZE)

    @pytest.mark.asyncio
    async def test_transfer_lock_failure(self, wallet_service):
        """Should raise error when lock cannot be acquired."""
        wallet_service._redis.set.return_value = None

        with pytest.raises(WalletError, match="Could not acquire wallet lock") as exc_info:
            await wallet_service.transfer("user-123", 10, TransactionType.PRIZE)

        assert exc_info.value.code == "WALLET_LOCKED"

    @pytest.mark.asyncio
    async def test_credit_rejects_negative(self, wallet_service):
        with pytest.raises(WalletError, match="Credit amount must be positive"):
            await wallet_service.credit("user-123", -5, TransactionType.PRIZE)

    @pytest.mark.asyncio
    async def test_debit_rejects_negative(self, wallet_service):
        with pytest.raises(WalletError, match="Debit amount must be positive"):
            await wallet_service.debit("user-123", -5, TransactionType.ENTRY_FEE)


class TestWalletServiceIntegrity:
    """Tests for transaction integrity verification."""

    def test_compute_integrity_hash(self):
        """Should compute consistent integrity hash."""
        args = ("user-123", "prize", Decimal("50.00"), Decimal("100.00"), Decimal("150.00"))

        hash1 = WalletService._compute_integrity_hash(*args)
        hash2 = WalletService._compute_integrity_hash(*args)

        assert hash1 == hash2
        assert len(hash1) == 64

    def test_integrity_hash_changes_with_data(self):
        """Different data should produce different hashes."""
        hash1 = WalletService._compute_integrity_hash(
            "user-123", "prize", Decimal("50.00"), Decimal("100.00"), Decimal("150.00")
        )
        hash2 = WalletService._compute_integrity_hash(
            "user-123", "prize", Decimal("50.01"), Decimal("100.00"), Decimal("150.01")
        )

        assert hash1 != hash2

    def test_verify_integrity_tampered(self):
        """Should detect tampered transaction."""
        tx = MagicMock()
        tx.user_id = "user-123"
        tx.tx_type = "prize"
        tx.amount = Decimal("50")
        tx.balance_before = Decimal("100")
        tx.balance_after = Decimal("150")
        tx.integrity_hash = "tampered_hash_value"

        assert WalletService.verify_integrity(tx) is False


class TestWalletServiceDatabase:
    """Transfers against a real schema."""

    @pytest.mark.asyncio
    async def test_hold_then_settle(self, db_session, fake_redis, make_user):
        user = await make_user("holder", wallet=500)
        service = WalletService(db_session, fake_redis)

        tx = await service.hold(user.id, 200, TransactionType.WITHDRAWAL)
        assert tx.status == TransactionStatus.ON_HOLD.value
        assert user.wallet == Decimal("300.00")

        settled = await service.settle_hold(tx.id, TransactionStatus.COMPLETED, "Paid out")
        assert settled.status == TransactionStatus.COMPLETED.value
        assert settled.description == "Paid out"
        assert user.wallet == Decimal("300.00")
        assert WalletService.verify_integrity(settled)

    @pytest.mark.asyncio
    async def test_settle_without_hold_is_noop(self, db_session, fake_redis):
        service = WalletService(db_session, fake_redis)

        assert await service.settle_hold(None, TransactionStatus.COMPLETED) is None

    @pytest.mark.asyncio
    async def test_settle_unknown_hold(self, db_session, fake_redis):
        service = WalletService(db_session, fake_redis)

        with pytest.raises(WalletError) as exc_info:
            await service.settle_hold("missing", TransactionStatus.COMPLETED)

        assert exc_info.value.code == "TRANSACTION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_lock_released_and_cache_dropped(self, db_session, fake_redis, make_user):
        user = await make_user("cached", wallet=100)
        service = WalletService(db_session, fake_redis)
        assert await service.get_balance(user.id) == Decimal("100.00")

        await service.credit(user.id, 25, TransactionType.REDEEM_CODE)

        assert f"wallet:lock:{user.id}" not in fake_redis.store
        assert await service.get_balance(user.id) == Decimal("125.00")

    @pytest.mark.asyncio
    async def test_admin_adjustment_and_listing(self, db_session, fake_redis, make_user):
        user = await make_user("adjusted", wallet=100)
        service = WalletService(db_session, fake_redis)

        await service.adjust_balance(user.id, -40, note="Chargeback")
        await service.credit(user.id, 10, TransactionType.DAILY_LOGIN_REWARD)
        await db_session.commit()

        items, total = await service.list_transactions(user.id)
        assert total == 2
        adjustments, adjusted_total = await service.list_transactions(
            user.id, tx_type=TransactionType.ADMIN_ADJUSTMENT
        )
        assert adjusted_total == 1
        assert adjustments[0].description == "Chargeback"
        assert adjustments[0].amount == Decimal("-40.00")

    @pytest.mark.asyncio
    async def test_balance_cached_before_commit_is_dropped_after(
        self, db_session, fake_redis, make_user
    ):
        user = await make_user("racer", wallet=100)
        service = WalletService(db_session, fake_redis)
        cache_key = f"wallet:balance:pkr:{user.id}"

        await service.credit(user.id, 25, TransactionType.REDEEM_CODE)
        # A concurrent reader caches the committed balance before this commit lands
        fake_redis.store[cache_key] = "100.00"
        await db_session.commit()
        await invalidate_committed_balances(db_session, fake_redis)

        assert cache_key not in fake_redis.store
        assert STALE_BALANCE_KEYS not in db_session.info
        assert await service.get_balance(user.id) == Decimal("125.00")

    @pytest.mark.asyncio
    async def test_invalidation_without_changes_is_noop(self, db_session):
        redis = AsyncMock()

        await invalidate_committed_balances(db_session, redis)

        redis.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalidation_failure_is_logged(self, db_session, caplog):
        redis = AsyncMock()
        redis.delete.side_effect = RedisError("connection reset")
        db_session.info[STALE_BALANCE_KEYS] = {"wallet:balance:pkr:someone"}

        with caplog.at_level(logging.WARNING, logger="arena.services.wallet"):
            await invalidate_committed_balances(db_session, redis)

        assert "Balance cache invalidation failed for 1 keys" in caplog.text
        assert STALE_BALANCE_KEYS not in db_session.info
