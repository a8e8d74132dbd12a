"""Tests for WithdrawalService: holds, approvals, refunds and fee routing."""

from decimal import Decimal

import pytest
from sqlalchemy import select

from arena.models.notification import Notification
from arena.models.user import UserRole
from arena.models.wallet import TransactionStatus, TransactionType, WalletTransaction
from arena.models.withdrawal import MobileLoadRequest, RequestStatus, WithdrawRequest
from arena.services.settings import SettingsService
from arena.services.wallet import InsufficientBalanceError
from arena.services.withdrawal import WithdrawalError, WithdrawalService


async def transactions_for(session, user_id):
    result = await session.execute(
        select(WalletTransaction).where(WalletTransaction.user_id == user_id)
    )
    return list(result.scalars().all())


class TestRequestWithdrawal:
    @pytest.mark.asyncio
    async def test_amount_is_held(self, db_session, fake_redis, make_user):
        user = await make_user("payee", wallet=1000)
        service = WithdrawalService(db_session, fake_redis)

        request = await service.request_withdrawal(user, 400, "JazzCash", "03001234567", "Ali")

        assert request.status == RequestStatus.PENDING.value
        assert user.wallet == Decimal("600.00")
        hold = await db_session.get(WalletTransaction, request.hold_transaction_id)
        assert hold.status == TransactionStatus.ON_HOLD.value
        assert hold.tx_type == TransactionType.WITHDRAWAL.value
        assert hold.amount == Decimal("-400.00")
        assert hold.description == "Hold for Withdrawal Request to JazzCash"

    @pytest.mark.asyncio
    async def test_missing_fields(self, db_session, fake_redis, make_user):
        user = await make_user("payee", wallet=1000)
        service = WithdrawalService(db_session, fake_redis)

        with pytest.raises(WithdrawalError) as exc_info:
            await service.request_withdrawal(user, 400, "JazzCash", "", None)

        assert exc_info.value.code == "MISSING_FIELD"
        assert exc_info.value.details == {"fields": ["account_number", "account_name"]}

    @pytest.mark.asyncio
    async def test_below_minimum(self, db_session, fake_redis, make_user):
        user = await make_user("payee", wallet=1000)
        service = WithdrawalService(db_session, fake_redis)

        with pytest.raises(WithdrawalError) as exc_info:
            await service.request_withdrawal(user, 299, "JazzCash", "0300", "Ali")

        assert exc_info.value.code == "WITHDRAWAL_BELOW_MINIMUM"

    @pytest.mark.asyncio
    async def test_insufficient_balance(self, db_session, fake_redis, make_user):
        user = await make_user("payee", wallet=350)
        service = WithdrawalService(db_session, fake_redis)

        with pytest.raises(InsufficientBalanceError):
            await service.request_withdrawal(user, 400, "Easypaisa", "0300", "Ali")

        assert user.wallet == Decimal("350")


class TestProcessWithdrawal:
    @pytest.mark.asyncio
    async def test_approve_pays_delegate_fee(self, db_session, fake_redis, make_user):
        delegate = await make_user("agent", role=UserRole.DELEGATE)
        user = await make_user("payee", wallet=1000, applied_referral_code=delegate.referral_code)
        service = WithdrawalService(db_session, fake_redis)
        request = await service.request_withdrawal(user, 500, "JazzCash", "0300", "Ali")

        result = await service.approve(request.id, admin_id=delegate.id)

        assert result["title"] == "Request Approved"
        assert result["fee_amount"] == Decimal("25.00")
        assert result["fee_recipient_id"] == delegate.id
        assert request.status == RequestStatus.COMPLETED.value
        assert delegate.wallet == Decimal("25.00")
        hold = await db_session.get(WalletTransaction, request.hold_transaction_id)
        assert hold.status == TransactionStatus.COMPLETED.value
        fee_txs = await transactions_for(db_session, delegate.id)
        assert fee_txs[0].tx_type == TransactionType.REFERRAL_COMMISSION_EARNED.value
        # The requester's wallet is not touched again
        assert user.wallet == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_fee_goes_to_admin_wallet_without_delegate(
        self, db_session, fake_redis, make_user
    ):
        house = await make_user("house")
        user = await make_user("payee", wallet=1000)
        await SettingsService(db_session).update("token_settings", {"adminFeeWalletUid": house.id})
        service = WithdrawalService(db_session, fake_redis)
        request = await service.request_withdrawal(user, 300, "JazzCash", "0300", "Ali")

        result = await service.approve(request.id)

        assert result["fee_recipient_id"] == house.id
        assert house.wallet == Decimal("15.00")

    @pytest.mark.asyncio
    async def test_no_fee_recipient(self, db_session, fake_redis, make_user):
        user = await make_user("payee", wallet=1000)
        service = WithdrawalService(db_session, fake_redis)
        request = await service.request_withdrawal(user, 300, "JazzCash", "0300", "Ali")

        assert await service.get_fee_recipient_for(request.id) is None
        result = await service.approve(request.id)

        assert result["fee_amount"] == Decimal("0")
        assert result["fee_recipient_id"] is None

    @pytest.mark.asyncio
    async def test_regular_user_referrer_gets_no_fee(self, db_session, fake_redis, make_user):
        friend = await make_user("friend")
        user = await make_user("payee", wallet=1000, applied_referral_code=friend.referral_code)
        service = WithdrawalService(db_session, fake_redis)
        request = await service.request_withdrawal(user, 300, "JazzCash", "0300", "Ali")

        assert await service.get_fee_recipient(request) is None

    @pytest.mark.asyncio
    async def test_reject_refunds(self, db_session, fake_redis, make_user):
        user = await make_user("payee", wallet=1000)
        service = WithdrawalService(db_session, fake_redis)
        request = await service.request_withdrawal(user, 400, "JazzCash", "0300", "Ali")

        result = await service.reject(request.id, notes="Wrong account")

        assert result["title"] == "Request Rejected & Refunded"
        assert request.status == RequestStatus.REJECTED.value
        assert request.admin_notes == "Wrong account"
        assert user.wallet == Decimal("1000.00")
        hold = await db_session.get(WalletTransaction, request.hold_transaction_id)
        assert hold.status == TransactionStatus.REJECTED.value
        types = sorted(tx.tx_type for tx in await transactions_for(db_session, user.id))
        assert types == [TransactionType.REFUND.value, TransactionType.WITHDRAWAL.value]

        notes = (await db_session.execute(select(Notification))).scalars().all()
        assert len(notes) == 1
        assert notes[0].title == "Withdrawal rejected"

    @pytest.mark.asyncio
    async def test_processing_twice_fails(self, db_session, fake_redis, make_user):
        user = await make_user("payee", wallet=1000)
        service = WithdrawalService(db_session, fake_redis)
        request = await service.request_withdrawal(user, 400, "JazzCash", "0300", "Ali")
        await service.approve(request.id)

        with pytest.raises(WithdrawalError) as exc_info:
            await service.reject(request.id)

        assert exc_info.value.code == "REQUEST_ALREADY_PROCESSED"

    @pytest.mark.asyncio
    async def test_concurrent_approve_and_reject_settle_once(
        self, db_session, second_session, fake_redis, make_user
    ):
        user = await make_user("payee", wallet=1000)
        admin_wallet = await make_user("feewallet")
        await SettingsService(db_session).update(
            "token_settings", {"adminFeeWalletUid": admin_wallet.id}
        )
        request = await WithdrawalService(db_session, fake_redis).request_withdrawal(
            user, 400, "JazzCash", "0300", "Ali"
        )
        await db_session.commit()

        # Both admins have the request loaded as pending
        stale = await second_session.get(WithdrawRequest, request.id)
        assert stale.status == RequestStatus.PENDING.value

        await WithdrawalService(db_session, fake_redis).approve(request.id)
        await db_session.commit()

        with pytest.raises(WithdrawalError) as exc_info:
            await WithdrawalService(second_session, fake_redis).reject(request.id)
        await second_session.rollback()

        assert exc_info.value.code == "REQUEST_ALREADY_PROCESSED"
        assert exc_info.value.details == {"status": RequestStatus.COMPLETED.value}
        await db_session.refresh(request)
        await db_session.refresh(user)
        assert request.status == RequestStatus.COMPLETED.value
        assert user.wallet == Decimal("600.00")
        types = [tx.tx_type for tx in await transactions_for(db_session, user.id)]
        assert types == [TransactionType.WITHDRAWAL.value]

    @pytest.mark.asyncio
    async def test_unknown_request(self, db_session, fake_redis):
        service = WithdrawalService(db_session, fake_redis)

        with pytest.raises(WithdrawalError) as exc_info:
            await service.approve("missing")

        assert exc_info.value.code == "REQUEST_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_list_by_status(self, db_session, fake_redis, make_user):
        user = await make_user("payee", wallet=2000)
        service = WithdrawalService(db_session, fake_redis)
        first = await service.request_withdrawal(user, 300, "JazzCash", "0300", "Ali")
        await service.request_withdrawal(user, 300, "JazzCash", "0300", "Ali")
        await service.approve(first.id)

        pending = await service.list_withdrawals(status=RequestStatus.PENDING)
        mine = await service.list_withdrawals(user_id=user.id)

        assert len(pending) == 1
        assert len(mine) == 2


class TestMobileLoad:
    @pytest.mark.asyncio
    async def test_request_and_reject(self, db_session, fake_redis, make_user):
        user = await make_user("caller", wallet=200)
        service = WithdrawalService(db_session, fake_redis)

        request = await service.request_mobile_load(user, 100, "Jazz", "03001112223")
        assert user.wallet == Decimal("100.00")

        await service.reject_mobile_load(request.id, notes="Network down")
        assert request.status == RequestStatus.REJECTED.value
        assert user.wallet == Decimal("200.00")

    @pytest.mark.asyncio
    async def test_approve(self, db_session, fake_redis, make_user):
        user = await make_user("caller", wallet=200)
        service = WithdrawalService(db_session, fake_redis)
        request = await service.request_mobile_load(user, 50, "Zong", "03101112223")

        await service.approve_mobile_load(request.id)

        hold = await db_session.get(WalletTransaction, request.hold_transaction_id)
        assert hold.status == TransactionStatus.COMPLETED.value
        assert user.wallet == Decimal("150.00")
        assert len(await service.list_mobile_loads(status=RequestStatus.COMPLETED)) == 1

    @pytest.mark.asyncio
    async def test_below_minimum(self, db_session, fake_redis, make_user):
        user = await make_user("caller", wallet=200)
        service = WithdrawalService(db_session, fake_redis)

        with pytest.raises(WithdrawalError) as exc_info:
            await service.request_mobile_load(user, 49, "Zong", "0310")

        assert exc_info.value.code == "INVALID_AMOUNT"

    @pytest.mark.asyncio
    async def test_disabled(self, db_session, fake_redis, make_user):
        user = await make_user("caller", wallet=200)
        await SettingsService(db_session).update("general", {"mobileLoadEnabled": False})
        service = WithdrawalService(db_session, fake_redis)

        with pytest.raises(WithdrawalError) as exc_info:
            await service.request_mobile_load(user, 100, "Zong", "0310")

        assert exc_info.value.code == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_concurrent_reject_after_approve_does_not_refund(
        self, db_session, second_session, fake_redis, make_user
    ):
        user = await make_user("caller", wallet=200)
        request = await WithdrawalService(db_session, fake_redis).request_mobile_load(
            user, 100, "Jazz", "03001112223"
        )
        await db_session.commit()
        await second_session.get(MobileLoadRequest, request.id)

        await WithdrawalService(db_session, fake_redis).approve_mobile_load(request.id)
        await db_session.commit()

        with pytest.raises(WithdrawalError) as exc_info:
            await WithdrawalService(second_session, fake_redis).reject_mobile_load(request.id)
        await second_session.rollback()

        assert exc_info.value.code == "REQUEST_ALREADY_PROCESSED"
        await db_session.refresh(user)
        assert user.wallet == Decimal("100.00")
