"""Payout requests: withdrawals and mobile loads.

Both follow the same lifecycle. On request the amount is debited at once
with an ``on_hold`` transaction. Approval completes the hold; rejection
marks it rejected and refunds the amount with a separate transaction.
Approved withdrawals also pay a fee share to the user's referring delegate
or, failing that, to the configured admin fee wallet.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from redis.asyncio import Redis
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from arena.config import get_settings
from arena.models.base import to_money
from arena.models.user import User, UserRole
from arena.models.wallet import TransactionStatus, TransactionType
from arena.models.withdrawal import MobileLoadRequest, RequestStatus, WithdrawRequest
from arena.services.notification import NotificationService
from arena.services.settings import SettingsService
from arena.services.wallet import InsufficientBalanceError, WalletService
from arena.utils.errors import ArenaError, ErrorCode

logger = logging.getLogger(__name__)
settings = get_settings()


class WithdrawalError(ArenaError):
    """Payout request error."""


def _require_fields(**fields: Any) -> None:
    missing = [name for name, value in fields.items() if value in (None, "")]
    if missing:
        raise WithdrawalError(
            ErrorCode.MISSING_FIELD,
            "Missing required fields",
            {"fields": missing},
        )


class WithdrawalService:
    def __init__(self, session: AsyncSession, redis: Redis | None = None) -> None:
        self.session = session
        self.wallet = WalletService(session, redis)
        self.settings = SettingsService(session)
        self.notifications = NotificationService(session)

    # =========================================================================
    # Withdrawals
    # =========================================================================

    async def request_withdrawal(
        self,
        user: User,
        amount: Decimal | int | float | str | None,
        method: str | None,
        account_number: str | None,
        account_name: str | None,
    ) -> WithdrawRequest:
        """Create a pending withdrawal and hold its amount.

        Raises:
            WithdrawalError: Missing fields or amount below the minimum
            InsufficientBalanceError: Balance lower than the amount
        """
        _require_fields(
            amount=amount,
            method=method,
            account_number=account_number,
            account_name=account_name,
        )
        amount = to_money(amount)
        if amount < settings.min_withdrawal_amount:
            raise WithdrawalError(
                ErrorCode.WITHDRAWAL_BELOW_MINIMUM,
                f"Minimum withdrawal amount is {settings.currency_label} "
                f"{settings.min_withdrawal_amount}",
                {"minimum": float(settings.min_withdrawal_amount)},
            )
        if to_money(user.wallet) < amount:
            raise InsufficientBalanceError(to_money(user.wallet), amount)

        request = WithdrawRequest(
            user_id=user.id,
            username=user.username,
            amount=amount,
            method=method,
            account_number=account_number,
            account_name=account_name,
            status=RequestStatus.PENDING.value,
        )
        self.session.add(request)
        await self.session.flush()

        hold = await self.wallet.hold(
            user.id,
            amount,
            TransactionType.WITHDRAWAL,
            description=f"Hold for Withdrawal Request to {method}",
            related_request_id=request.id,
        )
        request.hold_transaction_id = hold.id
        await self.session.flush()

        logger.info(
            f"Withdrawal requested: request={request.id[:8]}... "
            f"user={user.id[:8]}... amount={amount} method={method}"
        )
        return request

    async def _claim_pending(
        self,
        model: type[WithdrawRequest] | type[MobileLoadRequest],
        request_id: str,
        new_status: RequestStatus,
        admin_id: str | None,
        notes: str | None = None,
    ) -> Any:
        """Move a pending request to ``new_status`` exactly once.

        The status flip is a conditional UPDATE: when two admins process the
        same request, only the first gets past this point.
        """
        request = await self.session.get(model, request_id)
        if request is None:
            raise WithdrawalError(
                ErrorCode.REQUEST_NOT_FOUND,
                "Request not found",
                {"requestId": request_id},
            )

        values: dict[str, Any] = {
            "status": new_status.value,
            "processed_at": datetime.now(timezone.utc),
            "processed_by": admin_id,
        }
        if notes is not None:
            values["admin_notes"] = notes
        result = await self.session.execute(
            update(model)
            .where(model.id == request_id, model.status == RequestStatus.PENDING.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(request)
        if result.rowcount == 0:
            raise WithdrawalError(
                ErrorCode.REQUEST_ALREADY_PROCESSED,
                "This request has already been processed",
                {"status": request.status},
            )
        return request

    async def get_fee_recipient(self, request: WithdrawRequest) -> User | None:
        """Delegate whose referral code the requester applied, else the admin fee wallet."""
        requester = await self.session.get(User, request.user_id)
        if requester is not None and requester.applied_referral_code:
            result = await self.session.execute(
                select(User).where(User.referral_code == requester.applied_referral_code)
            )
            referrer = result.scalar_one_or_none()
            if referrer is not None and referrer.role == UserRole.DELEGATE.value:
                return referrer

        token_settings = await self.settings.token_settings()
        if token_settings.admin_fee_wallet_uid:
            return await self.session.get(User, token_settings.admin_fee_wallet_uid)
        return None

    async def get_fee_recipient_for(self, request_id: str) -> User | None:
        request = await self.session.get(WithdrawRequest, request_id)
        if request is None:
            raise WithdrawalError(ErrorCode.REQUEST_NOT_FOUND, "Withdrawal request not found")
        return await self.get_fee_recipient(request)

    async def approve(self, request_id: str, admin_id: str | None = None) -> dict[str, Any]:
        """Complete a pending withdrawal and pay the fee share."""
        request = await self._claim_pending(
            WithdrawRequest, request_id, RequestStatus.COMPLETED, admin_id
        )
        amount = to_money(request.amount)

        await self.wallet.settle_hold(
            request.hold_transaction_id,
            TransactionStatus.COMPLETED,
            f"Withdrawal to {request.method or 'account'} completed.",
        )

        fee_amount = to_money(amount * settings.withdrawal_fee_rate)
        recipient = await self.get_fee_recipient(request)
        if recipient is not None and fee_amount > 0:
            await self.wallet.credit(
                recipient.id,
                fee_amount,
                TransactionType.REFERRAL_COMMISSION_EARNED,
                description=(
                    f"{(settings.withdrawal_fee_rate * 100).normalize():f}% fee from {request.username}'s "
                    f"withdrawal of {settings.currency_label} {amount}"
                ),
                related_request_id=request.id,
            )

        await self.notifications.notify(
            request.user_id,
            f"Your withdrawal of {settings.currency_label} {amount} has been sent.",
            title="Withdrawal approved",
        )
        logger.info(
            f"Withdrawal approved: request={request.id[:8]}... amount={amount} "
            f"fee={fee_amount} recipient={recipient.id[:8] if recipient else None}"
        )
        return {
            "title": "Request Approved",
            "message": f"Withdrawal for {settings.currency_label} {amount} finalized.",
            "fee_amount": fee_amount if recipient else Decimal("0"),
            "fee_recipient_id": recipient.id if recipient else None,
        }

    async def reject(
        self,
        request_id: str,
        admin_id: str | None = None,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """Reject a pending withdrawal and refund the held amount."""
        request = await self._claim_pending(
            WithdrawRequest, request_id, RequestStatus.REJECTED, admin_id, notes
        )
        amount = to_money(request.amount)

        await self.wallet.settle_hold(
            request.hold_transaction_id,
            TransactionStatus.REJECTED,
            "Withdrawal request rejected.",
        )
        await self.wallet.credit(
            request.user_id,
            amount,
            TransactionType.REFUND,
            description=f"Withdrawal request (ID: {request.id[:6]}...) rejected - amount refunded.",
            related_request_id=request.id,
        )
        await self.notifications.notify(
            request.user_id,
            f"Your withdrawal of {settings.currency_label} {amount} was rejected and refunded.",
            title="Withdrawal rejected",
        )
        logger.info(f"Withdrawal rejected: request={request.id[:8]}... amount={amount}")
        return {
            "title": "Request Rejected & Refunded",
            "message": f"Request rejected. {settings.currency_label} {amount} refunded to user.",
        }

    async def list_withdrawals(
        self,
        *,
        status: RequestStatus | None = None,
        user_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[WithdrawRequest]:
        query = select(WithdrawRequest)
        if status:
            query = query.where(WithdrawRequest.status == status.value)
        if user_id:
            query = query.where(WithdrawRequest.user_id == user_id)
        query = query.order_by(WithdrawRequest.requested_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    # =========================================================================
    # Mobile loads
    # =========================================================================

    async def request_mobile_load(
        self,
        user: User,
        amount: Decimal | int | float | str | None,
        network: str | None,
        phone_number: str | None,
    ) -> MobileLoadRequest:
        _require_fields(amount=amount, network=network, phone_number=phone_number)

        general = await self.settings.general()
        if not general.mobile_load_enabled:
            raise WithdrawalError(ErrorCode.FORBIDDEN, "Mobile load is currently disabled")

        amount = to_money(amount)
        if amount < settings.min_mobile_load_amount:
            raise WithdrawalError(
                ErrorCode.INVALID_AMOUNT,
                f"Minimum mobile load amount is {settings.currency_label} "
                f"{settings.min_mobile_load_amount}",
                {"minimum": float(settings.min_mobile_load_amount)},
            )

        request = MobileLoadRequest(
            user_id=user.id,
            username=user.username,
            amount=amount,
            network=network,
            phone_number=phone_number,
            status=RequestStatus.PENDING.value,
        )
        self.session.add(request)
        await self.session.flush()

        hold = await self.wallet.hold(
            user.id,
            amount,
            TransactionType.MOBILE_LOAD,
            description=f"Hold for Mobile Load to {phone_number}",
            related_request_id=request.id,
        )
        request.hold_transaction_id = hold.id
        await self.session.flush()
        return request

    async def approve_mobile_load(self, request_id: str, admin_id: str | None = None) -> MobileLoadRequest:
        request = await self._claim_pending(
            MobileLoadRequest, request_id, RequestStatus.COMPLETED, admin_id
        )
        await self.wallet.settle_hold(
            request.hold_transaction_id,
            TransactionStatus.COMPLETED,
            f"Mobile Load to {request.phone_number} completed.",
        )
        await self.notifications.notify(
            request.user_id,
            f"Your mobile load of {settings.currency_label} {to_money(request.amount)} "
            f"to {request.phone_number} is complete.",
            title="Mobile load sent",
        )
        return request

    async def reject_mobile_load(
        self,
        request_id: str,
        admin_id: str | None = None,
        notes: str | None = None,
    ) -> MobileLoadRequest:
        request = await self._claim_pending(
            MobileLoadRequest, request_id, RequestStatus.REJECTED, admin_id, notes
        )
        await self.wallet.settle_hold(
            request.hold_transaction_id,
            TransactionStatus.REJECTED,
            f"Mobile Load request to {request.phone_number} rejected.",
        )
        await self.wallet.credit(
            request.user_id,
            request.amount,
            TransactionType.REFUND,
            description=f"Refund for rejected Mobile Load to {request.phone_number}",
            related_request_id=request.id,
        )
        return request

    async def list_mobile_loads(
        self,
        *,
        status: RequestStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[MobileLoadRequest]:
        query = select(MobileLoadRequest)
        if status:
            query = query.where(MobileLoadRequest.status == status.value)
        query = query.order_by(MobileLoadRequest.requested_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())
