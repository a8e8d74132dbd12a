"""Payout requests: cash withdrawals and mobile balance loads."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from arena.models.base import MONEY, Base, TimestampMixin, UTCDateTime, UUIDMixin, utcnow


class RequestStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class WithdrawRequest(Base, UUIDMixin, TimestampMixin):
    """Withdrawal request. The amount is held from the wallet until processed."""

    __tablename__ = "withdraw_requests"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    method: Mapped[str] = mapped_column(String(50), nullable=False)
    account_number: Mapped[str] = mapped_column(String(64), nullable=False)
    account_name: Mapped[str] = mapped_column(String(100), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=RequestStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    requested_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    processed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    processed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    hold_transaction_id: Mapped[str | None] = mapped_column(String(36), nullable=True)


class MobileLoadRequest(Base, UUIDMixin, TimestampMixin):
    """Mobile airtime load request, paid from the wallet."""

    __tablename__ = "mobile_load_requests"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    network: Mapped[str] = mapped_column(String(30), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(30), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=RequestStatus.PENDING.value,
        nullable=False,
        index=True,
    )
    requested_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    processed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    processed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    hold_transaction_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
