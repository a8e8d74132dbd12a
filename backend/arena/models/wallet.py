"""Wallet transaction ledger.

Every balance change writes one WalletTransaction. Amounts are signed:
positive for income, negative for expense.
"""

from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arena.models.base import MONEY, Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from arena.models.user import User


class Currency(str, Enum):
    """Balances a user holds."""

    PKR = "pkr"
    TOKEN = "token"


class TransactionType(str, Enum):
    """Transaction types for wallet operations."""

    TOPUP = "topup"
    WITHDRAWAL = "withdrawal"
    ENTRY_FEE = "entry_fee"
    PRIZE = "prize"
    REDEEM_CODE = "redeem_code"
    REFERRAL_BONUS_RECEIVED = "referral_bonus_received"
    REFERRAL_COMMISSION_EARNED = "referral_commission_earned"
    REFUND = "refund"
    SHOP_PURCHASE_HOLD = "shop_purchase_hold"
    SHOP_PURCHASE_COMPLETE = "shop_purchase_complete"
    SPIN_WHEEL_BET = "spin_wheel_bet"
    SPIN_WHEEL_WIN = "spin_wheel_win"
    DRAGON_TIGER_BET = "dragon_tiger_bet"
    DRAGON_TIGER_WIN = "dragon_tiger_win"
    DUEL_BET = "duel_bet"
    DUEL_WIN = "duel_win"
    DAILY_LOGIN_REWARD = "daily_login_reward"
    CPA_GRIP_REWARD = "cpa_grip_reward"
    MOBILE_LOAD = "mobile_load"
    ADMIN_ADJUSTMENT = "admin_adjustment"


class TransactionStatus(str, Enum):
    """Transaction lifecycle status."""

    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"
    ON_HOLD = "on_hold"
    REFUNDED = "refunded"


class WalletTransaction(Base, UUIDMixin, TimestampMixin):
    """Wallet transaction record."""

    __tablename__ = "wallet_transactions"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tx_type: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20),
        default=TransactionStatus.COMPLETED.value,
        nullable=False,
        index=True,
    )
    currency: Mapped[str] = mapped_column(
        String(10),
        default=Currency.PKR.value,
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    balance_before: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    balance_after: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Links back to whatever caused the movement
    related_tournament_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    related_request_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    related_product_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    # SHA-256 over the balance movement
    integrity_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="transactions")

    __table_args__ = (
        Index("ix_wallet_tx_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<WalletTransaction {self.id[:8]}... type={self.tx_type} amount={self.amount}>"
