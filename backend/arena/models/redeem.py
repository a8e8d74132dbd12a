"""Redeem code models."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from arena.models.base import MONEY, Base, TimestampMixin, UTCDateTime, UUIDMixin, utcnow


class RedeemCode(Base, UUIDMixin, TimestampMixin):
    """Promo code crediting a fixed amount, stored uppercase."""

    __tablename__ = "redeem_codes"

    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    max_uses: Mapped[int] = mapped_column(Integer, nullable=False)
    times_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)


class RedeemClaim(Base, UUIDMixin):
    __tablename__ = "redeem_claims"

    code_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("redeem_codes.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    claimed_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("code_id", "user_id", name="uq_redeem_claim_user"),
    )
