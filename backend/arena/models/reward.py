"""Daily login reward claims and offer wall completions."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from arena.models.base import MONEY, Base, UTCDateTime, UUIDMixin, utcnow


class DailyRewardClaim(Base, UUIDMixin):
    """One claimed daily login reward."""

    __tablename__ = "daily_reward_claims"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Calendar day in the reward timezone
    claim_date: Mapped[date] = mapped_column(Date, nullable=False)
    streak_day: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "claim_date", name="uq_daily_reward_user_date"),
        Index("ix_daily_reward_user_date", "user_id", "claim_date"),
    )


class CpaOfferCompletion(Base, UUIDMixin):
    """An offer wall task a user finished, reported by the network postback."""

    __tablename__ = "cpa_offer_completions"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    offer_url_id: Mapped[str] = mapped_column(String(100), nullable=False)
    offer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "offer_url_id", name="uq_cpa_offer_user"),
    )
