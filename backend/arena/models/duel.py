"""Rock-paper-scissors duel against a bot."""

from decimal import Decimal
from enum import Enum

from sqlalchemy import JSON, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from arena.models.base import MONEY, Base, TimestampMixin, UUIDMixin


class DuelStatus(str, Enum):
    ACTIVE = "active"
    WON = "won"
    LOST = "lost"


class DuelMatch(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "duel_matches"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bet: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    bot_username: Mapped[str] = mapped_column(String(50), nullable=False)
    player_health: Mapped[int] = mapped_column(Integer, nullable=False)
    bot_health: Mapped[int] = mapped_column(Integer, nullable=False)
    round: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(
        String(10),
        default=DuelStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )
    bet_transaction_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    payout: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    # [{"round", "player_move", "bot_move", "winner", "explanation"}]
    rounds_log: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
