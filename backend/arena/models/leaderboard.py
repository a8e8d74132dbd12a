"""Leaderboard entries, keyed by in-game uid."""

from decimal import Decimal

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from arena.models.base import MONEY, Base, TimestampMixin


class LeaderboardEntry(Base, TimestampMixin):
    __tablename__ = "leaderboard_entries"

    game_uid: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    in_game_name: Mapped[str] = mapped_column(String(64), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    kills: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    wins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    earnings: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)

    def __repr__(self) -> str:
        return f"<LeaderboardEntry {self.game_uid} kills={self.kills}>"
