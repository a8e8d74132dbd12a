"""Tournament, entry and result models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import JSON, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arena.models.base import MONEY, Base, TimestampMixin, UTCDateTime, UUIDMixin, utcnow


class TournamentMode(str, Enum):
    SOLO = "Solo"
    DUO = "Duo"
    SQUAD = "Squad"
    CUSTOM = "Custom"


class TournamentStatus(str, Enum):
    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"
    ARCHIVED = "archived"
    CANCELLED = "cancelled"


class Tournament(Base, UUIDMixin, TimestampMixin):
    """A scheduled match players pay to enter."""

    __tablename__ = "tournaments"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    game: Mapped[str] = mapped_column(String(50), nullable=False)
    mode: Mapped[str] = mapped_column(String(10), default=TournamentMode.SOLO.value, nullable=False)
    custom_team_size: Mapped[int | None] = mapped_column(Integer, nullable=True)

    entry_fee: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    prize_pool: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    per_kill_reward: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)

    max_players: Mapped[int] = mapped_column(Integer, nullable=False)
    joined_players: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        default=TournamentStatus.UPCOMING.value,
        nullable=False,
        index=True,
    )
    start_time: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)

    map_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    room_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    room_password: Mapped[str | None] = mapped_column(String(64), nullable=True)
    youtube_live_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    rules: Mapped[str | None] = mapped_column(Text, nullable=True)
    banner_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    results_posted: Mapped[bool] = mapped_column(default=False, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    entries: Mapped[list["TournamentEntry"]] = relationship(
        "TournamentEntry",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="TournamentEntry.joined_at",
    )
    results: Mapped[list["TournamentResult"]] = relationship(
        "TournamentResult",
        back_populates="tournament",
        cascade="all, delete-orphan",
    )

    @property
    def teammate_range(self) -> tuple[int, int]:
        """(min, max) teammates a player lists on joining, besides themselves.

        Custom mode lets the player pick how many teammates they bring, up to
        ``custom_team_size - 1`` (3 when unset).
        """
        if self.mode == TournamentMode.DUO.value:
            return 1, 1
        if self.mode == TournamentMode.SQUAD.value:
            return 3, 3
        if self.mode == TournamentMode.CUSTOM.value:
            upper = (self.custom_team_size - 1) if self.custom_team_size else 3
            return 0, max(upper, 0)
        return 0, 0

    @property
    def is_full(self) -> bool:
        return self.joined_players >= self.max_players

    def __repr__(self) -> str:
        return f"<Tournament {self.name} status={self.status}>"


class TournamentEntry(Base, UUIDMixin):
    """A user's registration in a tournament."""

    __tablename__ = "tournament_entries"

    tournament_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    game_uid: Mapped[str] = mapped_column(String(64), nullable=False)
    game_name: Mapped[str] = mapped_column(String(64), nullable=False)
    kills: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # [{"game_name": ..., "game_uid": ...}]
    team_members: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)

    tournament: Mapped["Tournament"] = relationship("Tournament", back_populates="entries")

    __table_args__ = (
        UniqueConstraint("tournament_id", "user_id", name="uq_tournament_entry_user"),
    )


class TournamentResult(Base, UUIDMixin, TimestampMixin):
    """Posted result for one player, keyed by in-game uid."""

    __tablename__ = "tournament_results"

    tournament_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tournaments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    game_uid: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    game_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    kills: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    earnings: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)

    tournament: Mapped["Tournament"] = relationship("Tournament", back_populates="results")

    __table_args__ = (
        UniqueConstraint("tournament_id", "game_uid", name="uq_tournament_result_uid"),
    )
