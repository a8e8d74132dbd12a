"""Tournament and leaderboard schemas."""

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import Field, field_validator, model_validator

from arena.models.tournament import TournamentMode, TournamentStatus
from arena.schemas.common import BaseSchema, Money


def _as_utc(value: datetime | None) -> datetime | None:
    """Naive datetimes from clients are taken as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TournamentCreate(BaseSchema):
    name: str = Field(..., min_length=3, max_length=150)
    game: str = Field(..., min_length=1, max_length=50)
    mode: TournamentMode = TournamentMode.SOLO
    custom_team_size: int | None = Field(default=None, ge=1, le=4)
    entry_fee: Money = Field(default=Decimal("0"), ge=0)
    prize_pool: Money = Field(default=Decimal("0"), ge=0)
    per_kill_reward: Money = Field(default=Decimal("0"), ge=0)
    max_players: int = Field(..., ge=2, le=1000)
    start_time: datetime
    map_name: str | None = None
    room_id: str | None = None
    room_password: str | None = None
    youtube_live_url: str | None = None
    rules: str | None = None
    banner_image_url: str | None = None

    @field_validator("start_time")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @model_validator(mode="after")
    def custom_needs_size(self) -> "TournamentCreate":
        if self.mode == TournamentMode.CUSTOM and not self.custom_team_size:
            raise ValueError("custom_team_size is required for Custom mode")
        return self


class TournamentUpdate(BaseSchema):
    name: str | None = Field(default=None, min_length=3, max_length=150)
    game: str | None = None
    mode: TournamentMode | None = None
    custom_team_size: int | None = Field(default=None, ge=1, le=4)
    entry_fee: Money | None = Field(default=None, ge=0)
    prize_pool: Money | None = Field(default=None, ge=0)
    per_kill_reward: Money | None = Field(default=None, ge=0)
    max_players: int | None = Field(default=None, ge=2, le=1000)
    status: TournamentStatus | None = None
    start_time: datetime | None = None
    map_name: str | None = None
    room_id: str | None = None
    room_password: str | None = None
    youtube_live_url: str | None = None
    rules: str | None = None
    banner_image_url: str | None = None

    @field_validator("start_time")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


class TeamMember(BaseSchema):
    game_name: str = Field(..., min_length=1, max_length=64)
    game_uid: str = Field(..., min_length=1, max_length=64)


class JoinTournamentRequest(BaseSchema):
    game_name: str | None = Field(default=None, max_length=64)
    game_uid: str | None = Field(default=None, max_length=64)
    team_members: list[TeamMember] = Field(default_factory=list)


class PlayerResultInput(BaseSchema):
    game_uid: str | None = None
    game_name: str | None = None
    kills: int = Field(default=0, ge=0)
    prize: Money = Field(default=Decimal("0"), ge=0)
    position: int | None = Field(default=None, ge=1)


class PostResultsRequest(BaseSchema):
    results: list[PlayerResultInput]


class TournamentResponse(BaseSchema):
    id: str
    name: str
    game: str
    mode: str
    custom_team_size: int | None = None
    entry_fee: Money
    prize_pool: Money
    per_kill_reward: Money
    max_players: int
    joined_players: int
    status: str
    start_time: datetime
    map_name: str | None = None
    youtube_live_url: str | None = None
    rules: str | None = None
    banner_image_url: str | None = None
    results_posted: bool
    created_at: datetime
    # Only filled for players who joined, and for staff
    room_id: str | None = None
    room_password: str | None = None


class TournamentEntryResponse(BaseSchema):
    user_id: str
    username: str
    game_uid: str
    game_name: str
    kills: int
    team_members: list[TeamMember]
    joined_at: datetime


class TournamentResultResponse(BaseSchema):
    game_uid: str
    user_id: str | None = None
    game_name: str | None = None
    kills: int
    position: int | None = None
    earnings: Money


class TournamentDetailResponse(TournamentResponse):
    is_joined: bool = False
    entries: list[TournamentEntryResponse] = Field(default_factory=list)
    results: list[TournamentResultResponse] = Field(default_factory=list)


class PostResultsResponse(BaseSchema):
    processed: int
    skipped: int
    prize_total: Money


class LeaderboardRow(BaseSchema):
    rank: int
    game_uid: str
    username: str
    in_game_name: str
    avatar_url: str | None = None
    kills: int
    wins: int
    earnings: Money
