"""Mini-game schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import Field

from arena.engine.duel import Move
from arena.models.wallet import Currency
from arena.schemas.common import BaseSchema, Money


class SpinRequest(BaseSchema):
    bet_amount: Decimal = Field(..., gt=0)
    currency: Currency = Currency.PKR


class SpinSegment(BaseSchema):
    label: str
    multiplier: float
    color: str
    weight: float


class SpinResponse(BaseSchema):
    multiplier: float
    prize_amount: Money
    segment_index: int
    winning_label: str
    segments: list[SpinSegment]
    currency: Currency


class DragonTigerBets(BaseSchema):
    dragon: Decimal = Field(default=Decimal("0"), ge=0)
    tiger: Decimal = Field(default=Decimal("0"), ge=0)
    tie: Decimal = Field(default=Decimal("0"), ge=0)


class DragonTigerRequest(BaseSchema):
    bets: DragonTigerBets


class CardResponse(BaseSchema):
    value: str
    suit: str
    key: str


class DragonTigerResponse(BaseSchema):
    dragon_card: CardResponse
    tiger_card: CardResponse
    winner: str
    payout: Money
    winnings: Money


class DuelStartRequest(BaseSchema):
    bet_amount: Decimal = Field(..., gt=0)


class DuelRoundRequest(BaseSchema):
    move: Move


class DuelRoundLog(BaseSchema):
    round: int
    player_move: str
    bot_move: str
    winner: str
    explanation: str


class DuelResponse(BaseSchema):
    id: str
    bet: Money
    bot_username: str
    player_health: int
    bot_health: int
    round: int
    status: str
    payout: Money
    rounds_log: list[DuelRoundLog]
    created_at: datetime


class DuelRoundResponse(BaseSchema):
    match: DuelResponse
    bot_move: str
    round_winner: str
    explanation: str
