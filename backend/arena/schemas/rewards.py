"""Daily reward, redeem code and offer wall schemas."""

from datetime import datetime

from pydantic import Field

from arena.schemas.common import BaseSchema, Money


class DailyRewardStatus(BaseSchema):
    enabled: bool
    can_claim: bool
    day_to_claim: int
    reward: Money
    streak: int
    rewards: list[Money]


class DailyRewardClaimResponse(BaseSchema):
    day: int
    amount: Money
    heading: str
    message: str


class RedeemRequest(BaseSchema):
    code: str = Field(..., min_length=1, max_length=32)


class RedeemResponse(BaseSchema):
    code: str
    amount: Money


class RedeemCodeCreate(BaseSchema):
    code: str = Field(..., min_length=3, max_length=32)
    amount: Money = Field(..., gt=0)
    max_uses: int = Field(..., ge=1)


class RedeemCodeResponse(BaseSchema):
    id: str
    code: str
    amount: Money
    max_uses: int
    times_used: int
    is_active: bool
    created_at: datetime
