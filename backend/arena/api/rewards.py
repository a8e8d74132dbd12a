"""Daily login rewards and redeem codes."""

from fastapi import APIRouter

from arena.api.deps import CurrentUser, DbSession, TraceId
from arena.logging_config import get_logger
from arena.schemas import ErrorResponse
from arena.schemas.rewards import (
    DailyRewardClaimResponse,
    DailyRewardStatus,
    RedeemRequest,
    RedeemResponse,
)
from arena.services.daily_reward import DailyRewardService
from arena.services.redeem import RedeemService

router = APIRouter(prefix="/rewards", tags=["Rewards"])
logger = get_logger(__name__)


@router.get("/daily", response_model=DailyRewardStatus)
async def daily_status(current_user: CurrentUser, db: DbSession):
    """Whether today's reward can be claimed and what it pays."""
    return await DailyRewardService(db).status(current_user)


@router.post(
    "/daily/claim",
    response_model=DailyRewardClaimResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Daily rewards disabled"},
        409: {"model": ErrorResponse, "description": "Already claimed today"},
    },
)
async def claim_daily(current_user: CurrentUser, db: DbSession, trace_id: TraceId):
    result = await DailyRewardService(db).claim(current_user)
    logger.info(
        "daily_reward_claimed",
        user_id=current_user.id,
        day=result["day"],
        amount=str(result["amount"]),
        trace_id=trace_id,
    )
    return result


@router.post(
    "/redeem",
    response_model=RedeemResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Usage limit reached"},
        403: {"model": ErrorResponse, "description": "Inactive code or feature disabled"},
        404: {"model": ErrorResponse, "description": "Unknown code"},
        409: {"model": ErrorResponse, "description": "Already redeemed"},
    },
)
async def redeem_code(request_body: RedeemRequest, current_user: CurrentUser, db: DbSession):
    return await RedeemService(db).redeem(current_user, request_body.code)
