"""Referral endpoints."""

from fastapi import APIRouter

from arena.api.deps import CurrentUser, DbSession
from arena.schemas import (
    ApplyReferralRequest,
    ErrorResponse,
    ReferralResult,
    ReferralStatsResponse,
)
from arena.services.referral import ReferralService

router = APIRouter(prefix="/referral", tags=["Referral"])


@router.get("/stats", response_model=ReferralStatsResponse)
async def get_referral_stats(current_user: CurrentUser, db: DbSession):
    """Own referral code, friends referred and commissions earned."""
    return await ReferralService(db).get_referral_stats(current_user)


@router.post(
    "/signup",
    response_model=ReferralResult,
    responses={
        400: {"model": ErrorResponse, "description": "Own code"},
        404: {"model": ErrorResponse, "description": "Unknown code"},
        409: {"model": ErrorResponse, "description": "A code was already applied"},
    },
)
async def apply_referral(
    request_body: ApplyReferralRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Apply a friend's code after signing up."""
    return await ReferralService(db).apply_referral(current_user, request_body.referral_code)
