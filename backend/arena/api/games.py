"""Mini-game endpoints: Spin the Wheel, Dragon vs Tiger and duels."""

from fastapi import APIRouter, Query, status

from arena.api.deps import CurrentUser, DbSession
from arena.engine.dragon_tiger import Bets
from arena.schemas import ErrorResponse
from arena.schemas.games import (
    DragonTigerRequest,
    DragonTigerResponse,
    DuelResponse,
    DuelRoundRequest,
    DuelRoundResponse,
    DuelStartRequest,
    SpinRequest,
    SpinResponse,
)
from arena.services.games import GameService

router = APIRouter(prefix="/games", tags=["Games"])

_GAME_ERRORS = {
    400: {"model": ErrorResponse, "description": "Invalid bet or low balance"},
    403: {"model": ErrorResponse, "description": "Game disabled"},
}


@router.post("/spin-wheel", response_model=SpinResponse, responses=_GAME_ERRORS)
async def spin_wheel(request_body: SpinRequest, current_user: CurrentUser, db: DbSession):
    return await GameService(db).spin_wheel(
        current_user, request_body.bet_amount, request_body.currency
    )


@router.post("/dragon-tiger", response_model=DragonTigerResponse, responses=_GAME_ERRORS)
async def dragon_tiger(
    request_body: DragonTigerRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    bets = Bets(
        dragon=request_body.bets.dragon,
        tiger=request_body.bets.tiger,
        tie=request_body.bets.tie,
    )
    return await GameService(db).dragon_tiger(current_user, bets)


@router.post(
    "/duels",
    response_model=DuelResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_GAME_ERRORS,
)
async def start_duel(request_body: DuelStartRequest, current_user: CurrentUser, db: DbSession):
    """Hold the bet and open a match against a bot."""
    return await GameService(db).start_duel(current_user, request_body.bet_amount)


@router.get("/duels", response_model=list[DuelResponse])
async def list_duels(
    current_user: CurrentUser,
    db: DbSession,
    limit: int = Query(default=20, ge=1, le=100),
):
    return await GameService(db).list_duels(current_user, limit=limit)


@router.get("/duels/{match_id}", response_model=DuelResponse)
async def get_duel(match_id: str, current_user: CurrentUser, db: DbSession):
    return await GameService(db).get_duel(current_user, match_id)


@router.post(
    "/duels/{match_id}/round",
    response_model=DuelRoundResponse,
    responses={409: {"model": ErrorResponse, "description": "Duel already finished"}},
)
async def play_duel_round(
    match_id: str,
    request_body: DuelRoundRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    return await GameService(db).play_duel_round(current_user, match_id, request_body.move)
