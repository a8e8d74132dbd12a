"""Tournament endpoints for players and staff."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from arena.api.deps import CurrentUser, DbSession, OptionalUser, TraceId, require_screen
from arena.logging_config import get_logger
from arena.models.tournament import Tournament, TournamentStatus
from arena.models.user import DelegateScreen, User
from arena.schemas import ErrorResponse, SuccessResponse
from arena.schemas.admin import CancelTournamentResponse
from arena.schemas.tournament import (
    JoinTournamentRequest,
    LeaderboardRow,
    PostResultsRequest,
    PostResultsResponse,
    TournamentCreate,
    TournamentDetailResponse,
    TournamentEntryResponse,
    TournamentResponse,
    TournamentUpdate,
)
from arena.services.leaderboard import LeaderboardService
from arena.services.tournament import TournamentService

router = APIRouter(prefix="/tournaments", tags=["Tournaments"])
admin_router = APIRouter(prefix="/admin/tournaments", tags=["Admin - Tournaments"])
leaderboard_router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])
logger = get_logger(__name__)

TournamentStaff = Annotated[User, Depends(require_screen(DelegateScreen.TOURNAMENTS))]
ResultsStaff = Annotated[User, Depends(require_screen(DelegateScreen.RESULTS))]

_ROOM_FIELDS = {"room_id": None, "room_password": None}


def _public(tournament: Tournament) -> TournamentResponse:
    return TournamentResponse.model_validate(tournament).model_copy(update=_ROOM_FIELDS)


@router.get("", response_model=list[TournamentResponse])
async def list_tournaments(
    db: DbSession,
    tournament_status: TournamentStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    """List tournaments. Room credentials are only shown on the detail page."""
    tournaments = await TournamentService(db).list_tournaments(
        tournament_status, limit=limit, offset=offset
    )
    return [_public(t) for t in tournaments]


@router.get(
    "/{tournament_id}",
    response_model=TournamentDetailResponse,
    responses={404: {"model": ErrorResponse, "description": "Tournament not found"}},
)
async def get_tournament(tournament_id: str, db: DbSession, current_user: OptionalUser):
    """Tournament with its entries and results.

    Room id and password are hidden unless the caller joined or is staff.
    """
    service = TournamentService(db)
    tournament = await service.get(tournament_id, with_entries=True)
    joined = current_user is not None and any(
        entry.user_id == current_user.id for entry in tournament.entries
    )
    detail = TournamentDetailResponse.model_validate(tournament)
    detail.is_joined = joined
    staff = current_user is not None and current_user.can_access(DelegateScreen.TOURNAMENTS)
    if not (joined or staff):
        detail = detail.model_copy(update=_ROOM_FIELDS)
    return detail


@router.post(
    "/{tournament_id}/join",
    response_model=TournamentEntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Not open, bad team or low balance"},
        409: {"model": ErrorResponse, "description": "Full or already joined"},
    },
)
async def join_tournament(
    tournament_id: str,
    request_body: JoinTournamentRequest,
    current_user: CurrentUser,
    db: DbSession,
    trace_id: TraceId,
):
    entry = await TournamentService(db).join(tournament_id, current_user, request_body)
    logger.info(
        "tournament_joined",
        tournament_id=tournament_id,
        user_id=current_user.id,
        trace_id=trace_id,
    )
    return entry


@leaderboard_router.get("", response_model=list[LeaderboardRow])
async def get_leaderboard(
    db: DbSession,
    limit: int = Query(default=100, ge=1, le=500),
):
    """Players ranked by total kills."""
    rows = await LeaderboardService(db).top(limit)
    return [
        LeaderboardRow(
            rank=rank,
            game_uid=entry.game_uid,
            username=entry.username,
            in_game_name=entry.in_game_name,
            avatar_url=entry.avatar_url,
            kills=entry.kills,
            wins=entry.wins,
            earnings=entry.earnings,
        )
        for rank, entry in rows
    ]


# =============================================================================
# Staff
# =============================================================================


@admin_router.post("", response_model=TournamentResponse, status_code=status.HTTP_201_CREATED)
async def create_tournament(
    request_body: TournamentCreate,
    staff: TournamentStaff,
    db: DbSession,
):
    return await TournamentService(db).create(request_body, created_by=staff.id)


@admin_router.patch("/{tournament_id}", response_model=TournamentResponse)
async def update_tournament(
    tournament_id: str,
    request_body: TournamentUpdate,
    staff: TournamentStaff,
    db: DbSession,
):
    return await TournamentService(db).update(tournament_id, request_body)


@admin_router.delete("/{tournament_id}", response_model=SuccessResponse)
async def delete_tournament(tournament_id: str, staff: TournamentStaff, db: DbSession):
    await TournamentService(db).delete(tournament_id)
    return SuccessResponse(message="Tournament deleted")


@admin_router.post("/{tournament_id}/cancel", response_model=CancelTournamentResponse)
async def cancel_tournament(tournament_id: str, staff: TournamentStaff, db: DbSession):
    """Cancel an upcoming tournament and refund its entry fees."""
    return await TournamentService(db).cancel(tournament_id)


@admin_router.post("/{tournament_id}/results", response_model=PostResultsResponse)
async def post_results(
    tournament_id: str,
    request_body: PostResultsRequest,
    staff: ResultsStaff,
    db: DbSession,
    trace_id: TraceId,
):
    """Post or correct results. Only differences from earlier postings are applied."""
    result = await TournamentService(db).post_results(tournament_id, request_body.results)
    logger.info(
        "tournament_results_posted",
        tournament_id=tournament_id,
        staff_id=staff.id,
        processed=result["processed"],
        trace_id=trace_id,
    )
    return result
