"""Wallet endpoints: balances, history and payout requests."""

from fastapi import APIRouter, Query, status

from arena.api.deps import CurrentUser, DbSession, TraceId
from arena.logging_config import get_logger
from arena.models.wallet import TransactionType
from arena.schemas import (
    BalanceResponse,
    ErrorResponse,
    MobileLoadCreate,
    MobileLoadResponse,
    PaginatedResponse,
    PaginationMeta,
    TransactionResponse,
    WithdrawalCreate,
    WithdrawRequestResponse,
)
from arena.services.wallet import WalletService
from arena.services.withdrawal import WithdrawalService

router = APIRouter(prefix="/wallet", tags=["Wallet"])
logger = get_logger(__name__)


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(current_user: CurrentUser):
    return BalanceResponse(wallet=current_user.wallet, token_wallet=current_user.token_wallet)


@router.get("/transactions", response_model=PaginatedResponse[TransactionResponse])
async def list_transactions(
    current_user: CurrentUser,
    db: DbSession,
    tx_type: TransactionType | None = Query(default=None, alias="type"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    items, total = await WalletService(db).list_transactions(
        current_user.id, limit=limit, offset=offset, tx_type=tx_type
    )
    return PaginatedResponse[TransactionResponse](
        items=[TransactionResponse.model_validate(tx) for tx in items],
        pagination=PaginationMeta(limit=limit, offset=offset, total=total),
    )


@router.post(
    "/request-withdrawal",
    response_model=WithdrawRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Missing fields, below minimum or low balance"},
        423: {"model": ErrorResponse, "description": "Wallet busy"},
    },
)
async def request_withdrawal(
    request_body: WithdrawalCreate,
    current_user: CurrentUser,
    db: DbSession,
    trace_id: TraceId,
):
    """Request a payout. The amount is held until an admin processes it."""
    request = await WithdrawalService(db).request_withdrawal(
        current_user,
        request_body.amount,
        request_body.method,
        request_body.account_number,
        request_body.account_name,
    )
    logger.info(
        "withdrawal_requested",
        user_id=current_user.id,
        request_id=request.id,
        amount=str(request.amount),
        trace_id=trace_id,
    )
    return request


@router.get("/withdrawals", response_model=list[WithdrawRequestResponse])
async def my_withdrawals(
    current_user: CurrentUser,
    db: DbSession,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    return await WithdrawalService(db).list_withdrawals(
        user_id=current_user.id, limit=limit, offset=offset
    )


@router.post(
    "/mobile-load",
    response_model=MobileLoadResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Invalid request"}},
)
async def request_mobile_load(
    request_body: MobileLoadCreate,
    current_user: CurrentUser,
    db: DbSession,
):
    """Request mobile credit paid from the wallet."""
    return await WithdrawalService(db).request_mobile_load(
        current_user,
        request_body.amount,
        request_body.network,
        request_body.phone_number,
    )
