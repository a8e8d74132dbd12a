"""Back-office endpoints.

Admin only: users, balances, settings, redeem codes and messages.
Admins or delegates granted the screen: withdrawals and mobile loads.
"""

from decimal import Decimal
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, status

from arena.api.deps import AdminUser, DbSession, TraceId, require_screen
from arena.logging_config import get_logger
from arena.middleware.sentry import capture_financial_error
from arena.models.notification import NotificationType
from arena.models.user import DelegateScreen, User, UserRole
from arena.models.withdrawal import RequestStatus
from arena.schemas import (
    BalanceAdjustRequest,
    ErrorResponse,
    FeeRecipient,
    MobileLoadResponse,
    PaginationMeta,
    ProcessRequest,
    ProcessRequestResponse,
    TransactionResponse,
    UserResponse,
    WithdrawRequestResponse,
)
from arena.schemas.admin import InactivityRunResponse, RoleUpdate, StatusUpdate, UserListResponse
from arena.schemas.notification import AdminMessageRequest, NotificationResponse
from arena.schemas.rewards import RedeemCodeCreate, RedeemCodeResponse
from arena.services.notification import NotificationService
from arena.services.redeem import RedeemService
from arena.services.settings import SettingsService
from arena.services.users import UserService
from arena.services.wallet import WalletService
from arena.services.withdrawal import WithdrawalError, WithdrawalService
from arena.utils.errors import ArenaError, ErrorCode

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = get_logger(__name__)

WithdrawalStaff = Annotated[User, Depends(require_screen(DelegateScreen.WITHDRAWALS))]
MobileLoadStaff = Annotated[User, Depends(require_screen(DelegateScreen.MOBILE_LOADS))]


# =============================================================================
# Users
# =============================================================================


@router.get("/users", response_model=UserListResponse)
async def list_users(
    admin: AdminUser,
    db: DbSession,
    search: str | None = Query(default=None, max_length=100),
    role: UserRole | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    users, total = await UserService(db).list_users(
        search=search, role=role, limit=limit, offset=offset
    )
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        pagination=PaginationMeta(limit=limit, offset=offset, total=total),
    )


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def update_role(
    user_id: str,
    request_body: RoleUpdate,
    admin: AdminUser,
    db: DbSession,
    trace_id: TraceId,
):
    """Change a user's role; delegates also get their screen permissions."""
    user = await UserService(db).set_role(user_id, request_body.role, request_body.permissions)
    logger.info(
        "user_role_changed",
        admin_id=admin.id,
        user_id=user_id,
        role=request_body.role.value,
        trace_id=trace_id,
    )
    return user


@router.patch("/users/{user_id}/status", response_model=UserResponse)
async def update_status(
    user_id: str,
    request_body: StatusUpdate,
    admin: AdminUser,
    db: DbSession,
):
    return await UserService(db).set_status(user_id, request_body.status)


@router.post(
    "/users/{user_id}/balance",
    response_model=TransactionResponse,
    responses={400: {"model": ErrorResponse, "description": "Would overdraw the wallet"}},
)
async def adjust_balance(
    user_id: str,
    request_body: BalanceAdjustRequest,
    admin: AdminUser,
    db: DbSession,
    trace_id: TraceId,
):
    """Credit (positive) or debit (negative) a wallet by hand."""
    tx = await WalletService(db).adjust_balance(
        user_id, request_body.amount, request_body.note, request_body.currency
    )
    logger.info(
        "balance_adjusted",
        admin_id=admin.id,
        user_id=user_id,
        amount=str(request_body.amount),
        currency=request_body.currency.value,
        trace_id=trace_id,
    )
    return tx


@router.post("/users/suspend-inactive", response_model=InactivityRunResponse)
async def suspend_inactive_users(admin: AdminUser, db: DbSession):
    """Run the inactivity policy now instead of waiting for the daily job."""
    return InactivityRunResponse(suspended=await UserService(db).apply_inactivity_policy())


@router.post("/messages", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def send_message(request_body: AdminMessageRequest, admin: AdminUser, db: DbSession):
    await UserService(db).get(request_body.user_id)
    return await NotificationService(db).notify(
        request_body.user_id,
        request_body.message,
        title=request_body.title,
        type=NotificationType.ADMIN_MESSAGE,
        link=request_body.link,
    )


# =============================================================================
# Settings
# =============================================================================


@router.get("/settings/{section}")
async def get_settings_section(section: str, admin: AdminUser, db: DbSession) -> dict[str, Any]:
    value = await SettingsService(db).get(section)
    return value.model_dump(mode="json", by_alias=True)


@router.put(
    "/settings/{section}",
    responses={
        400: {"model": ErrorResponse, "description": "Values fail validation"},
        404: {"model": ErrorResponse, "description": "Unknown section"},
    },
)
async def update_settings_section(
    section: str,
    admin: AdminUser,
    db: DbSession,
    data: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """Save a section. Keys may be camelCase or snake_case; omitted keys keep their value."""
    value = await SettingsService(db).update(section, data, updated_by=admin.id)
    return value.model_dump(mode="json", by_alias=True)


# =============================================================================
# Redeem codes
# =============================================================================


@router.get("/redeem-codes", response_model=list[RedeemCodeResponse])
async def list_redeem_codes(
    admin: AdminUser,
    db: DbSession,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    return await RedeemService(db).list_codes(limit=limit, offset=offset)


@router.post(
    "/redeem-codes",
    response_model=RedeemCodeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse, "description": "Code exists"}},
)
async def create_redeem_code(request_body: RedeemCodeCreate, admin: AdminUser, db: DbSession):
    return await RedeemService(db).create_code(
        request_body.code, request_body.amount, request_body.max_uses, created_by=admin.id
    )


@router.post("/redeem-codes/{code_id}/deactivate", response_model=RedeemCodeResponse)
async def deactivate_redeem_code(code_id: str, admin: AdminUser, db: DbSession):
    return await RedeemService(db).deactivate(code_id)


# =============================================================================
# Withdrawals and mobile loads
# =============================================================================


@router.get("/withdrawals", response_model=list[WithdrawRequestResponse])
async def list_withdrawals(
    staff: WithdrawalStaff,
    db: DbSession,
    request_status: RequestStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    return await WithdrawalService(db).list_withdrawals(
        status=request_status, limit=limit, offset=offset
    )


@router.post(
    "/process-withdrawal",
    response_model=ProcessRequestResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Request not found"},
        409: {"model": ErrorResponse, "description": "Already processed"},
    },
)
async def process_withdrawal(
    request_body: ProcessRequest,
    staff: WithdrawalStaff,
    db: DbSession,
    trace_id: TraceId,
):
    """Approve, reject, or look up who receives the withdrawal fee."""
    service = WithdrawalService(db)
    if request_body.action == "get_recipient":
        recipient = await service.get_fee_recipient_for(request_body.request_id)
        return ProcessRequestResponse(
            recipient=FeeRecipient.model_validate(recipient) if recipient else None
        )

    try:
        if request_body.action == "approved":
            result = await service.approve(request_body.request_id, staff.id)
        else:
            result = await service.reject(request_body.request_id, staff.id, request_body.notes)
    except ArenaError:
        raise
    except Exception as e:
        capture_financial_error(
            e,
            user_id=staff.id,
            transaction_type=f"withdrawal_{request_body.action}",
            amount=Decimal("0"),
            extra={"request_id": request_body.request_id, "trace_id": trace_id},
        )
        raise

    logger.info(
        "withdrawal_processed",
        staff_id=staff.id,
        request_id=request_body.request_id,
        action=request_body.action,
        trace_id=trace_id,
    )
    return ProcessRequestResponse(**result)


@router.get("/mobile-loads", response_model=list[MobileLoadResponse])
async def list_mobile_loads(
    staff: MobileLoadStaff,
    db: DbSession,
    request_status: RequestStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
):
    return await WithdrawalService(db).list_mobile_loads(
        status=request_status, limit=limit, offset=offset
    )


@router.post("/process-mobile-load", response_model=MobileLoadResponse)
async def process_mobile_load(
    request_body: ProcessRequest,
    staff: MobileLoadStaff,
    db: DbSession,
):
    service = WithdrawalService(db)
    if request_body.action == "approved":
        return await service.approve_mobile_load(request_body.request_id, staff.id)
    if request_body.action == "rejected":
        return await service.reject_mobile_load(
            request_body.request_id, staff.id, request_body.notes
        )
    raise WithdrawalError(
        ErrorCode.INVALID_REQUEST,
        "Mobile loads carry no fee recipient",
        {"action": request_body.action},
    )
