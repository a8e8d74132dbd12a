"""Authentication API endpoints."""

from fastapi import APIRouter, Request, status

from arena.api.deps import CurrentUser, DbSession, TraceId, get_client_info
from arena.logging_config import get_logger
from arena.schemas import (
    AuthResponse,
    ErrorResponse,
    LoginRequest,
    LogoutRequest,
    RefreshTokenRequest,
    RegisterRequest,
    SuccessResponse,
    TokenResponse,
    UserResponse,
)
from arena.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = get_logger(__name__)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        403: {"model": ErrorResponse, "description": "Registration disabled"},
        404: {"model": ErrorResponse, "description": "Referral code not found"},
        409: {"model": ErrorResponse, "description": "Username or email exists"},
    },
)
async def register(
    request_body: RegisterRequest,
    request: Request,
    db: DbSession,
    trace_id: TraceId,
):
    """Register a new account and log it in.

    A friend's referral code may be supplied; when it is invalid the whole
    registration fails.
    """
    client_info = get_client_info(request)
    result = await AuthService(db).register(
        username=request_body.username,
        email=request_body.email,
        password=request_body.password,
        phone=request_body.phone,
        game_uid=request_body.game_uid,
        game_name=request_body.game_name,
        referral_code=request_body.referral_code,
        user_agent=client_info["user_agent"],
        ip_address=client_info["ip_address"],
    )
    logger.info(
        "register_success",
        user_id=result["user"].id,
        referred=result["referral"] is not None,
        trace_id=trace_id,
    )
    return AuthResponse(
        user=UserResponse.model_validate(result["user"]),
        tokens=TokenResponse(**result["tokens"]),
        referral=result["referral"],
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Account inactive"},
    },
)
async def login(
    request_body: LoginRequest,
    request: Request,
    db: DbSession,
    trace_id: TraceId,
):
    """Authenticate with email and password."""
    client_info = get_client_info(request)
    result = await AuthService(db).login(
        email=request_body.email,
        password=request_body.password,
        user_agent=client_info["user_agent"],
        ip_address=client_info["ip_address"],
    )
    logger.info(
        "login_success",
        user_id=result["user"].id,
        ip_address=client_info["ip_address"],
        trace_id=trace_id,
    )
    return AuthResponse(
        user=UserResponse.model_validate(result["user"]),
        tokens=TokenResponse(**result["tokens"]),
    )


@router.post(
    "/refresh",
    response_model=TokenResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid refresh token"}},
)
async def refresh_tokens(
    request_body: RefreshTokenRequest,
    request: Request,
    db: DbSession,
):
    """Exchange a refresh token for a new token pair."""
    client_info = get_client_info(request)
    result = await AuthService(db).refresh_tokens(
        request_body.refresh_token,
        user_agent=client_info["user_agent"],
        ip_address=client_info["ip_address"],
    )
    return TokenResponse(**result["tokens"])


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    request_body: LogoutRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """End the session of the given refresh token, or every session."""
    await AuthService(db).logout(current_user.id, request_body.refresh_token)
    return SuccessResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser):
    return current_user
