"""Pydantic schemas for API requests and responses."""

from arena.schemas.auth import (
    ApplyReferralRequest,
    AuthResponse,
    LoginRequest,
    LogoutRequest,
    ReferralResult,
    ReferralStatsResponse,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
    UserProfileUpdate,
    UserResponse,
)
from arena.schemas.common import (
    BaseSchema,
    ErrorDetail,
    ErrorResponse,
    Money,
    PaginatedResponse,
    PaginationMeta,
    SuccessResponse,
)
from arena.schemas.wallet import (
    BalanceAdjustRequest,
    BalanceResponse,
    FeeRecipient,
    MobileLoadCreate,
    MobileLoadResponse,
    ProcessRequest,
    ProcessRequestResponse,
    TransactionResponse,
    WithdrawalCreate,
    WithdrawRequestResponse,
)

__all__ = [
    # Common
    "BaseSchema",
    "ErrorDetail",
    "ErrorResponse",
    "Money",
    "PaginatedResponse",
    "PaginationMeta",
    "SuccessResponse",
    # Auth
    "ApplyReferralRequest",
    "AuthResponse",
    "LoginRequest",
    "LogoutRequest",
    "ReferralResult",
    "ReferralStatsResponse",
    "RefreshTokenRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserProfileUpdate",
    "UserResponse",
    # Wallet
    "BalanceAdjustRequest",
    "BalanceResponse",
    "FeeRecipient",
    "MobileLoadCreate",
    "MobileLoadResponse",
    "ProcessRequest",
    "ProcessRequestResponse",
    "TransactionResponse",
    "WithdrawalCreate",
    "WithdrawRequestResponse",
]
