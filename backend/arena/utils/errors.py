"""Base exception and error codes shared by all services.

Every service raises a subclass of :class:`ArenaError`. The API layer turns
the error code into an HTTP status with :func:`status_for_code`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes used across services."""

    # General
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    MISSING_FIELD = "MISSING_FIELD"

    # Auth
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_USERNAME_EXISTS = "AUTH_USERNAME_EXISTS"
    AUTH_EMAIL_EXISTS = "AUTH_EMAIL_EXISTS"
    AUTH_ACCOUNT_INACTIVE = "AUTH_ACCOUNT_INACTIVE"
    AUTH_REGISTRATION_DISABLED = "AUTH_REGISTRATION_DISABLED"
    AUTH_REGISTRATION_LIMIT = "AUTH_REGISTRATION_LIMIT"
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    AUTH_SESSION_NOT_FOUND = "AUTH_SESSION_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Wallet
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    WALLET_LOCKED = "WALLET_LOCKED"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"

    # Withdrawals / mobile load
    REQUEST_NOT_FOUND = "REQUEST_NOT_FOUND"
    REQUEST_ALREADY_PROCESSED = "REQUEST_ALREADY_PROCESSED"
    WITHDRAWAL_BELOW_MINIMUM = "WITHDRAWAL_BELOW_MINIMUM"

    # Referrals
    REFERRAL_CODE_NOT_FOUND = "REFERRAL_CODE_NOT_FOUND"
    REFERRAL_ALREADY_APPLIED = "REFERRAL_ALREADY_APPLIED"
    REFERRAL_SELF = "REFERRAL_SELF"

    # Tournaments
    TOURNAMENT_NOT_FOUND = "TOURNAMENT_NOT_FOUND"
    TOURNAMENT_FULL = "TOURNAMENT_FULL"
    TOURNAMENT_ALREADY_JOINED = "TOURNAMENT_ALREADY_JOINED"
    TOURNAMENT_NOT_OPEN = "TOURNAMENT_NOT_OPEN"
    TOURNAMENT_TEAM_INVALID = "TOURNAMENT_TEAM_INVALID"

    # Rewards / redeem / offers
    DAILY_REWARD_DISABLED = "DAILY_REWARD_DISABLED"
    DAILY_REWARD_ALREADY_CLAIMED = "DAILY_REWARD_ALREADY_CLAIMED"
    REDEEM_CODE_NOT_FOUND = "REDEEM_CODE_NOT_FOUND"
    REDEEM_CODE_INACTIVE = "REDEEM_CODE_INACTIVE"
    REDEEM_CODE_LIMIT_REACHED = "REDEEM_CODE_LIMIT_REACHED"
    REDEEM_CODE_ALREADY_CLAIMED = "REDEEM_CODE_ALREADY_CLAIMED"
    REDEEM_CODE_EXISTS = "REDEEM_CODE_EXISTS"
    OFFER_KEY_FORBIDDEN = "OFFER_KEY_FORBIDDEN"

    # Shop
    SHOP_ITEM_NOT_FOUND = "SHOP_ITEM_NOT_FOUND"
    SHOP_ITEM_INACTIVE = "SHOP_ITEM_INACTIVE"
    SHOP_OUT_OF_STOCK = "SHOP_OUT_OF_STOCK"
    COUPON_NOT_FOUND = "COUPON_NOT_FOUND"
    COUPON_INVALID = "COUPON_INVALID"
    COUPON_EXISTS = "COUPON_EXISTS"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    ORDER_STATUS_INVALID = "ORDER_STATUS_INVALID"

    # Games
    GAME_DISABLED = "GAME_DISABLED"
    GAME_INVALID_BET = "GAME_INVALID_BET"
    GAME_INVALID_MOVE = "GAME_INVALID_MOVE"
    DUEL_NOT_FOUND = "DUEL_NOT_FOUND"
    DUEL_ALREADY_FINISHED = "DUEL_ALREADY_FINISHED"
    DUEL_ROUND_CONFLICT = "DUEL_ROUND_CONFLICT"

    # Content
    CONTENT_GENERATION_FAILED = "CONTENT_GENERATION_FAILED"
    CONTENT_DISABLED = "CONTENT_DISABLED"

    # Settings
    SETTINGS_SECTION_NOT_FOUND = "SETTINGS_SECTION_NOT_FOUND"
    SETTINGS_INVALID = "SETTINGS_INVALID"


class ArenaError(Exception):
    """Base exception for service errors.

    Attributes:
        code: Error code for programmatic handling
        message: User-facing error message
        details: Additional error details
    """

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


# Codes whose names carry no status fragment
_STATUS_BY_CODE: dict[str, int] = {
    ErrorCode.WITHDRAWAL_BELOW_MINIMUM.value: 400,
    ErrorCode.REFERRAL_SELF.value: 400,
    ErrorCode.TOURNAMENT_NOT_OPEN.value: 400,
    ErrorCode.SHOP_OUT_OF_STOCK.value: 409,
    ErrorCode.DUEL_ROUND_CONFLICT.value: 409,
}

# Checked in order; first match wins.
_STATUS_BY_FRAGMENT: tuple[tuple[str, int], ...] = (
    ("SESSION_NOT_FOUND", 401),
    ("NOT_FOUND", 404),
    ("UNAUTHORIZED", 401),
    ("INVALID_CREDENTIALS", 401),
    ("INVALID_TOKEN", 401),
    ("FORBIDDEN", 403),
    ("DISABLED", 403),
    ("INACTIVE", 403),
    ("LOCKED", 423),
    ("ALREADY", 409),
    ("EXISTS", 409),
    ("FULL", 409),
    ("INSUFFICIENT", 400),
    ("INVALID", 400),
    ("LIMIT", 400),
    ("MISSING", 400),
    ("GENERATION_FAILED", 502),
)


def status_for_code(code: str) -> int:
    """Map an error code to an HTTP status, defaulting to 400."""
    if code in _STATUS_BY_CODE:
        return _STATUS_BY_CODE[code]
    for fragment, status in _STATUS_BY_FRAGMENT:
        if fragment in code:
            return status
    return 400
