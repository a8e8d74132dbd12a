"""Auth and user schemas."""

import re
from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from arena.models.user import UserRole, UserStatus
from arena.schemas.common import BaseSchema, Money

RESERVED_USERNAMES = {"admin", "administrator", "system", "support", "moderator", "official", "staff"}


class RegisterRequest(BaseSchema):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    phone: str | None = Field(default=None, max_length=30)
    game_uid: str | None = Field(default=None, max_length=64)
    game_name: str | None = Field(default=None, max_length=64)
    referral_code: str | None = Field(default=None, max_length=16)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if v.lower() in RESERVED_USERNAMES:
            raise ValueError("This username is reserved and cannot be used")
        if not re.match(r"^[A-Za-z0-9_ .-]+$", v):
            raise ValueError("Username can only contain letters, numbers, spaces, '.', '-' and '_'")
        return v


class LoginRequest(BaseSchema):
    email: EmailStr
    password: str


class RefreshTokenRequest(BaseSchema):
    refresh_token: str


class LogoutRequest(BaseSchema):
    refresh_token: str | None = None


class TokenResponse(BaseSchema):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class UserResponse(BaseSchema):
    id: str
    username: str
    email: str
    phone: str | None = None
    whatsapp_number: str | None = None
    avatar_url: str | None = None
    game_uid: str | None = None
    game_name: str | None = None
    role: UserRole
    status: UserStatus
    wallet: Money
    token_wallet: Money
    referral_code: str
    applied_referral_code: str | None = None
    daily_login_streak: int
    delegate_permissions: dict[str, bool] = Field(default_factory=dict)
    created_at: datetime
    last_login: datetime | None = None


class ReferralResult(BaseSchema):
    bonus_amount: Money
    referrer_username: str


class AuthResponse(BaseSchema):
    user: UserResponse
    tokens: TokenResponse
    referral: ReferralResult | None = None


class UserProfileUpdate(BaseSchema):
    game_uid: str | None = Field(default=None, max_length=64)
    game_name: str | None = Field(default=None, max_length=64)
    avatar_url: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=30)
    whatsapp_number: str | None = Field(default=None, max_length=30)


class ApplyReferralRequest(BaseSchema):
    referral_code: str = Field(..., min_length=1, max_length=16)


class RecentReferral(BaseSchema):
    username: str
    joined_at: datetime


class ReferralStatsResponse(BaseSchema):
    referral_code: str
    total_referrals: int
    total_commissions: Money
    bonus_amount: Money
    share_and_earn_enabled: bool
    recent_referrals: list[RecentReferral]
