"""Authentication service."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from redis.asyncio import Redis
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.config import get_settings
from arena.models.user import Session, User, UserStatus
from arena.services.referral import ReferralService
from arena.services.settings import SettingsService
from arena.utils.errors import ArenaError, ErrorCode
from arena.utils.security import (
    create_token_pair,
    generate_session_id,
    hash_password,
    hash_token,
    verify_password,
    verify_refresh_token,
)

settings = get_settings()
logger = logging.getLogger(__name__)

MAX_SESSIONS_PER_USER = 3
MIN_PASSWORD_LENGTH = 6


class AuthError(ArenaError):
    """Authentication error with code."""


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession, redis: Redis | None = None):
        self.db = db
        self._redis = redis
        self.settings = SettingsService(db)

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        *,
        phone: str | None = None,
        game_uid: str | None = None,
        game_name: str | None = None,
        referral_code: str | None = None,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> dict[str, Any]:
        """Register a new user, optionally applying a friend's referral code.

        Raises:
            AuthError: Registration closed, limit reached, or duplicate identity
            ReferralError: If the referral code cannot be applied
        """
        username = username.strip()
        email = email.strip().lower()

        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(
                ErrorCode.INVALID_REQUEST,
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            )

        general = await self.settings.general()
        if not general.registration_enabled:
            raise AuthError(
                ErrorCode.AUTH_REGISTRATION_DISABLED,
                "New registrations are currently disabled",
            )
        if general.limit_registrations_enabled:
            total_users = (
                await self.db.execute(select(func.count()).select_from(User))
            ).scalar_one()
            if total_users >= general.max_registrations:
                raise AuthError(
                    ErrorCode.AUTH_REGISTRATION_LIMIT,
                    "The registration limit has been reached",
                    {"maxRegistrations": general.max_registrations},
                )

        existing = await self.db.execute(
            select(User).where(User.username_lower == username.lower())
        )
        if existing.scalar_one_or_none():
            raise AuthError(ErrorCode.AUTH_USERNAME_EXISTS, "Username already taken")

        existing = await self.db.execute(select(User).where(User.email == email))
        if existing.scalar_one_or_none():
            raise AuthError(ErrorCode.AUTH_EMAIL_EXISTS, "Email already registered")

        referrals = ReferralService(self.db, self._redis)
        user = User(
            username=username,
            username_lower=username.lower(),
            email=email,
            password_hash=hash_password(password),
            phone=phone,
            game_uid=game_uid,
            game_name=game_name,
            status=UserStatus.ACTIVE.value,
            referral_code=await referrals.generate_unique_code(username),
            last_login=datetime.now(timezone.utc),
        )
        self.db.add(user)
        await self.db.flush()

        referral_result = None
        if referral_code:
            referral_result = await referrals.apply_referral(user, referral_code)

        tokens = self._open_session(user, user_agent, ip_address)
        logger.info(f"User registered: user={user.id[:8]}... username={username}")

        return {"user": user, "tokens": tokens, "referral": referral_result}

    async def login(
        self,
        email: str,
        password: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> dict[str, Any]:
        """Authenticate a user and create a session.

        Raises:
            AuthError: If credentials are invalid or the account is suspended
        """
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        user = result.scalar_one_or_none()

        if not user or not verify_password(password, user.password_hash):
            raise AuthError(ErrorCode.AUTH_INVALID_CREDENTIALS, "Invalid email or password")

        if user.status != UserStatus.ACTIVE.value:
            raise AuthError(ErrorCode.AUTH_ACCOUNT_INACTIVE, f"Account is {user.status}")

        await self._enforce_session_limit(user.id)
        user.last_login = datetime.now(timezone.utc)

        tokens = self._open_session(user, user_agent, ip_address)
        return {"user": user, "tokens": tokens}

    def _open_session(
        self,
        user: User,
        user_agent: str | None,
        ip_address: str | None,
    ) -> dict[str, Any]:
        tokens = create_token_pair(user.id, generate_session_id(), role=user.role)
        self.db.add(
            Session(
                user_id=user.id,
                refresh_token_hash=hash_token(tokens["refresh_token"]),
                user_agent=user_agent,
                ip_address=ip_address,
                expires_at=datetime.now(timezone.utc)
                + timedelta(days=settings.jwt_refresh_token_expire_days),
            )
        )
        return tokens

    async def _enforce_session_limit(self, user_id: str) -> None:
        """Remove the oldest sessions so a new one fits under the limit."""
        result = await self.db.execute(
            select(Session)
            .where(Session.user_id == user_id)
            .order_by(Session.created_at.asc())
        )
        sessions = list(result.scalars().all())

        sessions_to_remove = len(sessions) - MAX_SESSIONS_PER_USER + 1
        if sessions_to_remove > 0:
            for session in sessions[:sessions_to_remove]:
                await self.db.delete(session)

    async def refresh_tokens(
        self,
        refresh_token: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> dict[str, Any]:
        """Rotate the refresh token of an existing session.

        Raises:
            AuthError: If the refresh token or its session is invalid
        """
        payload = verify_refresh_token(refresh_token)
        if not payload:
            raise AuthError(ErrorCode.AUTH_INVALID_TOKEN, "Invalid refresh token")

        user_id = payload["sub"]
        result = await self.db.execute(
            select(Session).where(
                Session.user_id == user_id,
                Session.refresh_token_hash == hash_token(refresh_token),
            )
        )
        session = result.scalar_one_or_none()
        if not session:
            raise AuthError(ErrorCode.AUTH_SESSION_NOT_FOUND, "Session not found")

        now = datetime.now(timezone.utc)
        if session.expires_at < now:
            raise AuthError(ErrorCode.AUTH_INVALID_TOKEN, "Session has expired")

        user = await self.get_user_by_id(user_id)
        if not user or user.status != UserStatus.ACTIVE.value:
            raise AuthError(ErrorCode.AUTH_ACCOUNT_INACTIVE, "Account is not active")

        tokens = create_token_pair(user.id, generate_session_id(), role=user.role)
        session.refresh_token_hash = hash_token(tokens["refresh_token"])
        session.last_seen_at = now
        session.user_agent = user_agent or session.user_agent
        session.ip_address = ip_address or session.ip_address
        session.expires_at = now + timedelta(days=settings.jwt_refresh_token_expire_days)

        return {"tokens": tokens}

    async def logout(self, user_id: str, refresh_token: str | None = None) -> bool:
        """Drop one session (by refresh token) or every session of the user."""
        query = select(Session).where(Session.user_id == user_id)
        if refresh_token:
            query = query.where(Session.refresh_token_hash == hash_token(refresh_token))

        result = await self.db.execute(query)
        for session in result.scalars().all():
            await self.db.delete(session)
        return True

    async def get_user_by_id(self, user_id: str) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()
