"""API dependencies for authentication and common utilities."""

import uuid
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from arena.middleware.sentry import set_user_context
from arena.models.user import DelegateScreen, User, UserStatus
from arena.services.auth import AuthService
from arena.utils.db import get_db
from arena.utils.security import TokenError, verify_access_token

# HTTP Bearer security scheme
security = HTTPBearer(auto_error=False)


def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": {"code": code, "message": message, "details": {}}},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"error": {"code": code, "message": message, "details": {}}},
    )


def get_trace_id(x_trace_id: Annotated[str | None, Header()] = None) -> str:
    """Get or generate trace ID for request tracking."""
    return x_trace_id or str(uuid.uuid4())


async def get_current_user_optional(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """Get current user from token if provided (optional auth)."""
    if not credentials:
        return None

    try:
        payload = verify_access_token(credentials.credentials)
    except TokenError:
        return None

    if not payload or not payload.get("sub"):
        return None

    user = await AuthService(db).get_user_by_id(payload["sub"])
    if user is None or user.status != UserStatus.ACTIVE.value:
        return None
    return user


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get current user from token (required auth).

    Raises:
        HTTPException: If not authenticated, the token is invalid or the
            account is suspended
    """
    if not credentials:
        raise _unauthorized("AUTH_REQUIRED", "Authentication required")

    try:
        payload = verify_access_token(credentials.credentials)
    except TokenError as e:
        raise _unauthorized(e.code, e.message) from e

    if not payload:
        raise _unauthorized("AUTH_INVALID_TOKEN", "Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("AUTH_INVALID_TOKEN", "Invalid token payload")

    user = await AuthService(db).get_user_by_id(user_id)
    if not user:
        raise _unauthorized("AUTH_USER_NOT_FOUND", "User not found")

    if user.status != UserStatus.ACTIVE.value:
        raise _forbidden("AUTH_ACCOUNT_INACTIVE", f"Account is {user.status}")

    set_user_context(user.id, user.username)
    return user


async def get_admin_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Require the admin role. Roles are read from the database, not the token."""
    if not current_user.is_admin:
        raise _forbidden("FORBIDDEN", "Admin access required")
    return current_user


def require_screen(screen: DelegateScreen):
    """Dependency factory: admins, or delegates granted ``screen``."""

    async def checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if not current_user.can_access(screen):
            raise _forbidden("FORBIDDEN", f"No access to {screen.value}")
        return current_user

    return checker


def get_client_info(request: Request) -> dict[str, str | None]:
    """Extract client information from request."""
    return {
        "user_agent": request.headers.get("user-agent"),
        "ip_address": request.client.host if request.client else None,
    }


# Type aliases for cleaner annotations
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_current_user_optional)]
AdminUser = Annotated[User, Depends(get_admin_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
TraceId = Annotated[str, Depends(get_trace_id)]
