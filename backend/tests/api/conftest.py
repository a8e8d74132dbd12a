"""Fixtures for API tests against the real application."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from arena.main import app
from arena.models import User, UserRole
from arena.services.wallet import invalidate_committed_balances
from arena.utils.db import get_db
from arena.utils.security import create_token_pair, generate_session_id


@pytest_asyncio.fixture
async def test_client(
    db_session: AsyncSession,
    fake_redis,
    monkeypatch: pytest.MonkeyPatch,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app, sharing the test session and Redis double.

    The lifespan is not run, so the shared Redis client is patched in directly.
    """
    monkeypatch.setattr("arena.utils.redis_client.redis_client", fake_redis)

    async def override_get_db():
        """Commits after each request like the production dependency."""
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise
        await invalidate_committed_balances(db_session, fake_redis)

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


def auth_headers_for(user: User) -> dict[str, str]:
    tokens = create_token_pair(user.id, generate_session_id(), role=user.role)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest_asyncio.fixture
async def test_user(make_user) -> User:
    return await make_user("player1", wallet=1000, game_uid="UID-1001", game_name="SniperKing")


@pytest_asyncio.fixture
async def admin_user(make_user) -> User:
    return await make_user("boss", role=UserRole.ADMIN)


@pytest.fixture
def auth_headers(test_user: User) -> dict[str, str]:
    return auth_headers_for(test_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers_for(admin_user)


@pytest.fixture
def headers_for():
    return auth_headers_for
