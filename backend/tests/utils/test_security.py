"""Tests for password hashing and JWT helpers."""

from datetime import timedelta

import pytest

from arena.utils.security import (
    TokenError,
    create_access_token,
    create_refresh_token,
    create_token_pair,
    generate_session_id,
    hash_password,
    hash_token,
    verify_access_token,
    verify_password,
    verify_refresh_token,
)


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("correct horse")

        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_long_passwords_are_not_truncated(self):
        base = "x" * 80
        hashed = hash_password(base + "a")

        assert not verify_password(base + "b", hashed)


class TestTokens:
    def test_access_token_round_trip(self):
        token = create_access_token("user-1", role="admin")

        payload = verify_access_token(token)

        assert payload["sub"] == "user-1"
        assert payload["role"] == "admin"
        assert payload["type"] == "access"

    def test_expired_access_token(self):
        token = create_access_token("user-1", expires_delta=timedelta(seconds=-5))

        with pytest.raises(TokenError) as exc_info:
            verify_access_token(token)

        assert exc_info.value.code == "TOKEN_EXPIRED"

    def test_refresh_token_is_not_an_access_token(self):
        token = create_refresh_token("user-1", "sid-1")

        assert verify_access_token(token) is None
        assert verify_refresh_token(token)["sid"] == "sid-1"

    def test_access_token_is_not_a_refresh_token(self):
        assert verify_refresh_token(create_access_token("user-1")) is None

    def test_garbage_tokens(self):
        assert verify_access_token("not-a-jwt") is None
        assert verify_access_token("") is None
        assert verify_refresh_token("not-a-jwt") is None

    def test_token_pair(self):
        tokens = create_token_pair("user-1", generate_session_id())

        assert tokens["token_type"] == "Bearer"
        assert verify_access_token(tokens["access_token"])["sub"] == "user-1"
        assert verify_refresh_token(tokens["refresh_token"])["sub"] == "user-1"


def test_session_ids_and_hashes():
    sid = generate_session_id()

    assert len(sid) == 32
    assert sid != generate_session_id()
    assert hash_token("abc") == hash_token("abc")
    assert len(hash_token("abc")) == 64
