"""Tests for error codes and HTTP status mapping."""

import pytest

from arena.utils.errors import ArenaError, ErrorCode, status_for_code


@pytest.mark.parametrize(
    "code,status",
    [
        (ErrorCode.USER_NOT_FOUND, 404),
        (ErrorCode.AUTH_SESSION_NOT_FOUND, 401),
        (ErrorCode.AUTH_INVALID_CREDENTIALS, 401),
        (ErrorCode.AUTH_INVALID_TOKEN, 401),
        (ErrorCode.FORBIDDEN, 403),
        (ErrorCode.DAILY_REWARD_DISABLED, 403),
        (ErrorCode.AUTH_ACCOUNT_INACTIVE, 403),
        (ErrorCode.WALLET_LOCKED, 423),
        (ErrorCode.TOURNAMENT_ALREADY_JOINED, 409),
        (ErrorCode.AUTH_USERNAME_EXISTS, 409),
        (ErrorCode.TOURNAMENT_FULL, 409),
        (ErrorCode.INSUFFICIENT_BALANCE, 400),
        (ErrorCode.REDEEM_CODE_LIMIT_REACHED, 400),
        (ErrorCode.MISSING_FIELD, 400),
        (ErrorCode.CONTENT_GENERATION_FAILED, 502),
        (ErrorCode.WITHDRAWAL_BELOW_MINIMUM, 400),
        (ErrorCode.REFERRAL_SELF, 400),
        (ErrorCode.TOURNAMENT_NOT_OPEN, 400),
        (ErrorCode.SHOP_OUT_OF_STOCK, 409),
        (ErrorCode.DUEL_ROUND_CONFLICT, 409),
    ],
)
def test_status_for_code(code, status):
    assert status_for_code(code.value) == status


@pytest.mark.parametrize("code", list(ErrorCode))
def test_code_values_match_names(code):
    assert code.value == code.name


def test_unknown_code_defaults_to_bad_request():
    assert status_for_code("SOMETHING_ODD") == 400


def test_error_to_dict():
    error = ArenaError(ErrorCode.INSUFFICIENT_BALANCE, "Not enough", {"balance": 1.0})

    assert error.code == "INSUFFICIENT_BALANCE"
    assert str(error) == "Not enough"
    assert error.to_dict() == {
        "code": "INSUFFICIENT_BALANCE",
        "message": "Not enough",
        "details": {"balance": 1.0},
    }


def test_plain_string_code():
    assert ArenaError("CUSTOM", "x").details == {}
