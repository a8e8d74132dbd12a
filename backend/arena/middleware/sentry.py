"""Sentry error tracking integration."""

import logging
import os
from decimal import Decimal
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.redis import RedisIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from arena.utils.errors import ArenaError


def init_sentry(
    dsn: str | None = None,
    environment: str = "development",
    release: str | None = None,
    traces_sample_rate: float = 0.05,
) -> bool:
    """Initialize Sentry SDK.

    Args:
        dsn: Sentry DSN. If None, uses the SENTRY_DSN env var.
        environment: Environment name (development, staging, production)
        release: Release version string
        traces_sample_rate: Share of transactions to trace (0.0 to 1.0)

    Returns:
        True if Sentry was initialized, False otherwise
    """
    sentry_dsn = dsn or os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=sentry_dsn,
        environment=environment,
        release=release or os.getenv("APP_VERSION", "1.0.0"),
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            RedisIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=traces_sample_rate,
        send_default_pii=False,
        before_send=_before_send,
        before_send_transaction=_before_send_transaction,
    )
    return True


def _before_send(event: dict, hint: dict) -> dict | None:
    """Drop expected business errors; they are answered with 4xx responses."""
    if "exc_info" in hint:
        _, exc_value, _ = hint["exc_info"]
        if isinstance(exc_value, ArenaError):
            return None
    return event


def _before_send_transaction(event: dict, hint: dict) -> dict | None:
    if "/health" in event.get("transaction", ""):
        return None
    return event


def set_user_context(user_id: str, username: str | None = None) -> None:
    sentry_sdk.set_user({"id": user_id, "username": username})


def capture_financial_error(
    error: Exception,
    user_id: str,
    transaction_type: str,
    amount: Decimal,
    extra: dict[str, Any] | None = None,
) -> str | None:
    """Capture a failed money movement with high priority.

    Returns:
        Sentry event ID or None
    """
    with sentry_sdk.new_scope() as scope:
        scope.set_level("fatal")
        scope.set_user({"id": user_id})
        scope.set_tag("transaction_type", transaction_type)
        scope.set_tag("financial_error", "true")
        scope.set_extra("amount", float(amount))
        for key, value in (extra or {}).items():
            scope.set_extra(key, value)
        return sentry_sdk.capture_exception(error)
