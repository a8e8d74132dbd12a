"""Wallet, withdrawal and mobile load schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import Field

from arena.models.wallet import Currency
from arena.schemas.common import BaseSchema, Money


class BalanceResponse(BaseSchema):
    wallet: Money
    token_wallet: Money


class TransactionResponse(BaseSchema):
    id: str
    tx_type: str
    status: str
    currency: str
    amount: Money
    balance_after: Money
    description: str | None = None
    related_tournament_id: str | None = None
    related_request_id: str | None = None
    created_at: datetime


class WithdrawalCreate(BaseSchema):
    # Presence and minimum are checked by the service so clients get coded errors
    amount: Decimal | None = None
    method: str | None = Field(default=None, max_length=50)
    account_number: str | None = Field(default=None, max_length=64)
    account_name: str | None = Field(default=None, max_length=100)


class WithdrawRequestResponse(BaseSchema):
    id: str
    user_id: str
    username: str
    amount: Money
    method: str
    account_number: str
    account_name: str
    status: str
    requested_at: datetime
    processed_at: datetime | None = None
    admin_notes: str | None = None


class MobileLoadCreate(BaseSchema):
    amount: Decimal | None = None
    network: str | None = Field(default=None, max_length=30)
    phone_number: str | None = Field(default=None, max_length=30)


class MobileLoadResponse(BaseSchema):
    id: str
    user_id: str
    username: str
    amount: Money
    network: str
    phone_number: str
    status: str
    requested_at: datetime
    processed_at: datetime | None = None
    admin_notes: str | None = None


class ProcessRequest(BaseSchema):
    request_id: str
    action: Literal["approved", "rejected", "get_recipient"]
    notes: str | None = Field(default=None, max_length=500)


class FeeRecipient(BaseSchema):
    id: str
    username: str
    role: str


class ProcessRequestResponse(BaseSchema):
    title: str | None = None
    message: str | None = None
    fee_amount: Money | None = None
    fee_recipient_id: str | None = None
    recipient: FeeRecipient | None = None


class BalanceAdjustRequest(BaseSchema):
    amount: Money = Field(..., description="Positive to credit, negative to debit")
    note: str | None = Field(default=None, max_length=300)
    currency: Currency = Currency.PKR
