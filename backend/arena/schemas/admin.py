"""Back-office schemas."""

from pydantic import Field

from arena.models.user import UserRole, UserStatus
from arena.schemas.auth import UserResponse
from arena.schemas.common import BaseSchema, Money, PaginationMeta


class RoleUpdate(BaseSchema):
    role: UserRole
    # Screen name -> granted, only kept for delegates
    permissions: dict[str, bool] = Field(default_factory=dict)


class StatusUpdate(BaseSchema):
    status: UserStatus


class UserListResponse(BaseSchema):
    items: list[UserResponse]
    pagination: PaginationMeta


class CancelTournamentResponse(BaseSchema):
    refunded_entries: int
    refund_amount: Money


class InactivityRunResponse(BaseSchema):
    suspended: int
