"""User profile and notification endpoints."""

from fastapi import APIRouter, Query

from arena.api.deps import CurrentUser, DbSession
from arena.schemas import SuccessResponse, UserProfileUpdate, UserResponse
from arena.schemas.notification import NotificationListResponse
from arena.services.notification import NotificationService
from arena.services.users import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_profile(current_user: CurrentUser):
    return current_user


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    request_body: UserProfileUpdate,
    current_user: CurrentUser,
    db: DbSession,
):
    """Update game identity, avatar and contact numbers."""
    return await UserService(db).update_profile(
        current_user, request_body.model_dump(exclude_unset=True)
    )


@router.get("/me/notifications", response_model=NotificationListResponse)
async def list_notifications(
    current_user: CurrentUser,
    db: DbSession,
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    limit: int = Query(default=50, ge=1, le=100),
):
    service = NotificationService(db)
    return NotificationListResponse(
        items=await service.list_for_user(current_user.id, unread_only=unread_only, limit=limit),
        unread_count=await service.unread_count(current_user.id),
    )


@router.post("/me/notifications/read", response_model=SuccessResponse)
async def mark_all_read(current_user: CurrentUser, db: DbSession):
    count = await NotificationService(db).mark_read(current_user.id)
    return SuccessResponse(message=f"{count} notifications marked as read")


@router.post("/me/notifications/{notification_id}/read", response_model=SuccessResponse)
async def mark_read(notification_id: str, current_user: CurrentUser, db: DbSession):
    await NotificationService(db).mark_read(current_user.id, notification_id)
    return SuccessResponse(message="Notification marked as read")
