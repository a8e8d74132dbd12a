"""Admin content studio."""

from fastapi import APIRouter

from arena.api.deps import AdminUser
from arena.schemas import ErrorResponse
from arena.schemas.content import (
    EventNotificationRequest,
    EventNotificationResponse,
    SocialContentRequest,
    SocialContentResponse,
)
from arena.services.content import ContentService

router = APIRouter(prefix="/content", tags=["Content"])


@router.post(
    "/social",
    response_model=SocialContentResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Generation not configured"},
        502: {"model": ErrorResponse, "description": "Model call failed"},
    },
)
async def generate_social_content(request_body: SocialContentRequest, admin: AdminUser):
    """Title, description, tags and an image prompt for a social post."""
    result = await ContentService().social_content(request_body.platform, request_body.topic)
    return SocialContentResponse(**result.model_dump())


@router.post("/event-notification", response_model=EventNotificationResponse)
async def generate_event_notification(request_body: EventNotificationRequest, admin: AdminUser):
    result = await ContentService().event_notification(
        request_body.event_type,
        day=request_body.day,
        amount=request_body.amount,
        tournament_name=request_body.tournament_name,
        prize=request_body.prize,
    )
    return EventNotificationResponse(**result.model_dump())
