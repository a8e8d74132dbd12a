"""Content studio schemas."""

from decimal import Decimal

from pydantic import Field

from arena.schemas.common import BaseSchema
from arena.services.content import EventType, SocialPlatform


class SocialContentRequest(BaseSchema):
    platform: SocialPlatform
    topic: str = Field(..., min_length=2, max_length=200)


class SocialContentResponse(BaseSchema):
    title: str
    description: str
    tags: list[str]
    image_prompt: str


class EventNotificationRequest(BaseSchema):
    event_type: EventType
    day: int | None = Field(default=None, ge=1, le=7)
    amount: Decimal | None = None
    tournament_name: str | None = None
    prize: Decimal | None = None


class EventNotificationResponse(BaseSchema):
    heading: str
    content: str
