"""Generated copy: reward messages, announcements, social posts, duel commentary.

Prompts go to the Gemini ``generateContent`` REST endpoint with a JSON
response type. User-facing flows fall back to fixed templates when the
model is not configured or fails; the admin content studio surfaces the
failure instead.
"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Any

import httpx
from pydantic import BaseModel, Field

from arena.config import get_settings
from arena.utils.errors import ArenaError, ErrorCode
from arena.utils.http_client import AsyncHttpClient, get_http_client
from arena.utils.json_utils import json_loads

logger = logging.getLogger(__name__)
settings = get_settings()


class ContentError(ArenaError):
    """Content generation error."""


class SocialPlatform(str, Enum):
    TIKTOK = "TikTok"
    FACEBOOK = "Facebook"
    GOOGLE = "Google"
    INSTAGRAM = "Instagram"
    X = "X (Twitter)"


class EventType(str, Enum):
    NEW_TOURNAMENT = "newTournament"
    DAILY_REWARD = "dailyReward"


class _MessageOutput(BaseModel):
    content: str = Field(min_length=1)


class EventNotification(BaseModel):
    heading: str = Field(min_length=1)
    content: str = Field(min_length=1)


class SocialContent(BaseModel):
    title: str
    description: str
    tags: list[str]
    image_prompt: str = Field(alias="imagePrompt")

    model_config = {"populate_by_name": True}


class _ExplanationOutput(BaseModel):
    explanation: str = Field(min_length=1)


def reward_fallback(amount: Decimal | float) -> str:
    return f"You've successfully claimed your reward of {amount} PKR!"


def duel_fallback(player_move: str, bot_move: str, winner: str) -> str:
    if winner == "Draw":
        return f"Both fighters chose {player_move}. It's a draw!"
    if winner == "Player":
        return f"Your {player_move} beats {bot_move}. Direct hit!"
    return f"{bot_move} beats your {player_move}. You take a hit!"


class ContentService:
    """Calls the generative model and validates its JSON output."""

    def __init__(self, http_client: AsyncHttpClient | None = None) -> None:
        self._http = http_client

    @property
    def enabled(self) -> bool:
        return bool(settings.llm_api_key)

    async def _client(self) -> AsyncHttpClient:
        if self._http is None:
            self._http = await get_http_client()
        return self._http

    async def _generate(self, prompt: str, output: type[BaseModel]) -> Any:
        """Run one prompt and parse the reply into ``output``.

        Raises:
            ContentError: Model not configured, request failed or the reply
                did not match the expected shape
        """
        if not self.enabled:
            raise ContentError(ErrorCode.CONTENT_DISABLED, "Content generation is not configured")

        url = f"{settings.llm_base_url}/models/{settings.llm_model}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }
        client = await self._client()
        try:
            data = await client.post_json(
                url,
                body,
                params={"key": settings.llm_api_key},
                timeout=settings.llm_timeout_seconds,
            )
            text = data["candidates"][0]["content"]["parts"][0]["text"]
            return output.model_validate(json_loads(text))
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            # ValidationError and orjson decode errors are ValueErrors
            logger.warning(f"Content generation failed: {type(e).__name__}: {e}")
            raise ContentError(
                ErrorCode.CONTENT_GENERATION_FAILED,
                "Content generation failed",
                {"reason": type(e).__name__},
            ) from e

    # =========================================================================
    # Flows
    # =========================================================================

    async def reward_message(self, day: int, amount: Decimal | float) -> str:
        """One celebratory sentence for a claimed daily reward."""
        prompt = (
            "You are a hype-man for an eSports gaming app. A user needs a notification.\n"
            "Generate a short, exciting, single-sentence message.\n"
            f"The user is on day {day} of their login streak.\n"
            f"They received a reward of {amount} PKR.\n"
            '- If it\'s day 7, make it extra special and mention the "Weekly Bonus".\n'
            "- If it's day 1, welcome them back or encourage them to start a new streak.\n"
            "- For other days, just be encouraging and exciting.\n"
            "- Mention the amount they won.\n"
            'Reply as JSON: {"content": "..."}'
        )
        try:
            result = await self._generate(prompt, _MessageOutput)
        except ContentError:
            return reward_fallback(amount)
        return result.content

    async def event_notification(
        self,
        event_type: EventType,
        *,
        day: int | None = None,
        amount: Decimal | float | None = None,
        tournament_name: str | None = None,
        prize: Decimal | float | None = None,
    ) -> EventNotification:
        if event_type == EventType.DAILY_REWARD:
            content = await self.reward_message(day or 1, amount or 0)
            return EventNotification(heading=f"Day {day} Reward Claimed!", content=content)

        prompt = (
            "You are a hype-man for an eSports gaming app.\n"
            "Generate a notification for a NEW tournament announcement.\n"
            f"Tournament Name: {tournament_name}\n"
            f"Prize Pool: Rs {prize}\n"
            "- Create a catchy, short heading.\n"
            "- Create an exciting content message that mentions the name and prize.\n"
            '- Use words like "ARENA ALERT!", "CHALLENGE ACCEPTED?", "GET READY!".\n'
            'Reply as JSON: {"heading": "...", "content": "..."}'
        )
        try:
            return await self._generate(prompt, EventNotification)
        except ContentError:
            return EventNotification(
                heading="New Tournament!",
                content=(
                    f'A new tournament named "{tournament_name}" is available '
                    f"with a prize of Rs {prize}. Check it out!"
                ),
            )

    async def social_content(self, platform: SocialPlatform, topic: str) -> SocialContent:
        """Post copy for the admin content studio. Failures propagate."""
        prompt = (
            'You are an expert Social Media and SEO strategist for a gaming platform called "Arena Ace".\n'
            "Generate compelling, timely content for the platform below.\n"
            f"Platform: {platform.value}\n"
            f"Topic: {topic}\n"
            "Rules:\n"
            "1. Consider what is trending in the gaming community, especially in Pakistan.\n"
            "2. Provide 3-5 relevant hashtags or keywords without the '#'.\n"
            "3. Provide a detailed prompt for an AI image generator with a professional gaming aesthetic.\n"
            "- Google: SEO title under 60 characters, meta description under 160 characters.\n"
            "- TikTok or Instagram: very short punchy title, emojis in the description.\n"
            "- Facebook or X (Twitter): slightly more descriptive title, concise description.\n"
            'Reply as JSON: {"title": "...", "description": "...", "tags": ["..."], "imagePrompt": "..."}'
        )
        result = await self._generate(prompt, SocialContent)
        logger.info(f"Social content generated: platform={platform.value}")
        return result

    async def duel_explanation(self, player_move: str, bot_move: str, winner: str) -> str:
        prompt = (
            "You are the announcer of a rock-paper-scissors duel in a gaming app.\n"
            f"The player chose {player_move}, the bot chose {bot_move}. Round winner: {winner}.\n"
            "Write one short, dramatic sentence describing the round.\n"
            'Reply as JSON: {"explanation": "..."}'
        )
        try:
            result = await self._generate(prompt, _ExplanationOutput)
        except ContentError:
            return duel_fallback(player_move, bot_move, winner)
        return result.explanation
