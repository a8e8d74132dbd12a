"""Tests for ContentService generation and its fallbacks."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from arena.services.content import (
    ContentError,
    ContentService,
    EventType,
    SocialPlatform,
    duel_fallback,
    reward_fallback,
)
from arena.utils.json_utils import json_dumps


def model_reply(payload: dict) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": json_dumps(payload)}]}}]}


@pytest.fixture
def http_client():
    client = MagicMock()
    client.post_json = AsyncMock()
    return client


@pytest.fixture
def enabled(monkeypatch):
    monkeypatch.setattr("arena.services.content.settings.llm_api_key", "test-key")


class TestDisabled:
    @pytest.mark.asyncio
    async def test_reward_message_falls_back(self, http_client):
        service = ContentService(http_client)

        message = await service.reward_message(3, 20)

        assert message == reward_fallback(20)
        http_client.post_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_social_content_raises(self, http_client):
        with pytest.raises(ContentError) as exc_info:
            await ContentService(http_client).social_content(SocialPlatform.TIKTOK, "Eid cup")

        assert exc_info.value.code == "CONTENT_DISABLED"


class TestEnabled:
    @pytest.mark.asyncio
    async def test_reward_message_from_model(self, http_client, enabled):
        http_client.post_json.return_value = model_reply({"content": "Day 7! Weekly Bonus!"})

        message = await ContentService(http_client).reward_message(7, 100)

        assert message == "Day 7! Weekly Bonus!"
        url, body = http_client.post_json.call_args.args
        assert url.endswith(":generateContent")
        assert body["generationConfig"] == {"responseMimeType": "application/json"}
        assert http_client.post_json.call_args.kwargs["params"] == {"key": "test-key"}

    @pytest.mark.asyncio
    async def test_malformed_reply_falls_back(self, http_client, enabled):
        http_client.post_json.return_value = {"candidates": []}

        message = await ContentService(http_client).reward_message(1, 10)

        assert message == reward_fallback(10)

    @pytest.mark.asyncio
    async def test_http_failure_falls_back_for_announcements(self, http_client, enabled):
        http_client.post_json.side_effect = httpx.ConnectError("down")

        note = await ContentService(http_client).event_notification(
            EventType.NEW_TOURNAMENT, tournament_name="Eid Cup", prize=5000
        )

        assert note.heading == "New Tournament!"
        assert "Eid Cup" in note.content

    @pytest.mark.asyncio
    async def test_social_content(self, http_client, enabled):
        http_client.post_json.return_value = model_reply(
            {
                "title": "Eid Cup is live",
                "description": "Join now",
                "tags": ["freefire", "pakistan"],
                "imagePrompt": "neon arena",
            }
        )

        content = await ContentService(http_client).social_content(SocialPlatform.GOOGLE, "Eid")

        assert content.title == "Eid Cup is live"
        assert content.image_prompt == "neon arena"

    @pytest.mark.asyncio
    async def test_social_content_failure_surfaces(self, http_client, enabled):
        http_client.post_json.return_value = model_reply({"title": "missing fields"})

        with pytest.raises(ContentError) as exc_info:
            await ContentService(http_client).social_content(SocialPlatform.X, "Eid")

        assert exc_info.value.code == "CONTENT_GENERATION_FAILED"

    @pytest.mark.asyncio
    async def test_duel_explanation(self, http_client, enabled):
        http_client.post_json.return_value = model_reply({"explanation": "Paper smothers Rock!"})

        text = await ContentService(http_client).duel_explanation("Paper", "Rock", "Player")

        assert text == "Paper smothers Rock!"


def test_duel_fallbacks():
    assert duel_fallback("Rock", "Rock", "Draw") == "Both fighters chose Rock. It's a draw!"
    assert duel_fallback("Paper", "Rock", "Player") == "Your Paper beats Rock. Direct hit!"
