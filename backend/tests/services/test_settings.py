"""Tests for SettingsService section storage."""

from decimal import Decimal

import pytest

from arena.models.settings import GlobalSetting
from arena.services.settings import SettingsError, SettingsService


@pytest.fixture
def service(db_session) -> SettingsService:
    return SettingsService(db_session)


class TestGet:
    @pytest.mark.asyncio
    async def test_defaults_when_unset(self, service):
        rewards = await service.daily_login_rewards()
        duels = await service.duels()

        assert rewards.rewards[6] == Decimal("100")
        assert duels.min_bet == Decimal("20")
        assert duels.bot_win_chance == 0.65

    @pytest.mark.asyncio
    async def test_invalid_stored_value_falls_back(self, service, db_session):
        db_session.add(GlobalSetting(section="duels", value={"botWinChance": 5}))
        await db_session.flush()

        duels = await service.duels()

        assert duels.bot_win_chance == 0.65

    @pytest.mark.asyncio
    async def test_unknown_section(self, service):
        with pytest.raises(SettingsError) as exc_info:
            await service.get("lottery")

        assert exc_info.value.code == "SETTINGS_SECTION_NOT_FOUND"


class TestUpdate:
    @pytest.mark.asyncio
    async def test_partial_camel_case_update(self, service):
        await service.update("general", {"shopEnabled": False}, updated_by="admin-1")
        await service.update("general", {"referral_bonus_amount": 25})

        general = await service.general()

        assert general.shop_enabled is False
        assert general.referral_bonus_amount == Decimal("25")
        assert general.registration_enabled is True

    @pytest.mark.asyncio
    async def test_stored_as_json(self, service, db_session):
        await service.update("inactivity", {"daysInactive": 60}, updated_by="admin-1")

        row = await db_session.get(GlobalSetting, "inactivity")

        assert row.value["days_inactive"] == 60
        assert row.updated_by == "admin-1"

    @pytest.mark.asyncio
    async def test_invalid_value_rejected(self, service):
        with pytest.raises(SettingsError) as exc_info:
            await service.update("daily_login_rewards", {"rewards": [10, 20]})

        assert exc_info.value.code == "SETTINGS_INVALID"
        assert exc_info.value.details["errors"]

    @pytest.mark.asyncio
    async def test_win_rate_bounds(self, service):
        with pytest.raises(SettingsError):
            await service.update("spin_wheel", {"winRate": 150})

        wheel = await service.spin_wheel()
        assert wheel.win_rate == 40
