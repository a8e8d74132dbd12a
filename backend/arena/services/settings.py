"""Settings service: admin-editable configuration stored per section."""

import logging
from typing import Any, TypeVar

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from arena.models.settings import GlobalSetting
from arena.schemas.common import BaseSchema
from arena.schemas.settings import (
    SECTION_SCHEMAS,
    CpaGripSettings,
    DailyLoginRewardSettings,
    DragonTigerSettings,
    DuelSettings,
    GeneralSettings,
    InactivitySettings,
    SpinWheelSettings,
    TokenSettings,
)
from arena.utils.errors import ArenaError, ErrorCode

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=BaseSchema)


class SettingsError(ArenaError):
    """Settings operation error."""


class SettingsService:
    """Reads and writes settings sections.

    Stored values are merged over the section defaults on every read.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _schema_for(section: str) -> type[BaseSchema]:
        schema = SECTION_SCHEMAS.get(section)
        if schema is None:
            raise SettingsError(
                ErrorCode.SETTINGS_SECTION_NOT_FOUND,
                f"Unknown settings section: {section}",
                {"section": section},
            )
        return schema

    @staticmethod
    def _normalize_keys(schema: type[BaseSchema], data: dict[str, Any]) -> dict[str, Any]:
        """Map camelCase keys to field names so they merge with stored values."""
        by_alias = {
            field.alias: name
            for name, field in schema.model_fields.items()
            if field.alias
        }
        return {by_alias.get(key, key): value for key, value in data.items()}

    async def get(self, section: str) -> BaseSchema:
        """Get a section with stored values merged over defaults."""
        schema = self._schema_for(section)
        row = await self.session.get(GlobalSetting, section)
        stored = row.value if row is not None else {}
        try:
            return schema.model_validate(self._normalize_keys(schema, stored or {}))
        except ValidationError:
            logger.warning(f"Stored settings for '{section}' are invalid, using defaults")
            return schema()

    async def update(
        self,
        section: str,
        data: dict[str, Any],
        updated_by: str | None = None,
    ) -> BaseSchema:
        """Validate and store a (possibly partial) section update."""
        schema = self._schema_for(section)
        current = await self.get(section)

        merged = {**current.model_dump(), **self._normalize_keys(schema, data)}
        try:
            validated = schema.model_validate(merged)
        except ValidationError as e:
            raise SettingsError(
                ErrorCode.SETTINGS_INVALID,
                f"Invalid settings for section '{section}'",
                {"errors": e.errors(include_url=False, include_context=False)},
            ) from e

        value = validated.model_dump(mode="json")
        row = await self.session.get(GlobalSetting, section)
        if row is None:
            row = GlobalSetting(section=section, value=value, updated_by=updated_by)
            self.session.add(row)
        else:
            row.value = value
            row.updated_by = updated_by
        await self.session.flush()

        logger.info(f"Settings section updated: section={section} by={updated_by}")
        return validated

    async def _typed(self, section: str, schema: type[S]) -> S:
        value = await self.get(section)
        assert isinstance(value, schema)
        return value

    async def general(self) -> GeneralSettings:
        return await self._typed("general", GeneralSettings)

    async def daily_login_rewards(self) -> DailyLoginRewardSettings:
        return await self._typed("daily_login_rewards", DailyLoginRewardSettings)

    async def spin_wheel(self) -> SpinWheelSettings:
        return await self._typed("spin_wheel", SpinWheelSettings)

    async def dragon_tiger(self) -> DragonTigerSettings:
        return await self._typed("dragon_tiger", DragonTigerSettings)

    async def duels(self) -> DuelSettings:
        return await self._typed("duels", DuelSettings)

    async def cpa_grip(self) -> CpaGripSettings:
        return await self._typed("cpa_grip", CpaGripSettings)

    async def token_settings(self) -> TokenSettings:
        return await self._typed("token_settings", TokenSettings)

    async def inactivity(self) -> InactivitySettings:
        return await self._typed("inactivity", InactivitySettings)
