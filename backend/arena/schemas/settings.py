"""Admin-editable settings sections and their defaults.

Each section is stored as one JSON document. Stored values are merged over
the defaults declared here, so a partially saved section still validates.
"""

from decimal import Decimal

from pydantic import Field, field_validator

from arena.schemas.common import BaseSchema, Money


class GeneralSettings(BaseSchema):
    app_name: str = "Arena Ace"
    registration_enabled: bool = True
    limit_registrations_enabled: bool = False
    max_registrations: int = Field(default=0, ge=0)
    share_and_earn_enabled: bool = True
    referral_bonus_amount: Money = Field(default=Decimal("0"), ge=0)
    redeem_code_enabled: bool = True
    shop_enabled: bool = True
    mobile_load_enabled: bool = True


class DailyLoginRewardSettings(BaseSchema):
    enabled: bool = True
    rewards: list[Money] = Field(
        default_factory=lambda: [Decimal(v) for v in (10, 15, 20, 25, 30, 35, 100)],
    )

    @field_validator("rewards")
    @classmethod
    def seven_days(cls, v: list[Decimal]) -> list[Decimal]:
        if len(v) != 7:
            raise ValueError("There must be exactly 7 daily rewards")
        if any(r < 0 for r in v):
            raise ValueError("Rewards must be non-negative")
        return v


class WheelSegment(BaseSchema):
    label: str
    multiplier: float = Field(ge=0)
    color: str = "hsl(220, 80%, 60%)"


DEFAULT_WHEEL_SEGMENTS = [
    WheelSegment(label="2x", multiplier=2, color="hsl(220, 80%, 60%)"),
    WheelSegment(label="0x", multiplier=0, color="hsl(0, 80%, 60%)"),
    WheelSegment(label="1.5x", multiplier=1.5, color="hsl(140, 80%, 60%)"),
    WheelSegment(label="0.5x", multiplier=0.5, color="hsl(60, 80%, 60%)"),
    WheelSegment(label="5x", multiplier=5, color="hsl(280, 80%, 60%)"),
    WheelSegment(label="0x", multiplier=0, color="hsl(0, 80%, 60%)"),
    WheelSegment(label="1x", multiplier=1, color="hsl(180, 80%, 60%)"),
    WheelSegment(label="0.5x", multiplier=0.5, color="hsl(60, 80%, 60%)"),
]


class SpinWheelSettings(BaseSchema):
    enabled: bool = True
    title: str = "Spin the Wheel"
    win_rate: float = Field(default=40, ge=0, le=100)
    # None means every bet uses win_rate
    large_bet_threshold: float | None = Field(default=None, ge=0)
    large_bet_win_rate: float | None = Field(default=None, ge=0, le=100)
    segments: list[WheelSegment] = Field(default_factory=lambda: list(DEFAULT_WHEEL_SEGMENTS))


class ChipTier(BaseSchema):
    value: float = Field(ge=0)
    win_rate: float = Field(ge=0, le=100)


DEFAULT_CHIP_TIERS = [
    ChipTier(value=20, win_rate=48.5),
    ChipTier(value=100, win_rate=45),
    ChipTier(value=500, win_rate=40),
    ChipTier(value=1000, win_rate=25),
    ChipTier(value=5000, win_rate=5),
]


class DragonTigerSettings(BaseSchema):
    enabled: bool = True
    title: str = "Dragon vs Tiger"
    chips: list[ChipTier] = Field(default_factory=lambda: list(DEFAULT_CHIP_TIERS))
    # Total-return multipliers: 1.95 on a 100 bet returns 195.
    dragon_total_return_multiplier: float = 1.95
    tiger_total_return_multiplier: float = 1.95
    tie_total_return_multiplier: float = 9
    tie_frequency: float = Field(default=10, ge=0, le=100)
    round_timer: int = 8

    @field_validator("chips")
    @classmethod
    def fallback_chips(cls, v: list[ChipTier]) -> list[ChipTier]:
        return v or list(DEFAULT_CHIP_TIERS)


class DuelSettings(BaseSchema):
    enabled: bool = True
    title: str = "1v1 Duels"
    min_bet: Money = Decimal("20")
    bot_win_chance: float = Field(default=0.65, ge=0, le=1)


class CpaGripSettings(BaseSchema):
    enabled: bool = False
    title: str = "Complete Offers"
    description: str = ""
    offer_urls: list[str] = Field(default_factory=list)
    points: Money = Decimal("0")
    postback_key: str = ""
    required_completions: int = Field(default=1, ge=1)


class TokenSettings(BaseSchema):
    enabled: bool = False
    token_name: str = "Arena Token"
    token_symbol: str = "ART"
    # User id whose wallet receives withdrawal fees without a referring delegate
    admin_fee_wallet_uid: str | None = None


class InactivitySettings(BaseSchema):
    days_inactive: int = Field(default=30, ge=1)
    hold_period: int = Field(default=15, ge=0)


SECTION_SCHEMAS: dict[str, type[BaseSchema]] = {
    "general": GeneralSettings,
    "daily_login_rewards": DailyLoginRewardSettings,
    "spin_wheel": SpinWheelSettings,
    "dragon_tiger": DragonTigerSettings,
    "duels": DuelSettings,
    "cpa_grip": CpaGripSettings,
    "token_settings": TokenSettings,
    "inactivity": InactivitySettings,
}
