"""Dragon vs Tiger: one card each, high card wins.

The outcome is decided first and the cards are drawn to match it. A round
is a tie with probability ``tie_frequency`` percent. Otherwise the side the
player backed more heavily wins with the win rate of the player's chip tier.
"""

import random
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from arena.engine.cards import Card, draw_two
from arena.schemas.settings import ChipTier, DragonTigerSettings


class Side(str, Enum):
    DRAGON = "Dragon"
    TIGER = "Tiger"
    TIE = "Tie"


@dataclass(frozen=True)
class Bets:
    dragon: Decimal = Decimal("0")
    tiger: Decimal = Decimal("0")
    tie: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.dragon + self.tiger + self.tie

    @property
    def main(self) -> Decimal:
        return self.dragon + self.tiger

    def on(self, side: Side) -> Decimal:
        return {Side.DRAGON: self.dragon, Side.TIGER: self.tiger, Side.TIE: self.tie}[side]


@dataclass(frozen=True)
class RoundResult:
    dragon_card: Card
    tiger_card: Card
    winner: Side
    payout: Decimal
    winnings: Decimal


def tier_win_rate(main_bet: Decimal, chips: list[ChipTier]) -> float:
    """Win rate of the highest tier the main bet reaches, else the lowest tier."""
    tiers = sorted(chips, key=lambda c: c.value, reverse=True)
    for tier in tiers:
        if float(main_bet) >= tier.value:
            return tier.win_rate
    return tiers[-1].win_rate


def winner_of(dragon: Card, tiger: Card) -> Side:
    if dragon.value > tiger.value:
        return Side.DRAGON
    if tiger.value > dragon.value:
        return Side.TIGER
    return Side.TIE


def _backed_side(bets: Bets) -> Side | None:
    if bets.main <= 0:
        return None
    return Side.DRAGON if bets.dragon > bets.tiger else Side.TIGER


def draw_cards(bets: Bets, config: DragonTigerSettings, rng: random.Random) -> tuple[Card, Card]:
    if rng.random() * 100 < config.tie_frequency:
        while True:
            dragon, tiger = draw_two(rng)
            if dragon.value == tiger.value:
                return dragon, tiger

    player_should_win = rng.random() * 100 < tier_win_rate(bets.main, config.chips)
    backed = _backed_side(bets)
    if backed is not None and bets.dragon == bets.tiger:
        player_should_win = rng.random() < 0.5

    while True:
        dragon, tiger = draw_two(rng)
        if dragon.value == tiger.value:
            continue
        dragon_wins = dragon.value > tiger.value
        if backed is None:
            return dragon, tiger
        if backed == Side.DRAGON and player_should_win == dragon_wins:
            return dragon, tiger
        if backed == Side.TIGER and player_should_win != dragon_wins:
            return dragon, tiger


def payout_for(bets: Bets, winner: Side, config: DragonTigerSettings) -> Decimal:
    """Total returned to the player; multipliers include the stake."""
    multiplier = {
        Side.DRAGON: config.dragon_total_return_multiplier,
        Side.TIGER: config.tiger_total_return_multiplier,
        Side.TIE: config.tie_total_return_multiplier,
    }[winner]
    return (bets.on(winner) * Decimal(str(multiplier))).quantize(Decimal("0.01"))


def play_round(
    bets: Bets,
    config: DragonTigerSettings | None = None,
    rng: random.Random | None = None,
) -> RoundResult:
    config = config or DragonTigerSettings()
    rng = rng or random.SystemRandom()

    dragon, tiger = draw_cards(bets, config, rng)
    winner = winner_of(dragon, tiger)
    payout = payout_for(bets, winner, config)
    return RoundResult(
        dragon_card=dragon,
        tiger_card=tiger,
        winner=winner,
        payout=payout,
        winnings=payout - bets.total,
    )
