"""Tests for Dragon vs Tiger outcomes and payouts."""

from decimal import Decimal

import pytest

from arena.engine.cards import Card, Rank, Suit
from arena.engine.dragon_tiger import (
    Bets,
    Side,
    payout_for,
    play_round,
    tier_win_rate,
    winner_of,
)
from arena.schemas.settings import DEFAULT_CHIP_TIERS, DragonTigerSettings


class TestTierWinRate:
    def test_highest_reached_tier_applies(self):
        assert tier_win_rate(Decimal("150"), DEFAULT_CHIP_TIERS) == 45
        assert tier_win_rate(Decimal("1000"), DEFAULT_CHIP_TIERS) == 25

    def test_bet_below_smallest_chip_uses_lowest_tier(self):
        assert tier_win_rate(Decimal("5"), DEFAULT_CHIP_TIERS) == 48.5

    def test_bet_above_largest_chip(self):
        assert tier_win_rate(Decimal("6000"), DEFAULT_CHIP_TIERS) == 5


class TestWinnerOf:
    def test_higher_card_wins(self):
        ace = Card(Rank.ACE, Suit.SPADES)
        two = Card(Rank.TWO, Suit.HEARTS)

        assert winner_of(ace, two) == Side.DRAGON
        assert winner_of(two, ace) == Side.TIGER

    def test_equal_ranks_tie(self):
        assert winner_of(Card(Rank.TEN, Suit.CLUBS), Card(Rank.TEN, Suit.DIAMONDS)) == Side.TIE


class TestPayout:
    def test_multiplier_includes_stake(self):
        bets = Bets(dragon=Decimal("100"))

        assert payout_for(bets, Side.DRAGON, DragonTigerSettings()) == Decimal("195.00")

    def test_losing_side_pays_nothing(self):
        bets = Bets(dragon=Decimal("100"))

        assert payout_for(bets, Side.TIGER, DragonTigerSettings()) == Decimal("0.00")

    def test_tie_bet_pays_nine_times(self):
        bets = Bets(dragon=Decimal("20"), tie=Decimal("10"))

        assert payout_for(bets, Side.TIE, DragonTigerSettings()) == Decimal("90.00")


class TestPlayRound:
    def test_forced_tie(self, scripted):
        config = DragonTigerSettings(tie_frequency=100)
        bets = Bets(tiger=Decimal("20"), tie=Decimal("20"))

        result = play_round(bets, config, scripted())

        assert result.winner == Side.TIE
        assert result.dragon_card.value == result.tiger_card.value
        assert result.payout == Decimal("180.00")
        assert result.winnings == Decimal("140.00")

    def test_player_wins_when_roll_under_tier_rate(self, scripted):
        config = DragonTigerSettings(tie_frequency=0)
        bets = Bets(dragon=Decimal("100"))

        result = play_round(bets, config, scripted([0.5, 0.0]))

        assert result.winner == Side.DRAGON
        assert result.dragon_card.value > result.tiger_card.value
        assert result.payout == Decimal("195.00")
        assert result.winnings == Decimal("95.00")

    def test_player_loses_when_roll_over_tier_rate(self, scripted):
        config = DragonTigerSettings(tie_frequency=0)
        bets = Bets(tiger=Decimal("100"))

        result = play_round(bets, config, scripted([0.5, 0.99]))

        assert result.winner == Side.DRAGON
        assert result.payout == Decimal("0.00")
        assert result.winnings == Decimal("-100.00")

    def test_tie_only_bet_without_tie_loses(self, scripted):
        config = DragonTigerSettings(tie_frequency=0)
        bets = Bets(tie=Decimal("50"))

        result = play_round(bets, config, scripted([0.5, 0.0]))

        assert result.winner in (Side.DRAGON, Side.TIGER)
        assert result.payout == Decimal("0.00")

    @pytest.mark.parametrize(
        ("tier_roll", "coin", "winner"),
        [
            (0.99, 0.1, Side.TIGER),
            (0.0, 0.9, Side.DRAGON),
        ],
    )
    def test_equal_main_bets_flip_a_coin(self, scripted, tier_roll, coin, winner):
        config = DragonTigerSettings(tie_frequency=0)
        bets = Bets(dragon=Decimal("50"), tiger=Decimal("50"))

        result = play_round(bets, config, scripted([0.5, tier_roll, coin]))

        assert result.winner == winner
        assert result.payout == Decimal("97.50")
        assert result.winnings == Decimal("-2.50")

    def test_equal_main_bets_consume_the_coin(self, scripted):
        config = DragonTigerSettings(tie_frequency=0)
        bets = Bets(dragon=Decimal("50"), tiger=Decimal("50"))
        rng = scripted([0.5, 0.0, 0.9, 0.25])

        play_round(bets, config, rng)

        assert rng.values == [0.25]
