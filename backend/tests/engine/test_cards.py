import random

from arena.engine.cards import Card, Rank, Suit, draw_two, new_deck


def test_deck_has_52_unique_cards():
    deck = new_deck()

    assert len(deck) == 52
    assert len(set(deck)) == 52


def test_aces_are_high():
    assert Rank.ACE.points == 14
    assert Rank.TWO.points == 2
    assert Card(Rank.ACE, Suit.CLUBS).value > Card(Rank.KING, Suit.CLUBS).value


def test_card_to_dict():
    card = Card(Rank.TEN, Suit.HEARTS)

    assert str(card) == "TH"
    assert card.to_dict() == {"value": "T", "suit": "H", "key": "TH"}


def test_draw_two_returns_distinct_cards():
    first, second = draw_two(random.Random(3))

    assert first != second
