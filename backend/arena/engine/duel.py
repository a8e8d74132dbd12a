"""Rock-paper-scissors duel against a bot.

Both fighters start with the same health; each lost round costs one point.
The bot favours the counter move with ``bot_win_chance``.
"""

import random
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

BOT_USERNAMES = ("ShadowStriker", "IronPhantom", "CyberGuard", "VoidReaper", "BlitzBot")


class Move(str, Enum):
    ROCK = "Rock"
    PAPER = "Paper"
    SCISSORS = "Scissors"


class RoundWinner(str, Enum):
    PLAYER = "Player"
    BOT = "Bot"
    DRAW = "Draw"


# move -> the move that beats it
COUNTER = {
    Move.ROCK: Move.PAPER,
    Move.PAPER: Move.SCISSORS,
    Move.SCISSORS: Move.ROCK,
}


@dataclass(frozen=True)
class DuelRound:
    player_move: Move
    bot_move: Move
    winner: RoundWinner


def round_winner(player: Move, bot: Move) -> RoundWinner:
    if player == bot:
        return RoundWinner.DRAW
    if COUNTER[bot] == player:
        return RoundWinner.PLAYER
    return RoundWinner.BOT


def bot_move(player: Move, bot_win_chance: float, rng: random.Random) -> Move:
    counter = COUNTER[player]
    if rng.random() < bot_win_chance:
        return counter
    return rng.choice([m for m in Move if m != counter])


def play_round(
    player: Move,
    bot_win_chance: float = 0.65,
    rng: random.Random | None = None,
) -> DuelRound:
    rng = rng or random.SystemRandom()
    bot = bot_move(player, bot_win_chance, rng)
    return DuelRound(player_move=player, bot_move=bot, winner=round_winner(player, bot))


def pick_bot_username(rng: random.Random | None = None) -> str:
    return (rng or random.SystemRandom()).choice(BOT_USERNAMES)


def win_payout(bet: Decimal, admin_fee_rate: Decimal) -> Decimal:
    """Stake back plus winnings after the admin fee."""
    return (bet + bet * (1 - admin_fee_rate)).quantize(Decimal("0.01"))
