"""Spin the Wheel: weighted segment selection.

Segments with a positive multiplier share the win rate equally; the
others share the remainder. The house edge therefore comes from the
configured win rate, not from the number of segments.
"""

import random
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from arena.schemas.settings import DEFAULT_WHEEL_SEGMENTS, SpinWheelSettings, WheelSegment

MIN_SEGMENTS = 2


@dataclass(frozen=True)
class WeightedSegment:
    label: str
    multiplier: float
    color: str
    weight: float


@dataclass(frozen=True)
class SpinResult:
    multiplier: float
    prize_amount: Decimal
    segment_index: int
    winning_label: str
    segments: tuple[WeightedSegment, ...]


def effective_win_rate(bet: Decimal | float, config: SpinWheelSettings) -> float:
    """Large bets use their own win rate once a threshold is configured."""
    threshold = config.large_bet_threshold
    if threshold is not None and float(bet) >= threshold:
        return config.large_bet_win_rate if config.large_bet_win_rate is not None else config.win_rate
    return config.win_rate


def weigh_segments(segments: list[WheelSegment], win_rate: float) -> list[WeightedSegment]:
    winning = [s for s in segments if s.multiplier > 0]
    losing = [s for s in segments if s.multiplier <= 0]
    per_win = win_rate / len(winning) if winning else 0.0
    per_loss = (100 - win_rate) / len(losing) if losing else 0.0

    weighted = [
        WeightedSegment(
            label=s.label,
            multiplier=s.multiplier,
            color=s.color,
            weight=per_win if s.multiplier > 0 else per_loss,
        )
        for s in segments
    ]
    if sum(s.weight for s in weighted) <= 0:
        # e.g. a 0% win rate on a wheel with no losing segments
        equal = 100 / len(weighted)
        weighted = [
            WeightedSegment(s.label, s.multiplier, s.color, equal) for s in weighted
        ]
    return weighted


def pick_index(weighted: list[WeightedSegment], rng: random.Random) -> int:
    remaining = rng.random() * sum(s.weight for s in weighted)
    for index, segment in enumerate(weighted):
        if remaining < segment.weight:
            return index
        remaining -= segment.weight
    # Floating point leftovers land on the last segment
    return len(weighted) - 1


def spin(
    bet: Decimal | float,
    config: SpinWheelSettings | None = None,
    rng: random.Random | None = None,
) -> SpinResult:
    config = config or SpinWheelSettings()
    rng = rng or random.SystemRandom()

    segments = config.segments if len(config.segments) >= MIN_SEGMENTS else DEFAULT_WHEEL_SEGMENTS
    weighted = weigh_segments(segments, effective_win_rate(bet, config))
    index = pick_index(weighted, rng)
    winner = weighted[index]

    prize = (Decimal(str(bet)) * Decimal(str(winner.multiplier))).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )
    return SpinResult(
        multiplier=winner.multiplier,
        prize_amount=prize,
        segment_index=index,
        winning_label=winner.label,
        segments=tuple(weighted),
    )
