"""Betting mini-games: wallet movements around the pure game engines."""

import logging
import random
from decimal import Decimal
from typing import Any

from redis.asyncio import Redis
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from arena.config import get_settings
from arena.engine import dragon_tiger, duel, spin_wheel
from arena.models.base import to_money
from arena.models.duel import DuelMatch, DuelStatus
from arena.models.user import User
from arena.models.wallet import Currency, TransactionStatus, TransactionType
from arena.services.content import ContentService
from arena.services.settings import SettingsService
from arena.services.wallet import WalletService
from arena.utils.errors import ArenaError, ErrorCode

logger = logging.getLogger(__name__)
settings = get_settings()


class GameError(ArenaError):
    """Mini-game error."""


class GameService:
    """Runs one play of a game: take the bet, resolve, pay out."""

    def __init__(
        self,
        session: AsyncSession,
        redis: Redis | None = None,
        *,
        content: ContentService | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.session = session
        self.wallet = WalletService(session, redis)
        self.settings = SettingsService(session)
        self.content = content or ContentService()
        self.rng = rng or random.SystemRandom()

    # =========================================================================
    # Spin the Wheel
    # =========================================================================

    async def spin_wheel(
        self,
        user: User,
        bet: Decimal | int | float | str,
        currency: Currency = Currency.PKR,
    ) -> dict[str, Any]:
        config = await self.settings.spin_wheel()
        if not config.enabled:
            raise GameError(ErrorCode.GAME_DISABLED, "Spin the Wheel is currently disabled")

        bet = to_money(bet)
        if bet < settings.spin_wheel_min_bet:
            raise GameError(
                ErrorCode.GAME_INVALID_BET,
                f"Minimum bet is {settings.spin_wheel_min_bet} {currency.value.upper()}",
                {"minimum": float(settings.spin_wheel_min_bet)},
            )

        await self.wallet.debit(
            user.id,
            bet,
            TransactionType.SPIN_WHEEL_BET,
            currency=currency,
            description="Spin Wheel Bet",
        )
        result = spin_wheel.spin(bet, config, self.rng)
        if result.prize_amount > 0:
            await self.wallet.credit(
                user.id,
                result.prize_amount,
                TransactionType.SPIN_WHEEL_WIN,
                currency=currency,
                description=f"Spin Wheel Winnings ({result.multiplier}x)",
            )

        logger.info(
            f"Spin wheel: user={user.id[:8]}... bet={bet} {currency.value} "
            f"landed={result.winning_label} prize={result.prize_amount}"
        )
        return {
            "multiplier": result.multiplier,
            "prize_amount": result.prize_amount,
            "segment_index": result.segment_index,
            "winning_label": result.winning_label,
            "segments": [
                {
                    "label": s.label,
                    "multiplier": s.multiplier,
                    "color": s.color,
                    "weight": s.weight,
                }
                for s in result.segments
            ],
            "currency": currency.value,
        }

    # =========================================================================
    # Dragon vs Tiger
    # =========================================================================

    async def dragon_tiger(self, user: User, bets: dragon_tiger.Bets) -> dict[str, Any]:
        config = await self.settings.dragon_tiger()
        if not config.enabled:
            raise GameError(ErrorCode.GAME_DISABLED, "Dragon vs Tiger is currently disabled")
        if min(bets.dragon, bets.tiger, bets.tie) < 0 or bets.total <= 0:
            raise GameError(ErrorCode.GAME_INVALID_BET, "Place a bet before the round starts")

        total = to_money(bets.total)
        await self.wallet.debit(
            user.id,
            total,
            TransactionType.DRAGON_TIGER_BET,
            description=(
                f"Dragon vs Tiger bet (Dragon {bets.dragon}, Tiger {bets.tiger}, Tie {bets.tie})"
            ),
        )
        result = dragon_tiger.play_round(bets, config, self.rng)
        if result.payout > 0:
            await self.wallet.credit(
                user.id,
                result.payout,
                TransactionType.DRAGON_TIGER_WIN,
                description=f"Dragon vs Tiger win on {result.winner.value}",
            )

        logger.info(
            f"Dragon tiger: user={user.id[:8]}... bet={total} winner={result.winner.value} "
            f"payout={result.payout}"
        )
        return {
            "dragon_card": result.dragon_card.to_dict(),
            "tiger_card": result.tiger_card.to_dict(),
            "winner": result.winner.value,
            "payout": result.payout,
            "winnings": result.winnings,
        }

    # =========================================================================
    # Duels
    # =========================================================================

    async def start_duel(self, user: User, bet: Decimal | int | float | str) -> DuelMatch:
        config = await self.settings.duels()
        if not config.enabled:
            raise GameError(ErrorCode.GAME_DISABLED, "Duels are currently disabled")

        bet = to_money(bet)
        if bet < to_money(config.min_bet):
            raise GameError(
                ErrorCode.GAME_INVALID_BET,
                f"Bet amount must be at least {settings.currency_label} {config.min_bet}",
                {"minimum": float(config.min_bet)},
            )

        hold = await self.wallet.hold(
            user.id,
            bet,
            TransactionType.DUEL_BET,
            description="Bet for 1v1 Duel",
        )
        match = DuelMatch(
            user_id=user.id,
            bet=bet,
            bot_username=duel.pick_bot_username(self.rng),
            player_health=settings.duel_starting_health,
            bot_health=settings.duel_starting_health,
            round=0,
            status=DuelStatus.ACTIVE.value,
            bet_transaction_id=hold.id,
            rounds_log=[],
        )
        self.session.add(match)
        await self.session.flush()
        logger.info(f"Duel started: match={match.id[:8]}... user={user.id[:8]}... bet={bet}")
        return match

    async def get_duel(self, user: User, match_id: str) -> DuelMatch:
        match = await self.session.get(DuelMatch, match_id)
        if match is None or match.user_id != user.id:
            raise GameError(ErrorCode.DUEL_NOT_FOUND, "Duel not found", {"matchId": match_id})
        return match

    async def list_duels(self, user: User, *, limit: int = 20) -> list[DuelMatch]:
        result = await self.session.execute(
            select(DuelMatch)
            .where(DuelMatch.user_id == user.id)
            .order_by(DuelMatch.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def play_duel_round(
        self,
        user: User,
        match_id: str,
        move: duel.Move | str,
    ) -> dict[str, Any]:
        """Play one round and settle the match when someone runs out of health."""
        try:
            move = duel.Move(move)
        except ValueError as e:
            raise GameError(
                ErrorCode.GAME_INVALID_MOVE,
                f"Invalid move: {move}",
                {"allowed": [m.value for m in duel.Move]},
            ) from e

        match = await self.get_duel(user, match_id)
        if match.status != DuelStatus.ACTIVE.value:
            raise GameError(
                ErrorCode.DUEL_ALREADY_FINISHED,
                "This duel has already finished",
                {"status": match.status},
            )

        # Claim the round; a second request for the same round matches no row
        result = await self.session.execute(
            update(DuelMatch)
            .where(
                DuelMatch.id == match.id,
                DuelMatch.status == DuelStatus.ACTIVE.value,
                DuelMatch.round == match.round,
            )
            .values(round=DuelMatch.round + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(match)
        if result.rowcount == 0:
            if match.status != DuelStatus.ACTIVE.value:
                raise GameError(
                    ErrorCode.DUEL_ALREADY_FINISHED,
                    "This duel has already finished",
                    {"status": match.status},
                )
            raise GameError(
                ErrorCode.DUEL_ROUND_CONFLICT,
                "This round has already been played",
                {"status": match.status, "round": match.round},
            )

        config = await self.settings.duels()
        played = duel.play_round(move, config.bot_win_chance, self.rng)
        if played.winner == duel.RoundWinner.PLAYER:
            match.bot_health -= 1
        elif played.winner == duel.RoundWinner.BOT:
            match.player_health -= 1

        explanation = await self.content.duel_explanation(
            played.player_move.value, played.bot_move.value, played.winner.value
        )
        # Reassign so the JSON column is marked dirty
        match.rounds_log = [
            *(match.rounds_log or []),
            {
                "round": match.round,
                "player_move": played.player_move.value,
                "bot_move": played.bot_move.value,
                "winner": played.winner.value,
                "explanation": explanation,
            },
        ]

        if match.bot_health <= 0:
            await self._finish(match, won=True)
        elif match.player_health <= 0:
            await self._finish(match, won=False)
        await self.session.flush()

        return {
            "match": match,
            "bot_move": played.bot_move.value,
            "round_winner": played.winner.value,
            "explanation": explanation,
        }

    async def _finish(self, match: DuelMatch, *, won: bool) -> None:
        await self.wallet.settle_hold(match.bet_transaction_id, TransactionStatus.COMPLETED)
        if not won:
            match.status = DuelStatus.LOST.value
            logger.info(f"Duel lost: match={match.id[:8]}... bet={match.bet}")
            return

        bet = to_money(match.bet)
        payout = duel.win_payout(bet, settings.duel_admin_fee_rate)
        fee_percent = (settings.duel_admin_fee_rate * 100).normalize()
        await self.wallet.credit(
            match.user_id,
            payout,
            TransactionType.DUEL_WIN,
            description=(
                f"Winnings ({settings.currency_label} {payout - bet}) + Bet "
                f"({settings.currency_label} {bet}) from Duel vs {match.bot_username}. "
                f"Admin fee: {fee_percent:f}%"
            ),
        )
        match.payout = payout
        match.status = DuelStatus.WON.value
        logger.info(f"Duel won: match={match.id[:8]}... payout={payout}")
