"""Tests for GameService wallet handling around the game engines."""

from decimal import Decimal

import pytest
from sqlalchemy import select

from arena.engine.dragon_tiger import Bets
from arena.engine.duel import Move
from arena.models.duel import DuelMatch, DuelStatus
from arena.models.wallet import Currency, TransactionStatus, TransactionType, WalletTransaction
from arena.services.content import ContentService
from arena.services.games import GameError, GameService
from arena.services.settings import SettingsService


def game_service(db_session, fake_redis, rng) -> GameService:
    return GameService(db_session, fake_redis, content=ContentService(), rng=rng)


class TestSpinWheel:
    @pytest.mark.asyncio
    async def test_win_pays_multiplier(self, db_session, fake_redis, make_user, scripted):
        user = await make_user("spinner", wallet=100)
        service = game_service(db_session, fake_redis, scripted([0.0]))

        result = await service.spin_wheel(user, 50)

        assert result["multiplier"] == 2
        assert result["prize_amount"] == Decimal("100.00")
        assert result["segment_index"] == 0
        assert len(result["segments"]) == 8
        assert user.wallet == Decimal("150.00")

    @pytest.mark.asyncio
    async def test_loss_keeps_bet(self, db_session, fake_redis, make_user, scripted):
        user = await make_user("spinner", wallet=100)
        service = game_service(db_session, fake_redis, scripted([0.2]))

        result = await service.spin_wheel(user, 50)

        assert result["prize_amount"] == Decimal("0.00")
        assert user.wallet == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_token_currency(self, db_session, fake_redis, make_user, scripted):
        user = await make_user("spinner", token_wallet=Decimal("40"))
        service = game_service(db_session, fake_redis, scripted([0.2]))

        result = await service.spin_wheel(user, 10, Currency.TOKEN)

        assert result["currency"] == "token"
        assert user.token_wallet == Decimal("30.00")
        assert user.wallet == Decimal("0")

    @pytest.mark.asyncio
    async def test_minimum_bet(self, db_session, fake_redis, make_user, scripted):
        user = await make_user("spinner", wallet=100)

        with pytest.raises(GameError) as exc_info:
            await game_service(db_session, fake_redis, scripted()).spin_wheel(user, 5)

        assert exc_info.value.code == "GAME_INVALID_BET"

    @pytest.mark.asyncio
    async def test_disabled(self, db_session, fake_redis, make_user, scripted):
        await SettingsService(db_session).update("spin_wheel", {"enabled": False})
        user = await make_user("spinner", wallet=100)

        with pytest.raises(GameError) as exc_info:
            await game_service(db_session, fake_redis, scripted()).spin_wheel(user, 50)

        assert exc_info.value.code == "GAME_DISABLED"


class TestDragonTiger:
    @pytest.mark.asyncio
    async def test_winning_round(self, db_session, fake_redis, make_user, scripted):
        user = await make_user("gambler", wallet=1000)
        service = game_service(db_session, fake_redis, scripted([0.5, 0.0]))

        result = await service.dragon_tiger(user, Bets(dragon=Decimal("100")))

        assert result["winner"] == "Dragon"
        assert result["payout"] == Decimal("195.00")
        assert set(result["dragon_card"]) == {"value", "suit", "key"}
        assert user.wallet == Decimal("1095.00")

    @pytest.mark.asyncio
    async def test_empty_bet(self, db_session, fake_redis, make_user, scripted):
        user = await make_user("gambler", wallet=1000)

        with pytest.raises(GameError) as exc_info:
            await game_service(db_session, fake_redis, scripted()).dragon_tiger(user, Bets())

        assert exc_info.value.code == "GAME_INVALID_BET"


class TestDuels:
    @pytest.mark.asyncio
    async def test_start_holds_bet(self, db_session, fake_redis, make_user, scripted):
        user = await make_user("fighter", wallet=500)
        service = game_service(db_session, fake_redis, scripted())

        match = await service.start_duel(user, 100)

        assert match.status == DuelStatus.ACTIVE.value
        assert (match.player_health, match.bot_health) == (3, 3)
        assert user.wallet == Decimal("400.00")
        hold = await db_session.get(WalletTransaction, match.bet_transaction_id)
        assert hold.status == TransactionStatus.ON_HOLD.value
        assert [m.id for m in await service.list_duels(user)] == [match.id]

    @pytest.mark.asyncio
    async def test_bet_below_minimum(self, db_session, fake_redis, make_user, scripted):
        user = await make_user("fighter", wallet=500)

        with pytest.raises(GameError) as exc_info:
            await game_service(db_session, fake_redis, scripted()).start_duel(user, 10)

        assert exc_info.value.details == {"minimum": 20.0}

    @pytest.mark.asyncio
    async def test_losing_duel(self, db_session, fake_redis, make_user, scripted):
        await SettingsService(db_session).update("duels", {"botWinChance": 1.0})
        user = await make_user("fighter", wallet=500)
        service = game_service(db_session, fake_redis, scripted())
        match = await service.start_duel(user, 100)

        rounds = [await service.play_duel_round(user, match.id, "Scissors") for _ in range(3)]

        assert [r["round_winner"] for r in rounds] == ["Bot", "Bot", "Bot"]
        assert rounds[0]["bot_move"] == "Rock"
        assert rounds[0]["explanation"] == "Rock beats your Scissors. You take a hit!"
        assert match.status == DuelStatus.LOST.value
        assert len(match.rounds_log) == 3
        assert user.wallet == Decimal("400.00")
        hold = await db_session.get(WalletTransaction, match.bet_transaction_id)
        assert hold.status == TransactionStatus.COMPLETED.value

        with pytest.raises(GameError) as exc_info:
            await service.play_duel_round(user, match.id, "Rock")
        assert exc_info.value.code == "DUEL_ALREADY_FINISHED"

    @pytest.mark.asyncio
    async def test_winning_duel_pays_after_fee(self, db_session, fake_redis, make_user, scripted):
        await SettingsService(db_session).update("duels", {"botWinChance": 0.0})
        user = await make_user("fighter", wallet=500)
        service = game_service(db_session, fake_redis, scripted())
        match = await service.start_duel(user, 100)

        for _ in range(100):
            result = await service.play_duel_round(user, match.id, Move.SCISSORS)
            assert result["round_winner"] != "Bot"
            if match.status != DuelStatus.ACTIVE.value:
                break

        assert match.status == DuelStatus.WON.value
        assert match.payout == Decimal("195.00")
        assert user.wallet == Decimal("595.00")

    @pytest.mark.asyncio
    async def test_stale_round_is_rejected(
        self, db_session, second_session, fake_redis, make_user, scripted
    ):
        user = await make_user("fighter", wallet=500)
        service = game_service(db_session, fake_redis, scripted())
        match = await service.start_duel(user, 100)
        await db_session.commit()
        # A second request loaded the duel before round 1 was played
        stale = await second_session.get(DuelMatch, match.id)  # noqa: F841 - keep it in the identity map

        await service.play_duel_round(user, match.id, Move.ROCK)
        await db_session.commit()

        with pytest.raises(GameError) as exc_info:
            await game_service(second_session, fake_redis, scripted()).play_duel_round(
                user, match.id, Move.ROCK
            )
        await second_session.rollback()

        assert exc_info.value.code == "DUEL_ROUND_CONFLICT"
        await db_session.refresh(match)
        assert match.round == 1
        assert len(match.rounds_log) == 1

    @pytest.mark.asyncio
    async def test_finished_duel_pays_once(
        self, db_session, second_session, fake_redis, make_user, scripted
    ):
        await SettingsService(db_session).update("duels", {"botWinChance": 0.0})
        user = await make_user("fighter", wallet=500)
        service = game_service(db_session, fake_redis, scripted())
        match = await service.start_duel(user, 100)
        await db_session.commit()
        await second_session.get(DuelMatch, match.id)

        for _ in range(100):
            await service.play_duel_round(user, match.id, Move.PAPER)
            if match.status != DuelStatus.ACTIVE.value:
                break
        await db_session.commit()

        with pytest.raises(GameError) as exc_info:
            await game_service(second_session, fake_redis, scripted()).play_duel_round(
                user, match.id, Move.PAPER
            )
        await second_session.rollback()

        assert exc_info.value.code == "DUEL_ALREADY_FINISHED"
        await db_session.refresh(user)
        assert user.wallet == Decimal("595.00")
        wins = (
            await db_session.execute(
                select(WalletTransaction).where(
                    WalletTransaction.tx_type == TransactionType.DUEL_WIN.value
                )
            )
        ).scalars().all()
        assert len(wins) == 1

    @pytest.mark.asyncio
    async def test_invalid_move(self, db_session, fake_redis, make_user, scripted):
        user = await make_user("fighter", wallet=500)
        service = game_service(db_session, fake_redis, scripted())
        match = await service.start_duel(user, 100)

        with pytest.raises(GameError) as exc_info:
            await service.play_duel_round(user, match.id, "Lizard")

        assert exc_info.value.code == "GAME_INVALID_MOVE"

    @pytest.mark.asyncio
    async def test_other_players_duel_hidden(self, db_session, fake_redis, make_user, scripted):
        owner = await make_user("fighter", wallet=500)
        other = await make_user("snoop")
        service = game_service(db_session, fake_redis, scripted())
        match = await service.start_duel(owner, 100)

        with pytest.raises(GameError) as exc_info:
            await service.get_duel(other, match.id)

        assert exc_info.value.code == "DUEL_NOT_FOUND"
