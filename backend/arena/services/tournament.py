"""Tournament service: scheduling, joining, results and status progression."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from redis.asyncio import Redis
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from arena.models.base import to_money
from arena.models.tournament import (
    Tournament,
    TournamentEntry,
    TournamentResult,
    TournamentStatus,
)
from arena.models.user import User
from arena.models.wallet import TransactionType
from arena.schemas.tournament import (
    JoinTournamentRequest,
    PlayerResultInput,
    TournamentCreate,
    TournamentUpdate,
)
from arena.services.leaderboard import LeaderboardService
from arena.services.notification import NotificationService
from arena.services.wallet import WalletService
from arena.utils.errors import ArenaError, ErrorCode

logger = logging.getLogger(__name__)

TEMP_UID_PREFIX = "temp_"


class TournamentError(ArenaError):
    """Tournament operation error."""


class TournamentService:
    def __init__(self, session: AsyncSession, redis: Redis | None = None) -> None:
        self.session = session
        self._redis = redis
        self._wallet: WalletService | None = None
        self.leaderboard = LeaderboardService(session)
        self.notifications = NotificationService(session)

    @property
    def wallet(self) -> WalletService:
        # Listing and reading tournaments never touches Redis
        if self._wallet is None:
            self._wallet = WalletService(self.session, self._redis)
        return self._wallet

    # =========================================================================
    # CRUD
    # =========================================================================

    async def create(self, data: TournamentCreate, created_by: str | None = None) -> Tournament:
        tournament = Tournament(
            **data.model_dump(exclude={"mode"}),
            mode=data.mode.value,
            status=TournamentStatus.UPCOMING.value,
            created_by=created_by,
        )
        self.session.add(tournament)
        await self.session.flush()
        logger.info(f"Tournament created: id={tournament.id[:8]}... name={tournament.name}")
        return tournament

    async def get(self, tournament_id: str, *, with_entries: bool = False) -> Tournament:
        query = select(Tournament).where(Tournament.id == tournament_id)
        if with_entries:
            query = query.options(
                selectinload(Tournament.entries),
                selectinload(Tournament.results),
            )
        result = await self.session.execute(query)
        tournament = result.scalar_one_or_none()
        if tournament is None:
            raise TournamentError(
                ErrorCode.TOURNAMENT_NOT_FOUND,
                "Tournament not found",
                {"tournamentId": tournament_id},
            )
        return tournament

    async def list_tournaments(
        self,
        status: TournamentStatus | None = None,
        *,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Tournament]:
        query = select(Tournament)
        if status:
            query = query.where(Tournament.status == status.value)
        query = query.order_by(Tournament.start_time.asc()).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update(self, tournament_id: str, data: TournamentUpdate) -> Tournament:
        tournament = await self.get(tournament_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if hasattr(value, "value"):
                value = value.value
            setattr(tournament, key, value)
        await self.session.flush()
        return tournament

    async def delete(self, tournament_id: str) -> None:
        tournament = await self.get(tournament_id)
        await self.session.delete(tournament)
        await self.session.flush()
        logger.info(f"Tournament deleted: id={tournament_id[:8]}...")

    async def is_joined(self, tournament_id: str, user_id: str) -> bool:
        result = await self.session.execute(
            select(TournamentEntry.id).where(
                TournamentEntry.tournament_id == tournament_id,
                TournamentEntry.user_id == user_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def cancel(self, tournament_id: str) -> dict[str, Any]:
        """Cancel an upcoming tournament and refund every entry fee."""
        tournament = await self.get(tournament_id, with_entries=True)
        if tournament.status != TournamentStatus.UPCOMING.value:
            raise TournamentError(
                ErrorCode.TOURNAMENT_NOT_OPEN,
                "Only upcoming tournaments can be cancelled",
                {"status": tournament.status},
            )

        refunded = 0
        fee = to_money(tournament.entry_fee)
        for entry in tournament.entries:
            if fee > 0:
                await self.wallet.credit(
                    entry.user_id,
                    fee,
                    TransactionType.REFUND,
                    description=f"Entry fee refund for cancelled tournament {tournament.name}",
                    related_tournament_id=tournament.id,
                )
                refunded += 1
            await self.notifications.notify(
                entry.user_id,
                f"{tournament.name} has been cancelled."
                + (" Your entry fee was refunded." if fee > 0 else ""),
                title="Tournament cancelled",
            )

        tournament.status = TournamentStatus.CANCELLED.value
        await self.session.flush()
        logger.info(f"Tournament cancelled: id={tournament.id[:8]}... refunds={refunded}")
        return {"refunded_entries": refunded, "refund_amount": fee * refunded}

    # =========================================================================
    # Joining
    # =========================================================================

    async def join(
        self,
        tournament_id: str,
        user: User,
        request: JoinTournamentRequest,
    ) -> TournamentEntry:
        """Register a user (and teammates) and charge the entry fee.

        Raises:
            TournamentError: Not open, full, already joined, or bad team
            InsufficientBalanceError: Entry fee exceeds the wallet balance
        """
        tournament = await self.get(tournament_id)
        now = datetime.now(timezone.utc)

        if tournament.status != TournamentStatus.UPCOMING.value or tournament.start_time <= now:
            raise TournamentError(
                ErrorCode.TOURNAMENT_NOT_OPEN,
                "This tournament is not open for registration",
                {"status": tournament.status},
            )
        if tournament.is_full:
            raise TournamentError(ErrorCode.TOURNAMENT_FULL, "Tournament is full")
        if await self.is_joined(tournament.id, user.id):
            raise TournamentError(
                ErrorCode.TOURNAMENT_ALREADY_JOINED,
                "You have already joined this tournament",
            )

        low, high = tournament.teammate_range
        count = len(request.team_members)
        if not low <= count <= high:
            raise TournamentError(
                ErrorCode.TOURNAMENT_TEAM_INVALID,
                f"{tournament.mode} tournaments need between {low} and {high} teammates",
                {"required": [low, high], "given": count},
            )

        fee = to_money(tournament.entry_fee)
        if fee > 0:
            await self.wallet.debit(
                user.id,
                fee,
                TransactionType.ENTRY_FEE,
                description=f"Entry fee for {tournament.name}",
                related_tournament_id=tournament.id,
            )

        entry = TournamentEntry(
            tournament_id=tournament.id,
            user_id=user.id,
            username=user.username,
            game_uid=(request.game_uid or user.game_uid or user.id[:8]).strip(),
            game_name=(request.game_name or user.game_name or "Player").strip(),
            team_members=[m.model_dump() for m in request.team_members],
        )
        self.session.add(entry)

        # Conditional increment guards against overfilling under concurrency
        result = await self.session.execute(
            update(Tournament)
            .where(
                Tournament.id == tournament.id,
                Tournament.joined_players < Tournament.max_players,
            )
            .values(joined_players=Tournament.joined_players + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise TournamentError(ErrorCode.TOURNAMENT_FULL, "Tournament is full")
        await self.session.flush()
        await self.session.refresh(tournament, attribute_names=["joined_players"])

        logger.info(
            f"Tournament joined: tournament={tournament.id[:8]}... user={user.id[:8]}... fee={fee}"
        )
        return entry

    # =========================================================================
    # Results
    # =========================================================================

    async def _linked_user(self, tournament_id: str, game_uid: str) -> User | None:
        """The user behind a game uid: the entry's captain first, then profiles."""
        result = await self.session.execute(
            select(TournamentEntry.user_id).where(
                TournamentEntry.tournament_id == tournament_id,
                TournamentEntry.game_uid == game_uid,
            )
        )
        user_id = result.scalars().first()
        if user_id:
            return await self.session.get(User, user_id)

        result = await self.session.execute(select(User).where(User.game_uid == game_uid))
        return result.scalars().first()

    async def post_results(
        self,
        tournament_id: str,
        results: list[PlayerResultInput],
    ) -> dict[str, Any]:
        """Record kills, positions and prizes, applying only the changes.

        Posting again corrects earlier results: kill differences move the
        leaderboard, prize differences credit or claw back the wallet.
        """
        tournament = await self.get(tournament_id)
        processed = skipped = 0
        prize_total = Decimal("0")

        for item in results:
            game_uid = (item.game_uid or "").strip()
            if not game_uid or game_uid.startswith(TEMP_UID_PREFIX):
                logger.warning(f"Skipping result with missing or temporary game uid: {item.game_uid!r}")
                skipped += 1
                continue

            existing = (
                await self.session.execute(
                    select(TournamentResult).where(
                        TournamentResult.tournament_id == tournament.id,
                        TournamentResult.game_uid == game_uid,
                    )
                )
            ).scalar_one_or_none()
            old_kills = existing.kills if existing else 0
            old_prize = to_money(existing.earnings) if existing else Decimal("0")
            old_won = bool(existing and existing.position == 1)

            user = await self._linked_user(tournament.id, game_uid)
            in_game_name = item.game_name or (user.game_name if user else None) or "N/A"

            new_prize = to_money(item.prize)
            kills_delta = item.kills - old_kills
            prize_delta = new_prize - old_prize if user else Decimal("0")
            wins_delta = int(item.position == 1) - int(old_won)

            if existing is None:
                existing = TournamentResult(tournament_id=tournament.id, game_uid=game_uid)
                self.session.add(existing)
            existing.user_id = user.id if user else None
            existing.game_name = in_game_name
            existing.kills = item.kills
            existing.position = item.position
            if user:
                existing.earnings = new_prize

            if kills_delta or prize_delta or wins_delta:
                await self.leaderboard.apply_delta(
                    game_uid,
                    username=user.username if user else in_game_name,
                    in_game_name=in_game_name,
                    user_id=user.id if user else None,
                    avatar_url=user.avatar_url if user else None,
                    kills_delta=kills_delta,
                    earnings_delta=prize_delta,
                    wins_delta=wins_delta,
                )

            if user and prize_delta != 0:
                await self.wallet.transfer(
                    user.id,
                    prize_delta,
                    TransactionType.PRIZE,
                    description=f"Prize adjustment for tournament: {tournament.name}",
                    related_tournament_id=tournament.id,
                    allow_overdraft=True,
                )
                prize_total += prize_delta
                if prize_delta > 0:
                    await self.notifications.notify(
                        user.id,
                        f"You won {prize_delta} in {tournament.name}!",
                        title="Prize credited",
                    )

            await self.session.execute(
                update(TournamentEntry)
                .where(
                    TournamentEntry.tournament_id == tournament.id,
                    TournamentEntry.game_uid == game_uid,
                )
                .values(kills=item.kills)
                .execution_options(synchronize_session=False)
            )
            processed += 1

        tournament.results_posted = True
        tournament.status = TournamentStatus.COMPLETED.value
        await self.session.flush()

        logger.info(
            f"Results posted: tournament={tournament.id[:8]}... "
            f"processed={processed} skipped={skipped} prizes={prize_total}"
        )
        return {"processed": processed, "skipped": skipped, "prize_total": prize_total}

    # =========================================================================
    # Scheduling
    # =========================================================================

    async def advance_statuses(self, now: datetime | None = None) -> int:
        """Move upcoming tournaments whose start time has passed to live."""
        now = now or datetime.now(timezone.utc)
        result = await self.session.execute(
            update(Tournament)
            .where(
                Tournament.status == TournamentStatus.UPCOMING.value,
                Tournament.start_time <= now,
            )
            .values(status=TournamentStatus.LIVE.value)
            .execution_options(synchronize_session=False)
        )
        count = result.rowcount or 0
        if count:
            logger.info(f"Tournaments went live: count={count}")
        return count
