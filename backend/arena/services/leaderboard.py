"""Leaderboard service.

Entries are keyed by in-game uid and maintained incrementally: posting or
correcting tournament results applies only the difference from what was
previously recorded.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from arena.models.base import to_money
from arena.models.leaderboard import LeaderboardEntry

logger = logging.getLogger(__name__)


class LeaderboardService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def top(self, limit: int = 100) -> list[tuple[int, LeaderboardEntry]]:
        """Entries ordered by kills, ranked from 1."""
        result = await self.session.execute(
            select(LeaderboardEntry)
            .order_by(LeaderboardEntry.kills.desc(), LeaderboardEntry.earnings.desc())
            .limit(limit)
        )
        return list(enumerate(result.scalars().all(), start=1))

    async def apply_delta(
        self,
        game_uid: str,
        *,
        username: str,
        in_game_name: str,
        user_id: str | None = None,
        avatar_url: str | None = None,
        kills_delta: int = 0,
        earnings_delta: Decimal = Decimal("0"),
        wins_delta: int = 0,
    ) -> LeaderboardEntry:
        """Add deltas to an entry, creating it when missing."""
        entry = await self.session.get(LeaderboardEntry, game_uid)
        if entry is None:
            entry = LeaderboardEntry(
                game_uid=game_uid,
                user_id=user_id,
                username=username,
                in_game_name=in_game_name,
                avatar_url=avatar_url,
                kills=max(kills_delta, 0),
                wins=max(wins_delta, 0),
                earnings=to_money(earnings_delta),
            )
            self.session.add(entry)
        else:
            entry.username = username or entry.username
            entry.in_game_name = in_game_name or entry.in_game_name
            entry.avatar_url = avatar_url or entry.avatar_url
            entry.user_id = user_id or entry.user_id
            entry.kills = (entry.kills or 0) + kills_delta
            entry.wins = (entry.wins or 0) + wins_delta
            entry.earnings = to_money(entry.earnings or 0) + to_money(earnings_delta)

        await self.session.flush()
        logger.debug(
            f"Leaderboard updated: uid={game_uid} kills{kills_delta:+} wins{wins_delta:+}"
        )
        return entry
