from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.core.constants import Action, ContestState
from quizhub.core.security import Identity, require
from quizhub.models.domain import Contest
from quizhub.repositories.attempt_repository import AttemptRepository
from quizhub.repositories.leaderboard_repository import LeaderboardRepository
from quizhub.services.contest_service import ContestService
from quizhub.services.lifecycle_service import LifecycleService
from quizhub.services.ranking import RankedEntry, rank_attempts
from quizhub.utils.clock import Clock, utcnow


class LeaderboardService:
    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.attempts = AttemptRepository(db)
        self.repo = LeaderboardRepository(db)
        self.contest_service = ContestService(db, clock)
        self.lifecycle = LifecycleService(db, clock)

    async def rank(
        self,
        contest_id: UUID,
        viewer: Identity | None,
        limit: int | None = None,
        offset: int = 0,
    ) -> dict:
        require(viewer, Action.VIEW_LEADERBOARD)
        contest = await self.contest_service.get_contest_or_404(contest_id)
        state = await self.lifecycle.reconcile(contest)
        entries = await self.ranked_entries(contest, state)
        page = entries[offset : offset + limit] if limit is not None else entries[offset:]
        return {
            "contestId": contest.id,
            "state": state.value,
            "frozen": contest.leaderboard_frozen_at is not None,
            "frozenAt": contest.leaderboard_frozen_at,
            "total": len(entries),
            "entries": [self.serialize_entry(e) for e in page],
        }

    async def ranked_entries(self, contest: Contest, state: ContestState) -> list[RankedEntry]:
        """Frozen snapshot for completed contests, live ranking for active ones."""
        if state == ContestState.COMPLETED and contest.leaderboard_frozen_at is not None:
            return [
                RankedEntry(
                    participant_id=row.participant_id,
                    participant_email=row.participant_email,
                    rank=row.rank,
                    score=row.score,
                    completed_at=row.completed_at,
                )
                for row in await self.repo.list_frozen(contest.id)
            ]
        if state in {ContestState.ACTIVE, ContestState.COMPLETED}:
            return rank_attempts(await self.attempts.list_for_contest(contest.id))
        return []

    async def freeze(self, contest_id: UUID, actor: Identity | None) -> dict:
        require(actor, Action.FREEZE_LEADERBOARD)
        contest = await self.contest_service.get_contest_or_404(contest_id)
        await self.lifecycle.freeze(contest)
        return {
            "contestId": contest.id,
            "state": self.lifecycle.state_of(contest).value,
            "frozen": contest.leaderboard_frozen_at is not None,
            "frozenAt": contest.leaderboard_frozen_at,
            "entries": await self.repo.count_frozen(contest.id),
        }

    def serialize_entry(self, entry: RankedEntry) -> dict:
        return {
            "rank": entry.rank,
            "participantId": entry.participant_id,
            "participantEmail": entry.participant_email,
            "score": entry.score,
            "completedAt": entry.completed_at,
            "tieBreakKey": entry.tie_break_key,
        }
