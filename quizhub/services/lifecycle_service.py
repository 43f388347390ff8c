"""Contest lifecycle.

State is never stored: it is recomputed from the contest dates and the
current time on every read, so it can only move forward as time passes
(Draft -> Scheduled -> Active -> Completed). The single side effect is the
leaderboard freeze, performed once per contest through a compare-and-set on
``contests.leaderboard_frozen_at``.
"""

from datetime import datetime

import structlog
from prometheus_client import Counter
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from quizhub.core.constants import ContestState
from quizhub.events.audit import record_audit
from quizhub.models.domain import Contest, LeaderboardEntry
from quizhub.repositories.attempt_repository import AttemptRepository
from quizhub.repositories.contest_repository import ContestRepository
from quizhub.repositories.leaderboard_repository import LeaderboardRepository
from quizhub.services.ranking import rank_attempts
from quizhub.utils.clock import Clock, utcnow

logger = structlog.get_logger()

FREEZE_COUNTER = Counter("quizhub_leaderboard_freezes_total", "Leaderboards frozen")


def compute_state(start: datetime | None, end: datetime | None, now: datetime) -> ContestState:
    if start is None or end is None:
        return ContestState.DRAFT
    if now < start:
        return ContestState.SCHEDULED
    if now < end:
        return ContestState.ACTIVE
    return ContestState.COMPLETED


def is_locked(state: ContestState) -> bool:
    return state in {ContestState.ACTIVE, ContestState.COMPLETED}


class LifecycleService:
    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.contests = ContestRepository(db)
        self.attempts = AttemptRepository(db)
        self.leaderboards = LeaderboardRepository(db)

    def state_of(self, contest: Contest, now: datetime | None = None) -> ContestState:
        return compute_state(contest.start_date, contest.end_date, now or self.clock())

    async def reconcile(self, contest: Contest) -> ContestState:
        state = self.state_of(contest)
        if state == ContestState.COMPLETED and contest.leaderboard_frozen_at is None:
            await self.freeze(contest)
        return state

    async def freeze(self, contest: Contest) -> bool:
        """Freeze the leaderboard of a completed contest.

        Returns True only for the call that actually wrote the snapshot;
        repeated or concurrent calls are no-ops and return False.
        """
        now = self.clock()
        if self.state_of(contest, now) != ContestState.COMPLETED:
            return False
        if contest.leaderboard_frozen_at is not None:
            return False

        won = await self.contests.mark_frozen(contest.id, now)
        if not won:
            await self.db.commit()
            await self.db.refresh(contest, ["leaderboard_frozen_at"])
            logger.info("leaderboard_freeze_skipped", contest_id=str(contest.id))
            return False

        ranked = rank_attempts(await self.attempts.list_for_contest(contest.id))
        await self.leaderboards.add_all(
            [
                LeaderboardEntry(
                    contest_id=contest.id,
                    participant_id=entry.participant_id,
                    participant_email=entry.participant_email,
                    rank=entry.rank,
                    score=entry.score,
                    completed_at=entry.completed_at,
                )
                for entry in ranked
            ]
        )
        await record_audit(
            self.db,
            actor_id=None,
            action="leaderboard_frozen",
            entity_type="contest",
            entity_id=str(contest.id),
            payload={"entries": len(ranked), "frozenAt": now.isoformat()},
        )
        set_committed_value(contest, "leaderboard_frozen_at", now)
        await self.db.commit()
        FREEZE_COUNTER.inc()
        logger.info("leaderboard_frozen", contest_id=str(contest.id), entries=len(ranked))
        return True

    async def freeze_due(self) -> int:
        """Freeze every contest that has ended but was never read after ending."""
        frozen = 0
        for contest_id in await self.contests.list_unfrozen_ended(self.clock()):
            contest = await self.contests.get_by_id(contest_id)
            if contest and await self.freeze(contest):
                frozen += 1
        if frozen:
            logger.info("freeze_sweep_done", frozen=frozen)
        return frozen
