from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from quizhub.models.domain import Attempt, Contest, LeaderboardEntry, Question


class ContestRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, contest_id: UUID) -> Contest | None:
        res = await self.db.execute(
            select(Contest)
            .where(Contest.id == contest_id)
            .options(selectinload(Contest.questions).selectinload(Question.options))
            .execution_options(populate_existing=True)
        )
        return res.scalar_one_or_none()

    async def list_all(self) -> list[Contest]:
        res = await self.db.execute(select(Contest).order_by(Contest.created_at.desc()))
        return list(res.scalars().all())

    async def list_ended(self, now: datetime) -> list[Contest]:
        res = await self.db.execute(
            select(Contest)
            .where(Contest.end_date.is_not(None), Contest.end_date <= now)
            .order_by(Contest.end_date.desc())
        )
        return list(res.scalars().all())

    async def list_unfrozen_ended(self, now: datetime) -> list[UUID]:
        res = await self.db.execute(
            select(Contest.id).where(
                Contest.start_date.is_not(None),
                Contest.end_date.is_not(None),
                Contest.end_date <= now,
                Contest.leaderboard_frozen_at.is_(None),
            )
        )
        return list(res.scalars().all())

    async def add(self, row: Contest) -> Contest:
        self.db.add(row)
        await self.db.flush()
        return row

    async def delete(self, row: Contest) -> None:
        await self.db.delete(row)

    async def mark_frozen(self, contest_id: UUID, frozen_at: datetime) -> bool:
        """Compare-and-set the frozen flag; True only for the caller that flipped it."""
        res = await self.db.execute(
            update(Contest)
            .where(Contest.id == contest_id, Contest.leaderboard_frozen_at.is_(None))
            .values(leaderboard_frozen_at=frozen_at)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

    async def question_counts_bulk(self, contest_ids: list[UUID]) -> dict[UUID, int]:
        if not contest_ids:
            return {}
        res = await self.db.execute(
            select(Question.contest_id, func.count(Question.id))
            .where(Question.contest_id.in_(contest_ids))
            .group_by(Question.contest_id)
        )
        return {contest_id: int(count) for contest_id, count in res.all()}

    async def participant_counts_bulk(self, contest_ids: list[UUID]) -> dict[UUID, int]:
        if not contest_ids:
            return {}
        res = await self.db.execute(
            select(Attempt.contest_id, func.count(Attempt.id))
            .where(Attempt.contest_id.in_(contest_ids))
            .group_by(Attempt.contest_id)
        )
        return {contest_id: int(count) for contest_id, count in res.all()}

    async def frozen_entry_counts_bulk(self, contest_ids: list[UUID]) -> dict[UUID, int]:
        if not contest_ids:
            return {}
        res = await self.db.execute(
            select(LeaderboardEntry.contest_id, func.count(LeaderboardEntry.id))
            .where(LeaderboardEntry.contest_id.in_(contest_ids))
            .group_by(LeaderboardEntry.contest_id)
        )
        return {contest_id: int(count) for contest_id, count in res.all()}
