from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.models.domain import LeaderboardEntry


class LeaderboardRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_all(self, rows: list[LeaderboardEntry]) -> None:
        self.db.add_all(rows)
        await self.db.flush()

    async def list_frozen(self, contest_id: UUID) -> list[LeaderboardEntry]:
        res = await self.db.execute(
            select(LeaderboardEntry)
            .where(LeaderboardEntry.contest_id == contest_id)
            .order_by(LeaderboardEntry.rank.asc())
        )
        return list(res.scalars().all())

    async def count_frozen(self, contest_id: UUID) -> int:
        res = await self.db.execute(
            select(func.count(LeaderboardEntry.id)).where(LeaderboardEntry.contest_id == contest_id)
        )
        return int(res.scalar() or 0)
