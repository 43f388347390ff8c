from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from quizhub.models.domain import Attempt

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AttemptRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert_if_absent(self, values: dict[str, Any]) -> Attempt | None:
        """Insert an attempt unless one exists for the same (contest, participant).

        A single ``INSERT ... ON CONFLICT DO NOTHING RETURNING`` statement, so
        concurrent callers race on the unique constraint, not on a prior read.
        Returns None when the row already existed.
        """
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise RuntimeError(f"Conditional insert is not supported on {dialect}")
        row_values = {"id": uuid4(), **values}
        stmt = (
            insert(Attempt)
            .values(**row_values)
            .on_conflict_do_nothing(index_elements=[Attempt.contest_id, Attempt.participant_id])
            .returning(Attempt.id)
        )
        res = await self.db.execute(stmt)
        inserted_id = res.scalar_one_or_none()
        if inserted_id is None:
            return None
        return await self.get_by_id(inserted_id)

    async def get_by_id(self, attempt_id: UUID) -> Attempt | None:
        res = await self.db.execute(select(Attempt).where(Attempt.id == attempt_id))
        return res.scalar_one_or_none()

    async def get(self, contest_id: UUID, participant_id: str) -> Attempt | None:
        res = await self.db.execute(
            select(Attempt).where(
                Attempt.contest_id == contest_id,
                Attempt.participant_id == participant_id,
            )
        )
        return res.scalar_one_or_none()

    async def list_for_contest(self, contest_id: UUID) -> list[Attempt]:
        res = await self.db.execute(
            select(Attempt)
            .where(Attempt.contest_id == contest_id)
            .order_by(Attempt.completed_at.asc(), Attempt.participant_id.asc())
        )
        return list(res.scalars().all())

    async def list_for_participant(self, participant_id: str) -> list[Attempt]:
        res = await self.db.execute(
            select(Attempt)
            .where(Attempt.participant_id == participant_id)
            .options(selectinload(Attempt.contest))
            .order_by(Attempt.completed_at.desc())
        )
        return list(res.scalars().all())
