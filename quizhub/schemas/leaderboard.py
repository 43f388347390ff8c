from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from quizhub.core.constants import ContestState


class LeaderboardEntryOut(BaseModel):
    rank: int
    participantId: str
    participantEmail: str
    score: float
    completedAt: datetime
    tieBreakKey: str


class LeaderboardOut(BaseModel):
    contestId: UUID
    state: ContestState
    frozen: bool
    frozenAt: datetime | None
    total: int
    entries: list[LeaderboardEntryOut]


class FreezeOut(BaseModel):
    contestId: UUID
    state: ContestState
    frozen: bool
    frozenAt: datetime | None
    entries: int
