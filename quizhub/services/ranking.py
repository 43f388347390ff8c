from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from quizhub.models.domain import Attempt


@dataclass(frozen=True)
class RankedEntry:
    participant_id: str
    participant_email: str
    rank: int
    score: float
    completed_at: datetime

    @property
    def tie_break_key(self) -> str:
        return f"{self.completed_at.isoformat()}|{self.participant_id}"


def ranking_key(attempt: Attempt) -> tuple[float, datetime, str]:
    # Higher score first, then earlier finisher, then participant id.
    return (-float(attempt.score), attempt.completed_at, attempt.participant_id)


def rank_attempts(attempts: Iterable[Attempt]) -> list[RankedEntry]:
    ordered = sorted(attempts, key=ranking_key)
    return [
        RankedEntry(
            participant_id=a.participant_id,
            participant_email=a.participant_email,
            rank=position,
            score=float(a.score),
            completed_at=a.completed_at,
        )
        for position, a in enumerate(ordered, start=1)
    ]
