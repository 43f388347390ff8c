from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class SubmitRequest(BaseModel):
    answers: dict[str, str | int | float] = Field(default_factory=dict)


class QuestionResultOut(BaseModel):
    questionId: str
    correct: bool


class SubmitResultOut(BaseModel):
    attemptId: UUID
    contestId: UUID
    score: float
    maxScore: float
    correctCount: int
    totalQuestions: int
    percentageScore: int
    completedAt: datetime
    results: list[QuestionResultOut]


class AttemptOut(BaseModel):
    id: UUID
    contestId: UUID
    participantId: str
    participantEmail: str
    score: float
    correctCount: int
    totalQuestions: int
    completedAt: datetime


class ParticipantAttemptOut(AttemptOut):
    contestTitle: str


class AttemptResultOut(ParticipantAttemptOut):
    rank: int | None
    totalParticipants: int


class ScoreOverrideRequest(BaseModel):
    score: float = Field(ge=0)
    reason: str = Field(default="", max_length=500)


class ScoreOverrideOut(AttemptOut):
    previousScore: float
