from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from quizhub.core.constants import DEFAULT_CATEGORY, ContestState, QuestionsOperation, ScoringType


class QuestionIn(BaseModel):
    text: str = Field(min_length=1)
    options: list[str] = Field(min_length=1)
    correctAnswer: str = Field(min_length=1)
    category: str = Field(default=DEFAULT_CATEGORY, min_length=1, max_length=64)
    points: float = 1

    @field_validator("points")
    @classmethod
    def validate_points(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("points must be > 0")
        return v

    @model_validator(mode="after")
    def correct_answer_is_an_option(self) -> "QuestionIn":
        texts = [opt.strip() for opt in self.options]
        if not all(texts):
            raise ValueError("options must not be blank")
        if self.correctAnswer.strip() not in texts:
            raise ValueError("correctAnswer must match one of the provided options")
        return self


class ContestCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    price: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    startDate: datetime | None = None
    endDate: datetime | None = None
    scoringType: ScoringType = ScoringType.COUNT_CORRECT
    questions: list[QuestionIn] = Field(min_length=1)


class ContestPatchRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    startDate: datetime | None = None
    endDate: datetime | None = None
    scoringType: ScoringType | None = None
    questions: list[QuestionIn] | None = Field(default=None, min_length=1)
    operation: QuestionsOperation | None = None


class QuestionOut(BaseModel):
    id: UUID
    text: str
    options: list[str]
    category: str
    points: float
    correctAnswer: str | None = None


class ContestSummaryOut(BaseModel):
    id: UUID
    title: str
    description: str
    price: float
    scoringType: ScoringType
    startDate: datetime | None
    endDate: datetime | None
    state: ContestState
    totalQuestions: int
    totalParticipants: int
    leaderboardEntries: int
    leaderboardFrozenAt: datetime | None
    creatorId: str
    createdAt: datetime
    updatedAt: datetime


class ContestDetailOut(ContestSummaryOut):
    questions: list[QuestionOut]


class PlayViewOut(BaseModel):
    contestId: UUID
    title: str
    description: str
    endDate: datetime | None
    category: str | None
    totalQuestions: int
    questions: list[QuestionOut]


class CategoriesOut(BaseModel):
    categories: list[str]
