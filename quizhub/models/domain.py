from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quizhub.core.constants import DEFAULT_CATEGORY, ScoringType
from quizhub.db.base import Base, UTCDateTime
from quizhub.utils.clock import utcnow


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class Contest(Base, TimestampMixin):
    __tablename__ = "contests"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    creator_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    scoring_type: Mapped[ScoringType] = mapped_column(
        Enum(ScoringType), default=ScoringType.COUNT_CORRECT, nullable=False
    )
    start_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True, index=True)
    end_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True, index=True)
    leaderboard_frozen_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    questions: Mapped[list["Question"]] = relationship(
        back_populates="contest", cascade="all, delete-orphan", order_by="Question.sort_order"
    )
    attempts: Mapped[list["Attempt"]] = relationship(
        back_populates="contest", cascade="all, delete-orphan"
    )
    leaderboard_entries: Mapped[list["LeaderboardEntry"]] = relationship(
        back_populates="contest", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="price_non_negative"),
        CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR start_date < end_date",
            name="start_before_end",
        ),
    )


class Question(Base):
    __tablename__ = "questions"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    contest_id: Mapped[UUID] = mapped_column(ForeignKey("contests.id", ondelete="CASCADE"), index=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(64), default=DEFAULT_CATEGORY, nullable=False)
    points: Mapped[float] = mapped_column(Float, default=1, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    contest: Mapped["Contest"] = relationship(back_populates="questions")
    options: Mapped[list["QuestionOption"]] = relationship(
        back_populates="question", cascade="all, delete-orphan", order_by="QuestionOption.option_index"
    )


class QuestionOption(Base):
    __tablename__ = "question_options"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    question_id: Mapped[UUID] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), index=True
    )
    option_index: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    question: Mapped["Question"] = relationship(back_populates="options")

    __table_args__ = (UniqueConstraint("question_id", "option_index"),)


class Attempt(Base):
    __tablename__ = "attempts"
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    contest_id: Mapped[UUID] = mapped_column(ForeignKey("contests.id", ondelete="CASCADE"), index=True)
    participant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    participant_email: Mapped[str] = mapped_column(String(320), nullable=False)
    score: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    correct_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    answers_json: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False, index=True)

    contest: Mapped["Contest"] = relationship(back_populates="attempts")

    __table_args__ = (UniqueConstraint("contest_id", "participant_id"),)


class LeaderboardEntry(Base):
    """Row of a frozen leaderboard; written once when the contest completes."""

    __tablename__ = "leaderboard_entries"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    contest_id: Mapped[UUID] = mapped_column(ForeignKey("contests.id", ondelete="CASCADE"), index=True)
    participant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    participant_email: Mapped[str] = mapped_column(String(320), nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    contest: Mapped["Contest"] = relationship(back_populates="leaderboard_entries")

    __table_args__ = (
        UniqueConstraint("contest_id", "participant_id"),
        UniqueConstraint("contest_id", "rank"),
    )


class AuditLog(Base):
    __tablename__ = "audit_logs"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    action: Mapped[str] = mapped_column(String(120), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(120), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    payload_json: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
