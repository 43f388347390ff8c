from datetime import datetime
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.core.constants import (
    DEFAULT_CATEGORY,
    Action,
    ContestState,
    QuestionsOperation,
    ScoringType,
)
from quizhub.core.errors import (
    ContestNotActive,
    DuplicateAttempt,
    ImmutableField,
    InvalidContest,
    InvalidSchedule,
    NotFound,
)
from quizhub.core.security import Identity, authorize, require
from quizhub.events.audit import record_audit
from quizhub.models.domain import Contest, Question, QuestionOption
from quizhub.repositories.attempt_repository import AttemptRepository
from quizhub.repositories.contest_repository import ContestRepository
from quizhub.services.lifecycle_service import LifecycleService, is_locked
from quizhub.utils.clock import Clock, as_utc, utcnow

logger = structlog.get_logger()

LOCKED_FIELDS = ("questions", "startDate", "endDate", "scoringType")


def validate_schedule(start: datetime | None, end: datetime | None) -> None:
    if start is not None and end is not None and start >= end:
        raise InvalidSchedule(extra={"startDate": start.isoformat(), "endDate": end.isoformat()})


def validate_price(price: Decimal) -> None:
    if price < 0:
        raise InvalidContest("Price must not be negative", extra={"price": str(price)})


def validate_questions(questions: list[dict]) -> None:
    if not questions:
        raise InvalidContest("A contest needs at least one question")


class ContestService:
    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.repo = ContestRepository(db)
        self.attempts = AttemptRepository(db)
        self.lifecycle = LifecycleService(db, clock)

    async def get_contest_or_404(self, contest_id: UUID) -> Contest:
        row = await self.repo.get_by_id(contest_id)
        if not row:
            raise NotFound("Contest not found", extra={"contestId": str(contest_id)})
        return row

    async def create_contest(self, creator: Identity | None, payload: dict) -> dict:
        creator = require(creator, Action.CREATE_CONTEST)
        start = _optional_utc(payload.get("startDate"))
        end = _optional_utc(payload.get("endDate"))
        validate_schedule(start, end)
        price = Decimal(str(payload.get("price", 0) or 0))
        validate_price(price)
        validate_questions(payload.get("questions") or [])

        row = Contest(
            creator_id=creator.id,
            title=payload["title"].strip(),
            description=payload.get("description", "") or "",
            price=price,
            scoring_type=ScoringType(payload.get("scoringType") or ScoringType.COUNT_CORRECT),
            start_date=start,
            end_date=end,
        )
        row.questions = self._build_questions(payload.get("questions", []))
        await self.repo.add(row)
        await record_audit(
            self.db,
            actor_id=creator.id,
            action="contest_created",
            entity_type="contest",
            entity_id=str(row.id),
            payload={"title": row.title, "questions": len(row.questions)},
        )
        await self.db.commit()
        logger.info("contest_created", contest_id=str(row.id), creator_id=creator.id)

        row = await self.get_contest_or_404(row.id)
        return await self.serialize_detail(row, include_answers=True)

    async def get_contest(self, contest_id: UUID, viewer: Identity | None) -> dict:
        viewer = require(viewer, Action.VIEW_CONTEST)
        row = await self.get_contest_or_404(contest_id)
        return await self.serialize_detail(row, include_answers=authorize(viewer, Action.VIEW_ANSWER_KEY))

    async def update_contest(self, contest_id: UUID, actor: Identity | None, patch: dict) -> dict:
        actor = require(actor, Action.UPDATE_CONTEST)
        row = await self.get_contest_or_404(contest_id)
        state = await self.lifecycle.reconcile(row)

        touched_locked = sorted(field for field in LOCKED_FIELDS if field in patch)
        if touched_locked and is_locked(state):
            raise ImmutableField(extra={"fields": touched_locked, "state": state.value})

        start = _optional_utc(patch["startDate"]) if "startDate" in patch else row.start_date
        end = _optional_utc(patch["endDate"]) if "endDate" in patch else row.end_date
        validate_schedule(start, end)
        if state != ContestState.DRAFT and (start is None or end is None):
            # Clearing a date would send a scheduled contest back to draft.
            raise InvalidSchedule("Scheduled contests keep both dates", extra={"state": state.value})
        price = Decimal(str(patch["price"])) if patch.get("price") is not None else row.price
        validate_price(price)
        operation = QuestionsOperation(patch.get("operation") or QuestionsOperation.REPLACE)
        if patch.get("questions") is not None and operation == QuestionsOperation.REPLACE:
            validate_questions(patch["questions"])

        if patch.get("title") is not None:
            row.title = patch["title"].strip()
        if patch.get("description") is not None:
            row.description = patch["description"]
        row.price = price
        if patch.get("scoringType") is not None:
            row.scoring_type = ScoringType(patch["scoringType"])
        row.start_date = start
        row.end_date = end

        questions = patch.get("questions")
        if questions is not None:
            built = self._build_questions(questions, offset=len(row.questions) if operation == QuestionsOperation.ADD else 0)
            if operation == QuestionsOperation.ADD:
                row.questions.extend(built)
            else:
                row.questions = built

        await record_audit(
            self.db,
            actor_id=actor.id,
            action="contest_updated",
            entity_type="contest",
            entity_id=str(row.id),
            payload={"fields": sorted(patch.keys())},
        )
        await self.db.commit()
        logger.info("contest_updated", contest_id=str(row.id), fields=sorted(patch.keys()))

        row = await self.get_contest_or_404(contest_id)
        return await self.serialize_detail(row, include_answers=True)

    async def delete_contest(self, contest_id: UUID, actor: Identity | None) -> None:
        actor = require(actor, Action.DELETE_CONTEST)
        row = await self.get_contest_or_404(contest_id)
        await self.repo.delete(row)
        await record_audit(
            self.db,
            actor_id=actor.id,
            action="contest_deleted",
            entity_type="contest",
            entity_id=str(contest_id),
            payload={"title": row.title},
        )
        await self.db.commit()
        logger.info("contest_deleted", contest_id=str(contest_id), actor_id=actor.id)

    async def list_contests(self, viewer: Identity | None, state: ContestState | None = None) -> list[dict]:
        require(viewer, Action.VIEW_CONTEST)
        rows = await self.repo.list_all()
        return await self._summaries(rows, only=state)

    async def list_completed(self, viewer: Identity | None) -> list[dict]:
        require(viewer, Action.VIEW_CONTEST)
        rows = await self.repo.list_ended(self.clock())
        return await self._summaries(rows, only=ContestState.COMPLETED)

    async def play_view(self, contest_id: UUID, player: Identity | None, category: str | None = None) -> dict:
        player = require(player, Action.PLAY_CONTEST)
        row = await self.get_contest_or_404(contest_id)
        state = await self.lifecycle.reconcile(row)
        if state != ContestState.ACTIVE:
            raise ContestNotActive(extra={"state": state.value})
        if await self.attempts.get(row.id, player.id):
            raise DuplicateAttempt()

        questions = [q for q in row.questions if category is None or q.category == category]
        return {
            "contestId": row.id,
            "title": row.title,
            "description": row.description,
            "endDate": row.end_date,
            "category": category,
            "totalQuestions": len(questions),
            "questions": [self._question(q, include_answer=False) for q in questions],
        }

    async def categories(self, contest_id: UUID, viewer: Identity | None) -> list[str]:
        require(viewer, Action.VIEW_CONTEST)
        row = await self.get_contest_or_404(contest_id)
        return list(dict.fromkeys(q.category for q in row.questions if q.category))

    async def serialize_detail(self, row: Contest, include_answers: bool) -> dict:
        state = await self.lifecycle.reconcile(row)
        summary = (await self._summaries([row], states={row.id: state}))[0]
        summary["questions"] = [self._question(q, include_answer=include_answers) for q in row.questions]
        return summary

    async def _summaries(
        self,
        rows: list[Contest],
        only: ContestState | None = None,
        states: dict[UUID, ContestState] | None = None,
    ) -> list[dict]:
        if states is None:
            states = {row.id: await self.lifecycle.reconcile(row) for row in rows}
        rows = [row for row in rows if only is None or states[row.id] == only]
        ids = [row.id for row in rows]
        question_counts = await self.repo.question_counts_bulk(ids)
        participant_counts = await self.repo.participant_counts_bulk(ids)
        frozen_counts = await self.repo.frozen_entry_counts_bulk(ids)

        output = []
        for row in rows:
            participants = participant_counts.get(row.id, 0)
            frozen = row.leaderboard_frozen_at is not None
            output.append(
                {
                    "id": row.id,
                    "title": row.title,
                    "description": row.description,
                    "price": float(row.price),
                    "scoringType": ScoringType(row.scoring_type).value,
                    "startDate": row.start_date,
                    "endDate": row.end_date,
                    "state": states[row.id].value,
                    "totalQuestions": question_counts.get(row.id, 0),
                    "totalParticipants": participants,
                    "leaderboardEntries": frozen_counts.get(row.id, 0) if frozen else participants,
                    "leaderboardFrozenAt": row.leaderboard_frozen_at,
                    "creatorId": row.creator_id,
                    "createdAt": row.created_at,
                    "updatedAt": row.updated_at,
                }
            )
        return output

    def _question(self, q: Question, include_answer: bool) -> dict:
        return {
            "id": q.id,
            "text": q.text,
            "options": [o.text for o in q.options],
            "category": q.category,
            "points": q.points,
            "correctAnswer": q.correct_answer if include_answer else None,
        }

    def _build_questions(self, questions: list[dict], offset: int = 0) -> list[Question]:
        built: list[Question] = []
        for idx, item in enumerate(questions):
            q = Question(
                text=item["text"].strip(),
                correct_answer=str(item["correctAnswer"]).strip(),
                category=(item.get("category") or DEFAULT_CATEGORY).strip(),
                points=float(item.get("points", 1) or 1),
                sort_order=offset + idx,
            )
            q.options = [
                QuestionOption(option_index=opt_idx, text=str(opt).strip())
                for opt_idx, opt in enumerate(item.get("options", []))
            ]
            built.append(q)
        return built


def _optional_utc(value: datetime | None) -> datetime | None:
    return as_utc(value) if value is not None else None
