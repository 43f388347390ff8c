from uuid import UUID

import structlog
from prometheus_client import Counter
from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.core.constants import Action, ContestState
from quizhub.core.errors import ContestNotActive, DuplicateAttempt, NotFound, Unauthorized
from quizhub.core.security import Identity, authorize, require
from quizhub.events.audit import record_audit
from quizhub.models.domain import Attempt
from quizhub.repositories.attempt_repository import AttemptRepository
from quizhub.services.contest_service import ContestService
from quizhub.services.leaderboard_service import LeaderboardService
from quizhub.services.lifecycle_service import LifecycleService
from quizhub.services.scoring_service import Answers, score_answers
from quizhub.utils.clock import Clock, utcnow

logger = structlog.get_logger()

SUBMISSION_COUNTER = Counter("quizhub_submissions_total", "Attempt submissions", ["outcome"])


class AttemptService:
    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock
        self.repo = AttemptRepository(db)
        self.contest_service = ContestService(db, clock)
        self.leaderboard_service = LeaderboardService(db, clock)
        self.lifecycle = LifecycleService(db, clock)

    async def submit(self, contest_id: UUID, participant: Identity | None, answers: Answers) -> dict:
        participant = require(participant, Action.PLAY_CONTEST)
        contest = await self.contest_service.get_contest_or_404(contest_id)
        now = self.clock()
        state = self.lifecycle.state_of(contest, now)
        if state != ContestState.ACTIVE:
            SUBMISSION_COUNTER.labels(outcome="not_active").inc()
            raise ContestNotActive(extra={"state": state.value})

        result = score_answers(contest.questions, answers, contest.scoring_type)
        row = await self.repo.insert_if_absent(
            {
                "contest_id": contest.id,
                "participant_id": participant.id,
                "participant_email": participant.email,
                "score": result.score,
                "correct_count": result.correct_count,
                "total_questions": result.total_questions,
                "answers_json": {str(k): str(v) for k, v in answers.items()},
                "completed_at": now,
            }
        )
        await self.db.commit()
        if row is None:
            SUBMISSION_COUNTER.labels(outcome="duplicate").inc()
            logger.warning("duplicate_attempt", contest_id=str(contest.id), participant_id=participant.id)
            raise DuplicateAttempt()

        SUBMISSION_COUNTER.labels(outcome="accepted").inc()
        logger.info(
            "attempt_submitted",
            contest_id=str(contest.id),
            participant_id=participant.id,
            score=result.score,
        )
        return {
            "attemptId": row.id,
            "contestId": contest.id,
            "score": result.score,
            "maxScore": result.max_score,
            "correctCount": result.correct_count,
            "totalQuestions": result.total_questions,
            "percentageScore": result.percentage,
            "completedAt": row.completed_at,
            "results": [{"questionId": r.question_id, "correct": r.correct} for r in result.results],
        }

    async def get_attempt(self, contest_id: UUID, participant_id: str, viewer: Identity | None) -> dict:
        viewer = require(viewer, Action.VIEW_CONTEST)
        if participant_id != viewer.id and not authorize(viewer, Action.VIEW_PARTICIPANTS):
            raise Unauthorized(extra={"action": Action.VIEW_PARTICIPANTS.value})
        contest = await self.contest_service.get_contest_or_404(contest_id)
        row = await self.get_attempt_or_404(contest.id, participant_id)

        state = await self.lifecycle.reconcile(contest)
        ranked = await self.leaderboard_service.ranked_entries(contest, state)
        rank = next((e.rank for e in ranked if e.participant_id == participant_id), None)
        return {
            **self.serialize_attempt(row),
            "contestTitle": contest.title,
            "rank": rank,
            "totalParticipants": len(ranked),
        }

    async def get_attempt_or_404(self, contest_id: UUID, participant_id: str) -> Attempt:
        row = await self.repo.get(contest_id, participant_id)
        if not row:
            raise NotFound("Attempt not found", extra={"contestId": str(contest_id), "participantId": participant_id})
        return row

    async def list_for_contest(self, contest_id: UUID, actor: Identity | None) -> list[dict]:
        require(actor, Action.VIEW_PARTICIPANTS)
        contest = await self.contest_service.get_contest_or_404(contest_id)
        rows = await self.repo.list_for_contest(contest.id)
        return [self.serialize_attempt(row) for row in rows]

    async def list_for_participant(self, participant: Identity | None) -> list[dict]:
        participant = require(participant, Action.VIEW_CONTEST)
        rows = await self.repo.list_for_participant(participant.id)
        return [{**self.serialize_attempt(row), "contestTitle": row.contest.title} for row in rows]

    async def override_score(
        self,
        contest_id: UUID,
        participant_id: str,
        actor: Identity | None,
        new_score: float,
        reason: str = "",
    ) -> dict:
        """Administrative correction of a stored score.

        The previous value goes to the audit log. A leaderboard that has
        already been frozen keeps its snapshot.
        """
        actor = require(actor, Action.OVERRIDE_SCORE)
        contest = await self.contest_service.get_contest_or_404(contest_id)
        row = await self.get_attempt_or_404(contest.id, participant_id)
        previous = float(row.score)
        row.score = float(new_score)
        await record_audit(
            self.db,
            actor_id=actor.id,
            action="score_overridden",
            entity_type="attempt",
            entity_id=str(row.id),
            payload={
                "contestId": str(contest.id),
                "participantId": participant_id,
                "previousScore": previous,
                "newScore": row.score,
                "reason": reason,
            },
        )
        await self.db.commit()
        logger.warning(
            "score_overridden",
            contest_id=str(contest.id),
            participant_id=participant_id,
            previous_score=previous,
            new_score=row.score,
            actor_id=actor.id,
        )
        return {**self.serialize_attempt(row), "previousScore": previous}

    def serialize_attempt(self, row: Attempt) -> dict:
        return {
            "id": row.id,
            "contestId": row.contest_id,
            "participantId": row.participant_id,
            "participantEmail": row.participant_email,
            "score": row.score,
            "correctCount": row.correct_count,
            "totalQuestions": row.total_questions,
            "completedAt": row.completed_at,
        }
