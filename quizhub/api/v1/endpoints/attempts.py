from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.api.deps import db_session, get_clock, get_identity
from quizhub.core.config import get_settings
from quizhub.core.ratelimit import rate_limit
from quizhub.core.security import Identity
from quizhub.schemas.attempts import (
    AttemptOut,
    AttemptResultOut,
    ScoreOverrideOut,
    ScoreOverrideRequest,
    SubmitRequest,
    SubmitResultOut,
)
from quizhub.services.attempt_service import AttemptService
from quizhub.utils.clock import Clock

router = APIRouter(prefix="/contests/{contest_id}/attempts", tags=["attempts"])


@router.post("", response_model=SubmitResultOut, status_code=201)
async def submit_attempt(
    contest_id: UUID,
    payload: SubmitRequest,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    settings = get_settings()
    rate_limit(
        key=f"submit:{user.id}:{contest_id}",
        limit=settings.submit_rate_limit,
        window_seconds=settings.submit_rate_window_seconds,
    )
    service = AttemptService(db, clock)
    return await service.submit(contest_id, user, payload.answers)


@router.get("", response_model=list[AttemptOut])
async def list_attempts(
    contest_id: UUID,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = AttemptService(db, clock)
    return await service.list_for_contest(contest_id, user)


@router.get("/me", response_model=AttemptResultOut)
async def my_attempt(
    contest_id: UUID,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = AttemptService(db, clock)
    return await service.get_attempt(contest_id, user.id, user)


@router.get("/{participant_id}", response_model=AttemptResultOut)
async def participant_attempt(
    contest_id: UUID,
    participant_id: str,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = AttemptService(db, clock)
    return await service.get_attempt(contest_id, participant_id, user)


@router.patch("/{participant_id}/score", response_model=ScoreOverrideOut)
async def override_score(
    contest_id: UUID,
    participant_id: str,
    payload: ScoreOverrideRequest,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = AttemptService(db, clock)
    return await service.override_score(contest_id, participant_id, user, payload.score, payload.reason)
