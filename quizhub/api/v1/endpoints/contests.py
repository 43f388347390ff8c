from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.api.deps import db_session, get_clock, get_identity
from quizhub.core.constants import ContestState
from quizhub.core.security import Identity
from quizhub.schemas.common import APIMessage
from quizhub.schemas.contests import (
    CategoriesOut,
    ContestCreateRequest,
    ContestDetailOut,
    ContestPatchRequest,
    ContestSummaryOut,
    PlayViewOut,
)
from quizhub.services.contest_service import ContestService
from quizhub.utils.clock import Clock

router = APIRouter(prefix="/contests", tags=["contests"])


@router.get("", response_model=list[ContestSummaryOut])
async def list_contests(
    state: ContestState | None = None,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = ContestService(db, clock)
    return await service.list_contests(user, state)


@router.get("/completed", response_model=list[ContestSummaryOut])
async def list_completed(
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = ContestService(db, clock)
    return await service.list_completed(user)


@router.post("", response_model=ContestDetailOut, status_code=201)
async def create_contest(
    payload: ContestCreateRequest,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = ContestService(db, clock)
    return await service.create_contest(user, payload.model_dump())


@router.get("/{contest_id}", response_model=ContestDetailOut)
async def get_contest(
    contest_id: UUID,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = ContestService(db, clock)
    return await service.get_contest(contest_id, user)


@router.patch("/{contest_id}", response_model=ContestDetailOut)
async def patch_contest(
    contest_id: UUID,
    payload: ContestPatchRequest,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = ContestService(db, clock)
    return await service.update_contest(contest_id, user, payload.model_dump(exclude_unset=True))


@router.delete("/{contest_id}", response_model=APIMessage)
async def delete_contest(
    contest_id: UUID,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = ContestService(db, clock)
    await service.delete_contest(contest_id, user)
    return APIMessage(message="Contest deleted")


@router.get("/{contest_id}/play", response_model=PlayViewOut)
async def play_contest(
    contest_id: UUID,
    category: str | None = None,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = ContestService(db, clock)
    return await service.play_view(contest_id, user, category)


@router.get("/{contest_id}/categories", response_model=CategoriesOut)
async def contest_categories(
    contest_id: UUID,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = ContestService(db, clock)
    return CategoriesOut(categories=await service.categories(contest_id, user))
