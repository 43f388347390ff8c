from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.api.deps import db_session, get_clock, get_identity
from quizhub.core.config import get_settings
from quizhub.core.security import Identity
from quizhub.schemas.leaderboard import FreezeOut, LeaderboardOut
from quizhub.services.leaderboard_service import LeaderboardService
from quizhub.utils.clock import Clock

router = APIRouter(prefix="/contests/{contest_id}/leaderboard", tags=["leaderboard"])


@router.get("", response_model=LeaderboardOut)
async def leaderboard(
    contest_id: UUID,
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    settings = get_settings()
    page_size = min(limit or settings.leaderboard_page_size, settings.leaderboard_max_page_size)
    service = LeaderboardService(db, clock)
    return await service.rank(contest_id, user, limit=page_size, offset=offset)


@router.post("/freeze", response_model=FreezeOut)
async def freeze_leaderboard(
    contest_id: UUID,
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = LeaderboardService(db, clock)
    return await service.freeze(contest_id, user)
