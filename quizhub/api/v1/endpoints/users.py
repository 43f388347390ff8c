from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.api.deps import db_session, get_clock, get_identity
from quizhub.core.security import Identity
from quizhub.schemas.attempts import ParticipantAttemptOut
from quizhub.schemas.common import IdentityOut
from quizhub.services.attempt_service import AttemptService
from quizhub.utils.clock import Clock

router = APIRouter(prefix="/me", tags=["users"])


@router.get("", response_model=IdentityOut)
async def get_me(user: Identity = Depends(get_identity)):
    return IdentityOut(id=user.id, email=user.email, role=user.role)


@router.get("/attempts", response_model=list[ParticipantAttemptOut])
async def my_attempts(
    user: Identity = Depends(get_identity),
    db: AsyncSession = Depends(db_session),
    clock: Clock = Depends(get_clock),
):
    service = AttemptService(db, clock)
    return await service.list_for_participant(user)
