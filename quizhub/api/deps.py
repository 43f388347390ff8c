from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from quizhub.core.errors import Unauthenticated
from quizhub.core.security import Identity, resolve_identity
from quizhub.db.session import get_db
from quizhub.utils.clock import Clock, utcnow

bearer = HTTPBearer(auto_error=False)


async def db_session() -> AsyncSession:
    async for s in get_db():
        yield s


def get_clock() -> Clock:
    return utcnow


async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    clock: Clock = Depends(get_clock),
) -> Identity:
    if not credentials:
        raise Unauthenticated("Missing auth token")
    return resolve_identity(credentials.credentials, clock=clock)
