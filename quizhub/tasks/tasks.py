import asyncio

import structlog

from quizhub.core.config import get_settings
from quizhub.db.session import build_engine, build_sessionmaker
from quizhub.services.lifecycle_service import LifecycleService
from quizhub.tasks.celery_app import celery

logger = structlog.get_logger()


async def _sweep() -> int:
    # asyncio.run gives every task call its own loop; the engine must not outlive it.
    engine = build_engine(get_settings().async_database_url)
    try:
        async with build_sessionmaker(engine)() as db:
            return await LifecycleService(db).freeze_due()
    finally:
        await engine.dispose()


@celery.task(name="quizhub.tasks.tasks.freeze_completed_contests")
def freeze_completed_contests() -> dict:
    frozen = asyncio.run(_sweep())
    logger.info("freeze_sweep", frozen=frozen)
    return {"ok": True, "frozen": frozen}
