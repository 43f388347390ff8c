from celery import Celery

from quizhub.core.config import get_settings

settings = get_settings()

celery = Celery(
    "quizhub",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["quizhub.tasks.tasks"],
)
celery.conf.update(
    timezone="UTC",
    task_track_started=True,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "leaderboard-freeze-sweep": {
            "task": "quizhub.tasks.tasks.freeze_completed_contests",
            "schedule": settings.freeze_sweep_interval_seconds,
        }
    },
)
