"""
Celery Application Configuration
"""

from celery import Celery
from celery.schedules import crontab

from core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "supplyledger",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["workers.optimization"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    worker_prefetch_multiplier=1,
    task_routes={
        "workers.optimization.*": {"queue": "optimization"},
    },
    # ── Celery Beat Schedule ─────────────────────────────────────────
    beat_schedule={
        # One cycle per week, matching the report's next_cycle marker (1008 ticks)
        "run-optimization-cycle-weekly": {
            "task": "workers.optimization.run_scheduled_cycle",
            "schedule": crontab(hour=2, minute=0, day_of_week="sunday"),
            "kwargs": {"scope": "scheduled-weekly"},
            "options": {"queue": "optimization"},
        },
    },
)
