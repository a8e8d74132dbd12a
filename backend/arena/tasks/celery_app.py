"""Celery application configuration.

Redis is both broker (DB 1) and result backend (DB 2); the API uses DB 0.
"""

import os

from celery import Celery

from arena.tasks.schedules import CELERY_BEAT_SCHEDULE, CELERY_TASK_ROUTES

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
_REDIS_BASE = REDIS_URL.rsplit("/", 1)[0]

celery_app = Celery(
    "arena_tasks",
    broker=f"{_REDIS_BASE}/1",
    backend=f"{_REDIS_BASE}/2",
    include=[
        "arena.tasks.tournaments",
        "arena.tasks.users",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=os.getenv("REWARD_TIMEZONE", "Asia/Karachi"),
    enable_utc=True,
    task_routes=CELERY_TASK_ROUTES,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    result_expires=86400,  # 24 hours
    beat_schedule=CELERY_BEAT_SCHEDULE,
    task_default_retry_delay=60,
    task_max_retries=3,
)

if os.getenv("APP_ENV") == "development":
    celery_app.conf.update(task_eager_propagates=True)
