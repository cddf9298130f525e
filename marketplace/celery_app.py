"""Celery worker app. Redis is both broker and result backend."""

from celery import Celery

from marketplace.config import get_settings

settings = get_settings()

app = Celery(
    "marketplace",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["marketplace.tasks.task_analysis"],
)

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_routes={"marketplace.tasks.task_analysis.*": {"queue": "analysis"}},
    # LLM calls are slow; hand out one job at a time
    worker_prefetch_multiplier=1,
    task_time_limit=300,
    task_soft_time_limit=240,
    result_expires=24 * 3600,
    # Enqueueing happens inside a request; fail fast when the broker is down
    broker_connection_timeout=2,
    task_publish_retry=False,
)
