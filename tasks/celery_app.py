"""
tasks/celery_app.py
Celery application instance, shared across all task modules.

Workers are started with:
    celery -A tasks.celery_app worker --loglevel=info --concurrency=1

Beat scheduler (periodic tasks):
    celery -A tasks.celery_app beat --loglevel=info
"""

from celery import Celery

from config.settings import settings

celery_app = Celery(
    "capturestudio",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "tasks.keepwarm_tasks",
    ],
)

# ── Configuration ─────────────────────────────────────────────────────────────

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Asia/Kolkata",
    enable_utc=True,

    # A missed ping is harmless; don't let pings pile up behind a slow one
    task_acks_late=False,
    result_expires=3600,
    task_time_limit=int(settings.CRON_TIMEOUT_SECONDS) + 5,

    worker_prefetch_multiplier=1,
)

# ── Periodic Tasks (Beat Schedule) ────────────────────────────────────────────

celery_app.conf.beat_schedule = {
    # Keep the hosted API from idling out
    "ping-keep-warm-endpoint": {
        "task": "tasks.keepwarm_tasks.ping_keep_warm_endpoint",
        "schedule": settings.CRON_INTERVAL_SECONDS,
    },
}
