from celery import Celery
from celery.schedules import crontab

from shiftkeeper.core.config import settings

celery_app = Celery(
    "shiftkeeper",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["shiftkeeper.tasks.monitor_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.DEFAULT_TIMEZONE,
    enable_utc=True,
    beat_schedule={
        # Alle 15 Minuten: Verspätungen, verpasste Schichten, lange Pausen
        "shift-monitor": {
            "task": "shiftkeeper.tasks.monitor_tasks.run_shift_monitor",
            "schedule": crontab(minute="*/15"),
        },
    },
)
