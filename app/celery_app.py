"""
@file: app/celery_app.py
@description: Конфигурация Celery приложения и расписания синхронизации Logiless
@dependencies: celery, redis, sqlalchemy_celery_beat
"""

from celery import Celery
from celery.schedules import crontab

from app.core.settings import settings
from app.core.logging import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)

logger.info("Initializing Celery application...")
config_info = settings.log_configuration()

logger.info("Celery configuration:", extra={
    "extra_data": {
        "broker_url": config_info["celery"]["broker_url"],
        "result_backend": config_info["celery"]["result_backend"],
        "timezone": config_info["celery"]["timezone"],
        "sync": config_info["sync"],
    }
})


def crontab_from_expression(expression: str) -> crontab:
    """'*/30 * * * *' -> crontab(minute='*/30', ...)"""
    parts = expression.split()
    if len(parts) != 5:
        raise ValueError(f"Invalid cron expression: {expression!r}")
    minute, hour, day_of_month, month_of_year, day_of_week = parts
    return crontab(
        minute=minute,
        hour=hour,
        day_of_month=day_of_month,
        month_of_year=month_of_year,
        day_of_week=day_of_week,
    )


celery_app = Celery(
    "logiless_orders_sync",
    broker=settings.celery.broker_url,
    backend=settings.celery.result_backend,
    include=[
        "app.tasks.sync_tasks",
    ]
)

celery_app.conf.update(
    task_serializer=settings.celery.task_serializer,
    result_serializer=settings.celery.result_serializer,
    accept_content=settings.celery.accept_content,
    timezone=settings.celery.timezone,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 минут
    task_soft_time_limit=25 * 60,  # 25 минут
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    worker_send_task_events=True,
    task_send_sent_event=True,

    # Синхронизация идет в отдельной очереди; воркер этой очереди
    # запускается с --concurrency=1, чтобы не было двух запусков сразу
    task_routes={
        "app.tasks.sync_tasks.sync_logiless_orders": {"queue": settings.sync.queue},
    },

    beat_scheduler='sqlalchemy_celery_beat.schedulers:DatabaseScheduler',
    beat_dburi=settings.database.url,
    beat_engine_options={
        'echo': False,
    },
)

celery_app.conf.beat_schedule = {
    "sync-logiless-orders": {
        "task": "app.tasks.sync_tasks.sync_logiless_orders",
        "schedule": crontab_from_expression(settings.sync.cron),
    },
}

logger.info("Celery application configured successfully")
