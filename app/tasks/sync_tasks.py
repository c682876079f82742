"""
@file: app/tasks/sync_tasks.py
@description: Celery задача синхронизации заказов Logiless в warehouse
@dependencies: celery_app, OrderSyncService
"""

from typing import Optional

import httpx

from app.celery_app import celery_app
from app.core.database import get_sync_db_session_direct
from app.core.logging import get_logger
from app.core.settings import settings
from app.exceptions import UpstreamError, UpstreamSchemaError
from app.services.order_sync_service import build_order_sync_service

logger = get_logger(__name__)


@celery_app.task(
    bind=True,
    name="app.tasks.sync_tasks.sync_logiless_orders",
    autoretry_for=(UpstreamError, httpx.TransportError),
    # ответ не той схемы при повторе не изменится
    dont_autoretry_for=(UpstreamSchemaError,),
    max_retries=settings.sync.max_retries,
    default_retry_delay=settings.sync.retry_countdown,
)
def sync_logiless_orders(self, since_date: Optional[str] = None):
    """
    Синхронизация заказов Logiless.

    Args:
        since_date: 'YYYY-MM-DD' или None (watermark из warehouse)

    Returns:
        dict: статистика запуска

    Ошибки не перехватываются: задача завершается FAILURE, а сбои
    Logiless и сети повторяются через autoretry.
    """
    task_id = self.request.id
    logger.info(f"[Celery] Запуск синхронизации Logiless, since_date={since_date}", extra={"task_id": task_id})

    db_session = get_sync_db_session_direct()
    try:
        result = build_order_sync_service(db_session).sync(since_date)
        logger.info(f"[Celery] Синхронизация завершена: {result}", extra={"task_id": task_id})
        return result
    except Exception as e:
        logger.error(f"[Celery] Ошибка синхронизации: {e}", extra={"task_id": task_id}, exc_info=True)
        raise
    finally:
        db_session.close()
