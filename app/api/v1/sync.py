"""
@file: app/api/v1/sync.py
@description: Запуск синхронизации заказов по требованию и просмотр статуса задачи
@dependencies: fastapi, celery
"""

from datetime import date
from typing import Any, Optional

from celery.result import AsyncResult
from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.api.dependencies import CurrentUserDep
from app.celery_app import celery_app
from app.core.auth import CurrentUser
from app.core.logging import get_logger
from app.tasks.sync_tasks import sync_logiless_orders

logger = get_logger(__name__)

router = APIRouter()


class SyncRequest(BaseModel):
    """Параметры запуска синхронизации"""
    since_date: Optional[date] = Field(
        None,
        description="Дата начала окна (YYYY-MM-DD, полночь по +09:00). По умолчанию - watermark из warehouse"
    )


class SyncTaskResponse(BaseModel):
    """Поставленная в очередь задача"""
    task_id: str
    status: str


class SyncTaskStatusResponse(BaseModel):
    """Статус задачи синхронизации"""
    task_id: str
    status: str = Field(..., description="PENDING, STARTED, RETRY, SUCCESS, FAILURE")
    result: Optional[Any] = Field(None, description="Статистика синхронизации")
    error: Optional[str] = None


@router.post("/", response_model=SyncTaskResponse, summary="Запустить синхронизацию")
def start_sync(request: Optional[SyncRequest] = None, current_user: CurrentUser = CurrentUserDep):
    """
    Поставить синхронизацию заказов в очередь.

    **Требует аутентификации через JWT токен.**
    """
    since_date = request.since_date.isoformat() if request and request.since_date else None
    task = sync_logiless_orders.apply_async(kwargs={"since_date": since_date})
    logger.info(f"Синхронизация поставлена в очередь пользователем {current_user.user_id}: task_id={task.id}, since_date={since_date}")
    return SyncTaskResponse(task_id=task.id, status="PENDING")


@router.get("/{task_id}", response_model=SyncTaskStatusResponse, summary="Статус синхронизации")
def get_sync_status(task_id: str, current_user: CurrentUser = CurrentUserDep):
    """
    Статус задачи синхронизации по task_id.

    **Требует аутентификации через JWT токен.**
    """
    task_result = AsyncResult(task_id, app=celery_app)
    response = SyncTaskStatusResponse(task_id=task_id, status=task_result.status)

    if task_result.successful():
        response.result = task_result.result
    elif task_result.failed():
        response.error = str(task_result.result)

    return response
