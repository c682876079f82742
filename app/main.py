"""
@file: app/main.py
@description: Главное FastAPI приложение
@dependencies: fastapi, uvicorn
"""

from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool

from app.core.settings import settings
from app.core.logging import setup_logging, get_logger
from app.core.database import db_manager, check_database_connection
from app.api.v1.api import api_router
from app.api.v1 import logiless

logger = get_logger(__name__)

SERVICE_NAME = "Logiless Orders Sync"
SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    setup_logging()
    logger.info(f"Starting {SERVICE_NAME} service...")

    config_info = settings.log_configuration()
    logger.info("Application configuration loaded", extra={"extra_data": config_info})

    await db_manager.startup()
    logger.info("Service started successfully")

    yield

    logger.info("Shutting down service...")
    await db_manager.shutdown()
    logger.info("Service stopped")


app = FastAPI(
    title=SERVICE_NAME,
    description="""
    ## Синхронизация заказов Logiless в warehouse

    * **Авторизация** - вход в Logiless через Authorization Code Flow (`/logiless/login`)
    * **Синхронизация** - периодическая (Celery beat) и по требованию
    * **Мониторинг** - статус задач и токенов
    """,
    version=SERVICE_VERSION,
    openapi_url=f"{settings.api.prefix}/openapi.json",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "general", "description": "Health check и информация о сервисе"},
        {"name": "logiless", "description": "Вход в Logiless (OAuth2 authorization code)"},
        {"name": "sync", "description": "Синхронизация заказов"},
        {"name": "tokens", "description": "Состояние токенов Logiless"},
    ]
)


@app.get("/", tags=["general"], summary="Информация о сервисе")
async def root():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "docs_url": "/docs",
    }


@app.get("/health", tags=["general"], summary="Проверка состояния сервиса")
async def health_check():
    """Проверяет доступность базы данных"""
    db_status = await run_in_threadpool(check_database_connection)
    return {
        "status": "healthy" if db_status else "unhealthy",
        "database": "connected" if db_status else "disconnected",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": datetime.now().isoformat()
    }


app.include_router(logiless.router, prefix="/logiless", tags=["logiless"])
app.include_router(api_router, prefix=settings.api.prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
        log_level=settings.logging.level.lower()
    )
