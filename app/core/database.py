"""
@file: app/core/database.py
@description: Подключение к хранилищу (warehouse таблицы и key-value таблица) через SQLModel
@dependencies: sqlmodel, sqlalchemy, psycopg2
"""

import asyncio
from typing import Generator

from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import text

from .settings import settings
from .logging import get_logger

logger = get_logger(__name__)

engine = create_engine(
    settings.database.url,
    echo=False,
    pool_pre_ping=True,
    pool_recycle=300,
)


def create_tables() -> None:
    """
    Создание таблиц sales_orders, sales_order_lines и kv_entries.
    Используется для начальной инициализации хранилища.
    """
    # Импорт регистрирует таблицы в метаданных
    from app import models  # noqa: F401

    logger.info("Creating database tables...")
    SQLModel.metadata.create_all(engine)
    logger.info("Database tables created successfully")


def get_sync_session() -> Generator[Session, None, None]:
    """Получить сессию базы данных (FastAPI dependency)"""
    with Session(engine) as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Database session error: {e}")
            session.rollback()
            raise


def get_sync_db_session_direct() -> Session:
    """
    Прямое получение сессии для Celery задач.
    Закрывать сессию обязан вызывающий код.
    """
    return Session(engine)


def check_database_connection() -> bool:
    """Проверка подключения к базе данных"""
    try:
        with Session(engine) as session:
            session.execute(text("SELECT 1"))
        logger.info("Database connection successful")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


class DatabaseManager:
    """Менеджер базы данных для управления подключениями"""

    def __init__(self, max_retries: int = 10, retry_delay: float = 2):
        self.engine = engine
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.logger = get_logger(self.__class__.__name__)

    async def startup(self) -> None:
        """Инициализация при запуске приложения"""
        self.logger.info("Initializing database connection...")

        retry_delay = self.retry_delay
        for attempt in range(self.max_retries):
            self.logger.info(f"Database connection attempt {attempt + 1}/{self.max_retries}")
            if await asyncio.to_thread(check_database_connection):
                self.logger.info("Database manager initialized successfully")
                return

            if attempt < self.max_retries - 1:
                self.logger.warning(f"Database connection failed, retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay = min(retry_delay * 1.5, 10)

        self.logger.error("Failed to connect to database after all retries")
        raise ConnectionError("Failed to connect to database after all retries")

    async def shutdown(self) -> None:
        """Закрытие соединений при остановке приложения"""
        self.logger.info("Closing database connections...")
        self.engine.dispose()
        self.logger.info("Database connections closed")


# Глобальный экземпляр менеджера базы данных
db_manager = DatabaseManager()
