"""
@file: app/core/logging.py
@description: Настройка системы логирования (человекочитаемый или JSON формат, ротация файлов)
@dependencies: logging, json
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from .settings import settings

# Поля из extra, которые выводятся в обоих форматах
CONTEXT_FIELDS = ("task_id", "page", "window_start")

NOISY_LOGGERS = {
    "sqlalchemy": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "celery": logging.WARNING,
    "celery.worker": logging.INFO,
    "celery.task": logging.INFO,
    "uvicorn": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "fastapi": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "redis": logging.WARNING,
    "asyncio": logging.WARNING,
}


class HumanReadableFormatter(logging.Formatter):
    """Форматировщик для удобочитаемых логов"""

    LEVEL_MARKS = (
        (logging.CRITICAL, "🚨"),
        (logging.ERROR, "❌"),
        (logging.WARNING, "⚠️"),
        (logging.INFO, "ℹ️"),
    )

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')
        level_name = record.levelname.ljust(8)
        result = f"{timestamp} {self._level_mark(record.levelno)} {level_name} {record.getMessage()}"

        extra_info = [
            f"{field}={getattr(record, field)}"
            for field in CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        ]
        if record.name not in ("root", "__main__"):
            extra_info.append(f"module={record.name}")

        if extra_info:
            result += f" | {' | '.join(extra_info)}"

        if record.exc_info:
            result += f"\n{self.formatException(record.exc_info)}"

        return result

    def _level_mark(self, levelno: int) -> str:
        for threshold, mark in self.LEVEL_MARKS:
            if levelno >= threshold:
                return mark
        return "🔍"


class JSONFormatter(logging.Formatter):
    """Форматировщик для JSON логов"""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_entry["extra"] = record.extra_data

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def build_formatter(log_format: str) -> logging.Formatter:
    """Возвращает форматировщик по имени формата из настроек"""
    if log_format.lower() == "json":
        return JSONFormatter()
    return HumanReadableFormatter()


def setup_logging() -> None:
    """Настройка системы логирования"""

    log_path = Path(settings.logging.file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, settings.logging.level.upper(), logging.INFO))
    logger.handlers.clear()

    formatter = build_formatter(settings.logging.format)

    file_handler = logging.handlers.RotatingFileHandler(
        filename=settings.logging.file_path,
        maxBytes=settings.logging.max_bytes,
        backupCount=settings.logging.backup_count,
        encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Консоль только в режиме разработки
    if settings.api.debug:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logger.info("Logging system initialized", extra={
        "extra_data": {
            "log_level": settings.logging.level,
            "log_file": settings.logging.file_path,
            "format": settings.logging.format
        }
    })


def get_logger(name: str) -> logging.Logger:
    """Получить логгер с настроенным именем"""
    return logging.getLogger(name)
