"""
@file: app/models/kv_entry.py
@description: Таблица key-value для хранения секретов (токены Logiless) с метаданными
@dependencies: sqlmodel, sqlalchemy
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, JSON, Text
from sqlmodel import SQLModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class KeyValueEntry(SQLModel, table=True):
    """Одна запись key-value: значение хранится отдельно от метаданных"""

    __tablename__ = "kv_entries"

    key: str = Field(primary_key=True, max_length=255)
    value: str = Field(sa_column=Column(Text, nullable=False))
    # "metadata" зарезервировано в SQLAlchemy, поэтому атрибут называется meta
    meta: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column("metadata", JSON, nullable=True)
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
