"""
@file: app/services/kv_store.py
@description: Key-value хранилище поверх таблицы kv_entries (значение + метаданные)
@dependencies: sqlmodel
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

from sqlmodel import Session

from app.core.logging import get_logger
from app.models.kv_entry import KeyValueEntry, utc_now

logger = get_logger(__name__)


@dataclass
class KeyValueRecord:
    """Значение и метаданные, прочитанные по ключу"""
    value: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[KeyValueRecord]:
        ...

    def put(self, key: str, value: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        ...


class SQLKeyValueStore:
    """Реализация KeyValueStore на SQLModel сессии"""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def get(self, key: str) -> Optional[KeyValueRecord]:
        entry = self.db_session.get(KeyValueEntry, key)
        if entry is None:
            return None
        return KeyValueRecord(value=entry.value, metadata=dict(entry.meta or {}))

    def put(self, key: str, value: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Перезаписывает значение и метаданные одним коммитом"""
        try:
            entry = self.db_session.get(KeyValueEntry, key)
            if entry is None:
                entry = KeyValueEntry(key=key, value=value, meta=metadata)
            else:
                entry.value = value
                entry.meta = metadata
                entry.updated_at = utc_now()
            self.db_session.add(entry)
            self.db_session.commit()
        except Exception as e:
            self.db_session.rollback()
            logger.error(f"Failed to write key {key}: {e}")
            raise
