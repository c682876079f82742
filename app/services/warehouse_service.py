"""
@file: app/services/warehouse_service.py
@description: Запись в warehouse: watermark и delete+insert для sales_orders / sales_order_lines
@dependencies: sqlmodel, sqlalchemy
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, insert
from sqlmodel import Session, select

from app.core.logging import get_logger
from app.models.sales_order import SalesOrder, SalesOrderLine

logger = get_logger(__name__)


def _to_utc(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: value.astimezone(timezone.utc) if isinstance(value, datetime) else value
        for key, value in row.items()
    }


class WarehouseService:
    """
    Операции над таблицами заказов.

    Методы replace_* не коммитят: границу транзакции (одна страница)
    задает вызывающий код через commit()/rollback().
    """

    def __init__(self, db_session: Session):
        self.db_session = db_session

    def get_latest_updated_at(self) -> Optional[datetime]:
        """MAX(updated_at) по sales_orders или None для пустой таблицы"""
        latest = self.db_session.exec(select(func.max(SalesOrder.updated_at))).one()
        if latest is None:
            return None
        # SQLite и прочие хранилища без часовых поясов возвращают naive UTC
        if latest.tzinfo is None:
            latest = latest.replace(tzinfo=timezone.utc)
        return latest

    def replace_sales_orders(self, rows: List[Dict[str, Any]]) -> int:
        """Удалить заказы с id из rows и вставить rows заново"""
        if not rows:
            return 0
        order_ids = [row["id"] for row in rows]

        logger.info(f"sales_orders:deleting {order_ids}")
        self.db_session.execute(delete(SalesOrder).where(SalesOrder.id.in_(order_ids)))

        logger.info(f"sales_orders:inserting {len(rows)} records")
        self.db_session.execute(insert(SalesOrder), [_to_utc(row) for row in rows])
        return len(rows)

    def replace_sales_order_lines(self, order_ids: Sequence[int], rows: List[Dict[str, Any]]) -> int:
        """Удалить все строки заказов order_ids и вставить rows"""
        if not rows:
            return 0

        logger.info(f"sales_order_lines:deleting {list(order_ids)}")
        self.db_session.execute(
            delete(SalesOrderLine).where(SalesOrderLine.sales_order_id.in_(list(order_ids)))
        )

        logger.info(f"sales_order_lines:inserting {len(rows)} records")
        self.db_session.execute(insert(SalesOrderLine), rows)
        return len(rows)

    def commit(self) -> None:
        self.db_session.commit()

    def rollback(self) -> None:
        self.db_session.rollback()
