"""
@file: app/services/order_sync_service.py
@description: Инкрементальная синхронизация заказов Logiless в warehouse
@dependencies: LogilessAPIClient, WarehouseService
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from app.core.settings import settings
from app.core.logging import get_logger
from app.exceptions import NoWatermarkError, ValidationError
from app.schemas.logiless import LOGILESS_OFFSET, LogilessSalesOrder, SalesOrdersPage
from app.services.logiless_api_client import LogilessAPIClient
from app.services.logiless_auth_service import build_auth_service
from app.services.warehouse_service import WarehouseService

logger = get_logger(__name__)


def sales_order_row(order: LogilessSalesOrder) -> Dict[str, Any]:
    """Строка таблицы sales_orders из заказа Logiless"""
    return {
        "id": order.id,
        "code": order.code,
        "document_status": order.document_status,
        "allocation_status": order.allocation_status,
        "delivery_status": order.delivery_status,
        "incoming_payment_status": order.incoming_payment_status,
        "authorization_status": order.authorization_status,
        "customer_code": order.customer_code,
        "payment_method": order.payment_method,
        "delivery_method": order.delivery_method,
        "buyer_country": order.buyer_country,
        "recipient_country": order.recipient_country,
        "store_id": order.store.id,
        "store_name": order.store.name,
        "document_date": order.document_date,
        "ordered_at": order.ordered_at,
        "finished_at": order.finished_at,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def sales_order_line_rows(order: LogilessSalesOrder) -> List[Dict[str, Any]]:
    """Строки таблицы sales_order_lines для одного заказа"""
    return [
        {
            "id": line.id,
            "sales_order_id": order.id,
            "status": line.status,
            "article_code": line.article_code,
            "article_name": line.article_name,
            "quantity": line.quantity,
        }
        for line in order.lines
    ]


class OrderSyncService:
    """
    Синхронизация заказов Logiless -> warehouse.

    Страницы обрабатываются строго последовательно. Каждая страница пишется
    как delete+insert и коммитится целиком, поэтому повтор той же страницы
    (retry задачи, перезапуск после таймаута) не создает дублей.
    Параллельный запуск двух синхронизаций на одни таблицы не поддерживается.
    """

    def __init__(
        self,
        api_client: LogilessAPIClient,
        warehouse: WarehouseService,
        fallback_watermark: Optional[str] = None,
    ):
        self.api_client = api_client
        self.warehouse = warehouse
        self.fallback_watermark = fallback_watermark or settings.sync.fallback_watermark

    def resolve_watermark(self, since_date: Optional[str] = None) -> datetime:
        """
        Дата начала окна синхронизации.

        Args:
            since_date: Явная дата 'YYYY-MM-DD' (полночь по +09:00)

        Returns:
            datetime: since_date, иначе MAX(updated_at) из warehouse, иначе fallback

        Raises:
            ValidationError: Если since_date не является датой
            NoWatermarkError: Если ни один источник не дал значения
        """
        if since_date:
            try:
                date.fromisoformat(since_date)
            except ValueError:
                raise ValidationError(f"Invalid since_date: {since_date!r}, expected YYYY-MM-DD")
            return datetime.fromisoformat(f"{since_date}T00:00:00{LOGILESS_OFFSET}")

        latest = self.warehouse.get_latest_updated_at()
        if latest is not None:
            return latest

        if self.fallback_watermark:
            return datetime.fromisoformat(self.fallback_watermark)

        raise NoWatermarkError()

    def write_page(self, page: SalesOrdersPage) -> Dict[str, int]:
        """
        Записать одну страницу в warehouse (delete+insert) и закоммитить.

        Пустая страница не порождает ни одного запроса. Строки заказов
        пишутся только если на странице есть хотя бы одна строка.
        """
        order_rows = [sales_order_row(order) for order in page.data]
        order_ids = [row["id"] for row in order_rows]
        line_rows = [row for order in page.data for row in sales_order_line_rows(order)]

        if not order_rows:
            return {"orders": 0, "lines": 0}

        try:
            orders_written = self.warehouse.replace_sales_orders(order_rows)
            lines_written = 0
            if line_rows:
                lines_written = self.warehouse.replace_sales_order_lines(order_ids, line_rows)
            self.warehouse.commit()
        except Exception:
            self.warehouse.rollback()
            raise

        return {"orders": orders_written, "lines": lines_written}

    def sync(self, since_date: Optional[str] = None) -> Dict[str, Any]:
        """
        Запустить синхронизацию.

        Любая ошибка API или warehouse прерывает запуск и пробрасывается:
        повтор - ответственность планировщика. Уже записанные страницы
        остаются в warehouse.

        Returns:
            Dict: Статистика запуска
        """
        window_start = self.resolve_watermark(since_date)
        log_context = {"window_start": window_start.isoformat()}
        logger.info(f"🔄 Синхронизация заказов Logiless с {window_start.isoformat()}", extra=log_context)

        stats = {
            "since": window_start.isoformat(),
            "pages": 0,
            "orders_written": 0,
            "lines_written": 0,
        }

        page_number = 1
        has_next = True
        while has_next:
            page = self.api_client.get_sales_orders(window_start, page_number)
            written = self.write_page(page)

            stats["pages"] += 1
            stats["orders_written"] += written["orders"]
            stats["lines_written"] += written["lines"]

            has_next = page.has_next
            page_number += 1

        logger.info(
            f"✅ Синхронизация завершена: страниц {stats['pages']}, "
            f"заказов {stats['orders_written']}, строк {stats['lines_written']}",
            extra=log_context
        )
        return stats


def build_order_sync_service(db_session, http_client=None) -> OrderSyncService:
    """Собрать OrderSyncService на одной сессии: токены и warehouse в одной базе"""
    auth_service = build_auth_service(db_session, http_client=http_client)
    return OrderSyncService(
        api_client=LogilessAPIClient(auth_service, http_client=http_client),
        warehouse=WarehouseService(db_session),
    )
