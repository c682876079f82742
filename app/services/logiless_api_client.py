"""
@file: app/services/logiless_api_client.py
@description: Клиент Logiless API: постраничное получение заказов за 24-часовое окно
@dependencies: httpx, pytz, LogilessAuthService
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import httpx
import pytz
from pydantic import ValidationError as PydanticValidationError

from app.core.settings import settings
from app.core.logging import get_logger
from app.exceptions import UpstreamError, UpstreamSchemaError
from app.schemas.logiless import SalesOrdersPage
from app.services.logiless_auth_service import LogilessAuthService

logger = get_logger(__name__)

# Logiless принимает и отдает даты в локальном времени Японии (+09:00, без DST)
LOGILESS_TZ = pytz.FixedOffset(9 * 60)
WINDOW = timedelta(hours=24)
QUERY_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_query_datetime(value: datetime) -> str:
    """
    Дата для параметров updated_at_from/updated_at_to.

    Не зависит от часового пояса процесса: naive значение считается UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(LOGILESS_TZ).strftime(QUERY_DATETIME_FORMAT)


class LogilessAPIClient:
    """Клиент для чтения заказов Logiless"""

    def __init__(
        self,
        auth_service: LogilessAuthService,
        http_client: Optional[httpx.Client] = None,
        page_limit: Optional[int] = None,
    ):
        self.auth_service = auth_service
        self.http_client = http_client
        self.logiless_settings = settings.logiless
        self.page_limit = page_limit or self.logiless_settings.page_limit
        self.sales_orders_url = (
            f"{self.logiless_settings.api_url}/api/v1/merchant/"
            f"{self.logiless_settings.merchant_id}/sales_orders"
        )

    def build_sales_orders_params(self, window_start: datetime, page: int) -> Dict[str, str]:
        return {
            "updated_at_from": format_query_datetime(window_start),
            "updated_at_to": format_query_datetime(window_start + WINDOW),
            "limit": str(self.page_limit),
            "page": str(page),
        }

    def get_sales_orders(self, window_start: datetime, page: int = 1) -> SalesOrdersPage:
        """
        Получить одну страницу заказов, обновленных в окне [window_start, window_start + 24ч].

        Args:
            window_start: Начало окна (watermark)
            page: Номер страницы, начиная с 1

        Returns:
            SalesOrdersPage: Заказы страницы и признак has_next

        Raises:
            UpstreamError: Если Logiless вернул неуспешный статус
            UpstreamSchemaError: Если ответ не соответствует схеме
        """
        params = self.build_sales_orders_params(window_start, page)
        logger.info(
            f"📥 Запрос заказов Logiless: {params['updated_at_from']} - {params['updated_at_to']}, page={page}",
            extra={"page": page}
        )

        headers = {"Authorization": f"Bearer {self.auth_service.get_valid_access_token()}"}
        response = self._get(self.sales_orders_url, params=params, headers=headers)

        if not response.is_success:
            logger.error(f"❌ HTTP ошибка при получении заказов: {response.status_code} - {response.text}")
            raise UpstreamError(
                "Failed to get sales orders",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            result = SalesOrdersPage.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            logger.error(f"❌ Ответ Logiless не соответствует схеме: {e}")
            raise UpstreamSchemaError(
                "Unexpected sales orders response",
                status_code=response.status_code,
                body=response.text,
            )

        logger.info(
            f"📋 Получено {len(result.data)} заказов: total_count={result.total_count}, "
            f"current_page={result.current_page}, limit={result.limit}, has_next={result.has_next}",
            extra={"page": page}
        )
        return result

    def _get(self, url: str, params: Dict[str, str], headers: Dict[str, str]) -> httpx.Response:
        if self.http_client is not None:
            return self.http_client.get(url, params=params, headers=headers)
        with httpx.Client(timeout=self.logiless_settings.http_timeout) as client:
            return client.get(url, params=params, headers=headers)
