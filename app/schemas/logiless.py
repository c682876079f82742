"""
@file: app/schemas/logiless.py
@description: Схемы ответов Logiless API (валидация на границе клиента)
@dependencies: pydantic
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

LOGILESS_OFFSET = "+09:00"


def parse_logiless_datetime(value: str) -> datetime:
    """'2024-04-01T10:00:00' -> 2024-04-01T10:00:00+09:00"""
    return datetime.fromisoformat(f"{value}{LOGILESS_OFFSET}")


class DocumentStatus(str, Enum):
    PROCESSING = "Processing"
    WAITING_FOR_PAYMENT = "WaitingForPayment"
    WAITING_FOR_ALLOCATION = "WaitingForAllocation"
    WAITING_FOR_SHIPMENT = "WaitingForShipment"
    SHIPPED = "Shipped"
    CANCEL = "Cancel"


class AllocationStatus(str, Enum):
    WAITING_FOR_ALLOCATION = "WaitingForAllocation"
    ALLOCATED = "Allocated"


class DeliveryStatus(str, Enum):
    WAITING_FOR_SHIPMENT = "WaitingForShipment"
    WORKING = "Working"
    PARTLY_SHIPPED = "PartlyShipped"
    SHIPPED = "Shipped"
    PENDING = "Pending"
    CANCEL = "Cancel"


class IncomingPaymentStatus(str, Enum):
    NOT_PAID = "NotPaid"
    PARTLY_PAID = "PartlyPaid"
    PAID = "Paid"


class AuthorizationStatus(str, Enum):
    NOT_REQUIRED = "NotRequired"
    UNAUTHORIZED = "Unauthorized"
    AUTHORIZING = "Authorizing"
    AUTHORIZED = "Authorized"
    CAPTURED = "Captured"
    AUTHORIZATION_FAILURE = "AuthorizationFailure"


class LineStatus(str, Enum):
    WAITING_FOR_TRANSFER = "WaitingForTransfer"
    WAITING_FOR_ALLOCATION = "WaitingForAllocation"
    ALLOCATED = "Allocated"
    SHIPPED = "Shipped"
    CANCEL = "Cancel"


class LogilessModel(BaseModel):
    """Базовая схема: лишние поля игнорируются, enum хранится строкой"""

    model_config = ConfigDict(extra="ignore", use_enum_values=True)


class LogilessStore(LogilessModel):
    id: int
    name: str


class LogilessSalesOrderLine(LogilessModel):
    id: int
    status: LineStatus
    article_code: str
    article_name: str
    quantity: int


class LogilessSalesOrder(LogilessModel):
    """
    Заказ в формате Logiless.

    Временные метки приходят без смещения (локальное время +09:00):
    смещение добавляется при валидации, неверный формат отклоняет страницу.
    """

    id: int
    code: str
    document_status: DocumentStatus
    allocation_status: AllocationStatus
    delivery_status: DeliveryStatus
    incoming_payment_status: IncomingPaymentStatus
    authorization_status: AuthorizationStatus
    customer_code: Optional[str] = None
    payment_method: str
    delivery_method: str
    buyer_country: str
    recipient_country: str
    store: LogilessStore
    document_date: date
    ordered_at: datetime
    finished_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    lines: List[LogilessSalesOrderLine] = Field(default_factory=list)

    @field_validator("ordered_at", "finished_at", "created_at", "updated_at", mode="before")
    @classmethod
    def parse_local_datetime(cls, value):
        if value is None or value == "":
            return None
        if not isinstance(value, str):
            raise ValueError("expected local datetime string")
        return parse_logiless_datetime(value)


class SalesOrdersPage(LogilessModel):
    """Одна страница GET /sales_orders"""

    data: List[LogilessSalesOrder]
    current_page: int = Field(gt=0)
    limit: int = Field(gt=0)
    total_count: int = Field(ge=0)

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.total_count > self.current_page * self.limit


class LogilessTokenResponse(LogilessModel):
    """Ответ /oauth2/token"""

    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)
    expires_in: int
    token_type: Optional[str] = None
    scope: Optional[str] = None
