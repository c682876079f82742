"""
@file: app/models/sales_order.py
@description: Таблицы warehouse для заказов Logiless (sales_orders, sales_order_lines)
@dependencies: sqlmodel, sqlalchemy
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import BigInteger, Column, DateTime
from sqlmodel import SQLModel, Field


class SalesOrder(SQLModel, table=True):
    """Заказ (заголовок) в warehouse"""

    __tablename__ = "sales_orders"

    id: int = Field(
        sa_column=Column(BigInteger, primary_key=True, autoincrement=False),
        description="ID заказа в Logiless"
    )
    code: str = Field(description="Номер заказа")

    document_status: str
    allocation_status: str
    delivery_status: str
    incoming_payment_status: str
    authorization_status: str

    customer_code: Optional[str] = Field(default=None)
    payment_method: str
    delivery_method: str
    buyer_country: str
    recipient_country: str

    store_id: int = Field(sa_column=Column(BigInteger, nullable=False))
    store_name: str

    document_date: date
    ordered_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    finished_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
        description="Время последнего изменения в Logiless, служит watermark"
    )


class SalesOrderLine(SQLModel, table=True):
    """Строка заказа. Без внешнего ключа: строки удаляются после своих заказов"""

    __tablename__ = "sales_order_lines"

    id: int = Field(sa_column=Column(BigInteger, primary_key=True, autoincrement=False))
    sales_order_id: int = Field(sa_column=Column(BigInteger, nullable=False, index=True))
    status: str
    article_code: str
    article_name: str
    quantity: int
