"""
@file: app/models/__init__.py
@description: Модели данных для SQLModel ORM
@dependencies: sqlmodel
"""

from .kv_entry import KeyValueEntry
from .sales_order import SalesOrder, SalesOrderLine

__all__ = [
    "KeyValueEntry",
    "SalesOrder",
    "SalesOrderLine",
]
