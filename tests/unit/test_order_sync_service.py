"""
@file: tests/unit/test_order_sync_service.py
@description: Unit-тесты для OrderSyncService: watermark, преобразование строк, delete+insert, цикл страниц
@dependencies: pytest, unittest.mock, sqlmodel
"""

import logging
from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock, call

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from app.exceptions import NoWatermarkError, UpstreamError, ValidationError
from app.models.sales_order import SalesOrder, SalesOrderLine
from app.schemas.logiless import LogilessSalesOrder, SalesOrdersPage, parse_logiless_datetime
from app.services.order_sync_service import OrderSyncService, sales_order_line_rows, sales_order_row
from app.services.warehouse_service import WarehouseService

JST = timezone(timedelta(hours=9))


@pytest.fixture
def warehouse(db_session):
    return WarehouseService(db_session)


@pytest.fixture
def api_client():
    return MagicMock()


@pytest.fixture
def service(api_client, warehouse):
    return OrderSyncService(api_client, warehouse)


@pytest.fixture
def page_of(make_page):
    def factory(orders, **kwargs) -> SalesOrdersPage:
        return SalesOrdersPage.model_validate(make_page(orders, **kwargs))
    return factory


def _order_ids(db_session):
    return sorted(order.id for order in db_session.exec(select(SalesOrder)).all())


def _line_ids(db_session):
    return sorted((line.sales_order_id, line.id) for line in db_session.exec(select(SalesOrderLine)).all())


def test_parse_logiless_datetime_appends_offset():
    parsed = parse_logiless_datetime("2024-04-01T10:00:00")

    assert parsed == datetime(2024, 4, 1, 10, 0, tzinfo=JST)
    assert parsed.utcoffset() == timedelta(hours=9)
    assert parsed.astimezone(timezone.utc) == datetime(2024, 4, 1, 1, 0, tzinfo=timezone.utc)


def test_sales_order_row(make_order):
    order = LogilessSalesOrder.model_validate(make_order(5, line_ids=[50, 51]))

    row = sales_order_row(order)

    assert row["id"] == 5
    assert row["store_id"] == 7
    assert row["store_name"] == "Main store"
    assert row["document_status"] == "Processing"
    assert row["document_date"] == date(2024, 4, 1)
    assert row["updated_at"] == datetime(2024, 4, 1, 10, 0, tzinfo=JST)
    assert row["finished_at"] is None

    lines = sales_order_line_rows(order)
    assert [line["id"] for line in lines] == [50, 51]
    assert all(line["sales_order_id"] == 5 for line in lines)


def test_sales_order_row_with_finished_at(make_order):
    order = LogilessSalesOrder.model_validate(make_order(5, finished_at="2024-04-02T18:30:00"))

    assert sales_order_row(order)["finished_at"] == datetime(2024, 4, 2, 18, 30, tzinfo=JST)


def test_watermark_from_since_date(service):
    assert service.resolve_watermark("2024-05-01") == datetime(2024, 5, 1, 0, 0, tzinfo=JST)


def test_watermark_rejects_invalid_since_date(service):
    with pytest.raises(ValidationError):
        service.resolve_watermark("01/05/2024")


def test_watermark_falls_back_for_empty_warehouse(service):
    assert service.resolve_watermark() == datetime(2024, 4, 1, 0, 0, tzinfo=JST)


def test_watermark_from_latest_updated_at(service, page_of, make_order):
    service.write_page(page_of([
        make_order(1, updated_at="2024-04-03T08:00:00"),
        make_order(2, updated_at="2024-04-05T23:15:00"),
    ]))

    assert service.resolve_watermark() == datetime(2024, 4, 5, 23, 15, tzinfo=JST)


def test_no_watermark(api_client):
    warehouse = MagicMock()
    warehouse.get_latest_updated_at.return_value = None
    service = OrderSyncService(api_client, warehouse)
    service.fallback_watermark = ""

    with pytest.raises(NoWatermarkError):
        service.resolve_watermark()


def test_write_page_is_idempotent(service, db_session, page_of, make_order):
    page = page_of([make_order(1, line_ids=[10, 11]), make_order(2, line_ids=[20])])

    assert service.write_page(page) == {"orders": 2, "lines": 3}
    assert service.write_page(page) == {"orders": 2, "lines": 3}

    assert _order_ids(db_session) == [1, 2]
    assert _line_ids(db_session) == [(1, 10), (1, 11), (2, 20)]


def test_write_page_replaces_lines_of_rewritten_orders(service, db_session, page_of, make_order):
    service.write_page(page_of([make_order(1, line_ids=[10, 11]), make_order(3, line_ids=[30])]))
    service.write_page(page_of([make_order(1, line_ids=[10], code="SO-1-changed")]))

    assert _order_ids(db_session) == [1, 3]
    assert _line_ids(db_session) == [(1, 10), (3, 30)]
    assert db_session.get(SalesOrder, 1).code == "SO-1-changed"


def test_page_without_lines_skips_line_table(api_client, page_of, make_order):
    warehouse = MagicMock()
    warehouse.replace_sales_orders.return_value = 3
    service = OrderSyncService(api_client, warehouse)

    result = service.write_page(page_of([make_order(1), make_order(2), make_order(3)]))

    assert result == {"orders": 3, "lines": 0}
    warehouse.replace_sales_orders.assert_called_once()
    warehouse.replace_sales_order_lines.assert_not_called()
    warehouse.commit.assert_called_once()


def test_empty_page_issues_no_writes(api_client, page_of):
    warehouse = MagicMock()
    service = OrderSyncService(api_client, warehouse)

    assert service.write_page(page_of([])) == {"orders": 0, "lines": 0}

    warehouse.replace_sales_orders.assert_not_called()
    warehouse.replace_sales_order_lines.assert_not_called()
    warehouse.commit.assert_not_called()


def test_write_failure_rolls_back_and_propagates(api_client, page_of, make_order):
    warehouse = MagicMock()
    warehouse.replace_sales_orders.side_effect = OperationalError("DELETE", {}, Exception("locked"))
    service = OrderSyncService(api_client, warehouse)

    with pytest.raises(OperationalError):
        service.write_page(page_of([make_order(1)]))

    warehouse.rollback.assert_called_once()
    warehouse.commit.assert_not_called()


def test_sync_walks_pages_until_has_next_is_false(service, api_client, db_session, page_of, make_order):
    api_client.get_sales_orders.side_effect = [
        page_of([make_order(1, line_ids=[10]), make_order(2)], current_page=1, limit=2, total_count=3),
        page_of([make_order(3, line_ids=[30, 31])], current_page=2, limit=2, total_count=3),
    ]

    stats = service.sync("2024-05-01")

    window_start = datetime(2024, 5, 1, tzinfo=JST)
    assert api_client.get_sales_orders.call_args_list == [call(window_start, 1), call(window_start, 2)]
    assert stats == {
        "since": "2024-05-01T00:00:00+09:00",
        "pages": 2,
        "orders_written": 3,
        "lines_written": 3,
    }
    assert _order_ids(db_session) == [1, 2, 3]


def test_sync_aborts_on_upstream_error_keeping_written_pages(service, api_client, db_session, page_of, make_order):
    api_client.get_sales_orders.side_effect = [
        page_of([make_order(1)], current_page=1, limit=1, total_count=2),
        UpstreamError("Failed to get sales orders", status_code=503),
    ]

    with pytest.raises(UpstreamError):
        service.sync()

    assert api_client.get_sales_orders.call_count == 2
    assert _order_ids(db_session) == [1]


def test_sync_uses_warehouse_watermark(service, api_client, page_of, make_order):
    service.write_page(page_of([make_order(1, updated_at="2024-04-10T12:00:00")]))
    api_client.get_sales_orders.return_value = page_of([])

    service.sync()

    api_client.get_sales_orders.assert_called_once_with(datetime(2024, 4, 10, 12, 0, tzinfo=JST), 1)


def test_sync_logs_window_start(service, api_client, page_of, caplog):
    api_client.get_sales_orders.return_value = page_of([])

    with caplog.at_level(logging.INFO, logger="app.services.order_sync_service"):
        service.sync("2024-05-01")

    windows = {getattr(record, "window_start", None) for record in caplog.records}
    assert "2024-05-01T00:00:00+09:00" in windows
