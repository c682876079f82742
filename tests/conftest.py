"""
@file: tests/conftest.py
@description: Общие фикстуры: тестовое окружение, SQLite в памяти, мок HTTP Logiless
@dependencies: pytest, sqlmodel, httpx
"""

import os
import tempfile

# Окружение задается до импорта app: settings читаются при импорте
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE_PATH", os.path.join(tempfile.gettempdir(), "logiless-tests", "app.log"))
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("JWT_SECRET_KEY", "test_jwt_secret")
os.environ.setdefault("LOGILESS_CLIENT_ID", "test_client_id")
os.environ.setdefault("LOGILESS_CLIENT_SECRET", "test_client_secret")
os.environ.setdefault("LOGILESS_REDIRECT_URI", "https://sync.example.com/logiless/callback")

from datetime import datetime, timezone  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel, Session, create_engine  # noqa: E402

from app import models  # noqa: E402,F401

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    with Session(db_engine) as session:
        yield session


class RecordingTransport:
    """Мок Logiless: отвечает заранее заданными ответами и запоминает запросы"""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        return self.responses.pop(0)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def logiless_http():
    """logiless_http(response, ...) -> RecordingTransport"""
    def factory(*responses: httpx.Response) -> RecordingTransport:
        return RecordingTransport(responses)
    return factory


def _make_order(order_id: int, line_ids=(), updated_at: str = "2024-04-01T10:00:00", **overrides) -> dict:
    order = {
        "id": order_id,
        "code": f"SO-{order_id}",
        "document_status": "Processing",
        "allocation_status": "Allocated",
        "delivery_status": "WaitingForShipment",
        "incoming_payment_status": "Paid",
        "authorization_status": "NotRequired",
        "customer_code": f"C-{order_id}",
        "payment_method": "credit_card",
        "delivery_method": "yamato",
        "buyer_country": "JP",
        "recipient_country": "JP",
        "store": {"id": 7, "name": "Main store"},
        "document_date": "2024-04-01",
        "ordered_at": "2024-04-01T09:00:00",
        "created_at": "2024-04-01T09:00:00",
        "updated_at": updated_at,
        "lines": [
            {
                "id": line_id,
                "status": "Allocated",
                "article_code": f"A-{line_id}",
                "article_name": f"Article {line_id}",
                "quantity": 1,
            }
            for line_id in line_ids
        ],
    }
    order.update(overrides)
    return order


def _make_page(orders, current_page: int = 1, limit: int = 50, total_count: int = None) -> dict:
    return {
        "data": list(orders),
        "current_page": current_page,
        "limit": limit,
        "total_count": len(orders) if total_count is None else total_count,
    }


@pytest.fixture
def make_order():
    """Заказ в формате ответа Logiless"""
    return _make_order


@pytest.fixture
def make_page():
    """Страница GET /sales_orders в формате ответа Logiless"""
    return _make_page
