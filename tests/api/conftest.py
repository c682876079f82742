"""
@file: tests/api/conftest.py
@description: Фикстуры для тестов API: TestClient, тестовая база вместо рабочей, JWT оператора
@dependencies: pytest, fastapi
"""

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_db_session
from app.core.auth import create_access_token
from app.main import app


@pytest.fixture
def client(db_session):
    """TestClient, у которого все эндпоинты работают с тестовой SQLite"""
    app.dependency_overrides[get_db_session] = lambda: db_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    token = create_access_token({"user_id": "operator", "username": "operator"})
    return {"Authorization": f"Bearer {token}"}
