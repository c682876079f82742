"""
@file: app/api/dependencies.py
@description: Зависимости для FastAPI
@dependencies: fastapi, sqlmodel
"""

from typing import Generator

from fastapi import Depends
from sqlmodel import Session

from app.core.auth import get_current_user
from app.core.database import get_sync_session
from app.services.logiless_auth_service import LogilessAuthService, build_auth_service


def get_db_session() -> Generator[Session, None, None]:
    """
    Сессия базы данных для эндпоинтов.

    Yields:
        Session: сессия SQLModel, закрывается после ответа
    """
    yield from get_sync_session()


def get_auth_service(db_session: Session = Depends(get_db_session)) -> LogilessAuthService:
    """LogilessAuthService, хранящий токены в базе текущей сессии"""
    return build_auth_service(db_session)


AuthServiceDep = Depends(get_auth_service)
CurrentUserDep = Depends(get_current_user)
