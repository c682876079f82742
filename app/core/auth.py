"""
@file: app/core/auth.py
@description: JWT аутентификация операторских эндпоинтов (запуск синхронизации, статус токена)
@dependencies: jose, fastapi, pydantic
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel

from app.core.settings import settings
from app.core.logging import get_logger

security = HTTPBearer()

logger = get_logger(__name__)


class CurrentUser(BaseModel):
    """Оператор, извлеченный из JWT токена"""
    user_id: str
    username: Optional[str] = None


class TokenPayload(BaseModel):
    """Модель payload JWT токена"""
    user_id: str
    username: Optional[str] = None
    exp: Optional[datetime] = None


def _credentials_exception(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Создает JWT access token

    Args:
        data: Данные для включения в токен (обязательно user_id)
        expires_delta: Время жизни токена

    Returns:
        JWT токен в виде строки
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.api.jwt_access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.api.jwt_secret_key,
        algorithm=settings.api.jwt_algorithm
    )


def verify_token(token: str) -> TokenPayload:
    """
    Проверяет и декодирует JWT токен

    Raises:
        HTTPException: При невалидном или просроченном токене
    """
    try:
        payload = jwt.decode(
            token,
            settings.api.jwt_secret_key,
            algorithms=[settings.api.jwt_algorithm]
        )
    except JWTError:
        raise _credentials_exception()

    if payload.get("user_id") is None:
        raise _credentials_exception()

    return TokenPayload(**payload)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> CurrentUser:
    """Dependency для получения текущего оператора из JWT токена"""
    token_payload = verify_token(credentials.credentials)
    logger.info(f"JWT токен успешно декодирован: user_id={token_payload.user_id}")
    return CurrentUser(user_id=token_payload.user_id, username=token_payload.username)
