"""
@file: app/api/v1/logiless.py
@description: Вход в Logiless через Authorization Code Flow: /logiless/login и /logiless/callback
@dependencies: fastapi, LogilessAuthService
"""

from typing import Optional

from fastapi import APIRouter, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from app.api.dependencies import AuthServiceDep
from app.core.logging import get_logger
from app.exceptions import AuthorizationCodeExchangeError
from app.services.logiless_auth_service import LogilessAuthService

logger = get_logger(__name__)

router = APIRouter()


@router.get("/login", summary="Перейти к авторизации Logiless")
def login(auth_service: LogilessAuthService = AuthServiceDep):
    """
    Редирект (302) на страницу авторизации Logiless.

    client_id и redirect_uri берутся из настроек. Сохраненные токены не меняются.
    """
    return RedirectResponse(
        url=auth_service.build_authorization_url(),
        status_code=status.HTTP_302_FOUND,
    )


@router.get("/callback", summary="Callback авторизации Logiless")
def callback(code: Optional[str] = None, auth_service: LogilessAuthService = AuthServiceDep):
    """
    Обмен authorization code на токены.

    - без **code** - 400, обмен не выполняется
    - ошибка Logiless - статус и тело ответа Logiless
    - 2xx с неверным телом - 502
    - успех - 200
    """
    if not code:
        logger.warning("Logiless callback called without code")
        return PlainTextResponse("Missing code", status_code=status.HTTP_400_BAD_REQUEST)

    try:
        auth_service.exchange_authorization_code(code)
    except AuthorizationCodeExchangeError as e:
        status_code = e.status_code
        if status_code is None or status_code < status.HTTP_400_BAD_REQUEST:
            status_code = status.HTTP_502_BAD_GATEWAY
        return PlainTextResponse(e.body or "Failed to get token", status_code=status_code)

    return PlainTextResponse("Logged in", status_code=status.HTTP_200_OK)
