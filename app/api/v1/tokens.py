"""
@file: app/api/v1/tokens.py
@description: Состояние авторизации Logiless (без раскрытия токенов)
@dependencies: fastapi, LogilessAuthService
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from app.api.dependencies import AuthServiceDep, CurrentUserDep
from app.core.auth import CurrentUser
from app.services.logiless_auth_service import LogilessAuthService

router = APIRouter()


class CredentialStatusResponse(BaseModel):
    logged_in: bool
    expires_at: Optional[datetime] = None
    expired: Optional[bool] = None


@router.get("/logiless", response_model=CredentialStatusResponse, summary="Статус токенов Logiless")
def get_logiless_token_status(
    current_user: CurrentUser = CurrentUserDep,
    auth_service: LogilessAuthService = AuthServiceDep,
):
    """
    Есть ли сохраненные токены и истек ли access token.

    **Требует аутентификации через JWT токен.**
    """
    return CredentialStatusResponse(**auth_service.get_credential_status())
