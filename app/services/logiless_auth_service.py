"""
@file: app/services/logiless_auth_service.py
@description: Жизненный цикл OAuth2 токенов Logiless: refresh перед использованием и обмен authorization code
@dependencies: httpx, TokenStore
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Type
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.core.settings import settings
from app.core.logging import get_logger
from app.exceptions import (
    AuthorizationCodeExchangeError,
    CredentialNotFoundError,
    LogilessAPIError,
    NotLoggedInError,
    TokenRefreshError,
)
from app.schemas.logiless import LogilessTokenResponse
from app.services.kv_store import SQLKeyValueStore
from app.services.token_store import StoredCredential, TokenStore

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LogilessAuthService:
    """Сервис авторизации Logiless (Authorization Code Flow)"""

    def __init__(
        self,
        token_store: TokenStore,
        http_client: Optional[httpx.Client] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.token_store = token_store
        self.http_client = http_client
        self.clock = clock
        self.logiless_settings = settings.logiless
        self.token_url = f"{self.logiless_settings.auth_url}/oauth2/token"
        self.authorize_url = f"{self.logiless_settings.auth_url}/oauth/v2/auth"

    def build_authorization_url(self) -> str:
        """URL страницы авторизации Logiless, куда редиректит /logiless/login"""
        query = urlencode({
            "client_id": self.logiless_settings.client_id,
            "response_type": "code",
            "redirect_uri": self.logiless_settings.redirect_uri,
        })
        return f"{self.authorize_url}?{query}"

    def get_valid_access_token(self) -> str:
        """
        Получить действующий access token.

        Токен обновляется только в момент использования, если срок истек
        или время истечения неизвестно.

        Returns:
            str: access token для заголовка Authorization

        Raises:
            NotLoggedInError: Если авторизация ни разу не выполнялась
            TokenRefreshError: Если Logiless отклонил refresh_token
        """
        try:
            credential = self.token_store.get()
        except CredentialNotFoundError:
            raise NotLoggedInError()

        if credential.expires_at is None or credential.expires_at <= self.clock():
            logger.info("Access token expired or expiry unknown, refreshing")
            return self.refresh_access_token(credential).access_token

        return credential.access_token

    def refresh_access_token(self, credential: StoredCredential) -> StoredCredential:
        """Обменять refresh_token на новую пару токенов и сохранить ее"""
        token_data = self._request_token(
            {
                "client_id": self.logiless_settings.client_id,
                "client_secret": self.logiless_settings.client_secret,
                "refresh_token": credential.refresh_token,
                "grant_type": "refresh_token",
            },
            error_cls=TokenRefreshError,
            error_message="Failed to refresh token",
        )
        refreshed = self._store_token(token_data)
        logger.info("Token refreshed successfully")
        return refreshed

    def exchange_authorization_code(self, code: str) -> StoredCredential:
        """
        Обменять authorization code из callback на токены.

        Единственный путь, которым токены появляются в хранилище.

        Raises:
            AuthorizationCodeExchangeError: Если Logiless вернул неуспешный статус
        """
        token_data = self._request_token(
            {
                "client_id": self.logiless_settings.client_id,
                "client_secret": self.logiless_settings.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self.logiless_settings.redirect_uri,
            },
            error_cls=AuthorizationCodeExchangeError,
            error_message="Failed to get token",
        )
        credential = self._store_token(token_data)
        logger.info("Authorization completed and token saved")
        return credential

    def get_credential_status(self) -> Dict[str, Any]:
        """Состояние авторизации без раскрытия самих токенов"""
        try:
            credential = self.token_store.get()
        except CredentialNotFoundError:
            return {"logged_in": False, "expires_at": None, "expired": None}

        expired = credential.expires_at is None or credential.expires_at <= self.clock()
        return {
            "logged_in": True,
            "expires_at": credential.expires_at,
            "expired": expired,
        }

    def _store_token(self, token_data: LogilessTokenResponse) -> StoredCredential:
        expires_at = self.clock() + timedelta(seconds=token_data.expires_in)
        return self.token_store.put(
            access_token=token_data.access_token,
            refresh_token=token_data.refresh_token,
            expires_at=expires_at,
        )

    def _request_token(
        self,
        params: Dict[str, str],
        error_cls: Type[LogilessAPIError],
        error_message: str,
    ) -> LogilessTokenResponse:
        response = self._get(self.token_url, params=params)

        if not response.is_success:
            logger.error(f"{error_message}: {response.status_code} - {response.text}")
            raise error_cls(error_message, status_code=response.status_code, body=response.text)

        try:
            return LogilessTokenResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            logger.error(f"{error_message}: unexpected token response: {e}")
            # 2xx с неверным телом: статус Logiless не передается дальше
            raise error_cls(error_message, status_code=None, body=response.text)

    def _get(self, url: str, params: Dict[str, str]) -> httpx.Response:
        if self.http_client is not None:
            return self.http_client.get(url, params=params)
        with httpx.Client(timeout=self.logiless_settings.http_timeout) as client:
            return client.get(url, params=params)


def build_auth_service(db_session, http_client: Optional[httpx.Client] = None) -> LogilessAuthService:
    """LogilessAuthService с токенами в kv_entries текущей сессии"""
    return LogilessAuthService(TokenStore(SQLKeyValueStore(db_session)), http_client=http_client)
