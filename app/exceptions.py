"""
@file: app/exceptions.py
@description: Кастомные исключения для приложения
@dependencies: -
"""

from typing import Optional


class BaseAppException(Exception):
    """Базовое исключение приложения"""
    pass


class NotFoundError(BaseAppException):
    """Ошибка - ресурс не найден"""
    pass


class CredentialNotFoundError(NotFoundError):
    """В key-value хранилище нет сохраненных токенов Logiless"""
    pass


class ValidationError(BaseAppException):
    """Ошибка валидации данных"""
    pass


class AuthenticationError(BaseAppException):
    """Ошибка аутентификации"""
    pass


class NotLoggedInError(AuthenticationError):
    """Авторизация в Logiless еще не выполнялась (нужен /logiless/login)"""

    def __init__(self, message: str = "Not logged in"):
        super().__init__(message)


class LogilessAPIError(BaseAppException):
    """Ошибка API Logiless: неуспешный HTTP статус"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is not None:
            return f"{base} (status={self.status_code})"
        return base


class TokenRefreshError(LogilessAPIError):
    """Не удалось обновить access token через refresh_token"""
    pass


class AuthorizationCodeExchangeError(LogilessAPIError):
    """Не удалось обменять authorization code на токены"""
    pass


class UpstreamError(LogilessAPIError):
    """Ошибка при получении заказов из Logiless"""
    pass


class UpstreamSchemaError(UpstreamError):
    """Ответ Logiless не соответствует ожидаемой схеме"""
    pass


class SyncError(BaseAppException):
    """Ошибка синхронизации"""
    pass


class NoWatermarkError(SyncError):
    """Не удалось определить дату, с которой начинать синхронизацию"""

    def __init__(self, message: str = "No last updated date"):
        super().__init__(message)

