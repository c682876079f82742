"""
@file: app/services/token_store.py
@description: Хранение пары токенов Logiless в key-value хранилище, expiry - в метаданных
@dependencies: pydantic, KeyValueStore
"""

import json
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from app.core.logging import get_logger
from app.core.settings import settings
from app.exceptions import CredentialNotFoundError
from app.services.kv_store import KeyValueStore

logger = get_logger(__name__)

EXPIRE_METADATA_KEY = "expire"


class StoredCredential(BaseModel):
    """Пара токенов и время истечения access token"""
    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)
    expires_at: Optional[datetime] = None


def _parse_expire(raw) -> Optional[datetime]:
    if not raw:
        return None
    try:
        expires_at = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Unparsable token expiry metadata: {raw!r}")
        return None
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at


class TokenStore:
    """Адаптер над KeyValueStore для одного ключа с токенами"""

    def __init__(self, kv: KeyValueStore, key: Optional[str] = None):
        self.kv = kv
        self.key = key or settings.logiless.token_key

    def get(self) -> StoredCredential:
        """
        Прочитать сохраненные токены.

        Raises:
            CredentialNotFoundError: Если токены ни разу не сохранялись
        """
        record = self.kv.get(self.key)
        if record is None:
            raise CredentialNotFoundError(f"No credential stored under {self.key}")

        payload = json.loads(record.value)
        return StoredCredential(
            access_token=payload["access_token"],
            refresh_token=payload["refresh_token"],
            expires_at=_parse_expire(record.metadata.get(EXPIRE_METADATA_KEY)),
        )

    def put(self, access_token: str, refresh_token: str, expires_at: datetime) -> StoredCredential:
        """Записать новую пару токенов целиком"""
        credential = StoredCredential(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )
        value = json.dumps({
            "access_token": credential.access_token,
            "refresh_token": credential.refresh_token,
        })
        metadata = {EXPIRE_METADATA_KEY: expires_at.astimezone(timezone.utc).isoformat()}
        self.kv.put(self.key, value, metadata)
        logger.info(f"Credential stored under {self.key}, expires at {metadata[EXPIRE_METADATA_KEY]}")
        return credential
