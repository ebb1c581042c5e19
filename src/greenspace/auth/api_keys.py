"""Public API key issue and validation."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ApiKey(BaseModel):
    key: str
    description: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: datetime

    @property
    def expired(self) -> bool:
        return datetime.now(timezone.utc) >= self.expires_at


class ApiKeyManager:
    """In-memory API key registry with per-key expiry."""

    def __init__(self, expires_in_days: int = 30) -> None:
        self._keys: dict[str, ApiKey] = {}
        self._expires_in = timedelta(days=expires_in_days)

    def issue(self, description: str = "", key: str | None = None) -> ApiKey:
        now = datetime.now(timezone.utc)
        api_key = ApiKey(
            key=key or f"gs-{secrets.token_urlsafe(24)}",
            description=description,
            created_at=now,
            expires_at=now + self._expires_in,
        )
        self._keys[api_key.key] = api_key
        logger.info("Issued API key %s... (expires %s)", api_key.key[:6], api_key.expires_at.date())
        return api_key

    def validate(self, key: str | None) -> bool:
        if not key:
            return False
        api_key = self._keys.get(key)
        if api_key is None:
            return False
        if api_key.expired:
            del self._keys[key]
            logger.warning("Rejected expired API key %s...", key[:6])
            return False
        return True

    def revoke(self, key: str) -> bool:
        return self._keys.pop(key, None) is not None

    def list_keys(self) -> list[ApiKey]:
        return list(self._keys.values())
