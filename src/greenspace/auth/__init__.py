"""Data API authorization: public API keys and owner-scoped bearer tokens."""

from greenspace.auth.api_keys import ApiKey, ApiKeyManager
from greenspace.auth.middleware import AuthMiddleware, require_access
from greenspace.auth.models import AccessContext

__all__ = [
    "AccessContext",
    "ApiKey",
    "ApiKeyManager",
    "AuthMiddleware",
    "require_access",
]
