"""Authentication middleware and dependencies."""

from __future__ import annotations

from typing import Callable

from fastapi import HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from greenspace.auth.models import AccessContext
from greenspace.data.schema import AuthRule, ModelDefinition

API_KEY_HEADER = "x-api-key"


def bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves the API key and Bearer token onto request.state."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.api_key_valid = False
        request.state.auth_user_id = None

        api_keys = getattr(request.app.state, "api_keys", None)
        if api_keys is not None:
            request.state.api_key_valid = api_keys.validate(request.headers.get(API_KEY_HEADER))

        token = bearer_token(request)
        provider = getattr(request.app.state, "identity_provider", None)
        if token and provider is not None:
            validation = provider.validate_token(token)
            if validation.valid:
                request.state.auth_user_id = validation.user_id

        return await call_next(request)


def require_access(defn: ModelDefinition) -> Callable[[Request], AccessContext]:
    """Build a dependency enforcing a model's authorization rules.

    A signed-in owner takes precedence over an API key, so a request that
    carries both is scoped to the caller's own records.
    """

    def dependency(request: Request) -> AccessContext:
        user_id = getattr(request.state, "auth_user_id", None)
        api_key_valid = getattr(request.state, "api_key_valid", False)

        if user_id and defn.allows(AuthRule.OWNER):
            return AccessContext(owner=user_id)
        if api_key_valid and defn.allows(AuthRule.PUBLIC_API_KEY):
            return AccessContext(via_api_key=True)
        if not user_id and not api_key_valid:
            raise HTTPException(status_code=401, detail="Missing or invalid credentials")
        raise HTTPException(
            status_code=403,
            detail=f"Not authorized to access {defn.name} with these credentials",
        )

    return dependency
