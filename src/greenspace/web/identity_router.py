"""FastAPI router for identity endpoints.

Identity errors raised here are turned into JSON responses by the
handler registered in ``create_app``.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from greenspace.auth.middleware import bearer_token
from greenspace.identity.account import AccountService, SignUpForm
from greenspace.identity.events import event_display_name
from greenspace.identity.provider import LocalIdentityProvider

router = APIRouter(prefix="/api/auth", tags=["auth"])


class ConfirmSignUpRequest(BaseModel):
    email: str
    code: str
    # When given, the user is signed in straight after confirmation.
    password: str | None = None


class EmailRequest(BaseModel):
    email: str


class SignInRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class SignOutRequest(BaseModel):
    global_sign_out: bool = False


class UpdateAttributesRequest(BaseModel):
    attributes: dict[str, str]


class AttributeKeyRequest(BaseModel):
    key: str


class ConfirmAttributeRequest(BaseModel):
    key: str
    code: str


class DeleteAttributesRequest(BaseModel):
    keys: list[str] = Field(min_length=1)


class ConfirmForgotPasswordRequest(BaseModel):
    email: str
    code: str
    new_password: str


def _account(request: Request) -> AccountService:
    service = getattr(request.app.state, "account_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Identity service not available")
    return service


def _provider(request: Request) -> LocalIdentityProvider:
    return _account(request).provider


def _token(request: Request) -> str:
    token = bearer_token(request)
    if token is None:
        raise HTTPException(status_code=401, detail="Sign in required")
    return token


# --- Registration ---


@router.post("/sign-up")
def sign_up(body: SignUpForm, request: Request) -> dict[str, Any]:
    """Register a new account; a confirmation code is sent by email."""
    result = _account(request).register(body)
    return result.model_dump(mode="json")


@router.post("/confirm-sign-up")
async def confirm_sign_up(body: ConfirmSignUpRequest, request: Request) -> dict[str, Any]:
    account = _account(request)
    if body.password:
        signed_in = await account.confirm_registration(body.email, body.code, body.password)
        return {
            "is_sign_up_complete": True,
            "next_step": "DONE",
            "sign_in": signed_in.model_dump(mode="json"),
        }
    result = account.provider.confirm_sign_up(body.email, body.code)
    return result.model_dump(mode="json")


@router.post("/resend-code")
async def resend_code(body: EmailRequest, request: Request) -> dict[str, Any]:
    details = _provider(request).resend_sign_up_code(body.email)
    return {"code_delivery": details.model_dump(mode="json")}


# --- Sessions ---


@router.post("/sign-in")
async def sign_in(body: SignInRequest, request: Request) -> dict[str, Any]:
    result = await _account(request).login(body.email, body.password)
    return result.model_dump(mode="json")


@router.post("/refresh")
async def refresh(body: RefreshRequest, request: Request) -> dict[str, Any]:
    tokens = _provider(request).refresh_tokens(body.refresh_token)
    return tokens.model_dump(mode="json")


@router.post("/sign-out")
async def sign_out(request: Request, body: SignOutRequest | None = None) -> dict[str, Any]:
    global_sign_out = body.global_sign_out if body else False
    _account(request).logout(_token(request), global_sign_out=global_sign_out)
    return {"signed_out": True, "global": global_sign_out}


@router.get("/session")
async def session(request: Request) -> dict[str, Any]:
    """Describe the current session. Works without a token."""
    result = _provider(request).fetch_auth_session(bearer_token(request))
    return result.model_dump(mode="json")


@router.get("/me")
async def current_user(request: Request) -> dict[str, Any]:
    return _provider(request).get_current_user(_token(request)).model_dump()


# --- Attributes ---


@router.get("/attributes")
async def get_attributes(request: Request) -> dict[str, Any]:
    account = _account(request)
    token = _token(request)
    return {
        "attributes": account.provider.fetch_user_attributes(token),
        "profile": [p.model_dump() for p in account.profile(token)],
    }


@router.patch("/attributes")
async def update_attributes(body: UpdateAttributesRequest, request: Request) -> dict[str, Any]:
    if not body.attributes:
        raise HTTPException(status_code=400, detail="No attributes to update")
    results = await _account(request).update_attributes(_token(request), body.attributes)
    return {key: r.model_dump(mode="json") for key, r in results.items()}


@router.post("/attributes/confirm")
async def confirm_attribute(body: ConfirmAttributeRequest, request: Request) -> dict[str, Any]:
    await _account(request).confirm_attribute(_token(request), body.key, body.code)
    return {"key": body.key, "verified": True}


@router.post("/attributes/send-code")
async def send_attribute_code(body: AttributeKeyRequest, request: Request) -> dict[str, Any]:
    details = _account(request).send_verification_code(_token(request), body.key)
    return {"key": body.key, "code_delivery": details.model_dump(mode="json")}


@router.post("/attributes/delete")
async def delete_attributes(body: DeleteAttributesRequest, request: Request) -> dict[str, Any]:
    await _account(request).delete_attributes(_token(request), body.keys)
    return {"deleted": body.keys}


@router.delete("/attributes")
async def delete_attributes_by_query(
    request: Request, keys: list[str] = Query(..., min_length=1)
) -> dict[str, Any]:
    """Same as POST /attributes/delete, with keys given as repeated query params."""
    await _account(request).delete_attributes(_token(request), keys)
    return {"deleted": keys}


# --- Password reset and account deletion ---


@router.post("/forgot-password")
async def forgot_password(body: EmailRequest, request: Request) -> dict[str, Any]:
    details = _provider(request).forgot_password(body.email)
    return {"code_delivery": details.model_dump(mode="json")}


@router.post("/confirm-forgot-password")
def confirm_forgot_password(
    body: ConfirmForgotPasswordRequest, request: Request
) -> dict[str, Any]:
    _provider(request).confirm_forgot_password(body.email, body.code, body.new_password)
    return {"password_reset": True}


@router.post("/delete-user")
async def delete_user(request: Request) -> dict[str, Any]:
    _provider(request).delete_user(_token(request))
    return {"deleted": True}


# --- Events ---


@router.get("/events")
async def list_events(request: Request) -> list[dict[str, Any]]:
    """Recent auth events for the signed-in user, newest first."""
    events = _account(request).recent_events(_token(request))
    return [
        {
            "type": e.type.value,
            "label": event_display_name(e.type.value),
            "timestamp": e.timestamp.isoformat(),
            "data": e.data,
        }
        for e in events
    ]
