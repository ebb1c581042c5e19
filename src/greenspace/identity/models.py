"""Identity service data models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from greenspace.core.types import AuthEventType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserStatus(StrEnum):
    UNCONFIRMED = "UNCONFIRMED"
    CONFIRMED = "CONFIRMED"


class SignUpStep(StrEnum):
    CONFIRM_SIGN_UP = "CONFIRM_SIGN_UP"
    DONE = "DONE"


class UpdateAttributeStep(StrEnum):
    CONFIRM_ATTRIBUTE_WITH_CODE = "CONFIRM_ATTRIBUTE_WITH_CODE"
    DONE = "DONE"


class DeliveryMedium(StrEnum):
    EMAIL = "EMAIL"
    SMS = "SMS"


class CodePurpose(StrEnum):
    SIGN_UP = "sign_up"
    ATTRIBUTE = "attribute"
    PASSWORD_RESET = "password_reset"


class CodeDeliveryDetails(BaseModel):
    destination: str
    delivery_medium: DeliveryMedium
    attribute_name: str


class CodeDelivery(BaseModel):
    """A confirmation code sent to a user."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    username: str
    purpose: CodePurpose
    code: str
    details: CodeDeliveryDetails
    delivered: bool = False
    created_at: datetime = Field(default_factory=_utcnow)


class PendingCode(BaseModel):
    code: str
    expires_at: datetime
    value: str | None = None


class IdentityUser(BaseModel):
    """A user account held by the identity service."""

    sub: str = Field(default_factory=lambda: str(uuid.uuid4()))
    username: str
    password_hash: str
    status: UserStatus = UserStatus.UNCONFIRMED
    attributes: dict[str, str] = Field(default_factory=dict)
    # keyed by purpose, or by attribute name for attribute verification
    pending_codes: dict[str, PendingCode] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)


class SignUpResult(BaseModel):
    is_sign_up_complete: bool
    next_step: SignUpStep
    user_id: str | None = None
    code_delivery: CodeDeliveryDetails | None = None


class AuthTokens(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_at: datetime


class SignInResult(BaseModel):
    is_signed_in: bool
    user_id: str
    username: str
    tokens: AuthTokens


class AuthSession(BaseModel):
    signed_in: bool
    user_id: str | None = None
    username: str | None = None
    expires_at: datetime | None = None


class TokenValidation(BaseModel):
    valid: bool
    user_id: str | None = None
    username: str | None = None
    expires_at: datetime | None = None


class CurrentUser(BaseModel):
    username: str
    user_id: str


class UpdateAttributeResult(BaseModel):
    is_updated: bool
    next_step: UpdateAttributeStep
    code_delivery: CodeDeliveryDetails | None = None


class AuthEvent(BaseModel):
    """An entry on the auth event hub."""

    type: AuthEventType
    username: str | None = None
    user_id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)
