"""Account flows used by the web client.

AccountService strings identity calls together the way the account page
uses them (sign up, confirm then sign in automatically, edit profile
attributes) and keeps the matching ``User`` data record in step with the
identity attributes.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from greenspace.core.types import AccountTier, AccountType
from greenspace.data.models import Record
from greenspace.identity.attributes import SYSTEM_ATTRIBUTES, display_name, is_verifiable
from greenspace.identity.models import (
    AuthEvent,
    CodeDeliveryDetails,
    SignInResult,
    SignUpResult,
    UpdateAttributeResult,
    UpdateAttributeStep,
)
from greenspace.identity.provider import LocalIdentityProvider
from greenspace.repositories import resolve

logger = logging.getLogger(__name__)

# identity attribute -> User record field
_RECORD_FIELDS: dict[str, str] = {
    "email": "email",
    "custom:organizationName": "organization_name",
    "custom:municipality": "municipality",
    "custom:accountType": "account_type",
    "custom:accountTier": "account_tier",
}


class SignUpForm(BaseModel):
    """Fields collected by the sign-up form."""

    email: str
    password: str
    first_name: str = ""
    last_name: str = ""
    phone_number: str = ""
    organization_name: str = ""
    municipality: str = ""
    account_type: AccountType = AccountType.INDIVIDUAL
    sign_up_for_updates: bool = False
    client_metadata: dict[str, str] = Field(
        default_factory=lambda: {"source": "custom_signup", "userType": "standard"}
    )

    def to_attributes(self) -> dict[str, str]:
        attributes = {"email": self.email, "custom:accountType": self.account_type.value}
        if self.first_name:
            attributes["given_name"] = self.first_name
        if self.last_name:
            attributes["family_name"] = self.last_name
        if self.phone_number:
            attributes["phone_number"] = self.phone_number
        if self.organization_name:
            attributes["custom:organizationName"] = self.organization_name
        if self.municipality:
            attributes["custom:municipality"] = self.municipality
        if self.sign_up_for_updates:
            attributes["custom:signUpForUpdates"] = "true"
        return attributes


class ProfileAttribute(BaseModel):
    key: str
    label: str
    value: str
    verifiable: bool = False
    verified: bool | None = None


def _full_name(attributes: dict[str, str]) -> str:
    parts = [attributes.get("given_name", ""), attributes.get("family_name", "")]
    name = " ".join(p for p in parts if p).strip()
    return name or attributes.get("name") or attributes["email"]


def _enum_or(enum_cls: type, value: str | None, default: Any) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        return default


class AccountService:
    def __init__(self, provider: LocalIdentityProvider, records: Any) -> None:
        self._provider = provider
        self._records = records

    @property
    def provider(self) -> LocalIdentityProvider:
        return self._provider

    # --- registration and sessions ---

    def register(self, form: SignUpForm) -> SignUpResult:
        metadata = {
            **form.client_metadata,
            "organizationName": form.organization_name,
            "municipality": form.municipality,
            "signUpForUpdates": str(form.sign_up_for_updates).lower(),
        }
        return self._provider.sign_up(
            username=form.email,
            password=form.password,
            attributes=form.to_attributes(),
            client_metadata=metadata,
        )

    async def confirm_registration(self, email: str, code: str, password: str) -> SignInResult:
        """Confirm the sign-up code, then sign the new user straight in."""
        self._provider.confirm_sign_up(email, code)
        return await self.login(email, password)

    async def login(self, email: str, password: str) -> SignInResult:
        # PBKDF2 verification is CPU bound
        result = await run_in_threadpool(self._provider.sign_in, email, password)
        record = await self.ensure_user_record(result.tokens.access_token)
        await resolve(
            self._records.update(
                "User", record.id, {"last_login_at": datetime.now(timezone.utc)}
            )
        )
        return result

    def logout(self, access_token: str, global_sign_out: bool = False) -> None:
        self._provider.sign_out(access_token, global_sign_out=global_sign_out)

    async def ensure_user_record(self, access_token: str) -> Record:
        """Return the caller's User record, creating it on first use."""
        attributes = self._provider.fetch_user_attributes(access_token)
        user_id = attributes["sub"]
        existing = await resolve(self._records.get("User", user_id))
        if existing is not None:
            return existing

        record = await resolve(
            self._records.create(
                "User",
                {
                    "id": user_id,
                    "account_type": _enum_or(
                        AccountType, attributes.get("custom:accountType"), AccountType.INDIVIDUAL
                    ),
                    "name": _full_name(attributes),
                    "email": attributes["email"],
                    "organization_name": attributes.get("custom:organizationName"),
                    "municipality": attributes.get("custom:municipality"),
                    "account_tier": _enum_or(
                        AccountTier, attributes.get("custom:accountTier"), AccountTier.FREE
                    ),
                    "is_email_verified": attributes.get("email_verified") == "true",
                    "registered_at": datetime.now(timezone.utc),
                },
                owner=user_id,
            )
        )
        logger.info("Created User record for %s", user_id)
        return record

    # --- profile ---

    def profile(self, access_token: str) -> list[ProfileAttribute]:
        attributes = self._provider.fetch_user_attributes(access_token)
        profile: list[ProfileAttribute] = []
        for key, value in attributes.items():
            if key.endswith("_verified") and key in SYSTEM_ATTRIBUTES:
                continue
            verifiable = is_verifiable(key)
            profile.append(
                ProfileAttribute(
                    key=key,
                    label=display_name(key),
                    value=value,
                    verifiable=verifiable,
                    verified=attributes.get(f"{key}_verified") == "true" if verifiable else None,
                )
            )
        return profile

    async def update_attributes(
        self, access_token: str, attributes: dict[str, str]
    ) -> dict[str, UpdateAttributeResult]:
        results = self._provider.update_user_attributes(access_token, attributes)
        done = [k for k, r in results.items() if r.next_step == UpdateAttributeStep.DONE]
        await self._sync_record(access_token, done)
        return results

    async def confirm_attribute(self, access_token: str, key: str, code: str) -> None:
        self._provider.confirm_user_attribute(access_token, key, code)
        await self._sync_record(access_token, [key])

    def send_verification_code(self, access_token: str, key: str) -> CodeDeliveryDetails:
        return self._provider.send_user_attribute_verification_code(access_token, key)

    async def delete_attributes(self, access_token: str, keys: list[str]) -> None:
        self._provider.delete_user_attributes(access_token, keys)
        await self._sync_record(access_token, keys)

    def recent_events(self, access_token: str) -> list[AuthEvent]:
        user = self._provider.get_current_user(access_token)
        return self._provider.hub.recent(user.user_id)

    async def _sync_record(self, access_token: str, keys: list[str]) -> None:
        """Copy changed identity attributes onto the User record, if any."""
        attributes = self._provider.fetch_user_attributes(access_token)
        user_id = attributes["sub"]
        record = await resolve(self._records.get("User", user_id))
        if record is None:
            return

        changes: dict[str, Any] = {}
        for key in keys:
            if key in ("given_name", "family_name", "name"):
                changes["name"] = _full_name(attributes)
            elif key == "custom:accountType":
                changes["account_type"] = _enum_or(
                    AccountType, attributes.get(key), record.account_type
                )
            elif key == "custom:accountTier":
                changes["account_tier"] = _enum_or(
                    AccountTier, attributes.get(key), record.account_tier
                )
            elif key in _RECORD_FIELDS:
                changes[_RECORD_FIELDS[key]] = attributes.get(key)
            if key == "email":
                changes["is_email_verified"] = attributes.get("email_verified") == "true"
        if changes:
            await resolve(self._records.update("User", user_id, changes))

