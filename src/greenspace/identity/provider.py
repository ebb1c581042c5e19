"""Identity provider Protocol and local in-memory implementation."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

from greenspace.core.types import AuthEventType
from greenspace.identity import passwords
from greenspace.identity.attributes import (
    ALL_ATTRIBUTES,
    SYSTEM_ATTRIBUTES,
    get_attribute,
    is_verifiable,
    validate_attributes,
    validate_value,
)
from greenspace.identity.delivery import CodeDeliveryService, MockCodeDeliveryService
from greenspace.identity.errors import (
    CodeMismatchError,
    ExpiredCodeError,
    InvalidParameterError,
    NotAuthorizedError,
    UserNotConfirmedError,
    UserNotFoundError,
    UsernameExistsError,
)
from greenspace.identity.events import AuthEventHub
from greenspace.identity.models import (
    AuthEvent,
    AuthSession,
    AuthTokens,
    CodeDelivery,
    CodeDeliveryDetails,
    CodePurpose,
    CurrentUser,
    DeliveryMedium,
    IdentityUser,
    PendingCode,
    SignInResult,
    SignUpResult,
    SignUpStep,
    TokenValidation,
    UpdateAttributeResult,
    UpdateAttributeStep,
    UserStatus,
)

logger = logging.getLogger(__name__)

_DEFAULT_FIXTURES_PATH = Path(__file__).resolve().parents[3] / "config" / "identity_fixtures.yml"

_BAD_CREDENTIALS = "Incorrect username or password."


@runtime_checkable
class IdentityProvider(Protocol):
    """Protocol for identity providers."""

    def sign_up(
        self,
        username: str,
        password: str,
        attributes: dict[str, str] | None = None,
        client_metadata: dict[str, str] | None = None,
    ) -> SignUpResult: ...

    def confirm_sign_up(self, username: str, code: str) -> SignUpResult: ...

    def sign_in(self, username: str, password: str) -> SignInResult: ...

    def sign_out(self, access_token: str, global_sign_out: bool = False) -> None: ...

    def validate_token(self, access_token: str) -> TokenValidation: ...

    def fetch_auth_session(self, access_token: str | None) -> AuthSession: ...

    def fetch_user_attributes(self, access_token: str) -> dict[str, str]: ...

    def update_user_attributes(
        self, access_token: str, attributes: dict[str, str]
    ) -> dict[str, UpdateAttributeResult]: ...


def _mask(destination: str) -> str:
    """Hide most of an email or phone number, e.g. j***@e***.com."""
    if "@" in destination:
        local, _, domain = destination.partition("@")
        host, dot, tld = domain.rpartition(".")
        return f"{local[:1]}***@{host[:1]}***{dot}{tld}"
    return f"+*******{destination[-4:]}"


class LocalIdentityProvider:
    """In-memory identity service with email login and code confirmation.

    Users are keyed by ``sub``; the username is the user's email address.
    Confirmation codes go through a CodeDeliveryService and every state
    change is published on the AuthEventHub.
    """

    def __init__(
        self,
        delivery: CodeDeliveryService | None = None,
        hub: AuthEventHub | None = None,
        fixtures_path: str | Path | None = None,
        token_expiry_minutes: int = 60,
        refresh_token_expiry_days: int = 30,
        code_expiry_minutes: int = 60 * 24,
    ) -> None:
        self._delivery = delivery or MockCodeDeliveryService()
        self._hub = hub or AuthEventHub()
        self._users: dict[str, IdentityUser] = {}
        self._usernames: dict[str, str] = {}
        self._access_tokens: dict[str, dict[str, Any]] = {}
        self._refresh_tokens: dict[str, dict[str, Any]] = {}
        self._token_expiry = timedelta(minutes=token_expiry_minutes)
        self._refresh_expiry = timedelta(days=refresh_token_expiry_days)
        self._code_expiry = timedelta(minutes=code_expiry_minutes)
        self._load_fixtures(Path(fixtures_path) if fixtures_path else _DEFAULT_FIXTURES_PATH)

    def _load_fixtures(self, path: Path) -> None:
        if not path.exists():
            return
        with open(path) as fh:
            data = yaml.safe_load(fh) or {}
        for entry in data.get("users", []):
            username = entry["username"].strip().lower()
            attributes = validate_attributes(
                {"email": username, **(entry.get("attributes") or {})},
                for_sign_up=True,
            )
            user = IdentityUser(
                username=username,
                password_hash=passwords.hash_password(entry["password"]),
                status=UserStatus(entry.get("status", UserStatus.CONFIRMED)),
                attributes=attributes,
            )
            if "sub" in entry:
                user.sub = entry["sub"]
            if user.status == UserStatus.CONFIRMED:
                user.attributes["email_verified"] = "true"
            self._add_user(user)
        logger.info("Loaded %d identity fixture users from %s", len(self._users), path)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def hub(self) -> AuthEventHub:
        return self._hub

    @property
    def delivery(self) -> CodeDeliveryService:
        return self._delivery

    @property
    def users(self) -> dict[str, IdentityUser]:
        return dict(self._users)

    def get_user_by_username(self, username: str) -> IdentityUser | None:
        sub = self._usernames.get(username.strip().lower())
        return self._users.get(sub) if sub else None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _add_user(self, user: IdentityUser) -> None:
        self._users[user.sub] = user
        self._usernames[user.username] = user.sub

    def _require_user(self, username: str) -> IdentityUser:
        user = self.get_user_by_username(username)
        if user is None:
            raise UserNotFoundError("Username/client id combination not found.")
        return user

    def _user_for_token(self, access_token: str) -> IdentityUser:
        info = self._access_tokens.get(access_token)
        if info is None:
            raise NotAuthorizedError("Access Token has been revoked")
        if datetime.now(timezone.utc) > info["expires_at"]:
            del self._access_tokens[access_token]
            raise NotAuthorizedError("Access Token has expired")
        user = self._users.get(info["sub"])
        if user is None:
            raise NotAuthorizedError("User does not exist.")
        return user

    def _publish(
        self,
        event_type: AuthEventType,
        user: IdentityUser | None = None,
        username: str | None = None,
        **data: Any,
    ) -> None:
        self._hub.publish(
            AuthEvent(
                type=event_type,
                username=user.username if user else username,
                user_id=user.sub if user else None,
                data=data,
            )
        )

    def _issue_code(
        self,
        user: IdentityUser,
        purpose: CodePurpose,
        attribute: str = "email",
        value: str | None = None,
    ) -> CodeDeliveryDetails:
        destination = value or user.attributes.get(attribute)
        if not destination:
            raise InvalidParameterError(f"No {attribute} on file to send a code to.")
        code = f"{secrets.randbelow(1_000_000):06d}"
        key = f"{purpose.value}:{attribute}" if purpose == CodePurpose.ATTRIBUTE else purpose.value
        user.pending_codes[key] = PendingCode(
            code=code,
            expires_at=datetime.now(timezone.utc) + self._code_expiry,
            value=value,
        )
        medium = DeliveryMedium.SMS if attribute == "phone_number" else DeliveryMedium.EMAIL
        self._delivery.send(
            CodeDelivery(
                username=user.username,
                purpose=purpose,
                code=code,
                details=CodeDeliveryDetails(
                    destination=destination,
                    delivery_medium=medium,
                    attribute_name=attribute,
                ),
            )
        )
        return CodeDeliveryDetails(
            destination=_mask(destination),
            delivery_medium=medium,
            attribute_name=attribute,
        )

    def _consume_code(self, user: IdentityUser, key: str, code: str) -> PendingCode:
        if not code or not code.strip():
            raise InvalidParameterError("Confirmation code is required.")
        pending = user.pending_codes.get(key)
        if pending is None:
            raise CodeMismatchError("Invalid verification code provided, please try again.")
        if datetime.now(timezone.utc) > pending.expires_at:
            del user.pending_codes[key]
            raise ExpiredCodeError("Invalid code provided, please request a code again.")
        if not secrets.compare_digest(pending.code, code.strip()):
            raise CodeMismatchError("Invalid verification code provided, please try again.")
        del user.pending_codes[key]
        return pending

    def _purge_expired_tokens(self, now: datetime) -> None:
        for store in (self._access_tokens, self._refresh_tokens):
            expired = [t for t, info in store.items() if now > info["expires_at"]]
            for token in expired:
                del store[token]

    def _issue_tokens(self, user: IdentityUser) -> AuthTokens:
        now = datetime.now(timezone.utc)
        self._purge_expired_tokens(now)
        access = secrets.token_urlsafe(32)
        refresh = secrets.token_urlsafe(48)
        expires_at = now + self._token_expiry
        self._access_tokens[access] = {"sub": user.sub, "expires_at": expires_at, "refresh": refresh}
        self._refresh_tokens[refresh] = {
            "sub": user.sub,
            "expires_at": now + self._refresh_expiry,
            "access": access,
        }
        return AuthTokens(access_token=access, refresh_token=refresh, expires_at=expires_at)

    def _revoke_all(self, sub: str) -> int:
        access = [t for t, info in self._access_tokens.items() if info["sub"] == sub]
        for token in access:
            del self._access_tokens[token]
        refresh = [t for t, info in self._refresh_tokens.items() if info["sub"] == sub]
        for token in refresh:
            del self._refresh_tokens[token]
        return len(access)

    # ------------------------------------------------------------------
    # Sign-up and confirmation
    # ------------------------------------------------------------------

    def sign_up(
        self,
        username: str,
        password: str,
        attributes: dict[str, str] | None = None,
        client_metadata: dict[str, str] | None = None,
    ) -> SignUpResult:
        """Register a new, unconfirmed user and send a confirmation code.

        Raises:
            InvalidParameterError: Bad username or attributes.
            InvalidPasswordError: Password breaks the policy.
            UsernameExistsError: The email is already registered.
        """
        email = validate_value(ALL_ATTRIBUTES["email"], (username or "").strip())
        attrs = dict(attributes or {})
        if attrs.get("email", email).strip().lower() != email:
            raise InvalidParameterError("Email attribute must match the username.")
        attrs["email"] = email
        attrs = validate_attributes(attrs, for_sign_up=True)
        passwords.check_policy(password)

        if self.get_user_by_username(email) is not None:
            raise UsernameExistsError("An account with the given email already exists.")

        user = IdentityUser(
            username=email,
            password_hash=passwords.hash_password(password),
            attributes=attrs,
        )
        self._add_user(user)
        details = self._issue_code(user, CodePurpose.SIGN_UP)
        logger.info("Signed up user %s (%s)", user.sub, email)
        self._publish(AuthEventType.SIGN_UP, user, client_metadata=client_metadata or {})
        return SignUpResult(
            is_sign_up_complete=False,
            next_step=SignUpStep.CONFIRM_SIGN_UP,
            user_id=user.sub,
            code_delivery=details,
        )

    def resend_sign_up_code(self, username: str) -> CodeDeliveryDetails:
        user = self._require_user(username)
        if user.status == UserStatus.CONFIRMED:
            raise InvalidParameterError("User is already confirmed.")
        return self._issue_code(user, CodePurpose.SIGN_UP)

    def confirm_sign_up(self, username: str, code: str) -> SignUpResult:
        user = self._require_user(username)
        if user.status == UserStatus.CONFIRMED:
            raise NotAuthorizedError("User cannot be confirmed. Current status is CONFIRMED")
        self._consume_code(user, CodePurpose.SIGN_UP.value, code)
        user.status = UserStatus.CONFIRMED
        user.attributes["email_verified"] = "true"
        logger.info("Confirmed user %s", user.sub)
        self._publish(AuthEventType.CONFIRM_SIGN_UP, user)
        return SignUpResult(
            is_sign_up_complete=True,
            next_step=SignUpStep.DONE,
            user_id=user.sub,
        )

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def sign_in(self, username: str, password: str) -> SignInResult:
        user = self.get_user_by_username(username or "")
        if user is None or not passwords.verify_password(password or "", user.password_hash):
            logger.warning("Failed sign-in for %s", username)
            raise NotAuthorizedError(_BAD_CREDENTIALS)
        if user.status != UserStatus.CONFIRMED:
            raise UserNotConfirmedError("User is not confirmed.")

        tokens = self._issue_tokens(user)
        logger.info("User %s signed in", user.sub)
        self._publish(AuthEventType.SIGNED_IN, user)
        return SignInResult(
            is_signed_in=True,
            user_id=user.sub,
            username=user.username,
            tokens=tokens,
        )

    def validate_token(self, access_token: str) -> TokenValidation:
        try:
            user = self._user_for_token(access_token)
        except NotAuthorizedError:
            return TokenValidation(valid=False)
        return TokenValidation(
            valid=True,
            user_id=user.sub,
            username=user.username,
            expires_at=self._access_tokens[access_token]["expires_at"],
        )

    def fetch_auth_session(self, access_token: str | None) -> AuthSession:
        """Describe the session behind a token; never raises for bad tokens."""
        if not access_token:
            return AuthSession(signed_in=False)
        validation = self.validate_token(access_token)
        if not validation.valid:
            return AuthSession(signed_in=False)
        return AuthSession(
            signed_in=True,
            user_id=validation.user_id,
            username=validation.username,
            expires_at=validation.expires_at,
        )

    def get_current_user(self, access_token: str) -> CurrentUser:
        user = self._user_for_token(access_token)
        return CurrentUser(username=user.username, user_id=user.sub)

    def refresh_tokens(self, refresh_token: str) -> AuthTokens:
        info = self._refresh_tokens.get(refresh_token)
        if info is None or datetime.now(timezone.utc) > info["expires_at"]:
            self._refresh_tokens.pop(refresh_token, None)
            self._publish(AuthEventType.TOKEN_REFRESH_FAILURE)
            raise NotAuthorizedError("Invalid Refresh Token")
        user = self._users.get(info["sub"])
        if user is None:
            self._refresh_tokens.pop(refresh_token, None)
            raise NotAuthorizedError("User does not exist.")

        self._purge_expired_tokens(datetime.now(timezone.utc))
        self._access_tokens.pop(info["access"], None)
        access = secrets.token_urlsafe(32)
        expires_at = datetime.now(timezone.utc) + self._token_expiry
        self._access_tokens[access] = {"sub": user.sub, "expires_at": expires_at, "refresh": refresh_token}
        info["access"] = access
        self._publish(AuthEventType.TOKEN_REFRESH, user)
        return AuthTokens(access_token=access, refresh_token=refresh_token, expires_at=expires_at)

    def sign_out(self, access_token: str, global_sign_out: bool = False) -> None:
        """Revoke a token, or every token the user holds when global."""
        user = self._user_for_token(access_token)
        if global_sign_out:
            count = self._revoke_all(user.sub)
            logger.info("Globally signed out user %s (%d sessions)", user.sub, count)
        else:
            info = self._access_tokens.pop(access_token)
            self._refresh_tokens.pop(info["refresh"], None)
            logger.info("User %s signed out", user.sub)
        self._publish(AuthEventType.SIGNED_OUT, user, global_sign_out=global_sign_out)

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def fetch_user_attributes(self, access_token: str) -> dict[str, str]:
        user = self._user_for_token(access_token)
        return {"sub": user.sub, **user.attributes}

    def update_user_attributes(
        self, access_token: str, attributes: dict[str, str]
    ) -> dict[str, UpdateAttributeResult]:
        """Update attributes.

        Non-verifiable attributes change immediately. A changed email or
        phone number is held as pending, with the previous value still
        active, until ``confirm_user_attribute`` succeeds.
        """
        user = self._user_for_token(access_token)
        cleaned = validate_attributes(attributes)
        if "email" in cleaned and cleaned["email"] != user.username:
            other = self.get_user_by_username(cleaned["email"])
            if other is not None and other.sub != user.sub:
                raise UsernameExistsError("An account with the given email already exists.")

        results: dict[str, UpdateAttributeResult] = {}
        changed: list[str] = []
        for key, value in cleaned.items():
            if is_verifiable(key) and user.attributes.get(key) != value:
                details = self._issue_code(user, CodePurpose.ATTRIBUTE, key, value)
                results[key] = UpdateAttributeResult(
                    is_updated=False,
                    next_step=UpdateAttributeStep.CONFIRM_ATTRIBUTE_WITH_CODE,
                    code_delivery=details,
                )
            else:
                user.attributes[key] = value
                changed.append(key)
                results[key] = UpdateAttributeResult(
                    is_updated=True, next_step=UpdateAttributeStep.DONE
                )
        if changed:
            self._publish(AuthEventType.USER_ATTRIBUTES_UPDATED, user, attributes=changed)
        return results

    def update_user_attribute(self, access_token: str, key: str, value: str) -> UpdateAttributeResult:
        return self.update_user_attributes(access_token, {key: value})[key]

    def send_user_attribute_verification_code(self, access_token: str, key: str) -> CodeDeliveryDetails:
        user = self._user_for_token(access_token)
        get_attribute(key)
        if not is_verifiable(key):
            raise InvalidParameterError(f"Attribute {key} cannot be verified.")
        if not user.attributes.get(key):
            raise InvalidParameterError(f"No {key} on file to verify.")
        return self._issue_code(user, CodePurpose.ATTRIBUTE, key)

    def confirm_user_attribute(self, access_token: str, key: str, code: str) -> None:
        user = self._user_for_token(access_token)
        if not is_verifiable(key):
            raise InvalidParameterError(f"Attribute {key} cannot be verified.")
        pending = self._consume_code(user, f"{CodePurpose.ATTRIBUTE.value}:{key}", code)
        if key == "email" and pending.value is not None:
            other = self.get_user_by_username(pending.value)
            if other is not None and other.sub != user.sub:
                logger.warning("Email change for user %s lost to another account", user.sub)
                raise UsernameExistsError("An account with the given email already exists.")
        if pending.value is not None:
            user.attributes[key] = pending.value
            if key == "email":
                del self._usernames[user.username]
                user.username = pending.value
                self._usernames[user.username] = user.sub
        user.attributes[f"{key}_verified"] = "true"
        logger.info("User %s verified %s", user.sub, key)
        self._publish(AuthEventType.USER_ATTRIBUTES_UPDATED, user, attributes=[key], verified=True)

    def delete_user_attributes(self, access_token: str, keys: list[str]) -> None:
        user = self._user_for_token(access_token)
        for key in keys:
            if key in SYSTEM_ATTRIBUTES:
                raise InvalidParameterError(f"Cannot delete read-only attribute: {key}")
            defn = get_attribute(key)
            if defn.required:
                raise InvalidParameterError(f"Cannot delete required attribute: {key}")
        for key in keys:
            user.attributes.pop(key, None)
            user.attributes.pop(f"{key}_verified", None)
            user.pending_codes.pop(f"{CodePurpose.ATTRIBUTE.value}:{key}", None)
        self._publish(AuthEventType.USER_ATTRIBUTES_UPDATED, user, deleted=list(keys))

    # ------------------------------------------------------------------
    # Password reset and account deletion
    # ------------------------------------------------------------------

    def forgot_password(self, username: str) -> CodeDeliveryDetails:
        user = self._require_user(username)
        if user.attributes.get("email_verified") != "true":
            raise InvalidParameterError(
                "Cannot reset password for the user as there is no registered/verified email."
            )
        details = self._issue_code(user, CodePurpose.PASSWORD_RESET)
        self._publish(AuthEventType.FORGOT_PASSWORD, user)
        return details

    def confirm_forgot_password(self, username: str, code: str, new_password: str) -> None:
        user = self._require_user(username)
        passwords.check_policy(new_password)
        self._consume_code(user, CodePurpose.PASSWORD_RESET.value, code)
        user.password_hash = passwords.hash_password(new_password)
        self._revoke_all(user.sub)
        logger.info("Password reset for user %s", user.sub)
        self._publish(AuthEventType.CONFIRM_FORGOT_PASSWORD, user)

    def delete_user(self, access_token: str) -> None:
        user = self._user_for_token(access_token)
        self._revoke_all(user.sub)
        del self._users[user.sub]
        self._usernames.pop(user.username, None)
        logger.info("Deleted user %s", user.sub)
        self._publish(AuthEventType.USER_DELETED, user)
        self._hub.forget(user.sub)
        self._hub.forget(user.username)
