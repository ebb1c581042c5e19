"""User attribute schema for the identity service.

Standard attributes follow the OpenID Connect claim names; custom
attributes are namespaced with ``custom:``.
"""

from __future__ import annotations

import re
from enum import StrEnum

from pydantic import BaseModel, EmailStr, TypeAdapter, ValidationError

from greenspace.identity.errors import InvalidParameterError

CUSTOM_PREFIX = "custom:"

_E164 = re.compile(r"^\+[1-9]\d{1,14}$")
_EMAIL = TypeAdapter(EmailStr)


class AttributeDataType(StrEnum):
    STRING = "String"
    BOOLEAN = "Boolean"
    NUMBER = "Number"


class AttributeDefinition(BaseModel):
    """Declared shape of a single user attribute."""

    key: str
    label: str
    data_type: AttributeDataType = AttributeDataType.STRING
    mutable: bool = True
    required: bool = False
    verifiable: bool = False
    min_length: int | None = None
    max_length: int | None = None


STANDARD_ATTRIBUTES: dict[str, AttributeDefinition] = {
    a.key: a
    for a in [
        AttributeDefinition(key="email", label="Email", required=True, verifiable=True),
        AttributeDefinition(key="phone_number", label="Phone Number", verifiable=True),
        AttributeDefinition(key="given_name", label="First Name"),
        AttributeDefinition(key="family_name", label="Last Name"),
        AttributeDefinition(key="name", label="Full Name"),
        AttributeDefinition(key="nickname", label="Nickname"),
    ]
}

CUSTOM_ATTRIBUTES: dict[str, AttributeDefinition] = {
    a.key: a
    for a in [
        AttributeDefinition(
            key="custom:organizationName", label="Organization Name", min_length=1, max_length=100
        ),
        AttributeDefinition(
            key="custom:municipality", label="Municipality", min_length=1, max_length=100
        ),
        AttributeDefinition(
            key="custom:accountType", label="Account Type", min_length=1, max_length=20
        ),
        AttributeDefinition(
            key="custom:accountTier", label="Account Tier", min_length=1, max_length=20
        ),
        AttributeDefinition(
            key="custom:signUpForUpdates",
            label="Sign Up for Updates",
            data_type=AttributeDataType.BOOLEAN,
        ),
    ]
}

# Maintained by the service; clients can read but never write these.
SYSTEM_ATTRIBUTES: dict[str, str] = {
    "sub": "User ID",
    "email_verified": "Email Verified",
    "phone_number_verified": "Phone Number Verified",
}

ALL_ATTRIBUTES: dict[str, AttributeDefinition] = {**STANDARD_ATTRIBUTES, **CUSTOM_ATTRIBUTES}


def get_attribute(key: str) -> AttributeDefinition:
    """Look up an attribute definition.

    Raises:
        InvalidParameterError: If the attribute is unknown or read-only.
    """
    if key in SYSTEM_ATTRIBUTES:
        raise InvalidParameterError(f"Cannot modify read-only attribute: {key}")
    defn = ALL_ATTRIBUTES.get(key)
    if defn is None:
        raise InvalidParameterError(f"Attribute does not exist in the schema: {key}")
    return defn


def display_name(key: str) -> str:
    if key in ALL_ATTRIBUTES:
        return ALL_ATTRIBUTES[key].label
    return SYSTEM_ATTRIBUTES.get(key, key)


def is_verifiable(key: str) -> bool:
    defn = ALL_ATTRIBUTES.get(key)
    return defn is not None and defn.verifiable


def validate_value(defn: AttributeDefinition, value: str) -> str:
    """Check one attribute value against its definition and normalise it."""
    if not isinstance(value, str):
        raise InvalidParameterError(f"Attribute {defn.key} must be a string value")

    if defn.data_type == AttributeDataType.BOOLEAN:
        lowered = value.strip().lower()
        if lowered not in ("true", "false"):
            raise InvalidParameterError(f"Attribute {defn.key} must be 'true' or 'false'")
        return lowered

    if defn.min_length is not None and len(value) < defn.min_length:
        raise InvalidParameterError(
            f"Attribute {defn.key} must be at least {defn.min_length} characters"
        )
    if defn.max_length is not None and len(value) > defn.max_length:
        raise InvalidParameterError(
            f"Attribute {defn.key} must be at most {defn.max_length} characters"
        )

    if defn.key == "email":
        try:
            return str(_EMAIL.validate_python(value)).lower()
        except ValidationError:
            raise InvalidParameterError("Invalid email address format.") from None
    if defn.key == "phone_number" and not _E164.match(value):
        raise InvalidParameterError(
            "Invalid phone number format. Use E.164, for example +15551234567."
        )
    return value


def validate_attributes(
    attributes: dict[str, str],
    *,
    for_sign_up: bool = False,
) -> dict[str, str]:
    """Validate a set of attribute updates.

    Args:
        attributes: Attribute key to new value.
        for_sign_up: When true, required attributes must all be present.

    Returns:
        The normalised attributes.

    Raises:
        InvalidParameterError: On unknown, read-only or malformed attributes.
    """
    cleaned: dict[str, str] = {}
    for key, value in attributes.items():
        defn = get_attribute(key)
        if not defn.mutable and not for_sign_up:
            raise InvalidParameterError(f"Cannot modify immutable attribute: {key}")
        cleaned[key] = validate_value(defn, value)

    if for_sign_up:
        missing = [k for k, d in ALL_ATTRIBUTES.items() if d.required and k not in cleaned]
        if missing:
            raise InvalidParameterError(
                f"Missing required attributes: {', '.join(missing)}"
            )
    return cleaned
