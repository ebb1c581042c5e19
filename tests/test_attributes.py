"""Tests for the user attribute schema."""

from __future__ import annotations

import pytest

from greenspace.identity.attributes import (
    display_name,
    get_attribute,
    is_verifiable,
    validate_attributes,
)
from greenspace.identity.errors import InvalidParameterError


class TestAttributeLookup:
    def test_standard_attribute(self) -> None:
        defn = get_attribute("email")
        assert defn.required
        assert defn.verifiable

    def test_custom_attribute(self) -> None:
        defn = get_attribute("custom:organizationName")
        assert defn.min_length == 1
        assert defn.max_length == 100

    def test_unknown_attribute(self) -> None:
        with pytest.raises(InvalidParameterError, match="does not exist"):
            get_attribute("custom:favouriteTree")

    def test_system_attribute_is_read_only(self) -> None:
        with pytest.raises(InvalidParameterError, match="read-only"):
            get_attribute("sub")

    def test_display_names(self) -> None:
        assert display_name("given_name") == "First Name"
        assert display_name("custom:municipality") == "Municipality"
        assert display_name("email_verified") == "Email Verified"
        assert display_name("whatever") == "whatever"

    def test_verifiable(self) -> None:
        assert is_verifiable("email")
        assert is_verifiable("phone_number")
        assert not is_verifiable("given_name")
        assert not is_verifiable("nope")


class TestValidateAttributes:
    def test_email_is_lowercased(self) -> None:
        cleaned = validate_attributes({"email": "Jane.Smith@Example.org"})
        assert cleaned["email"] == "jane.smith@example.org"

    def test_bad_email(self) -> None:
        with pytest.raises(InvalidParameterError, match="email"):
            validate_attributes({"email": "not-an-email"})

    def test_phone_number_must_be_e164(self) -> None:
        assert validate_attributes({"phone_number": "+15551234567"})
        with pytest.raises(InvalidParameterError, match="E.164"):
            validate_attributes({"phone_number": "555-1234"})

    def test_boolean_attribute(self) -> None:
        cleaned = validate_attributes({"custom:signUpForUpdates": "True"})
        assert cleaned["custom:signUpForUpdates"] == "true"
        with pytest.raises(InvalidParameterError):
            validate_attributes({"custom:signUpForUpdates": "yes"})

    def test_length_bounds(self) -> None:
        with pytest.raises(InvalidParameterError, match="at least 1"):
            validate_attributes({"custom:municipality": ""})
        with pytest.raises(InvalidParameterError, match="at most 100"):
            validate_attributes({"custom:organizationName": "x" * 101})

    def test_required_on_sign_up(self) -> None:
        with pytest.raises(InvalidParameterError, match="Missing required attributes: email"):
            validate_attributes({"given_name": "Jane"}, for_sign_up=True)

    def test_required_not_enforced_on_update(self) -> None:
        assert validate_attributes({"given_name": "Jane"}) == {"given_name": "Jane"}
