"""Core type definitions shared across all Green Space Tracker modules."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class ZoneType(StrEnum):
    """Kind of planting inside a green space zone."""

    LAWN = "LAWN"
    TREE = "TREE"
    SHRUB = "SHRUB"


class GreenSpaceStatus(StrEnum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"


class ImpactMetricType(StrEnum):
    """Metrics tracked for national and per-user progress."""

    PEOPLE_IMPACTED = "PEOPLE_IMPACTED"
    CLEAN_AIR_PRODUCED = "CLEAN_AIR_PRODUCED"
    AREA_AFFECTED = "AREA_AFFECTED"
    KM_OFFSET = "KM_OFFSET"


class AccountType(StrEnum):
    INDIVIDUAL = "INDIVIDUAL"
    ORGANIZATION = "ORGANIZATION"
    SCHOOL = "SCHOOL"


class AccountTier(StrEnum):
    FREE = "FREE"
    PAID = "PAID"


class AuthEventType(StrEnum):
    """Events published on the auth event hub."""

    SIGN_UP = "signUp"
    CONFIRM_SIGN_UP = "confirmSignUp"
    SIGNED_IN = "signedIn"
    SIGNED_OUT = "signedOut"
    TOKEN_REFRESH = "tokenRefresh"
    TOKEN_REFRESH_FAILURE = "tokenRefresh_failure"
    FORGOT_PASSWORD = "forgotPassword"
    CONFIRM_FORGOT_PASSWORD = "confirmForgotPassword"
    USER_ATTRIBUTES_UPDATED = "userAttributesUpdated"
    USER_DELETED = "userDeleted"


class Location(BaseModel):
    """A point on the map."""

    lat: float
    long: float
