"""Record models for the green space data schema.

Each model has three shapes: the stored record, the create payload and the
update payload. Records carry the system fields (``id``, ``owner``,
``created_at``, ``updated_at``); payloads never do.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from pydantic import BaseModel, EmailStr, Field

from greenspace.core.types import (
    AccountTier,
    AccountType,
    GreenSpaceStatus,
    Location,
    ZoneType,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Record(BaseModel):
    """Base class for every stored record."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    id: str | None = None
    account_type: AccountType
    name: str
    email: EmailStr
    organization_name: str | None = None
    municipality: str | None = None
    account_tier: AccountTier = AccountTier.FREE
    is_email_verified: bool = False
    is_active: bool = True
    registered_at: datetime | None = None
    last_login_at: datetime | None = None


class UserUpdate(BaseModel):
    account_type: AccountType | None = None
    name: str | None = None
    email: EmailStr | None = None
    organization_name: str | None = None
    municipality: str | None = None
    account_tier: AccountTier | None = None
    is_email_verified: bool | None = None
    is_active: bool | None = None
    registered_at: datetime | None = None
    last_login_at: datetime | None = None


class User(Record):
    account_type: AccountType
    name: str
    email: EmailStr
    organization_name: str | None = None
    municipality: str | None = None
    account_tier: AccountTier = AccountTier.FREE
    is_email_verified: bool = False
    is_active: bool = True
    registered_at: datetime | None = None
    last_login_at: datetime | None = None


# ---------------------------------------------------------------------------
# Project folders
# ---------------------------------------------------------------------------


class ProjectFolderCreate(BaseModel):
    name: str
    on_date: date | None = None
    recorded_by_name: str | None = None
    user_id: str


class ProjectFolderUpdate(BaseModel):
    name: str | None = None
    on_date: date | None = None
    recorded_by_name: str | None = None
    user_id: str | None = None


class ProjectFolder(Record):
    name: str
    on_date: date | None = None
    recorded_by_name: str | None = None
    user_id: str


# ---------------------------------------------------------------------------
# Green spaces
# ---------------------------------------------------------------------------


class GreenSpaceCreate(BaseModel):
    title: str
    status: GreenSpaceStatus = GreenSpaceStatus.DRAFT
    on_date: date | None = None
    recorded_by_name: str | None = None
    people_count: int | None = None
    water_area_m2: float | None = None
    green_area_m2: float | None = None
    building_count: int | None = None
    user_id: str
    project_folder_id: str | None = None
    location: Location | None = None


class GreenSpaceUpdate(BaseModel):
    title: str | None = None
    status: GreenSpaceStatus | None = None
    on_date: date | None = None
    recorded_by_name: str | None = None
    people_count: int | None = None
    water_area_m2: float | None = None
    green_area_m2: float | None = None
    building_count: int | None = None
    user_id: str | None = None
    project_folder_id: str | None = None
    location: Location | None = None


class GreenSpace(Record):
    title: str
    status: GreenSpaceStatus = GreenSpaceStatus.DRAFT
    on_date: date | None = None
    recorded_by_name: str | None = None
    people_count: int | None = None
    water_area_m2: float | None = None
    green_area_m2: float | None = None
    building_count: int | None = None
    user_id: str
    project_folder_id: str | None = None
    location: Location | None = None


# ---------------------------------------------------------------------------
# Zones
# ---------------------------------------------------------------------------


class ZoneCreate(BaseModel):
    name: str
    type: ZoneType
    description: str | None = None
    area_sq_ft: float | None = None
    number_of_items: int | None = None
    location: Location | None = None
    last_maintenance_date: date | None = None
    green_space_id: str


class ZoneUpdate(BaseModel):
    name: str | None = None
    type: ZoneType | None = None
    description: str | None = None
    area_sq_ft: float | None = None
    number_of_items: int | None = None
    location: Location | None = None
    last_maintenance_date: date | None = None
    green_space_id: str | None = None


class Zone(Record):
    name: str
    type: ZoneType
    description: str | None = None
    area_sq_ft: float | None = None
    number_of_items: int | None = None
    location: Location | None = None
    last_maintenance_date: date | None = None
    green_space_id: str


# ---------------------------------------------------------------------------
# Impact tracking
# ---------------------------------------------------------------------------


class CanadaProgressCreate(BaseModel):
    people_impacted: int
    people_impacted_goal: int
    clean_air_produced_m2: float
    clean_air_produced_goal_m2: float
    area_affected_m2: float
    area_affected_goal_m2: float
    km_offset: float
    km_offset_goal: float


class CanadaProgressUpdate(BaseModel):
    people_impacted: int | None = None
    people_impacted_goal: int | None = None
    clean_air_produced_m2: float | None = None
    clean_air_produced_goal_m2: float | None = None
    area_affected_m2: float | None = None
    area_affected_goal_m2: float | None = None
    km_offset: float | None = None
    km_offset_goal: float | None = None


class CanadaProgress(Record):
    """Country-wide progress towards the impact goals."""

    people_impacted: int
    people_impacted_goal: int
    clean_air_produced_m2: float
    clean_air_produced_goal_m2: float
    area_affected_m2: float
    area_affected_goal_m2: float
    km_offset: float
    km_offset_goal: float


class UserImpactCreate(BaseModel):
    people_impacted: int = 0
    people_impacted_goal: int
    clean_air_produced_m2: float = 0.0
    clean_air_produced_goal_m2: float
    area_affected_m2: float = 0.0
    area_affected_goal_m2: float
    km_offset: float = 0.0
    km_offset_goal: float
    user_id: str


class UserImpactUpdate(BaseModel):
    people_impacted: int | None = None
    people_impacted_goal: int | None = None
    clean_air_produced_m2: float | None = None
    clean_air_produced_goal_m2: float | None = None
    area_affected_m2: float | None = None
    area_affected_goal_m2: float | None = None
    km_offset: float | None = None
    km_offset_goal: float | None = None
    user_id: str | None = None


class UserImpact(Record):
    """A single user's contribution towards their own impact goals."""

    people_impacted: int = 0
    people_impacted_goal: int
    clean_air_produced_m2: float = 0.0
    clean_air_produced_goal_m2: float
    area_affected_m2: float = 0.0
    area_affected_goal_m2: float
    km_offset: float = 0.0
    km_offset_goal: float
    user_id: str
