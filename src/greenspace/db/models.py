"""SQLAlchemy ORM models for all persistent tables.

Column names match the record field names in ``greenspace.data.models`` so
rows and records convert field-for-field.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from greenspace.db.base import Base


def _jsonb() -> type:
    """Return JSONB for Postgres, plain JSON for SQLite."""
    return JSON().with_variant(PG_JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _RecordColumns:
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class UserRow(_RecordColumns, Base):
    __tablename__ = "users"

    account_type: Mapped[str] = mapped_column(String(32))
    name: Mapped[str] = mapped_column(String(256))
    email: Mapped[str] = mapped_column(String(320))
    organization_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    municipality: Mapped[str | None] = mapped_column(String(256), nullable=True)
    account_tier: Mapped[str] = mapped_column(String(16), default="FREE")
    is_email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    registered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_users_email", "email"),
        Index("ix_users_account_type", "account_type"),
        Index("ix_users_account_tier", "account_tier"),
    )


# ---------------------------------------------------------------------------
# Project folders, green spaces and zones
# ---------------------------------------------------------------------------


class ProjectFolderRow(_RecordColumns, Base):
    __tablename__ = "project_folders"

    name: Mapped[str] = mapped_column(String(256))
    on_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    recorded_by_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    user_id: Mapped[str] = mapped_column(String(64))

    __table_args__ = (
        Index("ix_project_folders_user_id", "user_id"),
    )


class GreenSpaceRow(_RecordColumns, Base):
    __tablename__ = "green_spaces"

    title: Mapped[str] = mapped_column(String(256))
    status: Mapped[str] = mapped_column(String(16), default="DRAFT")
    on_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    recorded_by_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    people_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    water_area_m2: Mapped[float | None] = mapped_column(Float, nullable=True)
    green_area_m2: Mapped[float | None] = mapped_column(Float, nullable=True)
    building_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_id: Mapped[str] = mapped_column(String(64))
    project_folder_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    location: Mapped[dict | None] = mapped_column(_jsonb(), nullable=True)

    __table_args__ = (
        Index("ix_green_spaces_user_id", "user_id"),
        Index("ix_green_spaces_status", "status"),
        Index("ix_green_spaces_project_folder_id", "project_folder_id"),
    )


class ZoneRow(_RecordColumns, Base):
    __tablename__ = "zones"

    name: Mapped[str] = mapped_column(String(256))
    type: Mapped[str] = mapped_column(String(16))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    area_sq_ft: Mapped[float | None] = mapped_column(Float, nullable=True)
    number_of_items: Mapped[int | None] = mapped_column(Integer, nullable=True)
    location: Mapped[dict | None] = mapped_column(_jsonb(), nullable=True)
    last_maintenance_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    green_space_id: Mapped[str] = mapped_column(String(64))

    __table_args__ = (
        Index("ix_zones_green_space_id", "green_space_id"),
        Index("ix_zones_type", "type"),
    )


# ---------------------------------------------------------------------------
# Impact tracking
# ---------------------------------------------------------------------------


class CanadaProgressRow(_RecordColumns, Base):
    __tablename__ = "canada_progress"

    people_impacted: Mapped[int] = mapped_column(Integer)
    people_impacted_goal: Mapped[int] = mapped_column(Integer)
    clean_air_produced_m2: Mapped[float] = mapped_column(Float)
    clean_air_produced_goal_m2: Mapped[float] = mapped_column(Float)
    area_affected_m2: Mapped[float] = mapped_column(Float)
    area_affected_goal_m2: Mapped[float] = mapped_column(Float)
    km_offset: Mapped[float] = mapped_column(Float)
    km_offset_goal: Mapped[float] = mapped_column(Float)


class UserImpactRow(_RecordColumns, Base):
    __tablename__ = "user_impacts"

    people_impacted: Mapped[int] = mapped_column(Integer, default=0)
    people_impacted_goal: Mapped[int] = mapped_column(Integer)
    clean_air_produced_m2: Mapped[float] = mapped_column(Float, default=0.0)
    clean_air_produced_goal_m2: Mapped[float] = mapped_column(Float)
    area_affected_m2: Mapped[float] = mapped_column(Float, default=0.0)
    area_affected_goal_m2: Mapped[float] = mapped_column(Float)
    km_offset: Mapped[float] = mapped_column(Float, default=0.0)
    km_offset_goal: Mapped[float] = mapped_column(Float)
    user_id: Mapped[str] = mapped_column(String(64))

    __table_args__ = (
        Index("ix_user_impacts_user_id", "user_id"),
    )


ROWS_BY_MODEL: dict[str, type[Base]] = {
    "User": UserRow,
    "ProjectFolder": ProjectFolderRow,
    "GreenSpace": GreenSpaceRow,
    "Zone": ZoneRow,
    "CanadaProgress": CanadaProgressRow,
    "UserImpact": UserImpactRow,
}
