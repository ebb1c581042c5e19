"""Initial schema: record tables for all six models.

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _record_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("owner", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # -- Users --
    op.create_table(
        "users",
        *_record_columns(),
        sa.Column("account_type", sa.String(32), nullable=False),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("organization_name", sa.String(256), nullable=True),
        sa.Column("municipality", sa.String(256), nullable=True),
        sa.Column("account_tier", sa.String(16), server_default="FREE"),
        sa.Column("is_email_verified", sa.Boolean, server_default="false"),
        sa.Column("is_active", sa.Boolean, server_default="true"),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_account_type", "users", ["account_type"])
    op.create_index("ix_users_account_tier", "users", ["account_tier"])

    # -- Project folders --
    op.create_table(
        "project_folders",
        *_record_columns(),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("on_date", sa.Date, nullable=True),
        sa.Column("recorded_by_name", sa.String(256), nullable=True),
        sa.Column("user_id", sa.String(64), nullable=False),
    )
    op.create_index("ix_project_folders_user_id", "project_folders", ["user_id"])

    # -- Green spaces --
    op.create_table(
        "green_spaces",
        *_record_columns(),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("status", sa.String(16), server_default="DRAFT"),
        sa.Column("on_date", sa.Date, nullable=True),
        sa.Column("recorded_by_name", sa.String(256), nullable=True),
        sa.Column("people_count", sa.Integer, nullable=True),
        sa.Column("water_area_m2", sa.Float, nullable=True),
        sa.Column("green_area_m2", sa.Float, nullable=True),
        sa.Column("building_count", sa.Integer, nullable=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("project_folder_id", sa.String(64), nullable=True),
        sa.Column("location", sa.JSON, nullable=True),
    )
    op.create_index("ix_green_spaces_user_id", "green_spaces", ["user_id"])
    op.create_index("ix_green_spaces_status", "green_spaces", ["status"])
    op.create_index("ix_green_spaces_project_folder_id", "green_spaces", ["project_folder_id"])

    # -- Zones --
    op.create_table(
        "zones",
        *_record_columns(),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("area_sq_ft", sa.Float, nullable=True),
        sa.Column("number_of_items", sa.Integer, nullable=True),
        sa.Column("location", sa.JSON, nullable=True),
        sa.Column("last_maintenance_date", sa.Date, nullable=True),
        sa.Column("green_space_id", sa.String(64), nullable=False),
    )
    op.create_index("ix_zones_green_space_id", "zones", ["green_space_id"])
    op.create_index("ix_zones_type", "zones", ["type"])

    # -- Canada progress --
    op.create_table(
        "canada_progress",
        *_record_columns(),
        sa.Column("people_impacted", sa.Integer, nullable=False),
        sa.Column("people_impacted_goal", sa.Integer, nullable=False),
        sa.Column("clean_air_produced_m2", sa.Float, nullable=False),
        sa.Column("clean_air_produced_goal_m2", sa.Float, nullable=False),
        sa.Column("area_affected_m2", sa.Float, nullable=False),
        sa.Column("area_affected_goal_m2", sa.Float, nullable=False),
        sa.Column("km_offset", sa.Float, nullable=False),
        sa.Column("km_offset_goal", sa.Float, nullable=False),
    )

    # -- User impacts --
    op.create_table(
        "user_impacts",
        *_record_columns(),
        sa.Column("people_impacted", sa.Integer, server_default="0"),
        sa.Column("people_impacted_goal", sa.Integer, nullable=False),
        sa.Column("clean_air_produced_m2", sa.Float, server_default="0"),
        sa.Column("clean_air_produced_goal_m2", sa.Float, nullable=False),
        sa.Column("area_affected_m2", sa.Float, server_default="0"),
        sa.Column("area_affected_goal_m2", sa.Float, nullable=False),
        sa.Column("km_offset", sa.Float, server_default="0"),
        sa.Column("km_offset_goal", sa.Float, nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
    )
    op.create_index("ix_user_impacts_user_id", "user_impacts", ["user_id"])

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(sa.text(
            "ALTER TABLE green_spaces ALTER COLUMN location TYPE JSONB USING location::jsonb"
        ))
        op.execute(sa.text(
            "ALTER TABLE zones ALTER COLUMN location TYPE JSONB USING location::jsonb"
        ))


def downgrade() -> None:
    op.drop_table("user_impacts")
    op.drop_table("canada_progress")
    op.drop_table("zones")
    op.drop_table("green_spaces")
    op.drop_table("project_folders")
    op.drop_table("users")
