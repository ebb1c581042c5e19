"""Tests for record models and the schema registry."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from greenspace.core.types import AccountTier, GreenSpaceStatus, ZoneType
from greenspace.data.models import GreenSpace, GreenSpaceCreate, User, UserImpactCreate, ZoneCreate
from greenspace.data.schema import SCHEMA, AuthRule, RelationKind, get_definition


class TestRecordModels:
    def test_green_space_defaults_to_draft(self) -> None:
        space = GreenSpaceCreate(title="Speed River Meadow", user_id="u1")
        assert space.status == GreenSpaceStatus.DRAFT

    def test_location(self) -> None:
        space = GreenSpaceCreate(
            title="Speed River Meadow", user_id="u1", location={"lat": 43.5, "long": -80.2}
        )
        assert space.location.lat == 43.5

    def test_zone_type_enum(self) -> None:
        assert ZoneCreate(name="Row", type="TREE", green_space_id="g1").type == ZoneType.TREE
        with pytest.raises(ValidationError):
            ZoneCreate(name="Row", type="FOREST", green_space_id="g1")

    def test_user_requires_valid_email(self) -> None:
        with pytest.raises(ValidationError):
            User(account_type="INDIVIDUAL", name="Jane", email="nope")

    def test_user_defaults(self) -> None:
        user = User(account_type="INDIVIDUAL", name="Jane", email="jane@example.org")
        assert user.account_tier == AccountTier.FREE
        assert user.is_active
        assert not user.is_email_verified

    def test_user_impact_metrics_default_to_zero(self) -> None:
        impact = UserImpactCreate(
            people_impacted_goal=10,
            clean_air_produced_goal_m2=1.0,
            area_affected_goal_m2=1.0,
            km_offset_goal=1.0,
            user_id="u1",
        )
        assert impact.people_impacted == 0
        assert impact.km_offset == 0.0

    def test_records_get_system_fields(self) -> None:
        a = GreenSpace(title="A", user_id="u1")
        b = GreenSpace(title="B", user_id="u1")
        assert a.id != b.id
        assert a.created_at.tzinfo is not None


class TestSchema:
    def test_all_models_registered(self) -> None:
        assert [d.name for d in SCHEMA] == [
            "User",
            "ProjectFolder",
            "GreenSpace",
            "Zone",
            "CanadaProgress",
            "UserImpact",
        ]

    def test_lookup_by_name_or_path(self) -> None:
        assert get_definition("GreenSpace") is get_definition("green-spaces")

    def test_unknown_model(self) -> None:
        with pytest.raises(KeyError):
            get_definition("Tree")

    def test_canada_progress_is_api_key_only(self) -> None:
        defn = get_definition("CanadaProgress")
        assert defn.allows(AuthRule.PUBLIC_API_KEY)
        assert not defn.allows(AuthRule.OWNER)

    def test_owner_and_api_key_on_user_models(self) -> None:
        for name in ["User", "ProjectFolder", "GreenSpace", "Zone", "UserImpact"]:
            defn = get_definition(name)
            assert defn.allows(AuthRule.OWNER)
            assert defn.allows(AuthRule.PUBLIC_API_KEY)

    def test_relations(self) -> None:
        user = get_definition("User")
        assert user.relation("user-impact").kind == RelationKind.HAS_ONE
        assert user.relation("green-spaces").foreign_key == "user_id"
        zones = get_definition("GreenSpace").relation("zones")
        assert zones.kind == RelationKind.HAS_MANY
        assert zones.target == "Zone"
        with pytest.raises(KeyError):
            user.relation("zones")

    def test_relation_targets_exist(self) -> None:
        for defn in SCHEMA:
            for rel in defn.relations:
                target = get_definition(rel.target)
                holder = defn if rel.kind == RelationKind.BELONGS_TO else target
                assert rel.foreign_key in holder.fields

    def test_indexes_are_fields(self) -> None:
        for defn in SCHEMA:
            assert set(defn.indexes) <= set(defn.fields)
            assert "id" in defn.fields
