"""Declarative schema: one ModelDefinition per record type.

The HTTP data API, the stores and the SQL tables are all derived from the
definitions in ``SCHEMA``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel

from greenspace.data.models import (
    CanadaProgress,
    CanadaProgressCreate,
    CanadaProgressUpdate,
    GreenSpace,
    GreenSpaceCreate,
    GreenSpaceUpdate,
    ProjectFolder,
    ProjectFolderCreate,
    ProjectFolderUpdate,
    Record,
    User,
    UserCreate,
    UserImpact,
    UserImpactCreate,
    UserImpactUpdate,
    UserUpdate,
    Zone,
    ZoneCreate,
    ZoneUpdate,
)


class AuthRule(StrEnum):
    """Who may access a model through the data API."""

    OWNER = "owner"
    PUBLIC_API_KEY = "public_api_key"


class RelationKind(StrEnum):
    HAS_MANY = "has_many"
    HAS_ONE = "has_one"
    BELONGS_TO = "belongs_to"


@dataclass(frozen=True)
class Relation:
    """An association to another model.

    For ``has_many``/``has_one`` the foreign key lives on the target model;
    for ``belongs_to`` it lives on this model.
    """

    name: str
    kind: RelationKind
    target: str
    foreign_key: str


@dataclass(frozen=True)
class ModelDefinition:
    name: str
    path: str
    record: type[Record]
    create: type[BaseModel]
    update: type[BaseModel]
    indexes: tuple[str, ...] = ()
    relations: tuple[Relation, ...] = ()
    authorization: tuple[AuthRule, ...] = (AuthRule.OWNER, AuthRule.PUBLIC_API_KEY)

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self.record.model_fields)

    def allows(self, rule: AuthRule) -> bool:
        return rule in self.authorization

    def relation(self, name: str) -> Relation:
        for rel in self.relations:
            if rel.name == name:
                return rel
        raise KeyError(f"{self.name} has no relation {name!r}")


SCHEMA: tuple[ModelDefinition, ...] = (
    ModelDefinition(
        name="User",
        path="users",
        record=User,
        create=UserCreate,
        update=UserUpdate,
        indexes=("email", "account_type", "account_tier"),
        relations=(
            Relation("green-spaces", RelationKind.HAS_MANY, "GreenSpace", "user_id"),
            Relation("project-folders", RelationKind.HAS_MANY, "ProjectFolder", "user_id"),
            Relation("user-impact", RelationKind.HAS_ONE, "UserImpact", "user_id"),
        ),
    ),
    ModelDefinition(
        name="ProjectFolder",
        path="project-folders",
        record=ProjectFolder,
        create=ProjectFolderCreate,
        update=ProjectFolderUpdate,
        indexes=("user_id",),
        relations=(
            Relation("user", RelationKind.BELONGS_TO, "User", "user_id"),
            Relation("green-spaces", RelationKind.HAS_MANY, "GreenSpace", "project_folder_id"),
        ),
    ),
    ModelDefinition(
        name="GreenSpace",
        path="green-spaces",
        record=GreenSpace,
        create=GreenSpaceCreate,
        update=GreenSpaceUpdate,
        indexes=("user_id", "status", "project_folder_id"),
        relations=(
            Relation("user", RelationKind.BELONGS_TO, "User", "user_id"),
            Relation("project-folder", RelationKind.BELONGS_TO, "ProjectFolder", "project_folder_id"),
            Relation("zones", RelationKind.HAS_MANY, "Zone", "green_space_id"),
        ),
    ),
    ModelDefinition(
        name="Zone",
        path="zones",
        record=Zone,
        create=ZoneCreate,
        update=ZoneUpdate,
        indexes=("green_space_id", "type"),
        relations=(
            Relation("green-space", RelationKind.BELONGS_TO, "GreenSpace", "green_space_id"),
        ),
    ),
    ModelDefinition(
        name="CanadaProgress",
        path="canada-progress",
        record=CanadaProgress,
        create=CanadaProgressCreate,
        update=CanadaProgressUpdate,
        authorization=(AuthRule.PUBLIC_API_KEY,),
    ),
    ModelDefinition(
        name="UserImpact",
        path="user-impacts",
        record=UserImpact,
        create=UserImpactCreate,
        update=UserImpactUpdate,
        indexes=("user_id",),
        relations=(
            Relation("user", RelationKind.BELONGS_TO, "User", "user_id"),
        ),
    ),
)

_BY_KEY: dict[str, ModelDefinition] = {}
for _defn in SCHEMA:
    _BY_KEY[_defn.name] = _defn
    _BY_KEY[_defn.path] = _defn


def get_definition(name: str) -> ModelDefinition:
    """Look up a model definition by model name or URL path.

    Raises:
        KeyError: If no model matches.
    """
    try:
        return _BY_KEY[name]
    except KeyError:
        raise KeyError(f"Unknown model: {name!r}") from None
