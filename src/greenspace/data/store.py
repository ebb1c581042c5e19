"""In-memory record store.

Also holds the helpers shared with the SQL repository: record building,
update merging, index filter checks and page tokens.
"""

from __future__ import annotations

import base64
import binascii
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from greenspace.data.models import Record
from greenspace.data.schema import SCHEMA, ModelDefinition, get_definition

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 1000


class RecordPage(BaseModel):
    """One page of a list query."""

    items: list[Record] = Field(default_factory=list)
    next_token: str | None = None


def build_record(defn: ModelDefinition, data: dict[str, Any], owner: str | None) -> Record:
    """Validate a create payload and turn it into a stored record.

    Raises:
        pydantic.ValidationError: If the payload does not match the schema.
    """
    payload = defn.create.model_validate(data).model_dump(exclude_none=True)
    return defn.record.model_validate({**payload, "owner": owner})


def merge_record(defn: ModelDefinition, record: Record, changes: dict[str, Any]) -> Record:
    """Apply an update payload and re-validate the whole record.

    Fields explicitly set to ``None`` are cleared, so clearing a required
    field fails validation.
    """
    update = defn.update.model_validate(changes)
    patch = update.model_dump(exclude_unset=True)
    merged = {**record.model_dump(), **patch}
    merged["id"] = record.id
    merged["owner"] = record.owner
    merged["created_at"] = record.created_at
    merged["updated_at"] = datetime.now(timezone.utc)
    return defn.record.model_validate(merged)


def check_filters(defn: ModelDefinition, filters: dict[str, Any] | None) -> dict[str, Any]:
    """Only secondary-index fields may be used as list filters."""
    filters = {k: v for k, v in (filters or {}).items() if v is not None}
    unknown = sorted(set(filters) - set(defn.indexes))
    if unknown:
        raise ValueError(
            f"{defn.name} cannot be filtered by {', '.join(unknown)}; "
            f"indexed fields are: {', '.join(defn.indexes) or 'none'}"
        )
    return filters


def clamp_limit(limit: int) -> int:
    if limit < 1:
        raise ValueError("limit must be at least 1")
    return min(limit, MAX_PAGE_SIZE)


def encode_token(offset: int) -> str:
    return base64.urlsafe_b64encode(f"offset:{offset}".encode()).decode()


def decode_token(token: str | None) -> int:
    if not token:
        return 0
    try:
        raw = base64.urlsafe_b64decode(token.encode()).decode()
    except (binascii.Error, UnicodeDecodeError):
        raise ValueError("Invalid next_token") from None
    prefix, _, value = raw.partition(":")
    if prefix != "offset" or not value.isdigit():
        raise ValueError("Invalid next_token")
    return int(value)


def _matches(record: Record, filters: dict[str, Any], owner: str | None) -> bool:
    if owner is not None and record.owner != owner:
        return False
    for key, expected in filters.items():
        if str(getattr(record, key)) != str(expected):
            return False
    return True


class RecordStore:
    """In-memory store keeping every model's records in its own dict."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Record]] = {defn.name: {} for defn in SCHEMA}

    def _table(self, model: str) -> tuple[ModelDefinition, dict[str, Record]]:
        defn = get_definition(model)
        return defn, self._records[defn.name]

    def create(self, model: str, data: dict[str, Any], owner: str | None = None) -> Record:
        defn, table = self._table(model)
        record = build_record(defn, data, owner)
        if record.id in table:
            raise ValueError(f"{defn.name} {record.id!r} already exists")
        table[record.id] = record
        return record

    def get(self, model: str, record_id: str) -> Record | None:
        _, table = self._table(model)
        return table.get(record_id)

    def update(self, model: str, record_id: str, changes: dict[str, Any]) -> Record:
        defn, table = self._table(model)
        record = table.get(record_id)
        if record is None:
            raise KeyError(f"{defn.name} {record_id!r} not found")
        updated = merge_record(defn, record, changes)
        table[record_id] = updated
        return updated

    def delete(self, model: str, record_id: str) -> Record:
        defn, table = self._table(model)
        record = table.pop(record_id, None)
        if record is None:
            raise KeyError(f"{defn.name} {record_id!r} not found")
        return record

    def list(
        self,
        model: str,
        filters: dict[str, Any] | None = None,
        owner: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        next_token: str | None = None,
    ) -> RecordPage:
        defn, table = self._table(model)
        filters = check_filters(defn, filters)
        limit = clamp_limit(limit)
        offset = decode_token(next_token)

        matching = sorted(
            (r for r in table.values() if _matches(r, filters, owner)),
            key=lambda r: (r.created_at, r.id),
        )
        items = matching[offset:offset + limit]
        more = offset + limit < len(matching)
        return RecordPage(
            items=items,
            next_token=encode_token(offset + limit) if more else None,
        )

    def count(self, model: str) -> int:
        _, table = self._table(model)
        return len(table)
