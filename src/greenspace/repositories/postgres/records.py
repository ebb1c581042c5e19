"""PostgreSQL record repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select

from greenspace.data.models import Record
from greenspace.data.schema import ModelDefinition, get_definition
from greenspace.data.store import (
    DEFAULT_PAGE_SIZE,
    RecordPage,
    build_record,
    check_filters,
    clamp_limit,
    decode_token,
    encode_token,
    merge_record,
)
from greenspace.db.engine import DatabaseManager
from greenspace.db.models import ROWS_BY_MODEL


class PostgresRecordRepository:
    """Postgres-backed record storage for every model in the schema."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    @staticmethod
    def _resolve(model: str) -> tuple[ModelDefinition, type]:
        defn = get_definition(model)
        return defn, ROWS_BY_MODEL[defn.name]

    async def create(self, model: str, data: dict[str, Any], owner: str | None = None) -> Record:
        defn, row_cls = self._resolve(model)
        record = build_record(defn, data, owner)
        async with self._db.session() as db:
            if await db.get(row_cls, record.id) is not None:
                raise ValueError(f"{defn.name} {record.id!r} already exists")
            db.add(row_cls(**record.model_dump(mode="python")))
            await db.commit()
        return record

    async def get(self, model: str, record_id: str) -> Record | None:
        defn, row_cls = self._resolve(model)
        async with self._db.session() as db:
            row = await db.get(row_cls, record_id)
            if row is None:
                return None
            return self._row_to_record(defn, row)

    async def update(self, model: str, record_id: str, changes: dict[str, Any]) -> Record:
        defn, row_cls = self._resolve(model)
        async with self._db.session() as db:
            row = await db.get(row_cls, record_id)
            if row is None:
                raise KeyError(f"{defn.name} {record_id!r} not found")
            updated = merge_record(defn, self._row_to_record(defn, row), changes)
            for key, value in updated.model_dump(mode="python").items():
                setattr(row, key, value)
            await db.commit()
        return updated

    async def delete(self, model: str, record_id: str) -> Record:
        defn, row_cls = self._resolve(model)
        async with self._db.session() as db:
            row = await db.get(row_cls, record_id)
            if row is None:
                raise KeyError(f"{defn.name} {record_id!r} not found")
            record = self._row_to_record(defn, row)
            await db.delete(row)
            await db.commit()
        return record

    async def list(
        self,
        model: str,
        filters: dict[str, Any] | None = None,
        owner: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        next_token: str | None = None,
    ) -> RecordPage:
        defn, row_cls = self._resolve(model)
        filters = check_filters(defn, filters)
        limit = clamp_limit(limit)
        offset = decode_token(next_token)

        stmt = select(row_cls)
        for key, value in filters.items():
            stmt = stmt.where(getattr(row_cls, key) == str(value))
        if owner is not None:
            stmt = stmt.where(row_cls.owner == owner)
        stmt = stmt.order_by(row_cls.created_at, row_cls.id).offset(offset).limit(limit + 1)

        async with self._db.session() as db:
            result = await db.execute(stmt)
            rows = list(result.scalars().all())

        more = len(rows) > limit
        return RecordPage(
            items=[self._row_to_record(defn, r) for r in rows[:limit]],
            next_token=encode_token(offset + limit) if more else None,
        )

    async def count(self, model: str) -> int:
        _, row_cls = self._resolve(model)
        async with self._db.session() as db:
            result = await db.execute(select(func.count()).select_from(row_cls))
            return result.scalar_one()

    @staticmethod
    def _row_to_record(defn: ModelDefinition, row: Any) -> Record:
        values = {}
        for key in defn.fields:
            value = getattr(row, key)
            # SQLite drops the offset from timezone-aware columns
            if isinstance(value, datetime) and value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            values[key] = value
        return defn.record.model_validate(values)
