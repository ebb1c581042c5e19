"""Data API generated from the model registry.

For every ModelDefinition this registers list, create, get, update and
delete endpoints under ``/api/data/{path}``, plus one read endpoint per
declared relation.
"""

from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from pydantic import ValidationError

from greenspace.auth.middleware import require_access
from greenspace.auth.models import AccessContext
from greenspace.data.models import Record
from greenspace.data.schema import SCHEMA, ModelDefinition, RelationKind, get_definition
from greenspace.data.store import DEFAULT_PAGE_SIZE
from greenspace.repositories import call

_PAGING_PARAMS = {"limit", "next_token"}


def _records(request: Request) -> Any:
    store = getattr(request.app.state, "record_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Record store not available")
    return store


def _dump(record: Record | None) -> dict[str, Any] | None:
    return record.model_dump(mode="json") if record is not None else None


async def _call(method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run a store method, sync or async, and map store errors to HTTP errors."""
    try:
        return await call(method, *args, **kwargs)
    except ValidationError:
        raise
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc.args[0]) if exc.args else "Not found")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


async def _get_visible(store: Any, defn: ModelDefinition, record_id: str, access: AccessContext) -> Record:
    record = await _call(store.get, defn.name, record_id)
    if record is None or (access.scoped and record.owner != access.owner):
        raise HTTPException(status_code=404, detail=f"{defn.name} {record_id!r} not found")
    return record


def _register(router: APIRouter, defn: ModelDefinition) -> None:
    access_dep = require_access(defn)
    base = f"/{defn.path}"
    tags = [defn.name]

    @router.get(base, tags=tags, summary=f"List {defn.name} records")
    async def list_records(
        request: Request,
        limit: int = DEFAULT_PAGE_SIZE,
        next_token: str | None = None,
        access: AccessContext = Depends(access_dep),
    ) -> dict[str, Any]:
        filters = {
            k: v for k, v in request.query_params.items() if k not in _PAGING_PARAMS
        }
        page = await _call(
            _records(request).list,
            defn.name,
            filters=filters,
            owner=access.owner,
            limit=limit,
            next_token=next_token,
        )
        return {"items": [_dump(r) for r in page.items], "next_token": page.next_token}

    @router.post(base, tags=tags, status_code=201, summary=f"Create a {defn.name}")
    async def create_record(
        request: Request,
        body: dict[str, Any] = Body(...),
        access: AccessContext = Depends(access_dep),
    ) -> dict[str, Any]:
        record = await _call(_records(request).create, defn.name, body, owner=access.owner)
        return _dump(record)

    @router.get(base + "/{record_id}", tags=tags, summary=f"Get a {defn.name}")
    async def get_record(
        record_id: str,
        request: Request,
        access: AccessContext = Depends(access_dep),
    ) -> dict[str, Any]:
        return _dump(await _get_visible(_records(request), defn, record_id, access))

    @router.patch(base + "/{record_id}", tags=tags, summary=f"Update a {defn.name}")
    async def update_record(
        record_id: str,
        request: Request,
        body: dict[str, Any] = Body(...),
        access: AccessContext = Depends(access_dep),
    ) -> dict[str, Any]:
        store = _records(request)
        await _get_visible(store, defn, record_id, access)
        record = await _call(store.update, defn.name, record_id, body)
        return _dump(record)

    @router.delete(base + "/{record_id}", tags=tags, summary=f"Delete a {defn.name}")
    async def delete_record(
        record_id: str,
        request: Request,
        access: AccessContext = Depends(access_dep),
    ) -> dict[str, Any]:
        store = _records(request)
        await _get_visible(store, defn, record_id, access)
        record = await _call(store.delete, defn.name, record_id)
        return _dump(record)

    if not defn.relations:
        return

    @router.get(base + "/{record_id}/{relation}", tags=tags, summary=f"Related records of a {defn.name}")
    async def get_related(
        record_id: str,
        relation: str,
        request: Request,
        limit: int = DEFAULT_PAGE_SIZE,
        next_token: str | None = None,
        access: AccessContext = Depends(access_dep),
    ) -> Any:
        try:
            rel = defn.relation(relation)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc.args[0]))
        store = _records(request)
        parent = await _get_visible(store, defn, record_id, access)
        target = get_definition(rel.target)

        if rel.kind == RelationKind.BELONGS_TO:
            foreign_id = getattr(parent, rel.foreign_key)
            if foreign_id is None:
                return None
            related = await _call(store.get, target.name, foreign_id)
            if related is None or (access.scoped and related.owner != access.owner):
                return None
            return _dump(related)

        page = await _call(
            store.list,
            target.name,
            filters={rel.foreign_key: parent.id},
            owner=access.owner,
            limit=1 if rel.kind == RelationKind.HAS_ONE else limit,
            next_token=None if rel.kind == RelationKind.HAS_ONE else next_token,
        )
        if rel.kind == RelationKind.HAS_ONE:
            return _dump(page.items[0]) if page.items else None
        return {"items": [_dump(r) for r in page.items], "next_token": page.next_token}


def build_data_router() -> APIRouter:
    router = APIRouter(prefix="/api/data")
    for defn in SCHEMA:
        _register(router, defn)

    @router.get("", tags=["schema"], summary="Describe the data schema")
    async def describe_schema() -> list[dict[str, Any]]:
        return [
            {
                "name": d.name,
                "path": d.path,
                "fields": list(d.fields),
                "indexes": list(d.indexes),
                "authorization": [r.value for r in d.authorization],
                "relations": [
                    {"name": r.name, "kind": r.kind.value, "target": r.target, "foreign_key": r.foreign_key}
                    for r in d.relations
                ],
            }
            for d in SCHEMA
        ]

    return router
