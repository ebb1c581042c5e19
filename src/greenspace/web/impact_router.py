"""FastAPI router for impact progress summaries."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from greenspace.auth.middleware import require_access
from greenspace.auth.models import AccessContext
from greenspace.data.schema import get_definition
from greenspace.data.store import MAX_PAGE_SIZE
from greenspace.impact.progress import summarize
from greenspace.repositories import resolve

router = APIRouter(prefix="/api/impact", tags=["impact"])

_CANADA = get_definition("CanadaProgress")
_USER_IMPACT = get_definition("UserImpact")
_SCAN_PAGE_SIZE = MAX_PAGE_SIZE


@router.get("/canada")
async def canada_progress(
    request: Request,
    access: AccessContext = Depends(require_access(_CANADA)),
) -> dict[str, Any]:
    """Progress of the most recently recorded country-wide totals."""
    store = request.app.state.record_store
    latest = None
    next_token = None
    while True:
        page = await resolve(
            store.list(_CANADA.name, limit=_SCAN_PAGE_SIZE, next_token=next_token)
        )
        for record in page.items:
            if latest is None or record.updated_at > latest.updated_at:
                latest = record
        next_token = page.next_token
        if next_token is None:
            break
    if latest is None:
        raise HTTPException(status_code=404, detail="No CanadaProgress recorded yet")
    return summarize(latest).model_dump(mode="json")


@router.get("/users/{user_id}")
async def user_progress(
    user_id: str,
    request: Request,
    access: AccessContext = Depends(require_access(_USER_IMPACT)),
) -> dict[str, Any]:
    store = request.app.state.record_store
    page = await resolve(
        store.list(_USER_IMPACT.name, filters={"user_id": user_id}, owner=access.owner, limit=1)
    )
    if not page.items:
        raise HTTPException(status_code=404, detail=f"No UserImpact for user {user_id!r}")
    return summarize(page.items[0]).model_dump(mode="json")
