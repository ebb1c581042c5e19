"""Protocol definitions for repository interfaces.

Each protocol mirrors the public methods of the corresponding in-memory
store class exactly, enabling both sync (in-memory) and async (Postgres)
implementations to satisfy the same interface.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from greenspace.data.models import Record
from greenspace.data.store import RecordPage


@runtime_checkable
class RecordRepository(Protocol):
    """Protocol for record storage across every model in the schema."""

    def create(self, model: str, data: dict[str, Any], owner: str | None = None) -> Record: ...

    def get(self, model: str, record_id: str) -> Record | None: ...

    def update(self, model: str, record_id: str, changes: dict[str, Any]) -> Record: ...

    def delete(self, model: str, record_id: str) -> Record: ...

    def list(
        self,
        model: str,
        filters: dict[str, Any] | None = None,
        owner: str | None = None,
        limit: int = 100,
        next_token: str | None = None,
    ) -> RecordPage: ...

    def count(self, model: str) -> int: ...
