"""Authorization data models."""

from __future__ import annotations

from pydantic import BaseModel


class AccessContext(BaseModel):
    """How the current request was authorized for a model.

    ``owner`` is set for bearer-token access; reads and writes are then
    limited to that owner's records. API key access is unscoped.
    """

    via_api_key: bool = False
    owner: str | None = None

    @property
    def scoped(self) -> bool:
        return self.owner is not None
