"""SQL persistence for records (SQLAlchemy 2.0, async)."""

from __future__ import annotations

from greenspace.db.base import Base
from greenspace.db.engine import DatabaseManager

__all__ = ["Base", "DatabaseManager"]
