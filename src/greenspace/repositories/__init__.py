"""Record storage backends.

``RecordStore`` answers synchronously while ``PostgresRecordRepository``
returns coroutines. Callers go through :func:`resolve` or :func:`call` and
never need to know which backend is active::

    record = await call(store.get, "GreenSpace", record_id)
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")


async def resolve(value: T | Awaitable[T]) -> T:
    """Return ``value``, awaiting it first if the backend handed back an awaitable."""
    if inspect.isawaitable(value):
        return await value  # type: ignore[return-value]
    return value  # type: ignore[return-value]


async def call(method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Invoke a store method and resolve its result.

    Errors raised synchronously by the in-memory store and errors raised
    while awaiting the SQL repository both surface from this call.
    """
    return await resolve(method(*args, **kwargs))
