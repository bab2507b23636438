"""Single-flight loading for process-wide, read-mostly caches.

The first caller of ``get()`` starts the loader; every caller arriving while
it runs awaits the same task, so the underlying reads happen exactly once.
The result is kept until ``invalidate()`` drops it (whole-cache only).
"""
from __future__ import annotations
import asyncio
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    def __init__(self, loader: Callable[[], Awaitable[T]]):
        self._loader = loader
        self._task: Optional[asyncio.Future] = None
        self._value: Any = None
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def get(self) -> T:
        """Return the cached value, loading it first if needed."""
        if self._loaded:
            return self._value
        if self._task is None:
            self._task = asyncio.ensure_future(self._loader())
        task = self._task
        try:
            # shield: one cancelled waiter must not cancel the shared load
            value = await asyncio.shield(task)
        except asyncio.CancelledError:
            raise
        except Exception:
            # failed loads are not cached
            if self._task is task:
                self._task = None
            raise
        if self._task is task:
            self._value = value
            self._loaded = True
            self._task = None
        return value

    def invalidate(self) -> None:
        """Forget the cached value; the next ``get()`` reloads everything."""
        self._task = None
        self._value = None
        self._loaded = False
