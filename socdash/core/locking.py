# socdash/core/locking.py
"""
Per-row advisory locks for mutating operations.

Writers to the same alert or incident are serialized inside the process;
cross-process serialization comes from SELECT ... FOR UPDATE on dialects
that support it. Locks are created on demand and dropped once no coroutine
holds or waits on them.
"""
import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import Hashable


class RowLockRegistry:
    """Keyed asyncio locks, one per (table, row id)"""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[Hashable, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, table: str, row_id: int):
        lock = self._lock_for((table, row_id))
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


row_locks = RowLockRegistry()
