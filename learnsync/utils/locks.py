"""
Keyed asyncio locks.

Serializes work that must not interleave within this process: one import per
provider platform, and one read-modify-write of an activity counter per key.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Hashable


class KeyedLocks:
    """Lazily creates one asyncio.Lock per key and drops it when nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    def is_locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, key: Hashable):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]


# Process-wide registries
provider_import_locks = KeyedLocks()
activity_counter_locks = KeyedLocks()
