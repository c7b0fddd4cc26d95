"""
Keyed asyncio locks
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict


def mission_key(mission_id: str) -> str:
    return f"mission:{mission_id}"


def drone_key(drone_id: str) -> str:
    return f"drone:{drone_id}"


class LockRegistry:
    """One asyncio.Lock per key, created on first use"""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def get(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def discard(self, key: str):
        """Forget an unheld lock for a record that no longer exists"""
        lock = self._locks.get(key)
        if lock is not None and not lock.locked():
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, *keys: str):
        """
        Acquire several locks at once

        Keys are taken in sorted order so two callers locking overlapping
        sets can never deadlock.
        """
        acquired = []
        try:
            for key in sorted(set(keys)):
                lock = self.get(key)
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def __len__(self) -> int:
        return len(self._locks)
