"""
Per-user asyncio locks.

Operations for the same user run one at a time; different users never wait
on each other. A user's lock is dropped once no task holds or waits for it,
so the registry only grows with the number of users active at once.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict


class UserLocks:
    """Keyed registry of reference-counted asyncio locks."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        """Serialize the enclosed block against other holders of `key`."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def is_held(self, key: str) -> bool:
        """Whether any task holds or waits for `key`."""
        return key in self._users

    def __len__(self) -> int:
        return len(self._locks)
