"""
Per-session single-writer locks
FILE: quizblitz/services/session_locks.py
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Dict


class SessionLockRegistry:
    """
    One asyncio.Lock per session id

    Entries are reference-counted and dropped once no coroutine holds or
    waits on them, so finished sessions do not accumulate locks.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._refs: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, session_id: str):
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        self._refs[session_id] = self._refs.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._refs[session_id] -= 1
            if self._refs[session_id] == 0:
                del self._refs[session_id]
                del self._locks[session_id]

    def discard(self, session_id: str) -> None:
        """Forget an idle session's lock (after delete)"""
        if self._refs.get(session_id, 0) == 0:
            self._locks.pop(session_id, None)
            self._refs.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._locks)
