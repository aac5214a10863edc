"""In-process serialization of check-then-create per calendar day

Only protects requests handled by the same worker process. Separate
workers (or hosts) can still race between the availability check and
the event insert.
"""

import asyncio
from contextlib import asynccontextmanager
from zoneinfo import ZoneInfo

from .time_calculator import TimeWindow


class SlotLockRegistry:
    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @staticmethod
    def bucket_key(window: TimeWindow, timezone_name: str) -> str:
        """Coarse bucket: the local calendar day the window starts on"""
        return window.start.astimezone(ZoneInfo(timezone_name)).date().isoformat()

    def active_buckets(self) -> list[str]:
        return list(self._locks)

    @asynccontextmanager
    async def hold(self, key: str):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]


slot_locks = SlotLockRegistry()
