"""
Keyed asyncio locks.

Mutations serialize on named keys: the resource/date a booking occupies and
the booking itself. Keys are always acquired in sorted order so two
operations that need overlapping key sets cannot deadlock.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Dict, Hashable, List, Optional, Tuple

from models.booking import ResourceKey
from utils.exceptions import ContentionError
from utils.logging_config import get_logger

logger = get_logger(__name__)

LockKey = Tuple


def resource_lock_key(resource: ResourceKey, day: date) -> LockKey:
    # staff id -1 stands for the venue itself so keys stay sortable
    staff = resource.staff_member_id if resource.staff_member_id is not None else -1
    return ("resource", resource.venue_id, staff, day.isoformat())


def booking_lock_key(booking_id: int) -> LockKey:
    return ("booking", booking_id, -1, "")


class KeyedLock:
    """A family of asyncio locks created on demand and dropped when unused."""

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    def _checkout(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _checkin(self, key: Hashable) -> None:
        self._users[key] -= 1
        if self._users[key] == 0:
            del self._users[key]
            del self._locks[key]

    def is_locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, *keys: LockKey, timeout: Optional[float] = None) -> AsyncIterator[None]:
        """
        Hold every key for the duration of the block.

        Args:
            keys: Lock keys, duplicates are ignored
            timeout: Seconds to wait for all keys together, None waits forever

        Raises:
            ContentionError: If a key could not be acquired within ``timeout``
        """
        ordered = sorted(set(keys))
        acquired: List[Hashable] = []
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        try:
            for key in ordered:
                lock = self._checkout(key)
                try:
                    if deadline is None:
                        await lock.acquire()
                    else:
                        remaining = max(deadline - loop.time(), 0)
                        await asyncio.wait_for(lock.acquire(), timeout=remaining)
                except asyncio.TimeoutError:
                    self._checkin(key)
                    logger.warning(f"Lock timeout after {timeout}s on {key}")
                    raise ContentionError(
                        "Resource is busy, please retry",
                        details={"lock_key": list(key), "timeout": timeout},
                    )
                except BaseException:
                    self._checkin(key)
                    raise
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
                self._checkin(key)
