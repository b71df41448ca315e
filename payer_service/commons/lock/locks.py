import asyncio
from typing import Dict, Optional

from redis.asyncio import Redis
from redis.asyncio.lock import Lock
from redis.exceptions import LockError, RedisError

from payer_service.commons.context.logger import get_logger
from payer_service.commons.core.errors import (
    PaymentLockAcquireError,
    PaymentLockReleaseError,
)

log = get_logger("application")


class PaymentLock:
    """Async Context Manager of Payment Lock.

    Distributed async redis lock, which set a ttl for input lock_name as key in redis. Example usage,

        async with PaymentLock(lock_name, redis) as lock:
            # business logic under the lock
            pass

    If failed to acquire lock within blocking_timeout, will raise PaymentLockAcquireError.

    When lock timed out on exiting context manager, PaymentLockReleaseError is raised unless the locked block
    is already raising, in which case the release failure is logged and the original error propagates.
    """

    def __init__(
        self,
        lock_name: str,
        redis: Redis,
        lock_timeout: Optional[float] = None,
        blocking_timeout: Optional[float] = None,
    ):
        """Init Payment Lock Context Manager.

        :param lock_name: name of the lock
        :param redis: redis client holding the lock key
        :param lock_timeout: ttl of the lock, in seconds
        :param blocking_timeout: max time to wait for the lock, in seconds
        """
        self._resource = lock_name
        self._lock: Lock = redis.lock(
            lock_name, timeout=lock_timeout, blocking_timeout=blocking_timeout
        )

    async def __aenter__(self):
        """Acquire lock when enter."""
        try:
            acquired = await self._lock.acquire()
        except (LockError, RedisError) as e:
            log.exception("LockError when attempting PaymentLock", lock=self._resource)
            raise PaymentLockAcquireError from e
        if not acquired:
            log.warning("PaymentLock not acquired in time", lock=self._resource)
            raise PaymentLockAcquireError
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Release lock when exit.

        A release failure is only logged while an exception from the locked block is propagating.
        """
        try:
            await self._lock.release()
        except LockError as e:
            if exc_type is not None:
                log.warning(
                    "PaymentLock release failed", lock=self._resource, error=str(e)
                )
                return False
            raise PaymentLockReleaseError from e

    async def is_locked(self) -> bool:
        """Check if resource is locked or not."""
        return await self._lock.locked()


class _LocalLockEntry:
    def __init__(self):
        self.lock = asyncio.Lock()
        # holders plus waiters, the entry is dropped when it reaches 0
        self.users = 0


class LocalLock:
    """Async Context Manager of an in-process lock keyed by lock_name.

    Same contract as PaymentLock for a single process deployment. Entries of idle names are removed.
    """

    _entries: Dict[str, _LocalLockEntry] = {}

    def __init__(self, lock_name: str, blocking_timeout: Optional[float] = None):
        self._resource = lock_name
        self._blocking_timeout = blocking_timeout
        self._entry: Optional[_LocalLockEntry] = None

    async def __aenter__(self):
        entry = LocalLock._entries.setdefault(self._resource, _LocalLockEntry())
        entry.users += 1
        try:
            await asyncio.wait_for(entry.lock.acquire(), timeout=self._blocking_timeout)
        except asyncio.TimeoutError as e:
            self._leave(entry)
            log.warning("LocalLock not acquired in time", lock=self._resource)
            raise PaymentLockAcquireError from e
        self._entry = entry
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        entry, self._entry = self._entry, None
        if entry is None:
            raise PaymentLockReleaseError
        entry.lock.release()
        self._leave(entry)

    async def is_locked(self) -> bool:
        entry = LocalLock._entries.get(self._resource)
        return entry is not None and entry.lock.locked()

    def _leave(self, entry: _LocalLockEntry):
        entry.users -= 1
        if entry.users == 0 and LocalLock._entries.get(self._resource) is entry:
            del LocalLock._entries[self._resource]
