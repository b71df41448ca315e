from typing import AsyncContextManager, Optional

from redis.asyncio import Redis

from payer_service.commons.lock.locks import LocalLock, PaymentLock
from payer_service.customer.core.interfaces import CustomerCreationLock


def creation_lock_name(user_id: int) -> str:
    return f"customer_creation:{user_id}"


class RedisCustomerCreationLock(CustomerCreationLock):
    """
    Distributed creation lock shared by every payer service instance.
    """

    def __init__(
        self,
        redis: Redis,
        lock_timeout: Optional[float] = None,
        blocking_timeout: Optional[float] = None,
    ):
        self.redis = redis
        self.lock_timeout = lock_timeout
        self.blocking_timeout = blocking_timeout

    def lock(self, user_id: int) -> AsyncContextManager:
        return PaymentLock(
            creation_lock_name(user_id),
            self.redis,
            lock_timeout=self.lock_timeout,
            blocking_timeout=self.blocking_timeout,
        )


class LocalCustomerCreationLock(CustomerCreationLock):
    """
    Creation lock of a single process deployment.
    """

    def __init__(self, blocking_timeout: Optional[float] = None):
        self.blocking_timeout = blocking_timeout

    def lock(self, user_id: int) -> AsyncContextManager:
        return LocalLock(
            creation_lock_name(user_id), blocking_timeout=self.blocking_timeout
        )
