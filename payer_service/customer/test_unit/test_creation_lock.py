from unittest.mock import MagicMock

import pytest

from payer_service.commons.core.errors import PaymentLockAcquireError
from payer_service.commons.lock.locks import LocalLock, PaymentLock
from payer_service.customer.core.creation_lock import (
    LocalCustomerCreationLock,
    RedisCustomerCreationLock,
    creation_lock_name,
)


class TestCustomerCreationLock:
    def test_redis_lock_is_keyed_by_user(self):
        redis = MagicMock()
        creation_lock = RedisCustomerCreationLock(
            redis, lock_timeout=10, blocking_timeout=5
        )

        lock = creation_lock.lock(1001)

        assert isinstance(lock, PaymentLock)
        redis.lock.assert_called_once_with(
            "customer_creation:1001", timeout=10, blocking_timeout=5
        )

    @pytest.mark.asyncio
    async def test_local_lock_serializes_same_user(self):
        creation_lock = LocalCustomerCreationLock(blocking_timeout=0.01)

        lock = creation_lock.lock(2001)
        assert isinstance(lock, LocalLock)
        async with lock:
            assert await lock.is_locked()
            with pytest.raises(PaymentLockAcquireError):
                async with creation_lock.lock(2001):
                    pass
            # other users are not blocked
            async with creation_lock.lock(2002):
                pass

        assert not await lock.is_locked()

    def test_lock_name(self):
        assert creation_lock_name(7) == "customer_creation:7"
