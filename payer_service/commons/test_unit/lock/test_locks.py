import asyncio
from unittest.mock import MagicMock

import pytest
from redis.exceptions import LockError

from payer_service.commons.core.errors import (
    LockErrorCode,
    PaymentLockAcquireError,
    PaymentLockReleaseError,
)
from payer_service.commons.lock.locks import LocalLock, PaymentLock
from payer_service.commons.test_unit.utils import FunctionMock


class TestPaymentLock:
    @pytest.fixture
    def redis_lock(self):
        redis_lock = MagicMock()
        redis_lock.acquire = FunctionMock(return_value=True)
        redis_lock.release = FunctionMock()
        redis_lock.locked = FunctionMock(return_value=True)
        return redis_lock

    @pytest.fixture
    def redis(self, redis_lock):
        redis = MagicMock()
        redis.lock.return_value = redis_lock
        return redis

    @pytest.mark.asyncio
    async def test_acquire_and_release(self, redis, redis_lock):
        async with PaymentLock(
            "test_lock", redis, lock_timeout=10, blocking_timeout=1
        ) as lock:
            assert await lock.is_locked()
            redis_lock.release.assert_not_called()

        redis.lock.assert_called_once_with("test_lock", timeout=10, blocking_timeout=1)
        redis_lock.acquire.assert_called_once()
        redis_lock.release.assert_called_once()

    @pytest.mark.asyncio
    async def test_not_acquired_in_time(self, redis, redis_lock):
        redis_lock.acquire.return_value = False

        with pytest.raises(PaymentLockAcquireError) as e:
            async with PaymentLock("test_lock", redis):
                pass

        assert e.value.error_code == LockErrorCode.LOCK_ACQUIRE_ERROR
        assert e.value.retryable
        redis_lock.release.assert_not_called()

    @pytest.mark.asyncio
    async def test_acquire_lock_error(self, redis, redis_lock):
        redis_lock.acquire.side_effect = LockError("boom")

        with pytest.raises(PaymentLockAcquireError):
            async with PaymentLock("test_lock", redis):
                pass

    @pytest.mark.asyncio
    async def test_release_error(self, redis, redis_lock):
        redis_lock.release.side_effect = LockError("lock expired")

        with pytest.raises(PaymentLockReleaseError) as e:
            async with PaymentLock("test_lock", redis):
                pass

        assert not e.value.retryable

    @pytest.mark.asyncio
    async def test_release_error_does_not_mask_block_error(self, redis, redis_lock):
        redis_lock.release.side_effect = LockError("lock expired")

        with pytest.raises(KeyError):
            async with PaymentLock("test_lock", redis):
                raise KeyError("cus_1")

        redis_lock.release.assert_called_once()


class TestLocalLock:
    @pytest.mark.asyncio
    async def test_locks_by_name(self):
        async with LocalLock("local_test_lock", blocking_timeout=0.01) as lock:
            assert await lock.is_locked()
            with pytest.raises(PaymentLockAcquireError):
                async with LocalLock("local_test_lock", blocking_timeout=0.01):
                    pass
            async with LocalLock("another_local_test_lock", blocking_timeout=0.01):
                pass

        async with LocalLock("local_test_lock", blocking_timeout=0.01):
            pass

    @pytest.mark.asyncio
    async def test_idle_locks_are_removed(self):
        async with LocalLock("idle_test_lock", blocking_timeout=0.01):
            assert "idle_test_lock" in LocalLock._entries
            with pytest.raises(PaymentLockAcquireError):
                async with LocalLock("idle_test_lock", blocking_timeout=0.01):
                    pass
            assert LocalLock._entries["idle_test_lock"].users == 1

        assert "idle_test_lock" not in LocalLock._entries

    @pytest.mark.asyncio
    async def test_waiter_acquires_after_release(self):
        holder = LocalLock("handover_test_lock", blocking_timeout=1)
        await holder.__aenter__()
        waiter = asyncio.ensure_future(
            LocalLock("handover_test_lock", blocking_timeout=1).__aenter__()
        )
        await asyncio.sleep(0)

        await holder.__aexit__(None, None, None)
        acquired = await waiter

        assert await acquired.is_locked()
        await acquired.__aexit__(None, None, None)
        assert "handover_test_lock" not in LocalLock._entries
