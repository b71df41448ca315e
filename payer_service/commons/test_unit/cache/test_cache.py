import json
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError, RedisError

from payer_service.commons.cache.cache import PaymentCache
from payer_service.commons.test_unit.utils import FunctionMock


class TestPaymentCache:
    @pytest.fixture
    def redis(self):
        redis = MagicMock()
        redis.set = FunctionMock(return_value=True)
        redis.get = FunctionMock(return_value=None)
        redis.delete = FunctionMock(return_value=1)
        return redis

    @pytest.fixture
    def cache(self, redis):
        return PaymentCache(redis=redis, app="test-app")

    @pytest.mark.asyncio
    async def test_set_with_ttl(self, cache, redis):
        await cache.set("sources:cus_1", [{"id": "card_1"}], ttl_sec=30)

        redis.set.assert_called_once_with(
            "test-app:sources:cus_1", json.dumps([{"id": "card_1"}]), ex=30
        )

    @pytest.mark.asyncio
    async def test_set_without_ttl(self, cache, redis):
        await cache.set("sources:cus_1", [])

        redis.set.assert_called_once_with("test-app:sources:cus_1", "[]", ex=None)

    @pytest.mark.asyncio
    async def test_set_unserializable_value(self, cache, redis):
        await cache.set("sources:cus_1", object())

        redis.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_get(self, cache, redis):
        redis.get.return_value = b'[{"id": "card_1"}]'

        assert await cache.get("sources:cus_1") == [{"id": "card_1"}]
        redis.get.assert_called_once_with("test-app:sources:cus_1")

    @pytest.mark.asyncio
    async def test_get_miss(self, cache, redis):
        assert await cache.get("sources:cus_1") is None

    @pytest.mark.asyncio
    async def test_get_invalid_json(self, cache, redis):
        redis.get.return_value = b"not json"

        assert await cache.get("sources:cus_1") is None

    @pytest.mark.asyncio
    async def test_redis_errors_are_cache_misses(self, cache, redis):
        redis.set.side_effect = ConnectionError("connection refused")
        redis.get.side_effect = ConnectionError("connection refused")
        redis.delete.side_effect = RedisError("boom")

        await cache.set("sources:cus_1", [])
        assert await cache.get("sources:cus_1") is None
        assert not await cache.invalidate("sources:cus_1")

    @pytest.mark.asyncio
    async def test_invalidate(self, cache, redis):
        assert await cache.invalidate("sources:cus_1")
        redis.delete.assert_called_once_with("test-app:sources:cus_1")

        redis.delete.return_value = 0
        assert not await cache.invalidate("sources:cus_1")

