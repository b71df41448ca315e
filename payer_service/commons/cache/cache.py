import json
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError
from structlog.stdlib import BoundLogger

from payer_service.commons.context.logger import get_logger

logger = get_logger("cache")

DEFAULT_CACHE_APP_NAME = "payer-service"


class PaymentCache:
    """
    Json value cache on top of redis, namespaced by app name.

    Redis failures are logged and treated as cache misses, the cache never fails its caller.
    """

    logger: BoundLogger
    redis: Redis

    def __init__(self, redis: Redis, app: str = DEFAULT_CACHE_APP_NAME):
        self.logger = logger
        self.redis = redis
        self.app = app

    def _key(self, key: str) -> str:
        return f"{self.app}:{key}"

    async def set(self, key: str, value: Any, ttl_sec: int = 0):
        try:
            await self.redis.set(
                self._key(key), json.dumps(value), ex=ttl_sec if ttl_sec > 0 else None
            )
        except (RedisError, TypeError, ValueError) as e:
            self.logger.error("Set cache failed", key=key, ttl=ttl_sec, error=str(e))

    async def get(self, key: str) -> Optional[Any]:
        try:
            result = await self.redis.get(self._key(key))
        except RedisError as e:
            self.logger.error("Get cache failed", key=key, error=str(e))
            return None
        if result is None:
            return None
        try:
            return json.loads(result)
        except ValueError as e:
            self.logger.error("Cached value is not valid json", key=key, error=str(e))
            return None

    async def invalidate(self, key: str) -> bool:
        try:
            return bool(await self.redis.delete(self._key(key)))
        except RedisError as e:
            self.logger.error("Invalidate cache failed", key=key, error=str(e))
            return False

