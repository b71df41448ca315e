from typing import Any, Optional

from payer_service.commons.cache.cache import PaymentCache
from payer_service.customer.core.interfaces import SourceCache


class PaymentSourceCache(SourceCache):
    """
    SourceCache backed by the shared redis PaymentCache.

    :param ttl_sec: expiry of every entry, 0 keeps entries until they are invalidated
    """

    def __init__(self, cache: PaymentCache, ttl_sec: int = 0):
        self.cache = cache
        self.ttl_sec = ttl_sec

    async def get(self, key: str) -> Optional[Any]:
        return await self.cache.get(key)

    async def set(self, key: str, value: Any) -> None:
        await self.cache.set(key, value, ttl_sec=self.ttl_sec)

    async def delete(self, key: str) -> None:
        await self.cache.invalidate(key)
