from dataclasses import dataclass

from redis.asyncio import Redis
from structlog.stdlib import BoundLogger

from payer_service.commons.cache.cache import PaymentCache
from payer_service.commons.config.app_config import AppConfig
from payer_service.commons.context.logger import get_logger, root_logger
from payer_service.commons.providers.stripe.stripe_client import (
    StripeAsyncClient,
    StripeClient,
)
from payer_service.commons.providers.stripe.stripe_http_client import (
    TimedRequestsClient,
)
from payer_service.commons.providers.stripe.stripe_models import StripeClientSettings
from payer_service.commons.types import CountryCode
from payer_service.commons.utils.pool import ThreadPoolHelper


@dataclass(frozen=True)
class AppContext:
    config: AppConfig

    log: BoundLogger

    redis: Redis

    cache: PaymentCache

    stripe_thread_pool: ThreadPoolHelper

    stripe_client: StripeClient

    stripe_async_client: StripeAsyncClient

    async def close(self):
        try:
            await self.redis.aclose()
        finally:
            # shutdown the threadpool
            self.stripe_thread_pool.shutdown(wait=False)


async def create_app_context(config: AppConfig) -> AppContext:
    stripe_client = StripeClient(
        settings_list=[
            StripeClientSettings(
                api_key=config.STRIPE_US_SECRET_KEY.value, country=CountryCode.US
            ),
            StripeClientSettings(
                api_key=config.STRIPE_AU_SECRET_KEY.value, country=CountryCode.AU
            ),
            StripeClientSettings(
                api_key=config.STRIPE_CA_SECRET_KEY.value, country=CountryCode.CA
            ),
        ],
        http_client=TimedRequestsClient(),
    )

    stripe_thread_pool = ThreadPoolHelper(
        max_workers=config.STRIPE_MAX_WORKERS, prefix="stripe"
    )

    stripe_async_client = StripeAsyncClient(
        executor_pool=stripe_thread_pool, stripe_client=stripe_client
    )

    # connections are established lazily on first command
    redis = Redis.from_url(config.REDIS_URL)
    cache = PaymentCache(redis=redis)

    context = AppContext(
        config=config,
        log=get_logger("application"),
        redis=redis,
        cache=cache,
        stripe_thread_pool=stripe_thread_pool,
        stripe_client=stripe_client,
        stripe_async_client=stripe_async_client,
    )

    root_logger.info("app context created", environment=config.ENVIRONMENT)

    return context
