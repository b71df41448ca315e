from typing import Optional

from payer_service.commons.context.app_context import AppContext
from payer_service.commons.context.logger import get_logger
from payer_service.commons.types import CountryCode
from payer_service.customer.core.creation_lock import RedisCustomerCreationLock
from payer_service.customer.core.customer_source_manager import (
    CustomerSourceManager,
    MetadataProvider,
)
from payer_service.customer.core.events import EventSink, LoggingEventSink
from payer_service.customer.core.gateway import StripePaymentGateway
from payer_service.customer.core.interfaces import PaymentTokenStore, UserStore
from payer_service.customer.core.source_cache import PaymentSourceCache


def build_customer_source_manager(
    app_context: AppContext,
    *,
    user_id: int,
    user_store: UserStore,
    token_store: PaymentTokenStore,
    country: CountryCode = CountryCode.US,
    event_sink: Optional[EventSink] = None,
    metadata_provider: Optional[MetadataProvider] = None,
) -> CustomerSourceManager:
    """
    Wire a CustomerSourceManager of one request to the shared stripe client, redis cache and redis lock.
    """
    source_config = app_context.config.CUSTOMER_SOURCE_CONFIG
    return CustomerSourceManager(
        user_id=user_id,
        gateway=StripePaymentGateway(
            stripe_async_client=app_context.stripe_async_client, country=country
        ),
        user_store=user_store,
        token_store=token_store,
        cache=PaymentSourceCache(
            app_context.cache, ttl_sec=source_config.source_cache_ttl_sec
        ),
        event_sink=event_sink or LoggingEventSink(),
        creation_lock=RedisCustomerCreationLock(
            app_context.redis,
            lock_timeout=source_config.creation_lock_timeout_sec,
            blocking_timeout=source_config.creation_lock_blocking_timeout_sec,
        ),
        log=get_logger("customer_source_manager"),
        metadata_provider=metadata_provider,
        page_size=source_config.source_list_page_size,
    )
