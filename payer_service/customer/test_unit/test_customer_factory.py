import pytest

from payer_service.commons.context.app_context import create_app_context
from payer_service.commons.types import CountryCode
from payer_service.customer.core.creation_lock import RedisCustomerCreationLock
from payer_service.customer.core.events import LoggingEventSink
from payer_service.customer.core.factory import build_customer_source_manager
from payer_service.customer.core.gateway import StripePaymentGateway
from payer_service.customer.core.source_cache import PaymentSourceCache
from payer_service.customer.test_unit.utils import (
    InMemoryTokenStore,
    InMemoryUserStore,
    RecordingEventSink,
)


class TestBuildCustomerSourceManager:
    @pytest.mark.asyncio
    async def test_wires_app_context(self, app_config):
        app_context = await create_app_context(app_config)
        try:
            manager = build_customer_source_manager(
                app_context,
                user_id=5,
                user_store=InMemoryUserStore(),
                token_store=InMemoryTokenStore(),
                country=CountryCode.AU,
            )

            assert manager.user_id == 5
            assert manager.customer_id == ""
            assert isinstance(manager.gateway, StripePaymentGateway)
            assert manager.gateway.country == CountryCode.AU
            assert (
                manager.gateway.stripe_async_client is app_context.stripe_async_client
            )
            assert isinstance(manager.cache, PaymentSourceCache)
            assert manager.cache.cache is app_context.cache
            assert isinstance(manager.event_sink, LoggingEventSink)
            assert isinstance(manager.creation_lock, RedisCustomerCreationLock)
            assert manager.creation_lock.lock_timeout == 1
            assert manager.page_size == 100
        finally:
            await app_context.close()

    @pytest.mark.asyncio
    async def test_custom_event_sink(self, app_config):
        app_context = await create_app_context(app_config)
        event_sink = RecordingEventSink()
        try:
            manager = build_customer_source_manager(
                app_context,
                user_id=0,
                user_store=InMemoryUserStore(),
                token_store=InMemoryTokenStore(),
                event_sink=event_sink,
            )

            assert manager.event_sink is event_sink
            assert manager.is_guest
        finally:
            await app_context.close()
