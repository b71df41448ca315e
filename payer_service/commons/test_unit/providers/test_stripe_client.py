from unittest import mock
from unittest.mock import MagicMock

import pytest
import stripe

from payer_service.commons.providers.stripe import stripe_models as models
from payer_service.commons.providers.stripe.stripe_client import (
    ServiceProviderException,
    StripeAsyncClient,
    StripeClient,
    to_response_dict,
)
from payer_service.commons.types import CountryCode
from payer_service.commons.utils.pool import ThreadPoolHelper


def _stripe_object(values: dict) -> stripe.StripeObject:
    return stripe.StripeObject.construct_from(values, "sk_test_us")


class TestStripeClient:
    @pytest.fixture
    def stripe_client(self):
        return StripeClient(
            [models.StripeClientSettings(api_key="sk_test_us", country="US")]
        )

    @pytest.fixture
    def mock_create_customer(self):
        with mock.patch("stripe.Customer.create") as mock_create_customer:
            yield mock_create_customer

    def test_create_customer(self, stripe_client, mock_create_customer):
        mock_create_customer.return_value = _stripe_object(
            {"id": "cus_1", "object": "customer", "metadata": {"user_id": "3"}}
        )

        customer = stripe_client.create_customer(
            country=CountryCode.US,
            request=models.StripeCreateCustomerRequest(
                email="jane@example.com", description=""
            ),
        )

        assert customer == {
            "id": "cus_1",
            "object": "customer",
            "metadata": {"user_id": "3"},
        }
        mock_create_customer.assert_called_once_with(
            idempotency_key=None,
            api_key="sk_test_us",
            stripe_version=models.STRIPE_API_VERSION,
            email="jane@example.com",
            description="",
        )

    def test_update_customer(self, stripe_client, mocker):
        mock_modify = mocker.patch("stripe.Customer.modify")
        mock_modify.return_value = _stripe_object(
            {"id": "cus_1", "default_source": "card_1"}
        )

        customer = stripe_client.update_customer(
            country=CountryCode.US,
            request=models.StripeUpdateCustomerRequest(
                sid="cus_1", default_source="card_1"
            ),
        )

        assert customer["default_source"] == "card_1"
        mock_modify.assert_called_once_with(
            "cus_1",
            api_key="sk_test_us",
            stripe_version=models.STRIPE_API_VERSION,
            default_source="card_1",
        )

    def test_list_customer_sources_returns_data(self, stripe_client):
        with mock.patch("stripe.Customer.list_sources") as mock_list_sources:
            mock_list_sources.return_value = _stripe_object(
                {
                    "object": "list",
                    "data": [{"id": "card_1", "object": "card"}],
                    "has_more": False,
                }
            )

            sources = stripe_client.list_customer_sources(
                country=CountryCode.US,
                request=models.StripeListCustomerSourcesRequest(customer="cus_1"),
            )

        assert sources == [{"id": "card_1", "object": "card"}]
        mock_list_sources.assert_called_once_with(
            "cus_1",
            api_key="sk_test_us",
            stripe_version=models.STRIPE_API_VERSION,
            limit=100,
        )

    def test_attach_payment_method(self, stripe_client):
        with mock.patch("stripe.PaymentMethod.attach") as mock_attach:
            mock_attach.return_value = _stripe_object(
                {"id": "pm_1", "object": "payment_method", "customer": "cus_1"}
            )

            payment_method = stripe_client.attach_payment_method(
                country=CountryCode.US,
                request=models.StripeAttachPaymentMethodRequest(
                    payment_method="pm_1", customer="cus_1"
                ),
                idempotency_key="idem_1",
            )

        assert payment_method["customer"] == "cus_1"
        mock_attach.assert_called_once_with(
            "pm_1",
            customer="cus_1",
            idempotency_key="idem_1",
            api_key="sk_test_us",
            stripe_version=models.STRIPE_API_VERSION,
        )

    def test_stripe_error_is_propagated(self, stripe_client, mock_create_customer):
        mock_create_customer.side_effect = stripe.APIConnectionError(
            "failed to connect to stripe"
        )

        with pytest.raises(stripe.APIConnectionError):
            stripe_client.create_customer(
                country=CountryCode.US,
                request=models.StripeCreateCustomerRequest(email="jane@example.com"),
            )

    def test_country_not_configured(self, stripe_client):
        with pytest.raises(ServiceProviderException):
            stripe_client.settings_for(CountryCode.CA)
        with pytest.raises(ServiceProviderException):
            stripe_client.settings_for("JP")

    def test_requires_settings(self):
        with pytest.raises(ValueError):
            StripeClient([])

    def test_to_response_dict(self):
        assert to_response_dict(None) == {}
        assert to_response_dict({"id": "cus_1"}) == {"id": "cus_1"}
        assert to_response_dict(_stripe_object({"id": "cus_1"})) == {"id": "cus_1"}


class TestStripeAsyncClient:
    @pytest.fixture
    def executor_pool(self):
        executor_pool = ThreadPoolHelper(max_workers=1, prefix="stripe")
        yield executor_pool
        executor_pool.shutdown()

    @pytest.mark.asyncio
    async def test_runs_in_executor_pool(self, executor_pool):
        stripe_client = MagicMock()
        stripe_client.delete_customer_source.return_value = {
            "id": "card_1",
            "deleted": True,
        }
        stripe_async_client = StripeAsyncClient(
            executor_pool=executor_pool, stripe_client=stripe_client
        )
        request = models.StripeDeleteCustomerSourceRequest(
            customer="cus_1", source="card_1"
        )

        deleted = await stripe_async_client.delete_customer_source(
            country=CountryCode.US, request=request
        )

        assert deleted == {"id": "card_1", "deleted": True}
        stripe_client.delete_customer_source.assert_called_once_with(
            country=CountryCode.US, request=request
        )
