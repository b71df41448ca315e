import abc
import json
from typing import Any, Dict, List, Optional

import stripe
from stripe import HTTPClient

from payer_service.commons.providers.stripe import stripe_models as models
from payer_service.commons.providers.stripe.stripe_http_client import (
    TimedRequestsClient,
    set_default_http_client,
)
from payer_service.commons.types import CountryCode
from payer_service.commons.utils.pool import ThreadPoolHelper

StripeResponse = Dict[str, Any]


def to_response_dict(stripe_object: Any) -> StripeResponse:
    """
    Detach a stripe-python object into plain json data so it can be cached and compared.
    """
    if stripe_object is None:
        return {}
    if isinstance(stripe_object, stripe.StripeObject):
        # StripeObject renders itself as json
        return json.loads(str(stripe_object))
    return dict(stripe_object)


class ServiceProviderException(Exception):
    pass


class StripeClientInterface(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def create_customer(
        self,
        *,
        country: CountryCode,
        request: models.StripeCreateCustomerRequest,
        idempotency_key: models.IdempotencyKey = None,
    ) -> StripeResponse:
        """
        Create a new Stripe Customer
        https://stripe.com/docs/api/customers/create
        """
        ...

    @abc.abstractmethod
    def retrieve_customer(
        self, *, country: CountryCode, request: models.StripeRetrieveCustomerRequest
    ) -> StripeResponse:
        """
        Retrieve a Stripe Customer
        https://stripe.com/docs/api/customers/retrieve
        """
        ...

    @abc.abstractmethod
    def update_customer(
        self, *, country: CountryCode, request: models.StripeUpdateCustomerRequest
    ) -> StripeResponse:
        """
        Update a Stripe Customer
        https://stripe.com/docs/api/customers/update
        """
        ...

    @abc.abstractmethod
    def create_customer_source(
        self,
        *,
        country: CountryCode,
        request: models.StripeCreateCustomerSourceRequest,
        idempotency_key: models.IdempotencyKey = None,
    ) -> StripeResponse:
        """
        Attach a card or source object to an existing Stripe Customer
        https://stripe.com/docs/api/cards/create
        """
        ...

    @abc.abstractmethod
    def list_customer_sources(
        self, *, country: CountryCode, request: models.StripeListCustomerSourcesRequest
    ) -> List[StripeResponse]:
        """
        List sources of a Stripe Customer
        https://stripe.com/docs/api/cards/list
        """
        ...

    @abc.abstractmethod
    def delete_customer_source(
        self, *, country: CountryCode, request: models.StripeDeleteCustomerSourceRequest
    ) -> StripeResponse:
        """
        Detach a source from a Stripe Customer
        https://stripe.com/docs/api/cards/delete
        """
        ...

    @abc.abstractmethod
    def attach_payment_method(
        self,
        *,
        country: CountryCode,
        request: models.StripeAttachPaymentMethodRequest,
        idempotency_key: models.IdempotencyKey = None,
    ) -> StripeResponse:
        """
        Attach a Stripe Payment Method to existing Stripe Customer
        https://stripe.com/docs/api/payment_methods/attach
        """
        ...

    @abc.abstractmethod
    def list_payment_methods(
        self, *, country: CountryCode, request: models.StripeListPaymentMethodsRequest
    ) -> List[StripeResponse]:
        """
        List Payment Methods of a Stripe Customer
        https://stripe.com/docs/api/payment_methods/customer_list
        """
        ...


class StripeClient(StripeClientInterface):
    """
    production stripe client
    """

    stripe_client_settings: models.SettingsByCountryCode
    http_client: HTTPClient

    def __init__(
        self,
        settings_list: models.SettingsList,
        *,
        http_client: Optional[HTTPClient] = None,
    ):
        if len(settings_list) == 0:
            raise ValueError("at least one client configuration needs to be provided")
        self.stripe_client_settings = {
            CountryCode(settings.country): settings for settings in settings_list
        }

        self.http_client = http_client or TimedRequestsClient()

        # globally set the stripe client
        set_default_http_client(self.http_client)

    def settings_for(self, country: CountryCode) -> dict:
        try:
            return self.stripe_client_settings[CountryCode(country)].client_settings
        except (KeyError, ValueError) as err:
            raise ServiceProviderException(
                f"service provider is not configured for country {country}"
            ) from err

    def create_customer(
        self,
        *,
        country: CountryCode,
        request: models.StripeCreateCustomerRequest,
        idempotency_key: models.IdempotencyKey = None,
    ) -> StripeResponse:
        customer = stripe.Customer.create(
            idempotency_key=idempotency_key,
            **self.settings_for(country),
            **request.to_request_params(),
        )
        return to_response_dict(customer)

    def retrieve_customer(
        self, *, country: CountryCode, request: models.StripeRetrieveCustomerRequest
    ) -> StripeResponse:
        customer = stripe.Customer.retrieve(request.id, **self.settings_for(country))
        return to_response_dict(customer)

    def update_customer(
        self, *, country: CountryCode, request: models.StripeUpdateCustomerRequest
    ) -> StripeResponse:
        params = request.to_request_params()
        customer = stripe.Customer.modify(
            params.pop("sid"), **self.settings_for(country), **params
        )
        return to_response_dict(customer)

    def create_customer_source(
        self,
        *,
        country: CountryCode,
        request: models.StripeCreateCustomerSourceRequest,
        idempotency_key: models.IdempotencyKey = None,
    ) -> StripeResponse:
        source = stripe.Customer.create_source(
            request.customer,
            source=request.source,
            idempotency_key=idempotency_key,
            **self.settings_for(country),
        )
        return to_response_dict(source)

    def list_customer_sources(
        self, *, country: CountryCode, request: models.StripeListCustomerSourcesRequest
    ) -> List[StripeResponse]:
        params = request.to_request_params()
        sources = stripe.Customer.list_sources(
            params.pop("customer"), **self.settings_for(country), **params
        )
        return to_response_dict(sources).get("data", [])

    def delete_customer_source(
        self, *, country: CountryCode, request: models.StripeDeleteCustomerSourceRequest
    ) -> StripeResponse:
        deleted = stripe.Customer.delete_source(
            request.customer, request.source, **self.settings_for(country)
        )
        return to_response_dict(deleted)

    def attach_payment_method(
        self,
        *,
        country: CountryCode,
        request: models.StripeAttachPaymentMethodRequest,
        idempotency_key: models.IdempotencyKey = None,
    ) -> StripeResponse:
        payment_method = stripe.PaymentMethod.attach(
            request.payment_method,
            customer=request.customer,
            idempotency_key=idempotency_key,
            **self.settings_for(country),
        )
        return to_response_dict(payment_method)

    def list_payment_methods(
        self, *, country: CountryCode, request: models.StripeListPaymentMethodsRequest
    ) -> List[StripeResponse]:
        params = request.to_request_params()
        payment_methods = stripe.Customer.list_payment_methods(
            params.pop("customer"), **self.settings_for(country), **params
        )
        return to_response_dict(payment_methods).get("data", [])


class StripeAsyncClient:
    executor_pool: ThreadPoolHelper
    stripe_client: StripeClientInterface

    def __init__(
        self, executor_pool: ThreadPoolHelper, stripe_client: StripeClientInterface
    ):
        self.executor_pool = executor_pool
        self.stripe_client = stripe_client

    async def create_customer(
        self,
        *,
        country: CountryCode,
        request: models.StripeCreateCustomerRequest,
        idempotency_key: models.IdempotencyKey = None,
    ) -> StripeResponse:
        return await self.executor_pool.submit(
            self.stripe_client.create_customer,
            country=country,
            request=request,
            idempotency_key=idempotency_key,
        )

    async def retrieve_customer(
        self, *, country: CountryCode, request: models.StripeRetrieveCustomerRequest
    ) -> StripeResponse:
        return await self.executor_pool.submit(
            self.stripe_client.retrieve_customer, country=country, request=request
        )

    async def update_customer(
        self, *, country: CountryCode, request: models.StripeUpdateCustomerRequest
    ) -> StripeResponse:
        return await self.executor_pool.submit(
            self.stripe_client.update_customer, country=country, request=request
        )

    async def create_customer_source(
        self,
        *,
        country: CountryCode,
        request: models.StripeCreateCustomerSourceRequest,
        idempotency_key: models.IdempotencyKey = None,
    ) -> StripeResponse:
        return await self.executor_pool.submit(
            self.stripe_client.create_customer_source,
            country=country,
            request=request,
            idempotency_key=idempotency_key,
        )

    async def list_customer_sources(
        self, *, country: CountryCode, request: models.StripeListCustomerSourcesRequest
    ) -> List[StripeResponse]:
        return await self.executor_pool.submit(
            self.stripe_client.list_customer_sources, country=country, request=request
        )

    async def delete_customer_source(
        self, *, country: CountryCode, request: models.StripeDeleteCustomerSourceRequest
    ) -> StripeResponse:
        return await self.executor_pool.submit(
            self.stripe_client.delete_customer_source, country=country, request=request
        )

    async def attach_payment_method(
        self,
        *,
        country: CountryCode,
        request: models.StripeAttachPaymentMethodRequest,
        idempotency_key: models.IdempotencyKey = None,
    ) -> StripeResponse:
        return await self.executor_pool.submit(
            self.stripe_client.attach_payment_method,
            country=country,
            request=request,
            idempotency_key=idempotency_key,
        )

    async def list_payment_methods(
        self, *, country: CountryCode, request: models.StripeListPaymentMethodsRequest
    ) -> List[StripeResponse]:
        return await self.executor_pool.submit(
            self.stripe_client.list_payment_methods, country=country, request=request
        )
