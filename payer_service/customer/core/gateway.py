import abc
from functools import wraps
from typing import Any, Dict, List, Mapping, Optional

from stripe import StripeError

from payer_service.commons.providers.stripe import stripe_models as models
from payer_service.commons.providers.stripe.errors import (
    StripeErrorParser,
    is_no_such_customer,
)
from payer_service.commons.providers.stripe.stripe_client import StripeAsyncClient
from payer_service.commons.types import CountryCode

GatewayResponse = Dict[str, Any]


class GatewayError(Exception):
    """
    Error response of the payment gateway.

    :param error_type: error class reported by the gateway, e.g. invalid_request_error
    :param message: human readable message reported by the gateway
    :param code: machine readable error code, if any
    :param payload: raw error blob
    """

    def __init__(
        self,
        error_type: Optional[str],
        message: str,
        code: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.code = code
        self.payload = payload or {}

    @property
    def is_no_such_customer(self) -> bool:
        return is_no_such_customer(self.error_type, self.message)

    @classmethod
    def from_stripe_error(cls, stripe_error: StripeError) -> "GatewayError":
        parser = StripeErrorParser(stripe_error)
        return cls(
            error_type=parser.type,
            message=parser.message,
            code=parser.code,
            payload=parser.payload,
        )


def translate_stripe_error(func):
    """Translate Stripe Errors into GatewayError.

    The customer layer only sees the error type, message and raw payload, so it does not
    need to know the stripe-python exception hierarchy.
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except StripeError as e:
            raise GatewayError.from_stripe_error(e) from e

    return wrapper


class PaymentGateway(metaclass=abc.ABCMeta):
    """
    Remote customer, source and payment method API. Every method raises GatewayError on an error response.
    """

    @abc.abstractmethod
    async def create_customer(self, args: Mapping[str, Any]) -> GatewayResponse:
        ...

    @abc.abstractmethod
    async def retrieve_customer(self, customer_id: str) -> GatewayResponse:
        ...

    @abc.abstractmethod
    async def update_customer(
        self, customer_id: str, fields: Mapping[str, Any]
    ) -> GatewayResponse:
        ...

    @abc.abstractmethod
    async def attach_source(self, customer_id: str, source_id: str) -> GatewayResponse:
        ...

    @abc.abstractmethod
    async def list_sources(self, customer_id: str, limit: int) -> List[GatewayResponse]:
        ...

    @abc.abstractmethod
    async def delete_source(self, customer_id: str, source_id: str) -> GatewayResponse:
        ...

    @abc.abstractmethod
    async def attach_payment_method(
        self, customer_id: str, payment_method_id: str
    ) -> GatewayResponse:
        ...

    @abc.abstractmethod
    async def list_payment_methods(
        self, customer_id: str, type: str, limit: int
    ) -> List[GatewayResponse]:
        ...


class StripePaymentGateway(PaymentGateway):
    """
    PaymentGateway of a single stripe platform account, selected by country.
    """

    def __init__(
        self,
        stripe_async_client: StripeAsyncClient,
        country: CountryCode = CountryCode.US,
    ):
        self.stripe_async_client = stripe_async_client
        self.country = country

    @translate_stripe_error
    async def create_customer(self, args: Mapping[str, Any]) -> GatewayResponse:
        return await self.stripe_async_client.create_customer(
            country=self.country, request=models.StripeCreateCustomerRequest(**args)
        )

    @translate_stripe_error
    async def retrieve_customer(self, customer_id: str) -> GatewayResponse:
        return await self.stripe_async_client.retrieve_customer(
            country=self.country,
            request=models.StripeRetrieveCustomerRequest(id=customer_id),
        )

    @translate_stripe_error
    async def update_customer(
        self, customer_id: str, fields: Mapping[str, Any]
    ) -> GatewayResponse:
        return await self.stripe_async_client.update_customer(
            country=self.country,
            request=models.StripeUpdateCustomerRequest(sid=customer_id, **fields),
        )

    @translate_stripe_error
    async def attach_source(self, customer_id: str, source_id: str) -> GatewayResponse:
        return await self.stripe_async_client.create_customer_source(
            country=self.country,
            request=models.StripeCreateCustomerSourceRequest(
                customer=customer_id, source=source_id
            ),
        )

    @translate_stripe_error
    async def list_sources(self, customer_id: str, limit: int) -> List[GatewayResponse]:
        return await self.stripe_async_client.list_customer_sources(
            country=self.country,
            request=models.StripeListCustomerSourcesRequest(
                customer=customer_id, limit=limit
            ),
        )

    @translate_stripe_error
    async def delete_source(self, customer_id: str, source_id: str) -> GatewayResponse:
        return await self.stripe_async_client.delete_customer_source(
            country=self.country,
            request=models.StripeDeleteCustomerSourceRequest(
                customer=customer_id, source=source_id
            ),
        )

    @translate_stripe_error
    async def attach_payment_method(
        self, customer_id: str, payment_method_id: str
    ) -> GatewayResponse:
        return await self.stripe_async_client.attach_payment_method(
            country=self.country,
            request=models.StripeAttachPaymentMethodRequest(
                customer=customer_id, payment_method=payment_method_id
            ),
        )

    @translate_stripe_error
    async def list_payment_methods(
        self, customer_id: str, type: str, limit: int
    ) -> List[GatewayResponse]:
        return await self.stripe_async_client.list_payment_methods(
            country=self.country,
            request=models.StripeListPaymentMethodsRequest(
                customer=customer_id, type=type, limit=limit
            ),
        )
