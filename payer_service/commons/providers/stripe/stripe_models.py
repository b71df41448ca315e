from typing import Any, Dict, List, NewType, Optional

import pydantic
from pydantic import ConfigDict

from payer_service.commons.types import CountryCode

# global stripe settings
# hard code this because we'll need code changes anyway to support newer versions
STRIPE_API_VERSION = "2019-10-08"

# stripe list endpoints cap page size at 100
MAX_LIST_LIMIT = 100

IdempotencyKey = Optional[str]
SettingsByCountryCode = Dict[CountryCode, "StripeClientSettings"]
SettingsList = List["StripeClientSettings"]
CustomerId = NewType("CustomerId", str)
SourceId = NewType("SourceId", str)
PaymentMethodId = NewType("PaymentMethodId", str)
Metadata = NewType("Metadata", dict)


class StripeBaseModel(pydantic.BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    def to_request_params(self) -> Dict[str, Any]:
        """
        Keyword arguments for the stripe resource call.

        None values are skipped so stripe applies its own defaults.
        """
        return self.model_dump(exclude_none=True)


class StripeClientSettings(StripeBaseModel):
    # informational
    country: CountryCode

    # stripe settings
    api_key: str
    api_version: Optional[str] = STRIPE_API_VERSION

    @property
    def client_settings(self) -> dict:
        return {"api_key": self.api_key, "stripe_version": self.api_version}


# --------------- REQUEST MODELS ---------------------------------------------------------------------------------------
class StripeCreateCustomerRequest(StripeBaseModel):
    """
    See: https://stripe.com/docs/api/customers/create
    """

    # caller supplied creation args are passed through to stripe
    model_config = ConfigDict(use_enum_values=True, extra="allow")

    email: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    source: Optional[str] = None
    payment_method: Optional[str] = None


class StripeRetrieveCustomerRequest(StripeBaseModel):
    id: CustomerId


class StripeUpdateCustomerRequest(StripeBaseModel):
    """
    See: https://stripe.com/docs/api/customers/update
    """

    sid: CustomerId
    default_source: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None


class StripeCreateCustomerSourceRequest(StripeBaseModel):
    """
    See: https://stripe.com/docs/api/cards/create
    """

    customer: CustomerId
    source: SourceId


class StripeListCustomerSourcesRequest(StripeBaseModel):
    customer: CustomerId
    limit: int = MAX_LIST_LIMIT
    object: Optional[str] = None


class StripeDeleteCustomerSourceRequest(StripeBaseModel):
    customer: CustomerId
    source: SourceId


class StripeAttachPaymentMethodRequest(StripeBaseModel):
    payment_method: PaymentMethodId
    customer: CustomerId


class StripeListPaymentMethodsRequest(StripeBaseModel):
    customer: CustomerId
    type: str = "card"
    limit: int = MAX_LIST_LIMIT
