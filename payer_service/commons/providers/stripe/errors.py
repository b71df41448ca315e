from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict
from stripe import StripeError

__all__ = [
    "StripeErrorParser",
    "StripeErrorType",
    "is_no_such_customer",
]

NO_SUCH_CUSTOMER = "no such customer"


class StripeErrorType(str, Enum):
    """
    A collection of stripe error types.
    https://stripe.com/docs/api/errors
    """

    api_connection_error = "api_connection_error"
    api_error = "api_error"
    authentication_error = "authentication_error"
    card_error = "card_error"
    idempotency_error = "idempotency_error"
    invalid_request_error = "invalid_request_error"
    rate_limit_error = "rate_limit_error"
    validation_error = "validation_error"


class _StripeErrorDetails(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    message: Optional[str] = None
    code: Optional[str] = None
    type: Optional[str] = None
    param: Optional[Union[str, List[str]]] = None


class StripeErrorParser:
    """
    Utility class to strong type StripeError.json_body["error"] structure.
    """

    _details: _StripeErrorDetails
    error: StripeError

    def __init__(self, stripe_error: StripeError):
        self.error = stripe_error
        self._details = StripeErrorParser._parse_details(stripe_error)

    @property
    def code(self) -> Optional[str]:
        # stripe-python parses the code out of some responses only onto StripeError.code
        return self._details.code or self.error.code

    @property
    def message(self) -> str:
        return self._details.message or self.error.user_message or str(self.error)

    @property
    def type(self) -> Optional[str]:
        return self._details.type

    @property
    def payload(self) -> Dict[str, Any]:
        """
        The raw error blob returned by stripe.
        """
        return self._details.model_dump(exclude_none=True)

    @staticmethod
    def _parse_details(stripe_error: StripeError) -> _StripeErrorDetails:
        details = None
        # Best effort to parse StripeError.json_body["error"] if the error blob
        # was returned as dict structure
        if stripe_error.json_body and isinstance(stripe_error.json_body, dict):
            error_data = stripe_error.json_body.get("error", {})
            if isinstance(error_data, dict):
                details = _StripeErrorDetails.model_validate(error_data)

        return details or _StripeErrorDetails()


def is_no_such_customer(error_type: Optional[str], message: Optional[str]) -> bool:
    """
    Whether an error says the referenced customer does not exist on stripe anymore.

    Stripe reports this as an invalid request whose message reads "No such customer: 'cus_xxx'".
    """
    return (
        error_type == StripeErrorType.invalid_request_error
        and NO_SUCH_CUSTOMER in (message or "").lower()
    )
