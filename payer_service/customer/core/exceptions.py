from enum import Enum
from typing import Any, Dict, NewType, Optional

from payer_service.commons.core.errors import PaymentError

_Retryable = NewType("_Retryable", bool)
SHOULD_RETRY = _Retryable(True)
NO_RETRY = _Retryable(False)


class CustomerErrorCode(str, Enum):
    """
    Enumeration of all customer / payment source pre-defined error codes.
    """

    _message: str
    _retryable: bool

    CUSTOMER_CREATE_STRIPE_ERROR = (
        "customer_1",
        NO_RETRY,
        "Error returned from Payment Provider while creating customer.",
    )
    CUSTOMER_CREATE_INVALID_RESPONSE = (
        "customer_2",
        NO_RETRY,
        "Unable to create customer.",
    )
    CUSTOMER_CREATE_LOCK_ERROR = (
        "customer_3",
        SHOULD_RETRY,
        "Another process is creating the same customer. Please try again later.",
    )
    CUSTOMER_RETRIEVE_STRIPE_ERROR = (
        "customer_4",
        SHOULD_RETRY,
        "Error returned from Payment Provider while retrieving customer.",
    )
    SOURCE_ATTACH_STRIPE_ERROR = (
        "customer_10",
        NO_RETRY,
        "Error returned from Payment Provider. Please make sure your source is correct!",
    )
    SOURCE_ATTACH_INVALID_RESPONSE = (
        "customer_11",
        NO_RETRY,
        "Unable to add payment source.",
    )
    PAYMENT_METHOD_ATTACH_STRIPE_ERROR = (
        "customer_20",
        NO_RETRY,
        "Error returned from Payment Provider. Please make sure your payment_method_id is correct!",
    )
    PAYMENT_METHOD_ATTACH_INVALID_RESPONSE = (
        "customer_21",
        NO_RETRY,
        "Unable to add payment method to customer.",
    )

    def __new__(cls, value: str, retryable: bool, message: str):
        """
        Override __new__ function for StrEnum here to provide additional handles of error code attribute
        But still maintain the StrEnum behavior

        Args:
            value: enum value of the error code
            retryable: whether client can retry when seeing this error code
            message: descriptive message of this error code
        """
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj._message = message
        obj._retryable = retryable
        return obj

    @property
    def message(self) -> str:
        return self._message

    @property
    def retryable(self) -> bool:
        return self._retryable


class CustomerError(PaymentError[CustomerErrorCode]):
    """
    Base exception class for customer and payment source operations. Supplies the error message
    from the provided code unless the caller has a more specific one.
    """

    def __init__(self, error_code: CustomerErrorCode, error_message: Optional[str] = None):
        super(CustomerError, self).__init__(
            error_code.value, error_message or error_code.message, error_code.retryable
        )


class RemoteError(CustomerError):
    """
    Payment provider rejected the request.

    :param payload: raw error blob returned by the payment provider
    """

    payload: Dict[str, Any]

    def __init__(
        self,
        error_code: CustomerErrorCode,
        payload: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        super().__init__(error_code, message)
        self.payload = payload or {}


class ValidationError(CustomerError):
    """
    Payment provider accepted the request but returned no usable id.
    """

    pass


class CustomerCreationLockError(CustomerError):
    def __init__(self):
        super().__init__(CustomerErrorCode.CUSTOMER_CREATE_LOCK_ERROR)
