from enum import Enum
from typing import Generic, TypeVar

ErrorCodeT = TypeVar("ErrorCodeT", bound=str)


class PaymentError(Generic[ErrorCodeT], Exception):
    """
    Base class for all payer service internal exceptions. Each business operation layer inherits it
    with a corresponding sub error class and raises to the calling layer.
    """

    error_code: ErrorCodeT

    def __init__(self, error_code: ErrorCodeT, error_message: str, retryable: bool):
        """
        Base exception class.

        :param error_code: payer service predefined client-facing error codes.
        :param error_message: friendly error message for client reference.
        :param retryable: identify if the error is retryable or not.
        """
        super(PaymentError, self).__init__(error_message)
        self.error_code = error_code
        self.error_message = error_message
        self.retryable = retryable


####################################
# PaymentLockError
#   - PaymentLockAcquireError
#   - PaymentLockReleaseError
####################################
class LockErrorCode(str, Enum):
    LOCK_ACQUIRE_ERROR = "lock_acquire_error"
    LOCK_RELEASE_ERROR = "lock_release_error"


class PaymentLockAcquireError(PaymentError[LockErrorCode]):
    """Raised when a lock could not be acquired within its blocking timeout."""

    def __init__(self):
        super().__init__(
            error_code=LockErrorCode.LOCK_ACQUIRE_ERROR,
            error_message="Failed to acquire the lock",
            retryable=True,
        )


class PaymentLockReleaseError(PaymentError[LockErrorCode]):
    """Raised when the lock expired or was taken over before release."""

    def __init__(self):
        super().__init__(
            error_code=LockErrorCode.LOCK_RELEASE_ERROR,
            error_message="Failed to release the lock",
            retryable=False,
        )
