import abc
from typing import Any, AsyncContextManager, Mapping, Optional, Union

from payer_service.customer.core.model import LocalPaymentToken

# a binding stored before customer ids were saved as plain strings is a mapping with "customer_id"
CustomerBinding = Union[str, Mapping[str, Any], None]


class UserStore(metaclass=abc.ABCMeta):
    """
    Local user identity store holding the user -> stripe customer binding.
    """

    @abc.abstractmethod
    async def get_bound_customer_id(self, user_id: int) -> CustomerBinding:
        ...

    @abc.abstractmethod
    async def set_bound_customer_id(self, user_id: int, customer_id: str) -> None:
        ...

    @abc.abstractmethod
    async def clear_bound_customer_id(self, user_id: int) -> None:
        ...

    @abc.abstractmethod
    async def get_profile_field(self, user_id: int, name: str) -> str:
        """
        Profile fields: email, login, first_name, last_name, billing_first_name, billing_last_name.
        Returns "" for an unknown or unset field.
        """
        ...


class PaymentTokenStore(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    async def save(self, token: LocalPaymentToken) -> None:
        ...


class SourceCache(metaclass=abc.ABCMeta):
    """
    Transient key value store of json data.
    """

    @abc.abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        ...

    @abc.abstractmethod
    async def set(self, key: str, value: Any) -> None:
        ...

    @abc.abstractmethod
    async def delete(self, key: str) -> None:
        ...


class CustomerCreationLock(metaclass=abc.ABCMeta):
    """
    Advisory lock serializing remote customer creation of a local user.
    """

    @abc.abstractmethod
    def lock(self, user_id: int) -> AsyncContextManager:
        ...
