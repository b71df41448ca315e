from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

from payer_service.commons.test_unit.utils import FunctionMock  # noqa: F401
from payer_service.customer.core.events import CustomerEvent, EventSink
from payer_service.customer.core.interfaces import (
    CustomerBinding,
    PaymentTokenStore,
    SourceCache,
    UserStore,
)
from payer_service.customer.core.model import LocalPaymentToken

NO_SUCH_CUSTOMER_PAYLOAD = {
    "type": "invalid_request_error",
    "message": "No such customer: 'cus_stale'",
    "param": "customer",
    "code": "resource_missing",
}


class ContextMock(MagicMock):
    async def __aenter__(self, *args, **kwargs):
        pass

    async def __aexit__(self, *args, **kwargs):
        pass


class InMemoryUserStore(UserStore):
    def __init__(
        self,
        bindings: Optional[Dict[int, CustomerBinding]] = None,
        profiles: Optional[Dict[int, Dict[str, str]]] = None,
    ):
        self.bindings: Dict[int, CustomerBinding] = dict(bindings or {})
        self.profiles = profiles or {}

    async def get_bound_customer_id(self, user_id: int) -> CustomerBinding:
        return self.bindings.get(user_id, "")

    async def set_bound_customer_id(self, user_id: int, customer_id: str) -> None:
        self.bindings[user_id] = customer_id

    async def clear_bound_customer_id(self, user_id: int) -> None:
        self.bindings.pop(user_id, None)

    async def get_profile_field(self, user_id: int, name: str) -> str:
        return self.profiles.get(user_id, {}).get(name, "")


class InMemoryTokenStore(PaymentTokenStore):
    def __init__(self):
        self.tokens: List[LocalPaymentToken] = []

    async def save(self, token: LocalPaymentToken) -> None:
        self.tokens.append(token)


class InMemorySourceCache(SourceCache):
    def __init__(self):
        self.entries: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        return self.entries.get(key)

    async def set(self, key: str, value: Any) -> None:
        self.entries[key] = value

    async def delete(self, key: str) -> None:
        self.entries.pop(key, None)


class RecordingEventSink(EventSink):
    def __init__(self):
        self.events: List[CustomerEvent] = []

    async def publish(self, event: CustomerEvent) -> None:
        self.events.append(event)


def legacy_card(card_id: str = "card_1", brand: str = "Visa") -> Dict[str, Any]:
    return {
        "id": card_id,
        "object": "card",
        "brand": brand,
        "last4": "4242",
        "exp_month": 12,
        "exp_year": 2030,
        "customer": "cus_1",
    }


def card_source(source_id: str = "src_card") -> Dict[str, Any]:
    return {
        "id": source_id,
        "object": "source",
        "type": "card",
        "card": {
            "brand": "MasterCard",
            "last4": "4444",
            "exp_month": 1,
            "exp_year": 2031,
        },
    }


def sepa_source(source_id: str = "src_sepa") -> Dict[str, Any]:
    return {
        "id": source_id,
        "object": "source",
        "type": "sepa_debit",
        "sepa_debit": {"last4": "3000", "country": "DE"},
    }


def alipay_source(source_id: str = "src_alipay") -> Dict[str, Any]:
    return {"id": source_id, "object": "source", "type": "alipay", "alipay": {}}


def card_payment_method(
    pm_id: str = "pm_1", customer: Optional[str] = None
) -> Dict[str, Any]:
    return {
        "id": pm_id,
        "object": "payment_method",
        "type": "card",
        "customer": customer,
        "card": {"brand": "amex", "last4": "0005", "exp_month": 3, "exp_year": 2029},
    }
