from enum import Enum
from typing import Any, Mapping


class SourceKind(str, Enum):
    """
    Shapes stripe uses to describe a saved payment instrument.
    """

    # pre-sources card object, e.g. card_xxx with brand/last4 on the top level
    LEGACY = "legacy"
    # sources api object of type card
    CARD_SOURCE = "card_source"
    SEPA_DEBIT = "sepa_debit"
    ALIPAY = "alipay"
    PAYMENT_METHOD = "payment_method"
    UNKNOWN = "unknown"


class GatewayId(str, Enum):
    STRIPE = "stripe"
    STRIPE_SEPA = "stripe_sepa"


class TokenType(str, Enum):
    CC = "cc"
    SEPA = "sepa"


def classify_source(payload: Mapping[str, Any]) -> SourceKind:
    if payload.get("object") == "payment_method":
        return SourceKind.PAYMENT_METHOD

    source_type = payload.get("type")
    if not source_type:
        return SourceKind.LEGACY
    if source_type == "alipay":
        return SourceKind.ALIPAY
    if source_type == "sepa_debit":
        return SourceKind.SEPA_DEBIT
    if payload.get("object") == "source" and source_type == "card":
        return SourceKind.CARD_SOURCE
    return SourceKind.UNKNOWN
