from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import final

from payer_service.customer.core.types import (
    GatewayId,
    SourceKind,
    TokenType,
    classify_source,
)


@final
class PaymentSource(BaseModel):
    """
    Merged listing entry of a legacy source or a payment method.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: SourceKind
    object: Optional[str] = None
    type: Optional[str] = None
    brand: Optional[str] = None
    last4: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None
    # gateway payload as returned by stripe
    raw: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_gateway(cls, payload: Mapping[str, Any]) -> "PaymentSource":
        kind = classify_source(payload)
        display: Mapping[str, Any] = {}
        if kind == SourceKind.LEGACY:
            display = payload
        elif kind in (SourceKind.CARD_SOURCE, SourceKind.PAYMENT_METHOD):
            display = payload.get("card") or {}
        elif kind == SourceKind.SEPA_DEBIT:
            display = {"last4": (payload.get("sepa_debit") or {}).get("last4")}

        return cls(
            id=payload["id"],
            kind=kind,
            object=payload.get("object"),
            type=payload.get("type"),
            brand=display.get("brand"),
            last4=display.get("last4"),
            exp_month=display.get("exp_month"),
            exp_year=display.get("exp_year"),
            raw=dict(payload),
        )


@final
class LocalPaymentToken(BaseModel):
    """
    Saved payment instrument of a local user, persisted by the PaymentTokenStore.
    """

    token: str
    gateway_id: GatewayId
    token_type: TokenType
    user_id: int
    brand: Optional[str] = None
    last4: Optional[str] = None
    expiry_month: Optional[int] = None
    expiry_year: Optional[int] = None


def _card_token(user_id: int, token: str, card: Mapping[str, Any]) -> LocalPaymentToken:
    brand = card.get("brand")
    return LocalPaymentToken(
        token=token,
        gateway_id=GatewayId.STRIPE,
        token_type=TokenType.CC,
        user_id=user_id,
        brand=brand.lower() if brand else None,
        last4=card.get("last4"),
        expiry_month=card.get("exp_month"),
        expiry_year=card.get("exp_year"),
    )


def build_source_token(
    user_id: int, source: Mapping[str, Any]
) -> Optional[LocalPaymentToken]:
    """
    Build the local token of an attached source.

    :param user_id: owner of the token
    :param source: attach response from stripe
    :return: None when the source is not a reusable stored instrument
    """
    kind = classify_source(source)
    if kind == SourceKind.SEPA_DEBIT:
        return LocalPaymentToken(
            token=source["id"],
            gateway_id=GatewayId.STRIPE_SEPA,
            token_type=TokenType.SEPA,
            user_id=user_id,
            last4=(source.get("sepa_debit") or {}).get("last4"),
        )
    if kind == SourceKind.CARD_SOURCE:
        return _card_token(user_id, source["id"], source.get("card") or {})
    if kind == SourceKind.LEGACY:
        return _card_token(user_id, source["id"], source)
    # alipay is single use, anything else is not a stored instrument
    return None


def build_payment_method_token(
    user_id: int, payment_method: Mapping[str, Any]
) -> Optional[LocalPaymentToken]:
    card = payment_method.get("card")
    if not card:
        return None
    return _card_token(user_id, payment_method["id"], card)
