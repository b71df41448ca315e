import abc

from pydantic import BaseModel, ConfigDict
from structlog.stdlib import BoundLogger

from payer_service.commons.context.logger import get_logger
from payer_service.customer.core.types import SourceKind


class CustomerEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    customer_id: str
    user_id: int


class CustomerCreated(CustomerEvent):
    pass


class SourceAdded(CustomerEvent):
    source_id: str
    kind: SourceKind


class PaymentMethodAdded(CustomerEvent):
    payment_method_id: str


class SourceDeleted(CustomerEvent):
    source_id: str


class DefaultSourceSet(CustomerEvent):
    source_id: str


class EventSink(metaclass=abc.ABCMeta):
    """
    Fire and forget receiver of customer events.
    """

    @abc.abstractmethod
    async def publish(self, event: CustomerEvent) -> None:
        ...


class LoggingEventSink(EventSink):
    """
    Default event sink, writes every customer event to the structured log.
    """

    log: BoundLogger

    def __init__(self, log: BoundLogger = None):
        self.log = log or get_logger("customer_events")

    async def publish(self, event: CustomerEvent) -> None:
        self.log.info(
            "[publish] customer event.",
            event_name=type(event).__name__,
            **event.model_dump(mode="json"),
        )
