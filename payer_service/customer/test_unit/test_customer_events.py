import pytest

from payer_service.customer.core.events import LoggingEventSink, SourceAdded
from payer_service.customer.core.types import SourceKind


class TestLoggingEventSink:
    @pytest.mark.asyncio
    async def test_publish_logs_event(self, mocker):
        log = mocker.Mock()
        event_sink = LoggingEventSink(log=log)

        await event_sink.publish(
            SourceAdded(
                customer_id="cus_1",
                user_id=3,
                source_id="src_1",
                kind=SourceKind.SEPA_DEBIT,
            )
        )

        log.info.assert_called_once_with(
            "[publish] customer event.",
            event_name="SourceAdded",
            customer_id="cus_1",
            user_id=3,
            source_id="src_1",
            kind="sepa_debit",
        )
