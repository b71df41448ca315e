import io
import json
import logging

import pytest

from payer_service.commons.context.logger import (
    APP_NAME,
    LOG_RECORD_FORMAT,
    CustomJsonFormatter,
    _handler,
    add_err_info,
    get_logger,
)


def test_add_err_info_from_exception():
    try:
        raise ValueError("bad token")
    except ValueError as e:
        event_dict = add_err_info(None, "error", {"event": "failed", "exc_info": e})

    assert "exc_info" not in event_dict
    assert event_dict["error"]["type"] == "ValueError"
    assert event_dict["error"]["msg"] == "bad token"
    assert "bad token" in event_dict["error"]["stack"]


def test_add_err_info_without_exception():
    assert add_err_info(None, "info", {"event": "ok"}) == {"event": "ok"}


def test_stdlib_record_renders_as_json():
    record = logging.LogRecord(
        name="stripe",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="retrying request %s",
        args=("req_1",),
        exc_info=None,
    )

    rendered = json.loads(_handler.format(record))

    assert rendered["name"] == "stripe"
    assert rendered["message"] == "retrying request req_1"
    assert rendered["level"] == "WARNING"
    assert rendered["app"]["name"] == APP_NAME
    assert "timestamp" in rendered
    assert "pid" in rendered


class TestStructlogOutput:
    @pytest.fixture
    def stream(self):
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(CustomJsonFormatter(LOG_RECORD_FORMAT))
        std_logger = logging.getLogger("test_structlog_output")
        std_logger.addHandler(handler)
        yield stream
        std_logger.removeHandler(handler)

    def test_event_keywords_are_json_fields(self, stream):
        get_logger("test_structlog_output").info(
            "[add_source] started.", customer_id="cus_1"
        )

        rendered = json.loads(stream.getvalue().splitlines()[-1])
        assert rendered["name"] == "test_structlog_output"
        assert rendered["message"] == "[add_source] started."
        assert rendered["customer_id"] == "cus_1"
        assert rendered["level"] == "INFO"
        assert rendered["app"]["name"] == APP_NAME
