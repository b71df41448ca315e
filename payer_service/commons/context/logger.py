import datetime
import logging
import os
import platform
import sys
from typing import Any, Callable, Dict

import structlog
from pythonjsonlogger import jsonlogger
from typing_extensions import Protocol

APP_NAME = "payer-service"

# LogRecord attributes rendered into every json line
# see https://github.com/madzak/python-json-logger/blob/master/src/pythonjsonlogger/jsonlogger.py
LOG_RECORD_FORMAT = "%(name)s %(message)s"

is_debug = os.environ.get("ENVIRONMENT") in ("local", "testing")


def _app_info() -> Dict[str, Any]:
    return {
        "pid": os.getpid(),
        "hostname": platform.node(),
        "app": {"name": APP_NAME, "env": os.environ.get("ENVIRONMENT", "unknown")},
    }


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    One json object per log line.

    Events logged through structlog arrive with level, timestamp and app info already set,
    records of plain stdlib loggers (stripe, urllib3, redis) get them filled in here.
    """

    def add_fields(
        self, log_record: Dict, record: logging.LogRecord, message_dict: Dict
    ):
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault(
            "timestamp",
            datetime.datetime.fromtimestamp(
                record.created, tz=datetime.timezone.utc
            ).isoformat(),
        )
        log_record["level"] = (log_record.get("level") or record.levelname).upper()
        for key, value in _app_info().items():
            log_record.setdefault(key, value)
        # stripe calls run on the "stripe" thread pool
        if record.threadName != "MainThread":
            log_record["thread"] = record.threadName


_handler = logging.StreamHandler(sys.stdout)
_handler.setFormatter(CustomJsonFormatter(LOG_RECORD_FORMAT))

_sys_logger = logging.getLogger()
_sys_logger.setLevel(logging.DEBUG if is_debug else logging.INFO)
if not any(isinstance(h.formatter, CustomJsonFormatter) for h in _sys_logger.handlers):
    _sys_logger.addHandler(_handler)


def add_app_info(logger: structlog.BoundLogger, log_level: str, event_dict: dict):
    """
    application info (pid, hostname, environment)
    """
    event_dict.update(_app_info())
    return event_dict


def add_err_info(logger: structlog.BoundLogger, log_level: str, event_dict: dict):
    """
    replace exc_info with an "error" object of type, message and formatted stack
    """
    exc_info = event_dict.pop("exc_info", None)
    if not exc_info:
        return event_dict

    if exc_info is True:
        exc_info = sys.exc_info()
    elif isinstance(exc_info, BaseException):
        exc_info = (exc_info.__class__, exc_info, exc_info.__traceback__)

    exc_type, exc_value, _ = exc_info
    if exc_value is not None:
        rendered = structlog.processors.format_exc_info(
            logger, log_level, {"exc_info": exc_info}
        )
        event_dict["error"] = {
            "type": exc_type.__name__,
            "msg": str(exc_value),
            "stack": rendered.get("exception"),
        }
    return event_dict


structlog.configure_once(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        add_app_info,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        add_err_info,
        structlog.processors.UnicodeDecoder(),
        # hand the event over to the stdlib handler and CustomJsonFormatter
        structlog.stdlib.render_to_log_kwargs,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)


class Log(Protocol):
    """
    Static type of the lazy proxies returned by structlog.get_logger
    """

    def debug(self, event=None, *args, **kw):
        pass

    def info(self, event=None, *args, **kw):
        pass

    def warning(self, event=None, *args, **kw):
        pass

    def error(self, event=None, *args, **kw):
        pass

    def exception(self, event=None, *args, **kw):
        pass


root_logger: Log = structlog.get_logger("application")
get_logger: Callable[..., Log] = structlog.get_logger
