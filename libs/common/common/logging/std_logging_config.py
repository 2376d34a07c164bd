from __future__ import annotations

import atexit
import logging
import os
import sys
from contextvars import ContextVar
from decimal import Decimal
from enum import Enum
from logging import Filter, Handler, LogRecord
from logging.handlers import QueueHandler, QueueListener
from queue import Queue
from typing import Any, cast

import structlog
from pydantic import BaseModel
from structlog.typing import EventDict, Processor, WrappedLogger

from common.core.request_context import RequestContext
from common.utils import encode_json, encode_json_str, is_dict

_EXCLUDED_KEYS = {"api_key", "secret", "authorization"}


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in {"true", "1", "t", "yes"}


def _get_formatter_name() -> str:
    """JSON outside local/dev, console renderer locally unless LOG_JSON_FORMAT opts in."""
    app_env = os.getenv("APP_ENV", "local").lower()
    if app_env not in ("development", "local", "test", "testing"):
        return "json"
    if _env_flag("LOG_JSON_FORMAT"):
        return "json_pretty" if _env_flag("LOG_JSON_PRETTY") else "json"
    return "plain"


class LoggingQueueListener(QueueListener):
    """Custom ``QueueListener`` which starts and stops the listening process."""

    def __init__(self, queue: Queue[LogRecord], *handlers: Handler, respect_handler_level: bool = False) -> None:
        super().__init__(queue, *handlers, respect_handler_level=respect_handler_level)
        self.start()
        _ = atexit.register(self.stop)


def _process_values(
    _logger: WrappedLogger,
    _name: str,
    event_dict: EventDict,
) -> EventDict:
    """Attach the request context and flatten pydantic models, enums and context vars."""

    request_context = RequestContext.get_or_none()
    if request_context is not None:
        event_dict["requestContext"] = request_context

    for key, value in list(event_dict.items()):
        _process_value(event_dict, key, value)

    return event_dict


def _process_value(event_dict: dict[str, Any], key: str, value: Any) -> None:
    if key in _EXCLUDED_KEYS or value is None:
        event_dict.pop(key, None)
        return

    processed_value = value
    if isinstance(value, ContextVar):
        processed_value = value.get(None)  # type: ignore
        if processed_value is None:
            event_dict.pop(key, None)
            return
    elif isinstance(value, BaseModel):
        processed_value = value.model_dump(exclude_none=True, by_alias=True, mode="json")
    elif isinstance(value, Enum):
        processed_value = value.value
    elif isinstance(value, Decimal):
        processed_value = str(value)

    if is_dict(processed_value):
        for k, v in list(processed_value.items()):
            _process_value(processed_value, k, v)

    event_dict[key] = processed_value


def json_serializer(value: EventDict, **_: Any) -> str:
    return encode_json(value).decode("utf-8")


def pretty_json_serializer(value: EventDict, **_: Any) -> str:
    return encode_json_str(value, pretty=True)


# Custom filter to suppress probe noise
class NoHealthCheckFilter(Filter):
    def filter(self, record: LogRecord) -> bool:
        return "GET /api/v1/health" not in record.getMessage()


def _ensure_event_dict(_logger: WrappedLogger, _name: str, event_dict: Any) -> EventDict:
    """Stdlib loggers may hand over plain strings as record.msg; wrap them."""
    if isinstance(event_dict, dict):
        return cast(EventDict, event_dict)
    return {"event": "" if event_dict is None else str(event_dict)}


class SafeProcessorFormatter(structlog.stdlib.ProcessorFormatter):
    """ProcessorFormatter that ensures record.msg is always a dict before formatting."""

    def format(self, record: LogRecord) -> str:
        if not isinstance(record.msg, dict):
            record.msg = {"event": record.getMessage()}
            record.args = ()
        return super().format(record)


class StdLoggingConfig:
    foreign_pre_chain_processors: list[Processor] = [
        _ensure_event_dict,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _process_values,
    ]

    structlog_processors = [*foreign_pre_chain_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter]

    # Compact single-line JSON for log shippers
    json_renderer: list[Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(sort_keys=True, serializer=json_serializer),
    ]

    json_renderer_pretty: list[Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(serializer=pretty_json_serializer),
    ]

    console_renderer: list[Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
        structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
    ]

    formatters = {
        "json": {
            "()": SafeProcessorFormatter,
            "processors": json_renderer,
            "foreign_pre_chain": foreign_pre_chain_processors,
        },
        "json_pretty": {
            "()": SafeProcessorFormatter,
            "processors": json_renderer_pretty,
            "foreign_pre_chain": foreign_pre_chain_processors,
        },
        "plain": {
            "()": SafeProcessorFormatter,
            "processors": console_renderer,
            "foreign_pre_chain": foreign_pre_chain_processors,
        },
    }

    filters = {
        "no_health_check": {
            "()": NoHealthCheckFilter,
        },
    }

    logger_factory = structlog.stdlib.LoggerFactory()

    handlers: dict[str, Any] = {
        "console": {
            "class": logging.StreamHandler,
            "level": "INFO",
            "stream": sys.stdout,
            "formatter": _get_formatter_name(),
            "filters": ["no_health_check"],
        },
        "standard": {
            "class": QueueHandler,
            "level": "INFO",
            "listener": LoggingQueueListener,
            "handlers": ["console"],
            "filters": ["no_health_check"],
        },
    }


def _quiet_logger(level: str) -> dict[str, Any]:
    return {"handlers": ["standard"], "propagate": False, "level": level}


common_logger_config: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": StdLoggingConfig.formatters,
    "handlers": StdLoggingConfig.handlers,
    "root": {
        "handlers": ["standard"],
        "level": "INFO",
    },
    "filters": StdLoggingConfig.filters,
    "loggers": {
        "botocore": _quiet_logger("ERROR"),
        "stripe": _quiet_logger("WARNING"),
        "sqlalchemy.engine": _quiet_logger("WARNING"),
        "alembic": _quiet_logger("INFO"),
        "httpx": _quiet_logger("ERROR"),
        "uvicorn": _quiet_logger("INFO"),
        "uvicorn.error": _quiet_logger("INFO"),
        "uvicorn.access": _quiet_logger("WARNING"),
    },
}
