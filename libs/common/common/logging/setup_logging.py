from logging.config import dictConfig
from typing import Any

import structlog

from common.logging.std_logging_config import StdLoggingConfig, common_logger_config
from common.utils.utils import deep_merge


def setup_logging(logging_config: dict[str, Any] | None = None, level: str | None = None) -> None:
    overrides = dict(logging_config or {})
    if level:
        overrides = deep_merge(overrides, {"root": {"level": level.upper()}})
    dictConfig(deep_merge(common_logger_config, overrides))

    structlog.configure(
        processors=StdLoggingConfig.structlog_processors,
        # `wrapper_class` imitates the API of `logging.Logger` and accepts keyword fields.
        wrapper_class=structlog.stdlib.BoundLogger,
        # Final rendering happens in the stdlib formatter selected by dictConfig.
        logger_factory=StdLoggingConfig.logger_factory,
        cache_logger_on_first_use=True,
    )
