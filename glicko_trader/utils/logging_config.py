# glicko_trader/utils/logging_config.py
"""
Logging configuration for the command line tools.

Handlers are attached to the ``glicko_trader`` package logger so every
module-level logger in the package inherits them while loggers of other
libraries keep their own configuration.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import List, Optional

from ..models.config import LoggingConfig


PACKAGE_LOGGER = "glicko_trader"


def _build_handlers(config: LoggingConfig, stream) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]

    if config.file:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding='utf-8'
        ))

    return handlers


def setup_logging(
    config: Optional[LoggingConfig] = None,
    level: Optional[str] = None,
    stream=None,
) -> logging.Logger:
    """
    Configure the package logger from a LoggingConfig.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        config: Logging section of the app config, defaults when omitted
        level: Level overriding ``config.level`` (e.g. DEBUG for --verbose)
        stream: Console stream, stderr by default so stdout stays machine readable

    Returns:
        The configured package logger
    """
    config = config or LoggingConfig()
    numeric_level = logging.getLevelName((level or config.level).upper())
    formatter = logging.Formatter(config.format)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    package_logger.setLevel(numeric_level)
    for handler in _build_handlers(config, stream):
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    return package_logger
