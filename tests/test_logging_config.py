import logging

import pytest
from pydantic import ValidationError

from glicko_trader.models import LoggingConfig
from glicko_trader.utils.logging_config import PACKAGE_LOGGER, setup_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def test_file_handler_writes_package_logs(tmp_path, package_logger):
    log_file = tmp_path / "logs" / "glicko.log"
    config = LoggingConfig(level="info", format="%(levelname)s %(message)s", file=str(log_file))

    setup_logging(config)
    logging.getLogger("glicko_trader.core.glicko").info("rated 3 candles")
    logging.getLogger("glicko_trader.core.glicko").debug("hidden")

    assert log_file.read_text(encoding="utf-8") == "INFO rated 3 candles\n"


def test_repeated_setup_replaces_handlers(package_logger):
    setup_logging(LoggingConfig())
    setup_logging(LoggingConfig(), level="DEBUG")

    assert len(package_logger.handlers) == 1
    assert package_logger.level == logging.DEBUG


def test_unknown_level_is_rejected():
    with pytest.raises(ValidationError):
        LoggingConfig(level="chatty")
