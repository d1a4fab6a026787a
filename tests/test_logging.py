import logging
from pathlib import Path

import pytest

from polling_manager.config import LoggingConfig
from polling_manager.logging import TICK_LOGGERS, configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    for name in (*TICK_LOGGERS, "aiohttp.access"):
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_file_handler_writes_to_configured_path(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "polling-manager.log"

    configure_logging(LoggingConfig(level="DEBUG", path=log_path))
    logging.getLogger("polling_manager.test").info("ready")

    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "polling_manager.test | ready" in log_path.read_text(encoding="utf-8")
    assert logging.getLogger().level == logging.DEBUG


def test_tick_level_only_applies_to_tick_loggers() -> None:
    configure_logging(LoggingConfig(level="INFO", path=None, tick_level="warning"))

    for name in TICK_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
    assert logging.getLogger("polling_manager.scheduling.state_controller").level == logging.NOTSET


def test_tick_loggers_follow_root_level_by_default() -> None:
    configure_logging(LoggingConfig(level="DEBUG", path=None))

    assert logging.getLogger(TICK_LOGGERS[0]).level == logging.DEBUG
    assert logging.getLogger("aiohttp.access").level == logging.WARNING
