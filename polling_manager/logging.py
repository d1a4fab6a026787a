"""Logging setup for the polling-manager service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .config import LoggingConfig

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Loggers that emit once per tick or per poll.
TICK_LOGGERS = (
    "polling_manager.scheduling.scheduler",
    "polling_manager.pollers",
)


def _level(name: Optional[str], default: int) -> int:
    if not name:
        return default
    return getattr(logging, name.upper(), default)


def configure_logging(config: "LoggingConfig", *, log_requests: bool = False) -> None:
    """Install console and optional file handlers from ``[logging]``.

    ``tick_level`` applies only to the per-tick loggers so a busy graph can
    stay quiet while state changes and operator notices are still logged.
    HTTP access lines from the status server are dropped unless
    ``log_requests`` is set.
    """

    logging.captureWarnings(True)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    level = _level(config.level, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)

    if config.path is not None:
        config.path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    tick_level = _level(config.tick_level, level)
    for name in TICK_LOGGERS:
        logging.getLogger(name).setLevel(tick_level)

    if not log_requests:
        logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
