"""Constants used across the polling-manager package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "polling-manager"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_LOG_PATH = Path.home() / ".local" / "state" / APP_NAME / f"{APP_NAME}.log"

DEFAULT_TICK_SECONDS = 1.0
MIN_TICK_SECONDS = 0.1
DEFAULT_PERIOD_SECONDS = 30.0

DEFAULT_STATUS_HOST = "127.0.0.1"

# Row projection sentinels shown to the operator table.
NEVER_POLLED = -1.0
DISABLED_STATUS_CODE = -1
