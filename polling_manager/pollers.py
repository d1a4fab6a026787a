"""Reference poller variants.

The scheduler only depends on the ``Poller`` protocol; these implementations
cover configuration-driven graphs and tests.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Callable

LOGGER = logging.getLogger(__name__)


class NoopPoller:
    """Always succeeds; useful for grouping units that only gate children."""

    def poll(self) -> bool:
        return True


class CallablePoller:
    """Delegates the poll to a zero-argument callable returning a truthy value."""

    def __init__(self, func: Callable[[], object]) -> None:
        self._func = func

    def poll(self) -> bool:
        return bool(self._func())


@dataclass(slots=True)
class TcpPoller:
    """Succeeds when a TCP connection to ``host:port`` opens within ``timeout``."""

    host: str
    port: int
    timeout: float = 2.0

    def poll(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as exc:
            LOGGER.debug("TCP probe %s:%s failed: %s", self.host, self.port, exc)
            return False
