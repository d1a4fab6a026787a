"""Main application entry-point for polling-manager."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .builder import build_graph
from .config import ManagerConfig, load_config
from .context import LocalElementContext
from .core.registry import ManagerRegistry
from .health import HealthReporter, StatusServer
from .logging import configure_logging
from .scheduling.manager import PollingManager
from .scheduling.table import PollingTable

LOGGER = logging.getLogger(__name__)


class PollingManagerApp:
    """Runs one polling manager from configuration.

    The app owns the manager registry, drives ``check_for_update`` every
    ``tick_seconds`` and optionally serves the HTTP status surface. Ticks and
    HTTP commands run in a worker thread under one lock, so blocking pollers
    never stall the event loop and commands never interleave with a tick.
    """

    def __init__(
        self,
        config: Optional[ManagerConfig] = None,
        *,
        registry: Optional[ManagerRegistry] = None,
    ) -> None:
        self._config = config or load_config()
        self._registry = registry or ManagerRegistry()
        self._context = LocalElementContext(
            agent_id=self._config.element.agent_id,
            element_id=self._config.element.element_id,
        )
        self._table = PollingTable()
        self._health = HealthReporter()
        self._status_server: Optional[StatusServer] = None
        self._stop_event: Optional[asyncio.Event] = None
        # Serialises ticks and status-server commands; both run off the loop.
        self._command_lock = asyncio.Lock()
        self.tick_count = 0
        self.failed_ticks = 0

    @property
    def table(self) -> PollingTable:
        return self._table

    @property
    def manager(self) -> PollingManager:
        return self._registry.get_manager(self._context)

    def initialise(self) -> PollingManager:
        """Build the graph and register the manager for this element.

        Raises:
            GraphConfigurationError: If the configured pollables are invalid.
        """
        return self._registry.add_manager(
            self._context,
            lambda context: PollingManager(context, build_graph(self._config), self._table),
        )

    async def run(self) -> None:
        self._stop_event = asyncio.Event()
        manager = self.initialise()

        LOGGER.info(
            "polling-manager starting with %d pollable(s), tick every %.1fs",
            len(manager.graph),
            self._config.scheduler.tick_seconds,
        )
        await self._health.update("scheduler", True, "starting")
        await self._start_status_server(manager)

        try:
            await self._tick_loop()
        except asyncio.CancelledError:
            LOGGER.info("polling-manager received shutdown signal")
            raise
        finally:
            if self._status_server is not None:
                await self._status_server.stop()
                self._status_server = None

    def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()

    async def tick_once(self) -> bool:
        """Run one scheduling pass, logging instead of raising on failure.

        Returns:
            True when the pass completed.
        """
        self.tick_count += 1
        try:
            async with self._command_lock:
                changed = await asyncio.to_thread(self.manager.check_for_update)
        except Exception as exc:
            self.failed_ticks += 1
            LOGGER.exception("Scheduling pass %d abandoned", self.tick_count)
            await self._health.record_tick_failure(exc)
            return False

        await self._health.record_tick(changed)
        return True

    async def _tick_loop(self) -> None:
        assert self._stop_event is not None
        interval = self._config.scheduler.tick_seconds
        while not self._stop_event.is_set():
            await self.tick_once()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                break
            except asyncio.TimeoutError:
                continue

    async def _start_status_server(self, manager: PollingManager) -> None:
        status = self._config.status
        if not status.enabled or status.port <= 0:
            return

        server = StatusServer(
            self._health, manager, status.host, status.port, lock=self._command_lock
        )
        try:
            await server.start()
        except OSError as exc:
            LOGGER.error("Failed to start status endpoint: %s", exc)
            await self._health.update("status-endpoint", False, str(exc))
        else:
            self._status_server = server
            await self._health.update("status-endpoint", True, None)

    @classmethod
    def start(cls, config: Optional[ManagerConfig] = None) -> None:
        instance = cls(config=config)
        configure_logging(instance._config.logging)
        try:
            asyncio.run(instance.run())
        except KeyboardInterrupt:
            LOGGER.info("polling-manager received shutdown signal")
