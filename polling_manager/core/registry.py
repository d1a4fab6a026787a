"""Registry keeping one polling manager per monitored element.

Managers are created lazily on first registration and reused afterwards.
Every access refreshes the element context handle held by the manager,
because the hosting process hands out a new handle per invocation.

Only the insert path is guarded by a lock: different driver threads may
register managers for different elements concurrently, while each manager is
itself driven serially.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import TYPE_CHECKING, Callable, Dict

from .errors import ManagerNotInitializedError
from .protocols import ElementContext

if TYPE_CHECKING:
    from ..scheduling.manager import PollingManager

LOGGER = logging.getLogger(__name__)

ManagerFactory = Callable[[ElementContext], "PollingManager"]


def element_key(context: ElementContext) -> str:
    """Compose the registry key ``"<agent_id>/<element_id>"``."""
    return f"{context.agent_id}/{context.element_id}"


class ManagerRegistry:
    """Explicitly owned mapping from element identity to polling manager.

    Usage:
        registry = ManagerRegistry()
        manager = registry.add_manager(context, lambda ctx: PollingManager(ctx, graph, table))
        ...
        registry.get_manager(context).check_for_update()
    """

    def __init__(self) -> None:
        self._managers: Dict[str, "PollingManager"] = {}
        self._lock = Lock()

    def add_manager(
        self, context: ElementContext, factory: ManagerFactory
    ) -> "PollingManager":
        """Return the element's manager, creating it with ``factory`` if needed."""
        key = element_key(context)
        manager = self._managers.get(key)
        if manager is None:
            with self._lock:
                manager = self._managers.get(key)
                if manager is None:
                    manager = factory(context)
                    self._managers[key] = manager
                    LOGGER.info("Registered polling manager for element %s", key)

        manager.context = context
        return manager

    def get_manager(self, context: ElementContext) -> "PollingManager":
        """Return the registered manager with a refreshed context.

        Raises:
            ManagerNotInitializedError: If ``add_manager`` was never called
                for this element.
        """
        key = element_key(context)
        manager = self._managers.get(key)
        if manager is None:
            raise ManagerNotInitializedError(
                f"Polling manager for element {key} is not initialized, "
                "please call add_manager first"
            )

        manager.context = context
        return manager

    def __contains__(self, context: object) -> bool:
        return element_key(context) in self._managers  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._managers)
