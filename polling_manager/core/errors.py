"""Error taxonomy for the polling manager."""

from __future__ import annotations


class PollingManagerError(RuntimeError):
    """Base class for polling manager failures."""


class GraphConfigurationError(PollingManagerError, ValueError):
    """Raised when the pollable set or its relations are misconfigured."""


class SchedulingError(PollingManagerError):
    """Raised when the scheduler meets a unit it cannot reason about."""


class InvalidArgumentError(PollingManagerError, ValueError):
    """Raised when an external command or row payload is malformed."""


class InvalidStateError(PollingManagerError):
    """Raised when a command references a row the graph does not know."""


class ManagerNotInitializedError(PollingManagerError):
    """Raised when a manager is requested before it was registered."""
