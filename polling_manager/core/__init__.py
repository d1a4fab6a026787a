"""Core primitives for polling-manager."""

from .errors import (
    GraphConfigurationError,
    InvalidArgumentError,
    InvalidStateError,
    ManagerNotInitializedError,
    PollingManagerError,
    SchedulingError,
)
from .graph import DependencyGraph, build_graph
from .models import (
    Column,
    ContextMenuOption,
    PeriodType,
    PollableUnit,
    State,
    Status,
    TableRow,
    UnitSnapshot,
)
from .protocols import EditableSink, ElementContext, Poller, PresentationSink
from .registry import ManagerRegistry, element_key

__all__ = [
    "Column",
    "ContextMenuOption",
    "DependencyGraph",
    "EditableSink",
    "ElementContext",
    "GraphConfigurationError",
    "InvalidArgumentError",
    "InvalidStateError",
    "ManagerNotInitializedError",
    "ManagerRegistry",
    "PeriodType",
    "PollableUnit",
    "Poller",
    "PollingManagerError",
    "PresentationSink",
    "SchedulingError",
    "State",
    "Status",
    "TableRow",
    "UnitSnapshot",
    "build_graph",
    "element_key",
]
