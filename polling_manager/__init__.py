"""Dependency-aware periodic polling scheduler."""

from .core import (
    DependencyGraph,
    ManagerRegistry,
    PeriodType,
    PollableUnit,
    State,
    Status,
)
from .scheduling import PollingManager, PollingTable

__all__ = [
    "DependencyGraph",
    "ManagerRegistry",
    "PeriodType",
    "PollableUnit",
    "PollingManager",
    "PollingTable",
    "State",
    "Status",
]

__version__ = "0.1.0"
