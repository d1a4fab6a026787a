"""Scheduling engine: tick loop, state cascades and operator commands."""

from .dispatcher import CommandDispatcher
from .manager import PollingManager
from .scheduler import PollScheduler
from .state_controller import StateChange, StateController
from .table import PollingTable

__all__ = [
    "CommandDispatcher",
    "PollScheduler",
    "PollingManager",
    "PollingTable",
    "StateChange",
    "StateController",
]
