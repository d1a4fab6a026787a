from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

import pytest

from polling_manager.core.graph import DependencyGraph
from polling_manager.core.models import PollableUnit
from polling_manager.scheduling.manager import PollingManager
from polling_manager.scheduling.table import PollingTable


class StubPoller:
    """Poller returning queued results (or a fixed one) and counting calls."""

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.calls = 0

    def poll(self) -> bool:
        self.calls += 1
        return self.result


class FakeClock:
    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class FakeContext:
    agent_id: int = 1
    element_id: int = 7
    messages: List[str] = field(default_factory=list)

    def show_information_message(self, message: str) -> None:
        self.messages.append(message)


def make_units(names: Iterable[str], **kwargs) -> list[PollableUnit]:
    return [PollableUnit(name=name, poller=StubPoller(), **kwargs) for name in names]


@pytest.fixture
def units_factory():
    """Build stub-polled units by name; extra kwargs go to every unit."""
    return make_units


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def context() -> FakeContext:
    return FakeContext()


@pytest.fixture
def org_graph() -> DependencyGraph:
    """Owner -> CEO -> CTO -> Lead -> Senior, plus CFO under Owner and CEO."""
    graph = DependencyGraph(make_units(["Owner", "CEO", "CFO", "CTO", "Lead", "Senior"]))
    graph.add_children("Owner", "CEO", "CFO", "CTO")
    graph.add_children("CEO", "CFO", "CTO", "Lead")
    graph.add_children("CTO", "Lead")
    graph.add_parents("Senior", "Lead")
    return graph


@pytest.fixture
def manager(context, org_graph, clock) -> PollingManager:
    return PollingManager(context, org_graph, PollingTable(), clock=clock)
