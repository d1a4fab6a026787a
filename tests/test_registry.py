"""Tests for the per-element manager registry."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List

import pytest

from polling_manager.core.errors import ManagerNotInitializedError
from polling_manager.core.graph import DependencyGraph
from polling_manager.core.registry import ManagerRegistry, element_key
from polling_manager.scheduling.manager import PollingManager
from polling_manager.scheduling.table import PollingTable


@dataclass
class Context:
    agent_id: int
    element_id: int
    messages: List[str] = field(default_factory=list)

    def show_information_message(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def factory(units_factory):
    created = []

    def _create(context):
        manager = PollingManager(context, DependencyGraph(units_factory(["A"])), PollingTable())
        created.append(manager)
        return manager

    _create.created = created
    return _create


def test_element_key_joins_agent_and_element() -> None:
    assert element_key(Context(agent_id=12, element_id=345)) == "12/345"


def test_add_manager_creates_once_and_refreshes_context(factory) -> None:
    registry = ManagerRegistry()
    first_context = Context(1, 2)
    second_context = Context(1, 2)

    first = registry.add_manager(first_context, factory)
    second = registry.add_manager(second_context, factory)

    assert first is second
    assert len(factory.created) == 1
    assert second.context is second_context


def test_get_manager_refreshes_context(factory) -> None:
    registry = ManagerRegistry()
    registry.add_manager(Context(1, 2), factory)
    fresh = Context(1, 2)

    manager = registry.get_manager(fresh)

    assert manager.context is fresh


def test_get_manager_before_add_fails() -> None:
    with pytest.raises(ManagerNotInitializedError):
        ManagerRegistry().get_manager(Context(1, 2))


def test_elements_get_separate_managers(factory) -> None:
    registry = ManagerRegistry()

    first = registry.add_manager(Context(1, 1), factory)
    second = registry.add_manager(Context(1, 2), factory)

    assert first is not second
    assert len(registry) == 2
    assert Context(1, 2) in registry


def test_concurrent_registration_creates_one_manager_per_element(factory) -> None:
    registry = ManagerRegistry()
    contexts = [Context(1, index % 4) for index in range(40)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        managers = list(pool.map(lambda ctx: registry.add_manager(ctx, factory), contexts))

    assert len(registry) == 4
    assert len(factory.created) == 4
    assert len({id(manager) for manager in managers}) == 4

