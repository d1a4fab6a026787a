"""Dependency graph holding pollable units and their parent/child relations.

Units live in an arena keyed by row key ("1", "2", ... in insertion order).
Relations are kept as ordered, de-duplicated key lists, and every traversal
tracks the keys it has already visited.

Construction is two-phase: build the graph from the full unit list, then wire
relations by name or key. Topology is append-only afterwards.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from .errors import GraphConfigurationError, InvalidArgumentError, InvalidStateError
from .models import PollableUnit

LOGGER = logging.getLogger(__name__)


class DependencyGraph:
    """Arena of pollable units plus the "child depends on parent" relation."""

    def __init__(self, units: Sequence[Optional[PollableUnit]]) -> None:
        """Create the graph.

        Args:
            units: Units in display order. Row keys are assigned from 1.

        Raises:
            GraphConfigurationError: If ``units`` holds ``None`` or two units
                share a name.
        """
        self._units: Dict[str, PollableUnit] = {}
        self._keys_by_name: Dict[str, str] = {}
        self._parents: Dict[str, List[str]] = {}
        self._children: Dict[str, List[str]] = {}

        for index, unit in enumerate(units, start=1):
            if unit is None:
                raise GraphConfigurationError("Units can't contain None values")
            if unit.name in self._keys_by_name:
                raise GraphConfigurationError(f"Duplicate name: {unit.name}")

            key = str(index)
            unit.key = key
            self._units[key] = unit
            self._keys_by_name[unit.name] = key
            self._parents[key] = []
            self._children[key] = []

    def __len__(self) -> int:
        return len(self._units)

    def __iter__(self) -> Iterator[PollableUnit]:
        return iter(self._units.values())

    def __contains__(self, key: object) -> bool:
        return key in self._units

    def keys(self) -> list[str]:
        return list(self._units)

    def get(self, key: str) -> PollableUnit:
        """Return the unit stored under ``key``.

        Raises:
            InvalidArgumentError: If ``key`` is empty.
            InvalidStateError: If no unit has that key.
        """
        if not key:
            raise InvalidArgumentError("Row key can't be empty")
        unit = self._units.get(key)
        if unit is None:
            raise InvalidStateError(f"Row key {key!r} doesn't exist in the graph")
        return unit

    def by_name(self, name: str) -> PollableUnit:
        key = self._keys_by_name.get(name)
        if key is None:
            raise InvalidStateError(f"Unknown pollable: {name!r}")
        return self._units[key]

    def resolve(self, ref: str) -> str:
        """Resolve a unit name or row key to a row key."""
        if ref in self._keys_by_name:
            return self._keys_by_name[ref]
        if ref in self._units:
            return ref
        raise InvalidStateError(f"Unknown pollable: {ref!r}")

    def rename(self, key: str, new_name: str) -> None:
        unit = self.get(key)
        if new_name == unit.name:
            return
        if not new_name:
            raise InvalidArgumentError("Pollable name can't be empty")
        if new_name in self._keys_by_name:
            raise InvalidArgumentError(f"Duplicate name: {new_name}")

        del self._keys_by_name[unit.name]
        self._keys_by_name[new_name] = key
        LOGGER.info("Renamed pollable %s: %s -> %s", key, unit.name, new_name)
        unit.name = new_name

    def add_children(self, unit: str, *children: str) -> None:
        """Declare ``children`` as dependents of ``unit``.

        Both sides of the relation are updated; repeated calls are no-ops.
        Units may be referenced by name or row key.
        """
        parent_key = self._resolve_for_wiring(unit)
        for child in children:
            self._link(parent_key, self._resolve_for_wiring(child))

    def add_parents(self, unit: str, *parents: str) -> None:
        """Declare ``unit`` as a dependent of each of ``parents``."""
        child_key = self._resolve_for_wiring(unit)
        for parent in parents:
            self._link(self._resolve_for_wiring(parent), child_key)

    def parents(self, key: str) -> list[PollableUnit]:
        return [self._units[item] for item in self._parents[self.get(key).key]]

    def children(self, key: str) -> list[PollableUnit]:
        return [self._units[item] for item in self._children[self.get(key).key]]

    def parent_keys(self, key: str) -> list[str]:
        return list(self._parents[self.get(key).key])

    def child_keys(self, key: str) -> list[str]:
        return list(self._children[self.get(key).key])

    def check_dependencies(self, key: str) -> bool:
        """True when every parent of ``key`` is enabled (vacuously for roots)."""
        return all(parent.state.is_enabled for parent in self.parents(key))

    def descendants(self, key: str) -> list[str]:
        """Keys reachable through child edges, breadth first, without ``key``."""
        return self._walk(key, self._children)

    def ancestors(self, key: str) -> list[str]:
        """Keys reachable through parent edges, breadth first, without ``key``."""
        return self._walk(key, self._parents)

    def relations(self) -> Dict[str, Dict[str, list[str]]]:
        return {
            key: {
                "parents": list(self._parents[key]),
                "children": list(self._children[key]),
            }
            for key in self._units
        }

    def _walk(self, key: str, edges: Dict[str, List[str]]) -> list[str]:
        start = self.get(key).key
        seen = {start}
        order: list[str] = []
        queue = deque(edges[start])
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            order.append(current)
            queue.extend(edges[current])
        return order

    def _resolve_for_wiring(self, ref: str) -> str:
        try:
            return self.resolve(ref)
        except InvalidStateError as exc:
            raise GraphConfigurationError(str(exc)) from exc

    def _link(self, parent: str, child: str) -> None:
        # Cycles are accepted here; traversals and cascades track visited keys.
        if child not in self._children[parent]:
            self._children[parent].append(child)
        if parent not in self._parents[child]:
            self._parents[child].append(parent)


def build_graph(
    units: Iterable[Optional[PollableUnit]],
    relations: Optional[Dict[str, Iterable[str]]] = None,
) -> DependencyGraph:
    """Build a graph and wire ``relations`` (parent name -> child names)."""
    graph = DependencyGraph(list(units))
    for parent, children in (relations or {}).items():
        graph.add_children(parent, *children)
    return graph
