"""Enable/disable state machine with cascading propagation.

Plain ``ENABLED``/``DISABLED`` requests respect the dependency contract: a
unit can't be disabled while a child is enabled, nor enabled while a parent
is disabled. Rejected requests are reverted and the operator is told which
relatives block them.

``FORCE_DISABLED`` and ``FORCE_ENABLED`` always succeed and push the same
forced request down to every child (disable) or up to every parent (enable).
Cascades re-run the transition on each relative, with a visited set per
request so relation cycles terminate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Set

from ..core.graph import DependencyGraph
from ..core.models import State, Status

LOGGER = logging.getLogger(__name__)

Notifier = Callable[[str], None]


@dataclass
class StateChange:
    """Outcome of one state request, including everything it cascaded to.

    Attributes:
        key: Row key the request targeted.
        requested: State the operator asked for.
        state: State the unit ended up in.
        accepted: False when a guard reverted the request on ``key`` itself.
        affected: Keys whose state or status was touched, in visit order.
        notices: Operator messages emitted while handling the request.
    """

    key: str
    requested: State
    state: State
    accepted: bool
    affected: list[str] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)


class StateController:
    """Applies state requests to units of one dependency graph."""

    def __init__(self, graph: DependencyGraph, *, notify: Optional[Notifier] = None) -> None:
        self._graph = graph
        self._notify = notify

    def request_state(self, key: str, requested: State) -> StateChange:
        """Apply ``requested`` to the unit at ``key`` and cascade as needed."""
        unit = self._graph.get(key)
        change = StateChange(key=key, requested=requested, state=unit.state, accepted=True)
        visited: Set[str] = set()

        LOGGER.info("State request for %s: %s", unit.name, requested.name)
        change.accepted = self._transition(key, requested, unit.status, visited, change)
        change.state = unit.state
        return change

    def _transition(
        self,
        key: str,
        requested: State,
        prior_status: Status,
        visited: Set[str],
        change: StateChange,
    ) -> bool:
        unit = self._graph.get(key)
        visited.add(key)
        change.affected.append(key)

        if requested == State.DISABLED:
            blockers = [child for child in self._graph.children(key) if child.state.is_enabled]
            if blockers:
                unit.state = State.ENABLED
                unit.status = _restored(prior_status)
                self._emit(
                    change,
                    f"Unable to disable [{unit.name}] because the following rows "
                    "are dependent on it:\n"
                    + "\n".join(child.name for child in blockers)
                    + "\nPlease disable them first or use [Force Disable].",
                )
                return False

            unit.state = State.DISABLED
            unit.status = Status.DISABLED
            self._cascade(self._graph.child_keys(key), State.DISABLED, visited, change)
            return True

        if requested == State.ENABLED:
            blockers = [parent for parent in self._graph.parents(key) if parent.state.is_disabled]
            if blockers:
                unit.state = State.DISABLED
                unit.status = Status.DISABLED
                self._emit(
                    change,
                    f"Unable to enable [{unit.name}] because it depends on the "
                    "following rows:\n"
                    + "\n".join(parent.name for parent in blockers)
                    + "\nPlease enable them first or use [Force Enable].",
                )
                return False

            unit.state = State.ENABLED
            unit.status = _restored(prior_status)
            return True

        if requested == State.FORCE_DISABLED:
            unit.state = State.DISABLED
            unit.status = Status.DISABLED
            self._cascade(self._graph.child_keys(key), State.FORCE_DISABLED, visited, change)
            return True

        if requested == State.FORCE_ENABLED:
            unit.state = State.ENABLED
            unit.status = _restored(prior_status)
            self._cascade(self._graph.parent_keys(key), State.FORCE_ENABLED, visited, change)
            return True

        raise ValueError(f"Unhandled state request: {requested!r}")

    def _cascade(
        self,
        keys: list[str],
        requested: State,
        visited: Set[str],
        change: StateChange,
    ) -> None:
        for key in keys:
            if key in visited:
                continue

            unit = self._graph.get(key)
            prior_status = unit.status
            # Transient marker; the transition below settles the final status.
            unit.status = Status.DISABLED
            unit.state = requested
            LOGGER.debug("Cascading %s to %s", requested.name, unit.name)
            self._transition(key, requested, prior_status, visited, change)

    def _emit(self, change: StateChange, message: str) -> None:
        change.notices.append(message)
        LOGGER.info(message.replace("\n", " "))
        if self._notify is not None:
            self._notify(message)


def _restored(prior_status: Status) -> Status:
    if prior_status == Status.DISABLED:
        return Status.NOT_POLLED
    return prior_status
