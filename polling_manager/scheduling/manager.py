"""Polling manager facade tying the graph to scheduling, state and the table."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from ..core.graph import DependencyGraph
from ..core.models import Column, State, TableRow
from ..core.protocols import ElementContext, PresentationSink
from .dispatcher import CommandDispatcher
from .scheduler import PollScheduler
from .state_controller import StateChange, StateController

LOGGER = logging.getLogger(__name__)


class PollingManager:
    """Owns one dependency graph and drives it from ticks and commands.

    The manager fills the presentation sink once at construction; afterwards
    only incremental upserts are pushed.
    """

    def __init__(
        self,
        context: ElementContext,
        graph: DependencyGraph,
        sink: PresentationSink,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.context = context
        self._graph = graph
        self._sink = sink
        self._scheduler = PollScheduler(graph, clock=clock)
        self._controller = StateController(graph, notify=self._show_message)
        self._dispatcher = CommandDispatcher(
            graph,
            self._scheduler,
            self._controller,
            sink,
            publish=self.publish_all,
        )

        self._sink.replace_all(self.rows())
        LOGGER.info("Polling manager ready with %d pollable(s)", len(graph))

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._dispatcher

    def check_for_update(self) -> list[str]:
        """Run one scheduling tick and publish the rows that were polled."""
        changed = self._scheduler.tick()
        if changed:
            self._sink.upsert([TableRow.from_unit(self._graph.get(key)) for key in changed])
        return changed

    def poll_row(self, key: str) -> bool:
        polled = self._scheduler.poll_row(key)
        if polled:
            self._sink.upsert([TableRow.from_unit(self._graph.get(key))])
        return polled

    def request_state(self, key: str, state: State) -> StateChange:
        change = self._controller.request_state(key, state)
        self.publish_all()
        return change

    def update_row(self, key: str, column: Column) -> Optional[StateChange]:
        return self._dispatcher.update_row(key, column)

    def apply_edit(self, key: str, column: Column, value: Any) -> Optional[StateChange]:
        return self._dispatcher.apply_edit(key, column, value)

    def handle_context_menu(self, payload: Sequence[str]) -> None:
        self._dispatcher.handle_context_menu(payload)

    def rows(self) -> list[TableRow]:
        return [TableRow.from_unit(unit) for unit in self._graph]

    def publish_all(self) -> None:
        self._sink.upsert(self.rows())

    def _show_message(self, message: str) -> None:
        self.context.show_information_message(message)
