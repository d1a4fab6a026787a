"""Translate operator commands into scheduler and state controller calls."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Iterable, Optional, Sequence

from ..core.errors import InvalidArgumentError, InvalidStateError, PollingManagerError
from ..core.graph import DependencyGraph
from ..core.models import (
    Column,
    ContextMenuOption,
    PeriodType,
    State,
    Status,
    UnitSnapshot,
)
from ..core.protocols import EditableSink, PresentationSink
from .scheduler import PollScheduler
from .state_controller import StateChange, StateController

LOGGER = logging.getLogger(__name__)


class CommandDispatcher:
    """Handles row edits and context-menu actions for one graph.

    Every command ends by pushing the current rows to the presentation sink
    without deleting anything, since a single edit may cascade to relatives.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        scheduler: PollScheduler,
        controller: StateController,
        sink: PresentationSink,
        *,
        publish: Callable[[], None],
    ) -> None:
        self._graph = graph
        self._scheduler = scheduler
        self._controller = controller
        self._sink = sink
        self._publish = publish

    def update_row(self, key: str, column: Column) -> Optional[StateChange]:
        """React to an edit of ``column`` on the row stored under ``key``.

        The edited row is read back from the sink, compared with the
        canonical unit and the resulting values are applied to the graph.

        Returns:
            The ``StateChange`` when the state column was edited, else None.

        Raises:
            InvalidArgumentError: If ``key`` is empty or the row is malformed.
            InvalidStateError: If ``key`` is not part of the graph.
        """
        canonical = self._graph.get(key)
        before = UnitSnapshot.from_unit(canonical)
        after = UnitSnapshot.from_row(self._sink.get_row(key))
        change: Optional[StateChange] = None

        if column == Column.PERIOD:
            after = dataclasses.replace(after, period_type=PeriodType.CUSTOM)
        else:
            # The table shows the default period while in default mode, so the
            # stored custom period only changes through a period edit.
            after = dataclasses.replace(after, period=before.period)

        if column == Column.POLL:
            self._scheduler.poll_row(key)
        elif column == Column.STATE:
            change = self._controller.request_state(key, after.state)

        self._apply(before, after)
        self._publish()
        return change

    def apply_edit(self, key: str, column: Column, value: Any) -> Optional[StateChange]:
        """Write ``value`` into the table cell, then handle it as an edit.

        ``POLL`` edits carry no stored value; any value triggers a poll.
        """
        if column == Column.POLL:
            return self.update_row(key, column)

        if not isinstance(self._sink, EditableSink):
            raise InvalidArgumentError("Sink does not support cell edits")
        self._graph.get(key)
        self._sink.set_cell(key, column, _coerce(column, value))
        try:
            return self.update_row(key, column)
        except PollingManagerError:
            # Put the canonical values back into the edited cell.
            self._publish()
            raise

    def handle_context_menu(self, payload: Any) -> None:
        """Run a context-menu action.

        Args:
            payload: ``[trigger, option, *names]`` as strings. ``option`` is the
                numeric ``ContextMenuOption``; ``names`` are only used by the
                selected-row actions.

        Raises:
            InvalidArgumentError: If the payload is not a sequence of strings
                or the option can't be parsed. Nothing is changed in that case.
        """
        if isinstance(payload, (str, bytes)) or not isinstance(payload, Sequence):
            raise InvalidArgumentError("Context menu payload must be a list of strings")
        if len(payload) < 2 or not all(isinstance(item, str) for item in payload):
            raise InvalidArgumentError("Context menu payload must be a list of strings")

        try:
            option = int(payload[1])
        except ValueError as exc:
            raise InvalidArgumentError(
                f"Unable to parse selected option from context menu: {payload[1]!r}"
            ) from exc

        names = list(payload[2:])
        if option == ContextMenuOption.POLL_ALL:
            self.poll_all()
        elif option == ContextMenuOption.DISABLE_ALL:
            self.disable_all()
        elif option == ContextMenuOption.ENABLE_ALL:
            self.enable_all()
        elif option == ContextMenuOption.DISABLE_SELECTED:
            self.disable_selected(names)
        elif option == ContextMenuOption.ENABLE_SELECTED:
            self.enable_selected(names)
        else:
            LOGGER.warning("Ignoring unknown context menu option %s", option)

    def poll_all(self) -> None:
        for key in self._graph.keys():
            self._scheduler.poll_row(key)
        self._publish()

    def disable_all(self) -> None:
        self._set_states(self._graph.keys(), State.DISABLED)

    def enable_all(self) -> None:
        self._set_states(self._graph.keys(), State.ENABLED)

    def disable_selected(self, names: Iterable[str]) -> None:
        self._set_states(self._resolve(names), State.DISABLED)

    def enable_selected(self, names: Iterable[str]) -> None:
        self._set_states(self._resolve(names), State.ENABLED)

    def _resolve(self, names: Iterable[str]) -> list[str]:
        keys: list[str] = []
        for name in names:
            try:
                keys.append(self._graph.resolve(name))
            except InvalidStateError as exc:
                raise InvalidArgumentError(f"Unknown pollable in selection: {name!r}") from exc
        return keys

    def _set_states(self, keys: Sequence[str], state: State) -> None:
        # Bulk overrides bypass the dependency guards.
        for key in keys:
            unit = self._graph.get(key)
            unit.state = state
            if state.is_disabled:
                unit.status = Status.DISABLED
            elif unit.status == Status.DISABLED:
                unit.status = Status.NOT_POLLED
        LOGGER.info("Set %d pollable(s) to %s", len(keys), state.name)
        self._publish()

    def _apply(self, before: UnitSnapshot, after: UnitSnapshot) -> None:
        unit = self._graph.get(before.key)
        if after.name != before.name:
            self._graph.rename(before.key, after.name)
        unit.period = after.period
        unit.default_period = after.default_period
        unit.period_type = after.period_type


def _coerce(column: Column, value: Any) -> Any:
    """Convert an external cell value into the stored column representation."""
    try:
        if column == Column.PERIOD_TYPE:
            if isinstance(value, str) and not value.strip().lstrip("-").isdigit():
                return int(PeriodType[value.strip().upper()])
            return int(PeriodType(int(value)))
        if column == Column.STATE:
            if isinstance(value, str) and not value.strip().lstrip("-").isdigit():
                return int(State[value.strip().upper()])
            return int(State(int(value)))
        if column in (Column.PERIOD, Column.DEFAULT_PERIOD):
            period = float(value)
            if period < 0:
                raise ValueError("period can't be negative")
            return period
        if column == Column.NAME:
            return str(value)
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"Invalid value for {column.value}: {value!r}") from exc

    raise InvalidArgumentError(f"Column {column.value!r} is not editable")
