"""Protocol definitions for the collaborators the scheduler talks to."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from .models import Column, TableRow


@runtime_checkable
class Poller(Protocol):
    """Capability that fetches data for a single pollable unit."""

    def poll(self) -> bool:
        """Run one poll.

        Returns:
            True when the poll succeeded. A False return is an expected
            outcome and is recorded as a failed poll, not raised.
        """
        ...


class PresentationSink(Protocol):
    """Operator-facing table that mirrors the unit state."""

    def replace_all(self, rows: Sequence["TableRow"]) -> None:
        """Replace the whole table content (delete then insert)."""
        ...

    def upsert(self, rows: Sequence["TableRow"]) -> None:
        """Insert or update the given rows, never deleting absent ones."""
        ...

    def get_row(self, key: str) -> list[Any]:
        """Return the raw column values of one row."""
        ...


@runtime_checkable
class EditableSink(PresentationSink, Protocol):
    """Presentation sink whose cells can be written by an operator edit."""

    def set_cell(self, key: str, column: "Column", value: Any) -> None:
        """Store ``value`` in one cell before the edit is handled."""
        ...


class ElementContext(Protocol):
    """Handle on the monitored element hosting a polling manager.

    ``agent_id`` and ``element_id`` identify the element for registry lookup.
    """

    agent_id: int
    element_id: int

    def show_information_message(self, message: str) -> None:
        """Surface an informational message to the operator."""
        ...
