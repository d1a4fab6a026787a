"""Data model for pollable units and their operator-table projection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Optional, Sequence

from .. import constants
from .errors import InvalidArgumentError
from .protocols import Poller


class PeriodType(IntEnum):
    DEFAULT = 0
    CUSTOM = 1


class Status(IntEnum):
    NOT_POLLED = 0
    SUCCEEDED = 1
    FAILED = 2
    DISABLED = 3


class State(IntEnum):
    DISABLED = 0
    ENABLED = 1
    FORCE_DISABLED = 2
    FORCE_ENABLED = 3

    @property
    def is_enabled(self) -> bool:
        return self in (State.ENABLED, State.FORCE_ENABLED)

    @property
    def is_disabled(self) -> bool:
        return self in (State.DISABLED, State.FORCE_DISABLED)


class Column(str, Enum):
    """Operator table columns that can carry an edit event."""

    KEY = "key"
    NAME = "name"
    PERIOD = "period"
    DEFAULT_PERIOD = "default_period"
    PERIOD_TYPE = "period_type"
    LAST_POLL = "last_poll"
    STATUS = "status"
    POLL = "poll"
    STATE = "state"


class ContextMenuOption(IntEnum):
    POLL_ALL = 1
    DISABLE_ALL = 2
    ENABLE_ALL = 3
    DISABLE_SELECTED = 4
    ENABLE_SELECTED = 5


# Field order of a raw table row as returned by ``PresentationSink.get_row``.
ROW_FIELDS: tuple[Column, ...] = (
    Column.KEY,
    Column.NAME,
    Column.PERIOD,
    Column.DEFAULT_PERIOD,
    Column.PERIOD_TYPE,
    Column.LAST_POLL,
    Column.STATUS,
    Column.STATE,
)


@dataclass(slots=True, eq=False)
class PollableUnit:
    """A named, independently schedulable node of the dependency graph.

    Relations are not stored here; the owning ``DependencyGraph`` keeps them
    as key adjacency lists. ``key`` is assigned when the unit joins a graph.
    """

    name: str
    poller: Poller
    period: float = constants.DEFAULT_PERIOD_SECONDS
    default_period: float = constants.DEFAULT_PERIOD_SECONDS
    period_type: PeriodType = PeriodType.DEFAULT
    last_poll: Optional[datetime] = None
    status: Status = Status.NOT_POLLED
    state: State = State.ENABLED
    key: Optional[str] = None

    def poll(self) -> bool:
        return bool(self.poller.poll())

    @property
    def effective_period(self) -> float:
        if self.period_type == PeriodType.CUSTOM:
            return self.period
        return self.default_period


@dataclass(slots=True, frozen=True)
class TableRow:
    """Projection of a unit as displayed in the operator table."""

    key: str
    name: str
    period: float
    default_period: float
    period_type: PeriodType
    last_poll: float
    status: int
    state: State

    @classmethod
    def from_unit(cls, unit: PollableUnit) -> "TableRow":
        if unit.key is None:
            raise InvalidArgumentError(f"Unit {unit.name!r} is not part of a graph")

        if unit.last_poll is None:
            last_poll = constants.NEVER_POLLED
        else:
            last_poll = unit.last_poll.timestamp()

        if unit.state.is_disabled:
            status = constants.DISABLED_STATUS_CODE
        else:
            status = int(unit.status)

        return cls(
            key=unit.key,
            name=unit.name,
            period=unit.effective_period,
            default_period=unit.default_period,
            period_type=unit.period_type,
            last_poll=last_poll,
            status=status,
            state=unit.state,
        )

    def as_fields(self) -> list[Any]:
        return [
            self.key,
            self.name,
            self.period,
            self.default_period,
            int(self.period_type),
            self.last_poll,
            self.status,
            int(self.state),
        ]

    def as_dict(self) -> dict[str, Any]:
        last_poll: Optional[str] = None
        if self.last_poll != constants.NEVER_POLLED:
            last_poll = datetime.fromtimestamp(self.last_poll, tz=timezone.utc).isoformat(
                timespec="seconds"
            )
        return {
            "key": self.key,
            "name": self.name,
            "period": self.period,
            "defaultPeriod": self.default_period,
            "periodType": self.period_type.name.lower(),
            "lastPoll": last_poll,
            "status": self.status,
            "state": self.state.name.lower(),
        }


@dataclass(slots=True, frozen=True)
class UnitSnapshot:
    """Value copy of the editable fields of one row.

    Edits flow through snapshots so the canonical unit is only touched when
    the dispatcher applies the resulting ``after`` value.
    """

    key: str
    name: str
    period: float
    default_period: float
    period_type: PeriodType
    state: State

    @classmethod
    def from_unit(cls, unit: PollableUnit) -> "UnitSnapshot":
        if unit.key is None:
            raise InvalidArgumentError(f"Unit {unit.name!r} is not part of a graph")
        return cls(
            key=unit.key,
            name=unit.name,
            period=unit.period,
            default_period=unit.default_period,
            period_type=unit.period_type,
            state=unit.state,
        )

    @classmethod
    def from_row(cls, fields: Sequence[Any]) -> "UnitSnapshot":
        """Parse a raw table row (see ``ROW_FIELDS``) into a snapshot.

        Raises:
            InvalidArgumentError: If the row is short, the key is empty or a
                value cannot be converted.
        """
        if fields is None or len(fields) < len(ROW_FIELDS):
            raise InvalidArgumentError("Row does not contain all table columns")

        values = dict(zip(ROW_FIELDS, fields))
        key = "" if values[Column.KEY] is None else str(values[Column.KEY])
        if not key:
            raise InvalidArgumentError("Row key can't be empty")

        try:
            return cls(
                key=key,
                name=str(values[Column.NAME]),
                period=float(values[Column.PERIOD]),
                default_period=float(values[Column.DEFAULT_PERIOD]),
                period_type=PeriodType(int(values[Column.PERIOD_TYPE])),
                state=State(int(values[Column.STATE])),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(f"Unable to parse row {key}: {exc}") from exc
