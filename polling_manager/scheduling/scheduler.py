"""Period-driven poll scheduling over a dependency graph.

Each ``tick`` walks every unit once, in row order:

- disabled units are skipped,
- the configured period (custom or default) must have elapsed since the last
  poll decision,
- every parent must be enabled,

and only then is the unit's poller invoked. ``last_poll`` is stamped with the
decision time whatever the outcome, so a failing unit is retried once per
period rather than on every tick.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ..core.errors import SchedulingError
from ..core.graph import DependencyGraph
from ..core.models import PeriodType, PollableUnit, Status

LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PollScheduler:
    """Decides when units poll and records poll outcomes.

    Thread-safety: not thread-safe. Ticks and commands for one graph must be
    issued serially.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._graph = graph
        self._clock = clock or _utcnow

    def tick(self) -> list[str]:
        """Poll every unit whose period elapsed and whose parents are enabled.

        Returns:
            Keys of the units that were polled, in row order.

        Raises:
            SchedulingError: If a unit carries an unknown period type.
        """
        changed: list[str] = []

        for unit in self._graph:
            if unit.state.is_disabled:
                continue

            now = self._clock()
            if not self.ready_to_poll(unit, now):
                continue
            if not self._graph.check_dependencies(unit.key):
                continue

            self._run_poll(unit, now)
            changed.append(unit.key)

        if changed:
            LOGGER.debug("Tick polled %d unit(s): %s", len(changed), ", ".join(changed))
        return changed

    def poll_row(self, key: str) -> bool:
        """Poll one unit now, ignoring its period.

        Returns:
            True if a poll was attempted, False if the unit is disabled or a
            parent is not enabled.
        """
        unit = self._graph.get(key)
        if unit.state.is_disabled:
            return False
        if not self._graph.check_dependencies(key):
            LOGGER.debug("Skipping poll of %s: dependencies not enabled", unit.name)
            return False

        self._run_poll(unit, self._clock())
        return True

    @staticmethod
    def ready_to_poll(unit: PollableUnit, now: datetime) -> bool:
        if unit.period_type == PeriodType.DEFAULT:
            period = unit.default_period
        elif unit.period_type == PeriodType.CUSTOM:
            period = unit.period
        else:
            raise SchedulingError(
                f"Unhandled period type for {unit.name!r}: {unit.period_type!r}"
            )

        if unit.last_poll is None:
            return True
        return (now - unit.last_poll).total_seconds() > period

    def _run_poll(self, unit: PollableUnit, now: datetime) -> None:
        try:
            succeeded = unit.poll()
        except Exception:
            LOGGER.warning("Poller for %s raised; recording failure", unit.name, exc_info=True)
            succeeded = False

        unit.last_poll = now
        unit.status = Status.SUCCEEDED if succeeded else Status.FAILED
