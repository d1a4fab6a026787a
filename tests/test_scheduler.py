"""Tests for period-driven polling."""

import pytest

from polling_manager.core.errors import SchedulingError
from polling_manager.core.graph import DependencyGraph
from polling_manager.core.models import PeriodType, State, Status
from polling_manager.scheduling.scheduler import PollScheduler


class RaisingPoller:
    def poll(self) -> bool:
        raise ConnectionError("device unreachable")


class TestTick:
    def test_never_polled_unit_polls_on_first_tick(self, units_factory, clock) -> None:
        graph = DependencyGraph(units_factory(["A"]))
        scheduler = PollScheduler(graph, clock=clock)

        assert scheduler.tick() == ["1"]
        unit = graph.get("1")
        assert unit.poller.calls == 1
        assert unit.status == Status.SUCCEEDED
        assert unit.last_poll == clock.now

    def test_default_period_elapsed_polls_exactly_once(self, units_factory, clock) -> None:
        graph = DependencyGraph(units_factory(["A"], default_period=20))
        unit = graph.get("1")
        unit.last_poll = clock.now
        clock.advance(25)
        scheduler = PollScheduler(graph, clock=clock)

        assert scheduler.tick() == ["1"]
        assert unit.poller.calls == 1
        assert unit.status == Status.SUCCEEDED

    @pytest.mark.parametrize("result,expected", [(True, Status.SUCCEEDED), (False, Status.FAILED)])
    def test_status_matches_poll_result(self, units_factory, clock, result, expected) -> None:
        graph = DependencyGraph(units_factory(["A"], default_period=20))
        unit = graph.get("1")
        unit.poller.result = result
        unit.last_poll = clock.now
        clock.advance(25)

        PollScheduler(graph, clock=clock).tick()

        assert unit.status == expected

    def test_period_not_elapsed_skips(self, units_factory, clock) -> None:
        graph = DependencyGraph(units_factory(["A"], default_period=20))
        unit = graph.get("1")
        unit.last_poll = clock.now
        clock.advance(20)

        assert PollScheduler(graph, clock=clock).tick() == []
        assert unit.poller.calls == 0

    def test_custom_period_is_used(self, units_factory, clock) -> None:
        graph = DependencyGraph(
            units_factory(["A"], period=5, default_period=60, period_type=PeriodType.CUSTOM)
        )
        unit = graph.get("1")
        unit.last_poll = clock.now
        clock.advance(6)

        assert PollScheduler(graph, clock=clock).tick() == ["1"]

    def test_failed_poll_still_updates_last_poll(self, units_factory, clock) -> None:
        graph = DependencyGraph(units_factory(["A"], default_period=10))
        unit = graph.get("1")
        unit.poller.result = False
        scheduler = PollScheduler(graph, clock=clock)
        started = clock.now

        scheduler.tick()
        clock.advance(5)
        scheduler.tick()

        assert unit.last_poll == started
        assert unit.poller.calls == 1
        assert unit.status == Status.FAILED

    @pytest.mark.parametrize("state", [State.DISABLED, State.FORCE_DISABLED])
    def test_disabled_units_are_never_polled(self, units_factory, clock, state) -> None:
        graph = DependencyGraph(units_factory(["A"], state=state))
        clock.advance(3600)

        assert PollScheduler(graph, clock=clock).tick() == []
        assert graph.get("1").poller.calls == 0

    def test_child_waits_for_disabled_parent(self, units_factory, clock) -> None:
        graph = DependencyGraph(units_factory(["P", "C"]))
        graph.add_children("P", "C")
        graph.get("1").state = State.DISABLED

        assert PollScheduler(graph, clock=clock).tick() == []
        assert graph.get("2").poller.calls == 0
        assert graph.get("2").last_poll is None

    def test_unknown_period_type_is_fatal(self, units_factory, clock) -> None:
        graph = DependencyGraph(units_factory(["A"]))
        graph.get("1").period_type = 7

        with pytest.raises(SchedulingError):
            PollScheduler(graph, clock=clock).tick()

    def test_raising_poller_counts_as_failure(self, units_factory, clock) -> None:
        graph = DependencyGraph(units_factory(["A", "B"]))
        graph.get("1").poller = RaisingPoller()

        assert PollScheduler(graph, clock=clock).tick() == ["1", "2"]
        assert graph.get("1").status == Status.FAILED
        assert graph.get("2").status == Status.SUCCEEDED


class TestPollRow:
    def test_ignores_period(self, units_factory, clock) -> None:
        graph = DependencyGraph(units_factory(["A"], default_period=3600))
        unit = graph.get("1")
        unit.last_poll = clock.now
        clock.advance(1)

        assert PollScheduler(graph, clock=clock).poll_row("1") is True
        assert unit.poller.calls == 1
        assert unit.last_poll == clock.now

    def test_disabled_unit_is_noop(self, units_factory, clock) -> None:
        graph = DependencyGraph(units_factory(["A"], state=State.DISABLED))

        assert PollScheduler(graph, clock=clock).poll_row("1") is False
        assert graph.get("1").poller.calls == 0

    def test_unsatisfied_dependencies_are_noop(self, units_factory, clock) -> None:
        graph = DependencyGraph(units_factory(["P", "C"]))
        graph.add_children("P", "C")
        graph.get("1").state = State.DISABLED

        assert PollScheduler(graph, clock=clock).poll_row("2") is False
        assert graph.get("2").status == Status.NOT_POLLED
