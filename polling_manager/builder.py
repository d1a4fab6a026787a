"""Build a dependency graph from loaded configuration."""

from __future__ import annotations

import logging

from .config import ManagerConfig, PollableConfig
from .core.errors import GraphConfigurationError
from .core.graph import DependencyGraph
from .core.models import PeriodType, PollableUnit, State, Status
from .core.protocols import Poller
from .pollers import NoopPoller, TcpPoller

LOGGER = logging.getLogger(__name__)


def create_poller(spec: PollableConfig) -> Poller:
    if spec.kind == "tcp":
        if spec.host is None or spec.port is None:
            raise GraphConfigurationError(f"TCP pollable {spec.name!r} needs host and port")
        return TcpPoller(host=spec.host, port=spec.port, timeout=spec.timeout)
    return NoopPoller()


def create_unit(spec: PollableConfig, *, default_period: float) -> PollableUnit:
    unit_default = spec.default_period if spec.default_period is not None else default_period
    disabled = spec.state == "disabled"
    return PollableUnit(
        name=spec.name,
        poller=create_poller(spec),
        period=spec.period if spec.period is not None else unit_default,
        default_period=unit_default,
        period_type=PeriodType.CUSTOM if spec.period_type == "custom" else PeriodType.DEFAULT,
        state=State.DISABLED if disabled else State.ENABLED,
        status=Status.DISABLED if disabled else Status.NOT_POLLED,
    )


def build_graph(config: ManagerConfig) -> DependencyGraph:
    """Create every unit first, then wire the declared relations.

    Raises:
        GraphConfigurationError: On duplicate names or relations naming
            unknown pollables.
    """
    default_period = config.scheduler.default_period
    graph = DependencyGraph(
        [create_unit(spec, default_period=default_period) for spec in config.pollables]
    )

    for spec in config.pollables:
        if spec.children:
            graph.add_children(spec.name, *spec.children)
        if spec.parents:
            graph.add_parents(spec.name, *spec.parents)

    LOGGER.info("Built dependency graph with %d pollable(s)", len(graph))
    return graph
