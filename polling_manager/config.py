"""Configuration loader for polling-manager."""

from __future__ import annotations

from configparser import ConfigParser, DuplicateSectionError
from configparser import Error as ConfigParserError
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from . import constants
from .core.errors import GraphConfigurationError

POLLABLE_SECTION_PREFIX = "pollable "

POLLER_KINDS = ("noop", "tcp")


@dataclass(slots=True)
class ElementConfig:
    agent_id: int = 1
    element_id: int = 1


@dataclass(slots=True)
class SchedulerConfig:
    tick_seconds: float = constants.DEFAULT_TICK_SECONDS
    default_period: float = constants.DEFAULT_PERIOD_SECONDS


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = constants.DEFAULT_LOG_PATH
    tick_level: Optional[str] = None


@dataclass(slots=True)
class StatusConfig:
    enabled: bool = False
    host: str = constants.DEFAULT_STATUS_HOST
    port: int = 0


@dataclass(slots=True)
class PollableConfig:
    name: str
    kind: str = "noop"
    host: Optional[str] = None
    port: Optional[int] = None
    timeout: float = 2.0
    period: Optional[float] = None
    default_period: Optional[float] = None
    period_type: str = "default"
    state: str = "enabled"
    children: List[str] = field(default_factory=list)
    parents: List[str] = field(default_factory=list)


@dataclass(slots=True)
class ManagerConfig:
    element: ElementConfig
    scheduler: SchedulerConfig
    logging: LoggingConfig
    status: StatusConfig
    pollables: List[PollableConfig]
    raw: ConfigParser
    path: Path


def _parse_list(value: Optional[str], *, default: Iterable[str] = ()) -> List[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_pollable(parser: ConfigParser, section: str) -> PollableConfig:
    name = section[len(POLLABLE_SECTION_PREFIX):].strip()
    if not name:
        raise GraphConfigurationError(f"Section [{section}] is missing a pollable name")

    kind = parser.get(section, "kind", fallback="noop").strip().lower()
    if kind not in POLLER_KINDS:
        raise GraphConfigurationError(f"Unknown poller kind for {name!r}: {kind}")

    period_type = parser.get(section, "period_type", fallback="default").strip().lower()
    if period_type not in ("default", "custom"):
        raise GraphConfigurationError(f"Unknown period_type for {name!r}: {period_type}")

    state = parser.get(section, "state", fallback="enabled").strip().lower()
    if state not in ("enabled", "disabled"):
        raise GraphConfigurationError(f"Unknown state for {name!r}: {state}")

    try:
        port = parser.getint(section, "port", fallback=None)
        timeout = parser.getfloat(section, "timeout", fallback=2.0)
        period = parser.getfloat(section, "period", fallback=None)
        default_period = parser.getfloat(section, "default_period", fallback=None)
    except ValueError as exc:
        raise GraphConfigurationError(f"Invalid value in [{section}]: {exc}") from exc

    host = parser.get(section, "host", fallback=None)
    if kind == "tcp" and (not host or port is None):
        raise GraphConfigurationError(f"TCP pollable {name!r} needs host and port")

    return PollableConfig(
        name=name,
        kind=kind,
        host=host,
        port=port,
        timeout=max(0.1, timeout),
        period=period,
        default_period=default_period,
        period_type=period_type,
        state=state,
        children=_parse_list(parser.get(section, "children", fallback="")),
        parents=_parse_list(parser.get(section, "parents", fallback="")),
    )


def load_config(path: Optional[Path] = None) -> ManagerConfig:
    """Load configuration from disk, applying defaults where necessary.

    Pollables are declared as ``[pollable <name>]`` sections and keep the file
    order, which becomes the row order of the operator table.
    """

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "element": {
                "agent_id": "1",
                "element_id": "1",
            },
            "scheduler": {
                "tick_seconds": str(constants.DEFAULT_TICK_SECONDS),
                "default_period": str(constants.DEFAULT_PERIOD_SECONDS),
            },
            "logging": {
                "level": "INFO",
                "path": str(constants.DEFAULT_LOG_PATH),
            },
            "status": {
                "enabled": "false",
                "host": constants.DEFAULT_STATUS_HOST,
                "port": "0",
            },
        }
    )

    if config_path.exists():
        try:
            parser.read(config_path)
        except DuplicateSectionError as exc:
            raise GraphConfigurationError(
                f"Section [{exc.section}] is declared more than once in {config_path}"
            ) from exc
        except ConfigParserError as exc:
            raise GraphConfigurationError(f"Unable to parse {config_path}: {exc}") from exc

    try:
        element = ElementConfig(
            agent_id=parser.getint("element", "agent_id", fallback=1),
            element_id=parser.getint("element", "element_id", fallback=1),
        )
        default_period = parser.getfloat(
            "scheduler", "default_period", fallback=constants.DEFAULT_PERIOD_SECONDS
        )
        status = StatusConfig(
            enabled=parser.getboolean("status", "enabled", fallback=False),
            host=parser.get("status", "host", fallback=constants.DEFAULT_STATUS_HOST),
            port=parser.getint("status", "port", fallback=0),
        )
    except ValueError as exc:
        raise GraphConfigurationError(f"Invalid value in {config_path}: {exc}") from exc

    defaults = SchedulerConfig()
    try:
        tick_seconds = parser.getfloat(
            "scheduler", "tick_seconds", fallback=defaults.tick_seconds
        )
    except ValueError:
        tick_seconds = defaults.tick_seconds

    scheduler = SchedulerConfig(
        tick_seconds=max(constants.MIN_TICK_SECONDS, tick_seconds),
        default_period=max(0.0, default_period),
    )

    log_path_value = parser.get("logging", "path", fallback="")
    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        tick_level=parser.get("logging", "tick_level", fallback="") or None,
    )

    pollables = [
        _parse_pollable(parser, section)
        for section in parser.sections()
        if section.startswith(POLLABLE_SECTION_PREFIX)
    ]

    return ManagerConfig(
        element=element,
        scheduler=scheduler,
        logging=logging_config,
        status=status,
        pollables=pollables,
        raw=parser,
        path=config_path,
    )


def save_config(config: ManagerConfig) -> None:
    """Persist the current configuration to disk."""

    config_path = config.path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as stream:
        config.raw.write(stream)
