"""Command-line interface for polling-manager."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import constants
from .app import PollingManagerApp
from .builder import build_graph
from .config import load_config
from .core.errors import GraphConfigurationError

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polling-manager",
        description="Dependency-aware periodic polling scheduler",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("start", help="Start the polling scheduler")
    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )
    subparsers.add_parser(
        "show-graph", help="Print the configured pollables and their relations"
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except GraphConfigurationError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 1

    if args.command == "start":
        try:
            PollingManagerApp.start(config)
        except GraphConfigurationError as exc:
            LOGGER.error("Invalid configuration: %s", exc)
            return 1
        return 0

    if args.command == "show-config":
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                print(f"{key} = {value}")
            print()
        return 0

    if args.command == "show-graph":
        try:
            graph = build_graph(config)
        except GraphConfigurationError as exc:
            LOGGER.error("Invalid configuration: %s", exc)
            return 1

        for unit in graph:
            parents = ", ".join(parent.name for parent in graph.parents(unit.key)) or "-"
            children = ", ".join(child.name for child in graph.children(unit.key)) or "-"
            print(
                f"{unit.key:>3}  {unit.name}  "
                f"[{unit.period_type.name.lower()} {unit.effective_period:g}s, {unit.state.name.lower()}]"
            )
            print(f"     parents:  {parents}")
            print(f"     children: {children}")
        return 0

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
