"""Health reporting and the HTTP status surface for polling-manager."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

from aiohttp import web

from .core.errors import InvalidArgumentError, InvalidStateError
from .core.models import Column, ContextMenuOption
from .scheduling.manager import PollingManager

LOGGER = logging.getLogger(__name__)

SCHEDULER_COMPONENT = "scheduler"


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat(timespec="seconds") if value is not None else None


@dataclass(slots=True)
class ComponentStatus:
    """Last reported health of one runtime component (scheduler, endpoint)."""

    name: str
    healthy: bool
    detail: Optional[str] = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "healthy": self.healthy,
            "detail": self.detail,
            "updatedAt": _isoformat(self.updated_at),
        }


@dataclass(slots=True)
class TickStats:
    """Running counters for scheduling passes."""

    ticks: int = 0
    failed_ticks: int = 0
    consecutive_failures: int = 0
    polled_units: int = 0
    last_tick_at: Optional[datetime] = None
    last_polled: list[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, object]:
        return {
            "ticks": self.ticks,
            "failedTicks": self.failed_ticks,
            "consecutiveFailures": self.consecutive_failures,
            "polledUnits": self.polled_units,
            "lastTickAt": _isoformat(self.last_tick_at),
            "lastPolled": list(self.last_polled),
        }


class HealthReporter:
    """Collects component health and tick counters for ``/healthz``.

    A failed tick marks the scheduler component degraded until the next
    successful pass.
    """

    def __init__(self) -> None:
        self._status: Dict[str, ComponentStatus] = {}
        self._ticks = TickStats()
        self._lock = asyncio.Lock()

    async def update(
        self, name: str, healthy: bool, detail: Optional[str] = None
    ) -> None:
        async with self._lock:
            self._status[name] = ComponentStatus(name=name, healthy=healthy, detail=detail)

    async def record_tick(self, polled: Sequence[str]) -> None:
        async with self._lock:
            stats = self._ticks
            stats.ticks += 1
            stats.consecutive_failures = 0
            stats.polled_units += len(polled)
            stats.last_tick_at = datetime.now(timezone.utc)
            stats.last_polled = list(polled)
            self._status[SCHEDULER_COMPONENT] = ComponentStatus(
                name=SCHEDULER_COMPONENT,
                healthy=True,
                detail=f"polled {len(polled)} unit(s)",
            )

    async def record_tick_failure(self, error: BaseException) -> None:
        async with self._lock:
            stats = self._ticks
            stats.ticks += 1
            stats.failed_ticks += 1
            stats.consecutive_failures += 1
            stats.last_tick_at = datetime.now(timezone.utc)
            stats.last_polled = []
            self._status[SCHEDULER_COMPONENT] = ComponentStatus(
                name=SCHEDULER_COMPONENT,
                healthy=False,
                detail=f"tick failed: {error}",
            )

    async def snapshot(self) -> Dict[str, object]:
        async with self._lock:
            components = [status.as_dict() for status in self._status.values()]
            ticks = self._ticks.as_dict()

        overall = "ok" if all(item["healthy"] for item in components) else "degraded"
        return {"status": overall, "components": components, "ticks": ticks}


class StatusServer:
    """HTTP surface exposing health, the pollable table and operator commands.

    Routes:
        GET  /healthz              component health, 503 when degraded
        GET  /pollables            current rows plus parent/child keys
        GET  /messages             recent operator notices
        POST /pollables/{key}      row edit: ``{"column": ..., "value": ...}``
        POST /context-menu         bulk action: ``{"option": ..., "names": [...]}``

    Manager calls run in a worker thread while holding ``lock``; pass the
    lock that guards ticks so commands and ticks never interleave.
    """

    def __init__(
        self,
        reporter: HealthReporter,
        manager: PollingManager,
        host: str,
        port: int,
        *,
        lock: Optional[asyncio.Lock] = None,
    ) -> None:
        self._reporter = reporter
        self._lock = lock or asyncio.Lock()
        self._manager = manager
        self._host = host
        self._port = port
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/healthz", self._handle_health)
        app.router.add_get("/pollables", self._handle_pollables)
        app.router.add_get("/messages", self._handle_messages)
        app.router.add_post("/pollables/{key}", self._handle_row_edit)
        app.router.add_post("/context-menu", self._handle_context_menu)
        return app

    async def start(self) -> None:
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()
        LOGGER.info(
            "Status endpoint listening on http://%s:%s/", self._host, self._port
        )

    async def stop(self) -> None:
        with contextlib.suppress(Exception):
            if self._site is not None:
                await self._site.stop()
        if self._runner is not None:
            await self._runner.cleanup()
        self._site = None
        self._runner = None

    async def _handle_health(self, request: web.Request) -> web.Response:
        snapshot = await self._reporter.snapshot()
        status = 200 if snapshot["status"] == "ok" else 503
        return web.json_response(snapshot, status=status)

    async def _handle_pollables(self, request: web.Request) -> web.Response:
        async with self._lock:
            relations = self._manager.graph.relations()
            table_rows = self._manager.rows()
        rows = []
        for row in table_rows:
            entry = row.as_dict()
            entry.update(relations[row.key])
            rows.append(entry)
        return web.json_response({"pollables": rows})

    async def _handle_messages(self, request: web.Request) -> web.Response:
        recent = getattr(self._manager.context, "recent_messages", None)
        messages = recent() if callable(recent) else []
        return web.json_response({"messages": messages})

    async def _handle_row_edit(self, request: web.Request) -> web.Response:
        key = request.match_info["key"]
        try:
            body = await _read_json(request)
            try:
                column = Column(str(body.get("column", "")))
            except ValueError as exc:
                raise InvalidArgumentError(f"Unknown column: {body.get('column')!r}") from exc

            async with self._lock:
                change = await asyncio.to_thread(
                    self._manager.apply_edit, key, column, body.get("value")
                )
                row = _row_payload(self._manager, key)
        except InvalidArgumentError as exc:
            return _error_response(400, exc)
        except InvalidStateError as exc:
            return _error_response(404, exc)

        payload: Dict[str, Any] = {"row": row}
        if change is not None:
            payload["accepted"] = change.accepted
            payload["notices"] = change.notices
        return web.json_response(payload)

    async def _handle_context_menu(self, request: web.Request) -> web.Response:
        try:
            body = await _read_json(request)
            names = body.get("names") or []
            if not isinstance(names, list):
                raise InvalidArgumentError("names must be a list")
            option = str(body.get("option", ""))
            if option.upper() in ContextMenuOption.__members__:
                option = str(int(ContextMenuOption[option.upper()]))
            async with self._lock:
                await asyncio.to_thread(
                    self._manager.handle_context_menu, ["context-menu", option, *names]
                )
                rows = self._manager.rows()
        except InvalidArgumentError as exc:
            return _error_response(400, exc)

        return web.json_response({"pollables": [row.as_dict() for row in rows]})


async def _read_json(request: web.Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise InvalidArgumentError("Request body must be JSON") from exc
    if not isinstance(body, dict):
        raise InvalidArgumentError("Request body must be a JSON object")
    return body


def _row_payload(manager: PollingManager, key: str) -> Dict[str, Any]:
    for row in manager.rows():
        if row.key == key:
            return row.as_dict()
    return {}


def _error_response(status: int, exc: Exception) -> web.Response:
    LOGGER.info("Rejected status request: %s", exc)
    return web.json_response({"error": str(exc)}, status=status)
