import aiohttp
import pytest
import pytest_asyncio

from polling_manager.context import LocalElementContext
from polling_manager.health import HealthReporter, StatusServer
from polling_manager.scheduling.manager import PollingManager
from polling_manager.scheduling.table import PollingTable


@pytest.mark.asyncio
async def test_health_reporter_snapshot():
    reporter = HealthReporter()

    await reporter.update("scheduler", True)
    await reporter.update("status-endpoint", False, "address in use")

    snapshot = await reporter.snapshot()

    assert snapshot["status"] == "degraded"
    components = {item["name"]: item for item in snapshot["components"]}
    assert components["scheduler"]["healthy"] is True
    assert components["status-endpoint"]["detail"] == "address in use"


@pytest.mark.asyncio
async def test_health_reporter_ok_when_all_healthy():
    reporter = HealthReporter()
    await reporter.update("scheduler", True)

    snapshot = await reporter.snapshot()

    assert snapshot["status"] == "ok"


@pytest.mark.asyncio
async def test_failed_tick_degrades_until_next_success():
    reporter = HealthReporter()

    await reporter.record_tick(["1", "2"])
    await reporter.record_tick_failure(RuntimeError("boom"))
    degraded = await reporter.snapshot()
    await reporter.record_tick(["3"])
    recovered = await reporter.snapshot()

    assert degraded["status"] == "degraded"
    assert degraded["components"][0]["detail"] == "tick failed: boom"
    assert degraded["ticks"]["consecutiveFailures"] == 1
    assert recovered["status"] == "ok"
    assert recovered["ticks"]["ticks"] == 3
    assert recovered["ticks"]["failedTicks"] == 1
    assert recovered["ticks"]["consecutiveFailures"] == 0
    assert recovered["ticks"]["polledUnits"] == 3
    assert recovered["ticks"]["lastPolled"] == ["3"]


@pytest.fixture
def local_manager(org_graph, clock) -> PollingManager:
    context = LocalElementContext(agent_id=1, element_id=7)
    return PollingManager(context, org_graph, PollingTable(), clock=clock)


@pytest_asyncio.fixture
async def status_url(local_manager, unused_tcp_port):
    reporter = HealthReporter()
    await reporter.update("scheduler", True)

    host = "127.0.0.1"
    server = StatusServer(reporter, local_manager, host, unused_tcp_port)
    await server.start()
    try:
        yield f"http://{host}:{unused_tcp_port}"
    finally:
        await server.stop()


@pytest.mark.asyncio
async def test_status_server_serves_health(status_url):
    async with aiohttp.ClientSession() as session:
        async with session.get(f"{status_url}/healthz") as response:
            payload = await response.json()

    assert response.status == 200
    assert payload["status"] == "ok"


@pytest.mark.asyncio
async def test_status_server_lists_pollables_with_relations(status_url):
    async with aiohttp.ClientSession() as session:
        async with session.get(f"{status_url}/pollables") as response:
            payload = await response.json()

    assert response.status == 200
    rows = {row["name"]: row for row in payload["pollables"]}
    assert list(rows) == ["Owner", "CEO", "CFO", "CTO", "Lead", "Senior"]
    assert rows["Owner"]["children"] == ["2", "3", "4"]
    assert rows["Senior"]["parents"] == ["5"]
    assert rows["Owner"]["lastPoll"] is None
    assert rows["Owner"]["state"] == "enabled"


@pytest.mark.asyncio
async def test_rejected_state_edit_reports_notice(status_url, local_manager):
    key = local_manager.graph.resolve("CTO")

    async with aiohttp.ClientSession() as session:
        async with session.post(
            f"{status_url}/pollables/{key}",
            json={"column": "state", "value": "disabled"},
        ) as response:
            payload = await response.json()
        async with session.get(f"{status_url}/messages") as messages_response:
            messages = await messages_response.json()

    assert response.status == 200
    assert payload["accepted"] is False
    assert payload["row"]["state"] == "enabled"
    assert "Unable to disable [CTO]" in payload["notices"][0]
    assert messages["messages"][0]["text"] == payload["notices"][0]


@pytest.mark.asyncio
async def test_period_edit_updates_row(status_url, local_manager):
    key = local_manager.graph.resolve("CFO")

    async with aiohttp.ClientSession() as session:
        async with session.post(
            f"{status_url}/pollables/{key}", json={"column": "period", "value": 12}
        ) as response:
            payload = await response.json()

    assert response.status == 200
    assert payload["row"]["period"] == 12
    assert payload["row"]["periodType"] == "custom"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path,body,expected",
    [
        ("/pollables/1", {"column": "colour", "value": 1}, 400),
        ("/pollables/1", {"column": "period", "value": "soon"}, 400),
        ("/pollables/1", ["period", 5], 400),
        ("/pollables/404", {"column": "poll"}, 404),
        ("/context-menu", {"option": "sideways"}, 400),
        ("/context-menu", {"option": "disable_selected", "names": ["Ghost"]}, 400),
    ],
)
async def test_invalid_requests_are_rejected(status_url, path, body, expected):
    async with aiohttp.ClientSession() as session:
        async with session.post(f"{status_url}{path}", json=body) as response:
            payload = await response.json()

    assert response.status == expected
    assert payload["error"]


@pytest.mark.asyncio
async def test_context_menu_accepts_option_names(status_url, local_manager):
    async with aiohttp.ClientSession() as session:
        async with session.post(
            f"{status_url}/context-menu", json={"option": "disable_all"}
        ) as response:
            payload = await response.json()

    assert response.status == 200
    assert {row["state"] for row in payload["pollables"]} == {"disabled"}
    assert all(not unit.state.is_enabled for unit in local_manager.graph)
