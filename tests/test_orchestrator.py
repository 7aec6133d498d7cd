import asyncio

import pytest

from rfiddoor.actuator import ActuatorController
from rfiddoor.authorization import AuthorizationTable
from rfiddoor.events import EventChannel, ReloadRequested, StreamClosed, TokenRead
from rfiddoor.exceptions import StreamFailure
from rfiddoor.orchestrator import Orchestrator, Outcome


class SpyTable(AuthorizationTable):
    def __init__(self, path, entries=None):
        super().__init__(path, entries)
        self.lookups = []

    def lookup(self, token):
        self.lookups.append(token)
        return super().lookup(token)


class Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def actuator(pin_factory):
    actuator = ActuatorController.open(22, 27, pulse=0.01, pin_factory=pin_factory)
    yield actuator
    actuator.close()


@pytest.fixture
def table(list_file):
    return SpyTable(str(list_file), {"A1B2C3": "Alice"})


def open_states(pin_factory):
    return [s.state for s in pin_factory.pin(22).states]


def warnings(caplog):
    return [r for r in caplog.records if r.levelname == "WARNING"]


@pytest.mark.asyncio
async def test_authorized_token_unlocks(table, actuator, pin_factory, caplog):
    caplog.set_level("INFO")
    clock = Clock()
    orch = Orchestrator(table, actuator, clock=clock)

    assert await orch.handle_token("A1B2C3") is Outcome.AUTHORIZED
    assert table.lookups == ["A1B2C3"]
    assert open_states(pin_factory) == [False, True, False]
    assert orch.last_trigger == clock.now

    unlock_logs = [r for r in caplog.records if r.getMessage() == "found valid token, unlocking door"]
    assert unlock_logs[0].fields == {"username": "Alice", "token": "A1B2C3"}


@pytest.mark.asyncio
async def test_repeat_scan_inside_window_is_debounced(table, actuator, pin_factory, caplog):
    clock = Clock()
    orch = Orchestrator(table, actuator, clock=clock)
    await orch.handle_token("A1B2C3")
    first_trigger = orch.last_trigger

    clock.now += 2
    assert await orch.handle_token("A1B2C3") is Outcome.DEBOUNCED
    assert table.lookups == ["A1B2C3"]
    assert open_states(pin_factory) == [False, True, False]
    assert orch.last_trigger == first_trigger
    assert len(warnings(caplog)) == 1


@pytest.mark.asyncio
async def test_debounce_window_is_global(table, actuator):
    clock = Clock()
    orch = Orchestrator(table, actuator, clock=clock)
    await orch.handle_token("A1B2C3")

    clock.now += 1
    assert await orch.handle_token("DEADBEEF") is Outcome.DEBOUNCED
    clock.now += 4.5
    assert await orch.handle_token("A1B2C3") is Outcome.AUTHORIZED


@pytest.mark.asyncio
async def test_unknown_token_is_reported_once(table, actuator, pin_factory, caplog):
    orch = Orchestrator(table, actuator, clock=Clock())

    assert await orch.handle_token("0000FF00") is Outcome.UNAUTHORIZED
    assert open_states(pin_factory) == [False]
    assert orch.last_trigger is None
    [warning] = warnings(caplog)
    assert warning.fields == {"token": "0000FF00"}


@pytest.mark.asyncio
async def test_sentinel_token_is_ignored_silently(table, actuator, caplog):
    orch = Orchestrator(table, actuator, clock=Clock())

    assert await orch.handle_token("00000000") is Outcome.IGNORED
    assert await orch.handle_token("") is Outcome.IGNORED
    assert warnings(caplog) == []


@pytest.mark.asyncio
async def test_misses_do_not_start_the_cooldown(table, actuator):
    clock = Clock()
    orch = Orchestrator(table, actuator, clock=clock)

    await orch.handle_token("DEADBEEF")
    clock.now += 0.5
    assert await orch.handle_token("A1B2C3") is Outcome.AUTHORIZED


@pytest.mark.asyncio
async def test_reload_event_swaps_table(table, actuator, list_file):
    orch = Orchestrator(table, actuator, clock=Clock())
    list_file.write_text("0A11BEEF Bob\n")

    assert orch.handle_reload(ReloadRequested(str(list_file), "modified")) is True
    assert await orch.handle_token("0A11BEEF") is Outcome.AUTHORIZED


@pytest.mark.asyncio
async def test_run_processes_events_then_fails_on_stream_close(table, actuator, pin_factory):
    orch = Orchestrator(table, actuator, clock=Clock())
    channel = EventChannel()
    channel.post(TokenRead("A1B2C3"))
    channel.post(TokenRead("A1B2C3"))
    channel.post(StreamClosed(OSError("device reports readiness to read but returned no data")))

    with pytest.raises(StreamFailure):
        await asyncio.wait_for(orch.run(channel), timeout=5)
    assert table.lookups == ["A1B2C3"]
    assert open_states(pin_factory) == [False, True, False]
