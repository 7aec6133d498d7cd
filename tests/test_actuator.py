import asyncio

import pytest

from rfiddoor.actuator import ActuatorController
from rfiddoor.exceptions import StartupFailure


def states(pin):
    return [s.state for s in pin.states]


@pytest.mark.asyncio
async def test_unlock_pulses_open_line(pin_factory):
    with ActuatorController.open(22, 27, pulse=0.01, pin_factory=pin_factory) as actuator:
        await actuator.unlock()
        assert not actuator.is_open

    assert states(pin_factory.pin(22)) == [False, True, False]
    assert states(pin_factory.pin(27)) == [False]


@pytest.mark.asyncio
async def test_unlock_is_repeatable(pin_factory):
    with ActuatorController.open(22, 27, pulse=0.01, pin_factory=pin_factory) as actuator:
        await actuator.unlock()
        await actuator.unlock()

    assert states(pin_factory.pin(22)) == [False, True, False, True, False]


@pytest.mark.asyncio
async def test_cancelled_pulse_still_relocks(pin_factory):
    with ActuatorController.open(22, 27, pulse=5, pin_factory=pin_factory) as actuator:
        task = asyncio.ensure_future(actuator.unlock())
        await asyncio.sleep(0.01)
        assert actuator.is_open
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert not actuator.is_open


def test_pin_in_use_is_startup_failure(pin_factory):
    with ActuatorController.open(22, 27, pin_factory=pin_factory):
        with pytest.raises(StartupFailure):
            ActuatorController.open(23, 27, pin_factory=pin_factory)
        # the half-acquired open line was released again
        ActuatorController.open(23, 24, pin_factory=pin_factory).close()
