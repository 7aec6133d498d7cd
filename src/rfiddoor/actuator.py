"""GPIO driver for the door relay.

Uses gpiozero, which picks its own pin backend (lgpio, gpiod, pigpio or
RPi.GPIO). Set ``GPIOZERO_PIN_FACTORY`` to force one.

Wiring (BCM numbering):
- open line  -> GPIO 22, driven high for the unlock pulse
- close line -> GPIO 27, held low; wired for a future relock signal
"""
from __future__ import annotations
import asyncio
import logging
from typing import Optional

from gpiozero import DigitalOutputDevice, GPIOZeroError

from .exceptions import StartupFailure

logger = logging.getLogger(__name__)

OPEN_PIN = 22
CLOSE_PIN = 27
PULSE_SECONDS = 1.0


class ActuatorController:
    def __init__(self, open_line: DigitalOutputDevice, close_line: DigitalOutputDevice, pulse: float = PULSE_SECONDS):
        self.open_line = open_line
        self.close_line = close_line
        self.pulse = pulse

    @classmethod
    def open(cls, open_pin: int = OPEN_PIN, close_pin: int = CLOSE_PIN, pulse: float = PULSE_SECONDS,
             pin_factory=None) -> "ActuatorController":
        open_line: Optional[DigitalOutputDevice] = None
        try:
            open_line = DigitalOutputDevice(open_pin, active_high=True, initial_value=False, pin_factory=pin_factory)
            close_line = DigitalOutputDevice(close_pin, active_high=True, initial_value=False, pin_factory=pin_factory)
        except (GPIOZeroError, OSError) as e:
            if open_line is not None:
                open_line.close()
            raise StartupFailure(f"could not acquire GPIO lines {open_pin}/{close_pin}: {e}") from e
        logger.debug("GPIO ready", extra={"fields": {"open_pin": open_pin, "close_pin": close_pin}})
        return cls(open_line, close_line, pulse)

    async def unlock(self) -> None:
        # callers serialize; a pulse always finishes before the next starts
        self.open_line.on()
        try:
            await asyncio.sleep(self.pulse)
        finally:
            self.open_line.off()

    @property
    def is_open(self) -> bool:
        return bool(self.open_line.value)

    def close(self) -> None:
        self.open_line.close()
        self.close_line.close()

    def __enter__(self) -> "ActuatorController":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
