from __future__ import annotations
import asyncio
import time
from dataclasses import dataclass, field
from typing import Optional, Union

Timestamp = float


@dataclass(frozen=True)
class TokenRead:
    token: str
    timestamp: Timestamp = field(default_factory=time.time)


@dataclass(frozen=True)
class ReloadRequested:
    path: str
    event_type: str  # watchdog event type: "modified" | "created" | "moved"
    timestamp: Timestamp = field(default_factory=time.time)


@dataclass(frozen=True)
class StreamClosed:
    error: BaseException
    timestamp: Timestamp = field(default_factory=time.time)


Event = Union[TokenRead, ReloadRequested, StreamClosed]


class EventChannel:
    """Unbounded handoff from producer threads to the single asyncio consumer.

    ``post`` may be called from any thread; ``get`` only from the loop that
    created the channel.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()
        self._queue: asyncio.Queue[Event] = asyncio.Queue()

    def post(self, event: Event) -> None:
        # called from the serial thread and the watchdog observer thread
        if self._loop.is_closed():
            return
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError:
            # loop closed after the check; the daemon is shutting down
            return

    async def get(self) -> Event:
        return await self._queue.get()

    def qsize(self) -> int:
        return self._queue.qsize()
