from __future__ import annotations
import enum
import logging
import time
from typing import Callable, Optional

from .actuator import ActuatorController
from .authorization import AuthorizationTable
from .events import EventChannel, ReloadRequested, StreamClosed, TokenRead
from .exceptions import StreamFailure
from .rules import DEFAULT_DEBOUNCE_SECONDS, debounce_allows, is_valid_token

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    DEBOUNCED = "debounced"
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"
    IGNORED = "ignored"


class Orchestrator:
    """Single consumer of reader and reload events.

    Each event is handled to completion, unlock pulse included, before the
    next one is taken off the channel.
    """

    def __init__(self, table: AuthorizationTable, actuator: ActuatorController,
                 debounce_window: float = DEFAULT_DEBOUNCE_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.table = table
        self.actuator = actuator
        self.debounce_window = debounce_window
        self.clock = clock
        self.last_trigger: Optional[float] = None

    async def handle_token(self, token: str) -> Outcome:
        now = self.clock()
        if not debounce_allows(now, self.last_trigger, self.debounce_window):
            logger.warning("triggered too fast; skipped unlock")
            return Outcome.DEBOUNCED
        logger.info("read token", extra={"fields": {"readToken": token}})

        username = self.table.lookup(token)
        if username is not None:
            self.last_trigger = now
            logger.info("found valid token, unlocking door",
                        extra={"fields": {"username": username, "token": token}})
            await self.actuator.unlock()
            return Outcome.AUTHORIZED

        if is_valid_token(token):
            logger.warning("could not find user for token", extra={"fields": {"token": token}})
            return Outcome.UNAUTHORIZED
        return Outcome.IGNORED

    def handle_reload(self, event: ReloadRequested) -> bool:
        logger.info("received filesystem event for user list, reloading user list",
                    extra={"fields": {"list": event.path, "event": event.event_type}})
        return self.table.reload()

    async def run(self, channel: EventChannel) -> None:
        """Process events until the reader stream dies; then raise StreamFailure."""
        while True:
            event = await channel.get()
            if isinstance(event, TokenRead):
                await self.handle_token(event.token)
            elif isinstance(event, ReloadRequested):
                self.handle_reload(event)
            elif isinstance(event, StreamClosed):
                if isinstance(event.error, StreamFailure):
                    raise event.error
                raise StreamFailure(str(event.error)) from event.error
            else:
                logger.error("dropping unknown event %r", event)
