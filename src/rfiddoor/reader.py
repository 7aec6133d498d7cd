from __future__ import annotations
import logging
import threading
from typing import Optional

from .events import EventChannel, StreamClosed, TokenRead
from .framing import ByteSource, frame_tokens

logger = logging.getLogger(__name__)


class SerialTokenReader:
    """Background thread feeding framed tokens into the event channel.

    The thread ends on the first stream error, after posting StreamClosed.
    """

    def __init__(self, port: ByteSource, channel: EventChannel):
        self.port = port
        self.channel = channel
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run_loop, name="serial-reader", daemon=True)
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_loop(self) -> None:
        try:
            for token in frame_tokens(self.port):
                logger.debug("framed token %r", token)
                self.channel.post(TokenRead(token))
        except Exception as e:
            logger.critical("serial reader stopped", extra={"fields": {"err": str(e)}})
            self.channel.post(StreamClosed(e))
