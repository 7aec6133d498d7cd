from __future__ import annotations
import argparse
import asyncio
import logging
from typing import Callable, Optional, Sequence

from . import __version__
from .actuator import ActuatorController
from .authorization import AuthorizationTable, AuthorizationWatcher
from .config import DaemonConfig
from .events import EventChannel
from .exceptions import StartupFailure, StreamFailure
from .framing import ByteSource, open_serial
from .logs import configure_logging
from .orchestrator import Orchestrator
from .reader import SerialTokenReader

logger = logging.getLogger("rfiddoor")

EXIT_OK = 0
EXIT_STARTUP = 1
EXIT_STREAM = 2


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="rfiddoor", description="RFID door unlock daemon")
    parser.add_argument("--list", dest="list_path", help="RFID allow list (default: list.txt)")
    parser.add_argument("--port", dest="serial_port", help="reader device (default: /dev/ttyUSB0)")
    parser.add_argument("--log-level", dest="log_level", type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


async def serve(config: DaemonConfig, pin_factory=None,
                open_port: Callable[[str, int], ByteSource] = open_serial) -> None:
    """Bring up GPIO, the allow list and the reader, then process events.

    Returns only by raising: StartupFailure before the loop runs, StreamFailure
    once the reader stream breaks.
    """
    logger.info("starting rfid door daemon", extra={"fields": {"version": __version__}})
    channel = EventChannel()

    logger.debug("opening GPIO")
    actuator = ActuatorController.open(config.open_pin, config.close_pin, config.pulse_seconds,
                                       pin_factory=pin_factory)
    watcher = None
    port = None
    try:
        logger.debug("reading %s", config.list_path)
        table = AuthorizationTable.from_file(config.list_path)
        watcher = AuthorizationWatcher(config.list_path, channel)
        watcher.start()
        logger.debug("found %d users", len(table))

        logger.debug("connecting to serial", extra={"fields": {"port": config.serial_port}})
        port = open_port(config.serial_port, config.baudrate)
        reader = SerialTokenReader(port, channel)
        reader.start()
        logger.info("initialized")

        orchestrator = Orchestrator(table, actuator, debounce_window=config.debounce_seconds)
        await orchestrator.run(channel)
    finally:
        if watcher is not None:
            watcher.stop()
        if port is not None and hasattr(port, "close"):
            port.close()
        actuator.close()


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = DaemonConfig.from_env().override(
            list_path=args.list_path, serial_port=args.serial_port, log_level=args.log_level)
    except StartupFailure as e:
        configure_logging()
        logger.critical("startup failed", extra={"fields": {"err": str(e)}})
        return EXIT_STARTUP
    configure_logging(config.log_level)

    try:
        asyncio.run(serve(config))
    except StartupFailure as e:
        logger.critical("startup failed", extra={"fields": {"err": str(e)}})
        return EXIT_STARTUP
    except StreamFailure as e:
        # exit non-zero so the service manager restarts us
        logger.critical("reader stream failed, exiting", extra={"fields": {"err": str(e)}})
        return EXIT_STREAM
    except KeyboardInterrupt:
        logger.info("exiting")
    return EXIT_OK


def main() -> None:
    raise SystemExit(run())


if __name__ == '__main__':
    main()
