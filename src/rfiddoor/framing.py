"""Framing of the reader's serial stream into token strings.

The reader wraps every token between STX (0x02) and ETX (0x03). A frame is
read up to and including ETX, then every STX/ETX byte is dropped.
"""
from __future__ import annotations
from typing import Iterator, Protocol

import serial

from .exceptions import StartupFailure, StreamFailure

STX = b"\x02"
ETX = b"\x03"
DEFAULT_BAUDRATE = 9600


class ByteSource(Protocol):
    def read_until(self, expected: bytes = ...) -> bytes: ...


def strip_markers(frame: bytes) -> str:
    payload = frame.replace(ETX, b"").replace(STX, b"")
    return payload.decode("ascii", errors="replace")


def frame_tokens(port: ByteSource) -> Iterator[str]:
    """Yield tokens from ``port`` forever.

    Raises StreamFailure on the first failed or truncated read; there is no
    retry, the caller is expected to bring the process down.
    """
    while True:
        try:
            frame = port.read_until(ETX)
        except (serial.SerialException, OSError) as e:
            raise StreamFailure(f"serial read failed: {e}") from e
        if not frame.endswith(ETX):
            # read_until without a timeout only comes back short when the port went away
            raise StreamFailure(f"serial stream ended mid-frame ({len(frame)} bytes pending)")
        yield strip_markers(frame)


def open_serial(path: str, baudrate: int = DEFAULT_BAUDRATE) -> serial.Serial:
    try:
        return serial.Serial(
            path,
            baudrate=baudrate,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            timeout=None,
        )
    except (serial.SerialException, ValueError) as e:
        raise StartupFailure(f"could not open serial device {path}: {e}") from e
