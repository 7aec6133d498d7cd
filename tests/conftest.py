import pytest
from gpiozero.pins.mock import MockFactory


class FakePort:
    """In-memory stand-in for serial.Serial; EOF once the buffer is drained."""

    def __init__(self, data: bytes = b"", error: Exception = None):
        self.data = bytearray(data)
        self.error = error
        self.reads = 0
        self.closed = False

    def close(self):
        self.closed = True

    def read_until(self, expected=b"\n"):
        self.reads += 1
        if not self.data and self.error is not None:
            raise self.error
        idx = self.data.find(expected)
        end = len(self.data) if idx < 0 else idx + len(expected)
        chunk = bytes(self.data[:end])
        del self.data[:end]
        return chunk


@pytest.fixture
def pin_factory():
    factory = MockFactory()
    yield factory
    factory.reset()


@pytest.fixture
def list_file(tmp_path):
    path = tmp_path / "list.txt"
    path.write_text("A1B2C3 Alice\n")
    return path
