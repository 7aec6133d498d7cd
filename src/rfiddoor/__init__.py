"""RFID door daemon: serial reader tokens, hot-reloaded allow list, GPIO unlock pulse."""

__version__ = "0.1.0"
