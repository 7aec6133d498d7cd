class DoorError(Exception):
    """Base exception for the door daemon."""


class StartupFailure(DoorError):
    """Raised when GPIO, the allow list or the serial device cannot be acquired."""


class ConfigError(StartupFailure):
    """Raised when a configuration value cannot be parsed."""


class ReloadFailure(DoorError):
    """Raised when the allow list cannot be read. Never fatal once running."""


class StreamFailure(DoorError):
    """Raised when the serial stream breaks. Fatal so a supervisor restarts us."""
