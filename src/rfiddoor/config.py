"""Daemon configuration from the environment (and an optional ``.env`` file)."""
from __future__ import annotations
import os
from dataclasses import dataclass, replace
from typing import Callable, Mapping, Optional, TypeVar

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigError

T = TypeVar("T")

ENV_PREFIX = "RFIDDOOR_"


def _env(env: Mapping[str, str], name: str, default: T, cast: Callable[[str], T]) -> T:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ConfigError(f"invalid value for {ENV_PREFIX + name}: {raw!r}") from e


@dataclass(frozen=True)
class DaemonConfig:
    list_path: str = "list.txt"
    serial_port: str = "/dev/ttyUSB0"
    baudrate: int = 9600
    open_pin: int = 22
    close_pin: int = 27
    pulse_seconds: float = 1.0
    debounce_seconds: float = 5.0
    log_level: str = "DEBUG"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "DaemonConfig":
        if env is None:
            if dotenv:
                load_dotenv(find_dotenv(usecwd=True))
            env = os.environ
        defaults = cls()
        return cls(
            list_path=_env(env, "LIST", defaults.list_path, str),
            serial_port=_env(env, "PORT", defaults.serial_port, str),
            baudrate=_env(env, "BAUD", defaults.baudrate, int),
            open_pin=_env(env, "OPEN_PIN", defaults.open_pin, int),
            close_pin=_env(env, "CLOSE_PIN", defaults.close_pin, int),
            pulse_seconds=_env(env, "PULSE_SECONDS", defaults.pulse_seconds, float),
            debounce_seconds=_env(env, "DEBOUNCE_SECONDS", defaults.debounce_seconds, float),
            log_level=_env(env, "LOG_LEVEL", defaults.log_level, str.upper),
        )

    def override(self, **changes) -> "DaemonConfig":
        """Return a copy with the non-None ``changes`` applied (CLI flags)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
