from __future__ import annotations
import logging
import re
import sys
from typing import Any

# same unquoted set as logrus' text formatter
_SAFE = re.compile(r"[A-Za-z0-9\-._/@^+]+")


def _quote(value: Any) -> str:
    text = str(value)
    if _SAFE.fullmatch(text):
        return text
    # escape control characters so a value can never start a new log line
    escaped = text.encode("unicode_escape").decode("ascii").replace('"', '\\"')
    return '"' + escaped + '"'


class KeyValueFormatter(logging.Formatter):
    """Renders ``time=... level=... msg=... key=value`` lines.

    Extra keys come from a ``fields`` dict passed through ``extra=``.
    """

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            f"time={_quote(self.formatTime(record, self.datefmt))}",
            f"level={record.levelname.lower()}",
            f"msg={_quote(record.getMessage())}",
        ]
        for key, value in sorted(getattr(record, "fields", {}).items()):
            parts.append(f"{key}={_quote(value)}")
        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str = "DEBUG", stream=None) -> logging.Handler:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.DEBUG
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(KeyValueFormatter())
    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(numeric)
    # watchdog's inotify emitter is chatty at debug level
    logging.getLogger("watchdog").setLevel(max(numeric, logging.INFO))
    return handler
