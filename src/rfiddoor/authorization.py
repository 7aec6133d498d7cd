"""Allow list: token -> identity, reloaded whenever its file is rewritten.

The list file holds one entry per line, ``TOKEN name words...``. Lines with
fewer than two whitespace-separated fields are skipped.
"""
from __future__ import annotations
import logging
import os
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .events import EventChannel, ReloadRequested
from .exceptions import ReloadFailure, StartupFailure

logger = logging.getLogger(__name__)

WRITE_EVENT_TYPES = (EVENT_TYPE_MODIFIED, EVENT_TYPE_CREATED, EVENT_TYPE_MOVED)


def load_table(path: str) -> Dict[str, str]:
    try:
        with open(path, encoding="utf-8", errors="replace") as fh:
            content = fh.read()
    except OSError as e:
        raise ReloadFailure(f"could not read allow list {path}: {e}") from e

    users: Dict[str, str] = {}
    for line in content.splitlines():
        fields = line.split()
        if len(fields) > 1:
            users[fields[0]] = " ".join(fields[1:])
    return users


class AuthorizationTable:
    """Holds the current allow list.

    The mapping is never mutated; a reload builds a new one and swaps the
    reference, so a lookup sees either the old or the new list.
    """

    def __init__(self, path: str, entries: Optional[Mapping[str, str]] = None):
        self.path = path
        self._entries: Mapping[str, str] = MappingProxyType(dict(entries or {}))

    @classmethod
    def from_file(cls, path: str) -> "AuthorizationTable":
        table = cls(path)
        try:
            table.load()
        except ReloadFailure as e:
            raise StartupFailure(str(e)) from e
        return table

    def load(self) -> None:
        self._entries = MappingProxyType(load_table(self.path))

    def reload(self) -> bool:
        try:
            self.load()
        except ReloadFailure as e:
            logger.error("failed to reload user list", extra={"fields": {"err": str(e)}})
            return False
        logger.debug("reloaded user list; found %d users", len(self))
        return True

    def lookup(self, token: str) -> Optional[str]:
        return self._entries.get(token)

    def snapshot(self) -> Mapping[str, str]:
        return self._entries

    def __contains__(self, token: object) -> bool:
        return token in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class _ListFileHandler(FileSystemEventHandler):
    def __init__(self, target: str, channel: EventChannel):
        self.target = target
        self.channel = channel

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in WRITE_EVENT_TYPES:
            return
        # editors that save via rename land the list as the move destination
        path = getattr(event, "dest_path", "") if event.event_type == EVENT_TYPE_MOVED else event.src_path
        if os.fsdecode(path) != self.target:
            return
        self.channel.post(ReloadRequested(path=self.target, event_type=event.event_type))


class AuthorizationWatcher:
    """Watches the directory holding the list file.

    Watching the file itself would stop at the first delete that some editors
    do before rewriting, so the parent directory is watched and events are
    filtered down to the list path.
    """

    def __init__(self, path: str, channel: EventChannel):
        self.path = os.path.abspath(path)
        self.directory = os.path.dirname(self.path)
        self.handler = _ListFileHandler(self.path, channel)
        self._observer = None

    def start(self) -> None:
        observer = Observer()
        try:
            observer.schedule(self.handler, self.directory, recursive=False)
            observer.start()
        except OSError as e:
            raise StartupFailure(f"could not watch {self.directory}: {e}") from e
        self._observer = observer
        logger.debug("watching %s for changes to %s", self.directory, os.path.basename(self.path))

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None
