"""Observable status of one import: counters plus notifications."""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Callable
from typing import NamedTuple

FILE_IMPORTED = "file imported"
FILE_SKIPPED = "file skipped"
ERROR = "error"

NOTIFICATIONS = (FILE_IMPORTED, FILE_SKIPPED, ERROR)

CREATED = "created"
UPDATED = "updated"


class ImportedFile(NamedTuple):
    path: str
    mode: str  # CREATED or UPDATED


class SkippedFile(NamedTuple):
    path: str


class ImportStatus:
    """Running counters and notifications for one import.

    ``file_count`` and ``total_size`` update as the import proceeds.
    Subscribe with :meth:`on`; :meth:`close` stops live mirroring.
    Listeners run synchronously on the thread doing the import.
    """

    def __init__(self) -> None:
        self.file_count = 0
        self.total_size = 0
        self.error: BaseException | None = None
        self._listeners: dict[str, list[Callable]] = defaultdict(list)
        self._done = threading.Event()
        self._closed = False
        self._closers: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return (f"ImportStatus(file_count={self.file_count}, "
                f"total_size={self.total_size}, closed={self._closed})")

    # ------------------------------------------------------------------
    def on(self, name: str, listener: Callable) -> Callable:
        """Call *listener* for every *name* notification; returns it."""
        if name not in NOTIFICATIONS:
            raise ValueError(f"Unknown notification: {name!r}")
        self._listeners[name].append(listener)
        return listener

    def off(self, name: str, listener: Callable) -> None:
        try:
            self._listeners[name].remove(listener)
        except ValueError:
            pass

    def emit(self, name: str, payload) -> None:
        for listener in list(self._listeners[name]):
            listener(payload)

    # ------------------------------------------------------------------
    @property
    def done(self) -> bool:
        """True once the initial walk has finished and been reported."""
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the initial walk finished; False on timeout.

        The completion callback (or the ``error`` notification standing in
        for it) has run by the time this returns True.
        """
        return self._done.wait(timeout)

    def _mark_done(self, error: BaseException | None = None) -> None:
        self.error = error
        self._done.set()

    # ------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    def _add_closer(self, closer: Callable[[], None]) -> bool:
        """Register *closer* to run on close; False if already closed."""
        with self._lock:
            if self._closed:
                return False
            self._closers.append(closer)
            return True

    def close(self) -> None:
        """Stop processing live events.  Safe to call more than once.

        A transfer already in progress is allowed to finish.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            closers, self._closers = self._closers, []
        for closer in closers:
            closer()
