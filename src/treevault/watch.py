"""Live mode: watch the import target and queue change events.

The watchfiles backend runs on a daemon thread and only enqueues events;
the importer drains them one at a time on its own thread, so live
decisions never overlap each other or the initial walk.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from collections.abc import Callable, Iterator
from enum import Enum
from typing import NamedTuple

logger = logging.getLogger(__name__)

ADDED = "added"
MODIFIED = "modified"
DELETED = "deleted"


class WatchState(str, Enum):
    """Lifecycle of a :class:`LiveWatcher`."""
    INITIALIZING = "initializing"
    SCANNING = "scanning"
    MIRRORING = "mirroring"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value


class WatchEvent(NamedTuple):
    kind: str  # ADDED, MODIFIED or DELETED
    path: str


def _import_watchfiles():
    """Lazy-import watchfiles, raising a friendly error if missing."""
    try:
        import watchfiles
        return watchfiles
    except ImportError as exc:
        raise ImportError(
            "watchfiles is required for live mode.\n"
            "Install it with: pip install treevault[watch]"
        ) from exc


_CLOSE = object()


class LiveWatcher:
    """Watch *paths* and hand change events to a single consumer.

    Args:
        paths: Files or directories to watch.
        watch_filter: ``(change, path) -> bool``; events for which it
            returns False are dropped by the backend.
        debounce: Backend debounce window in milliseconds.
        ready_timeout: Milliseconds after which an idle backend yields,
            which is how the first "watching" signal arrives when nothing
            changes.
    """

    def __init__(
        self,
        paths,
        *,
        watch_filter: Callable[[object, str], bool] | None = None,
        debounce: int = 50,
        ready_timeout: int = 200,
    ) -> None:
        if isinstance(paths, (str, os.PathLike)):
            paths = [paths]
        self._paths = [os.fspath(p) for p in paths]
        self._watch_filter = watch_filter
        self._debounce = debounce
        self._ready_timeout = ready_timeout
        self._stop_event = threading.Event()
        self._ready = threading.Event()
        self._queue: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None
        self._closed = False
        self.state = WatchState.INITIALIZING
        self.error: BaseException | None = None

    def __repr__(self) -> str:
        return f"LiveWatcher({self._paths!r}, state={self.state})"

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Register the watch on a background thread."""
        watchfiles = _import_watchfiles()
        if self._closed or self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, args=(watchfiles,),
            name="treevault-watch", daemon=True,
        )
        self._thread.start()
        logger.debug("watching %s", ", ".join(self._paths))

    def _run(self, watchfiles) -> None:
        try:
            for changes in watchfiles.watch(
                *self._paths,
                watch_filter=self._watch_filter,
                debounce=self._debounce,
                stop_event=self._stop_event,
                rust_timeout=self._ready_timeout,
                yield_on_timeout=True,
            ):
                self._ready.set()
                for change, path in sorted(changes, key=lambda c: (c[1], c[0])):
                    self._queue.put(WatchEvent(change.name, path))
        except Exception as exc:
            # Handed to the consumer through events()
            self.error = exc
        finally:
            self._ready.set()
            self._queue.put(_CLOSE)

    def wait_ready(self, timeout: float | None = None) -> bool:
        """Block until the backend is watching; False on timeout."""
        return self._ready.wait(timeout)

    def events(self) -> Iterator[WatchEvent]:
        """Yield queued events until the watcher is closed.

        Waits for the backend's ready signal first.  Re-raises a backend
        failure unless the watcher was closed.
        """
        self.wait_ready()
        if not self._closed:
            self.state = WatchState.MIRRORING
        while True:
            item = self._queue.get()
            if self._closed:
                return
            if item is _CLOSE:
                if self.error is not None:
                    raise self.error
                return
            yield item

    def close(self) -> None:
        """Stop watching.  Idempotent; a no-op for a never-started watcher."""
        if self._closed:
            return
        self._closed = True
        self.state = WatchState.CLOSED
        self._stop_event.set()
        self._ready.set()
        self._queue.put(_CLOSE)
        logger.debug("stopped watching %s", ", ".join(self._paths))
