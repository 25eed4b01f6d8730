"""Import a file or directory tree into a vault, incrementally.

An :class:`Importer` walks the target, decides per entry whether to skip,
create, or update it by comparing size and mtime with its
:class:`~treevault.index.EntryIndex`, copies what changed into the vault,
and keeps running counters on an :class:`~treevault.status.ImportStatus`.

Use :func:`import_tree` for a one-shot synchronous import and
:func:`start_import` to run in the background, optionally staying live to
mirror later filesystem changes.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace

from ._exclude import IgnoreFilter, as_ignore_filter
from ._tree import join_vault_path, normalize_base_path
from .exceptions import (
    AppendError,
    ConflictError,
    ListError,
    StatError,
    TransferError,
)
from .index import DirectoryRecord, EntryIndex, FileRecord, mtime_ms
from .status import (
    CREATED,
    ERROR,
    FILE_IMPORTED,
    FILE_SKIPPED,
    UPDATED,
    ImportedFile,
    ImportStatus,
    SkippedFile,
)
from .vault import Vault
from .watch import DELETED, LiveWatcher, WatchState

logger = logging.getLogger(__name__)


@dataclass
class ImportOptions:
    """Options for one import.

    Attributes:
        live: Keep running after the initial walk and mirror later
            additions and changes.
        resume: Seed the entry index from the vault before walking, so only
            new or changed entries are transferred.
        base_path: Vault path prefix for every imported entry.
        ignore: Gitignore-style pattern(s) or an ``IgnoreFilter``; matching
            paths (relative to the target) are skipped entirely.
        debounce: Live-mode debounce window in milliseconds.
    """
    live: bool = False
    resume: bool = False
    base_path: str = ""
    ignore: IgnoreFilter | str | Iterable[str] | None = None
    debounce: int = 50


class Importer:
    """Mirror *target* into *vault*.

    The entry index and the status counters belong to this importer alone.
    Every decision runs under the importer's lock, so the initial walk and
    live events never interleave.
    """

    def __init__(self, vault: Vault, target: str | os.PathLike[str],
                 options: ImportOptions | None = None, **kwargs) -> None:
        if options is None:
            options = ImportOptions(**kwargs)
        elif kwargs:
            options = replace(options, **kwargs)
        self.vault = vault
        self.target = os.fspath(target)
        self.options = options
        self.base_path = normalize_base_path(options.base_path)
        self.ignore = as_ignore_filter(options.ignore)
        self.index = EntryIndex()
        self.status = ImportStatus()
        self.watcher: LiveWatcher | None = None
        self._target_abs = os.path.abspath(self.target)
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"Importer({self.vault!r}, {self.target!r})"

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    def _relative(self, path: str, is_dir: bool = False) -> str:
        """Path relative to the target; a file target maps to its basename."""
        abs_path = os.path.abspath(path)
        if abs_path == self._target_abs:
            return "" if is_dir else os.path.basename(self._target_abs)
        return os.path.relpath(abs_path, self._target_abs)

    def vault_path(self, path: str, is_dir: bool = False) -> str:
        """Return the vault path a source node is mirrored to."""
        return join_vault_path(self.base_path, self._relative(path, is_dir))

    def _ignored(self, path: str, is_dir: bool = False) -> bool:
        if not self.ignore.active:
            return False
        return self.ignore.matches(self._relative(path, is_dir), is_dir=is_dir)

    # ------------------------------------------------------------------
    # Walk
    # ------------------------------------------------------------------
    def seed(self) -> None:
        """Load the vault's current entries into the index and counters."""
        with self._lock:
            file_count, total_size = self.index.seed(self.vault.list_entries(live=False))
            self.status.file_count += file_count
            self.status.total_size += total_size
        logger.debug("seeded %d entries from %r", len(self.index), self.vault)

    def scan(self) -> None:
        """Run the initial import: seed (when resuming), then walk the target."""
        with self._lock:
            if self.options.resume:
                self.seed()
            self.walk(self.target)

    def _stat(self, path: str) -> os.stat_result:
        try:
            return os.stat(path)
        except OSError as exc:
            raise StatError(f"Cannot stat: {exc.strerror or exc}", path) from exc

    def walk(self, path: str) -> None:
        """Import *path* and, for a directory, everything below it.

        Children are walked one after another; the first failure stops the
        walk and propagates.
        """
        # the target itself is matched only once its kind is known
        is_target = os.path.abspath(path) == self._target_abs
        if not is_target and self._ignored(path):
            return
        st = self._stat(path)
        with self._lock:
            if stat.S_ISDIR(st.st_mode):
                if self._ignored(path, is_dir=True):
                    return
                self._consume_dir(path, st)
            else:
                if is_target and self._ignored(path):
                    return
                self._consume_file(path, st)

    def _consume_dir(self, path: str, st: os.stat_result) -> None:
        dest = self.vault_path(path, is_dir=True)
        mtime = mtime_ms(st)
        record = self.index.get(dest)
        if isinstance(record, FileRecord):
            raise ConflictError(f"Directory {dest!r} was imported as a file", path)

        if record is None or record.mtime != mtime:
            try:
                self.vault.append_directory(dest, mtime)
            except OSError as exc:
                raise AppendError(f"Cannot append directory {dest!r}: {exc}", dest) from exc
            self.index.record_directory(dest, mtime)
            logger.debug("directory %r recorded", dest)

        try:
            names = os.listdir(path)
        except OSError as exc:
            raise ListError(f"Cannot list directory: {exc.strerror or exc}", path) from exc
        for name in names:
            self.walk(os.path.join(path, name))

    def _consume_file(self, path: str, st: os.stat_result) -> None:
        dest = self.vault_path(path)
        size = st.st_size
        mtime = mtime_ms(st)
        record = self.index.get(dest)
        if isinstance(record, DirectoryRecord):
            raise ConflictError(f"File {dest!r} was imported as a directory", path)

        if record is None:
            self._transfer(path, dest, size, mtime)
            self.status.file_count += 1
            self.status.total_size += size
            mode = CREATED
        elif record.length != size or record.mtime != mtime:
            old_length = record.length
            self._transfer(path, dest, size, mtime)
            self.status.total_size += size - old_length
            mode = UPDATED
        else:
            logger.debug("skip %r", dest)
            self.status.emit(FILE_SKIPPED, SkippedFile(path))
            return

        logger.debug("%s %r (%d bytes)", mode, dest, size)
        self.status.emit(FILE_IMPORTED, ImportedFile(path, mode))

    def _transfer(self, path: str, dest: str, size: int, mtime: int) -> None:
        """Copy *path* into the vault at *dest*; index it only on success."""
        try:
            with open(path, "rb") as src:
                with self.vault.create_file_write_stream(dest, mtime=mtime) as dst:
                    shutil.copyfileobj(src, dst)
        except OSError as exc:
            raise TransferError(f"Cannot import file: {exc.strerror or exc}", path) from exc
        self.index.record_file(dest, size, mtime)

    # ------------------------------------------------------------------
    # Live mode
    # ------------------------------------------------------------------
    def handle_change(self, kind: str, path: str) -> None:
        """Apply one live filesystem event.

        Added and modified files go through the same decision as in a walk.
        Deletions and directory events are not mirrored.  Failures are
        reported as ``error`` notifications, never raised.
        """
        if kind == DELETED:
            return
        try:
            if self._ignored(path):
                return
            st = self._stat(path)
            if stat.S_ISDIR(st.st_mode):
                return
            with self._lock:
                self._consume_file(path, st)
        except Exception as exc:
            logger.debug("live event for %s failed: %s", path, exc)
            self.status.emit(ERROR, exc)

    def _watch_filter(self, change, path: str) -> bool:
        return not self._ignored(path, is_dir=os.path.isdir(path))

    def _start_watcher(self) -> LiveWatcher | None:
        watcher = LiveWatcher(
            [self.target],
            watch_filter=self._watch_filter if self.ignore.active else None,
            debounce=self.options.debounce,
        )
        if not self.status._add_closer(watcher.close):
            return None
        watcher.start()
        self.watcher = watcher
        return watcher

    def mirror(self, watcher: LiveWatcher) -> None:
        """Feed *watcher* events through :meth:`handle_change` until closed."""
        try:
            for event in watcher.events():
                self.handle_change(event.kind, event.path)
        except Exception as exc:
            self.status.emit(ERROR, exc)

    def run(self, on_complete: Callable[[BaseException | None], None] | None = None) -> None:
        """Run the whole import on the calling thread.

        *on_complete* is called exactly once after the initial walk, with
        the walk's error or None.  Without it, a walk error is emitted as an
        ``error`` notification.  In live mode this then blocks, mirroring
        changes until :meth:`ImportStatus.close` is called.

        A watcher that cannot be started (watchfiles missing, backend
        setup failure) is reported the same way, and nothing is walked.
        """
        watcher: LiveWatcher | None = None
        error: BaseException | None = None
        try:
            if self.options.live:
                watcher = self._start_watcher()
            if watcher is not None:
                watcher.state = WatchState.SCANNING
            self.scan()
        except Exception as exc:
            error = exc

        try:
            self._complete(on_complete, error)
        except BaseException:
            self.status.close()
            raise

        if watcher is not None:
            self.mirror(watcher)

    def _complete(self, on_complete, error: BaseException | None) -> None:
        try:
            if on_complete is None:
                if error is not None:
                    self.status.emit(ERROR, error)
                return
            try:
                on_complete(error)
            except Exception as exc:
                logger.debug("completion callback failed: %s", exc)
                self.status.emit(ERROR, exc)
        finally:
            self.status._mark_done(error)


def _attach(status: ImportStatus, listeners: Mapping[str, Callable] | None) -> None:
    for name, listener in (listeners or {}).items():
        status.on(name, listener)


def start_import(
    vault: Vault,
    target: str | os.PathLike[str],
    options: ImportOptions | None = None,
    on_complete: Callable[[BaseException | None], None] | None = None,
    *,
    listeners: Mapping[str, Callable] | None = None,
) -> ImportStatus:
    """Start importing *target* into *vault* on a background thread.

    Returns the :class:`ImportStatus` immediately.  *listeners* maps
    notification names to callbacks and is attached before any work starts,
    so no notification is missed.  Use ``status.wait()`` to block until the
    initial walk is done and ``status.close()`` to stop live mode.
    """
    importer = Importer(vault, target, options)
    _attach(importer.status, listeners)
    thread = threading.Thread(
        target=importer.run, args=(on_complete,),
        name="treevault-import", daemon=True,
    )
    thread.start()
    return importer.status


def import_tree(
    vault: Vault,
    target: str | os.PathLike[str],
    options: ImportOptions | None = None,
    *,
    listeners: Mapping[str, Callable] | None = None,
    **kwargs,
) -> ImportStatus:
    """Import *target* into *vault* on the calling thread and return the status.

    Raises the first failure.  Live mode needs :func:`start_import`.

    Example:
        >>> status = import_tree(vault, "photos/", resume=True)
        >>> status.file_count, status.total_size
    """
    importer = Importer(vault, target, options, **kwargs)
    if importer.options.live:
        raise ValueError("Live mode needs start_import()")
    _attach(importer.status, listeners)
    try:
        importer.scan()
    except Exception as exc:
        importer.status._mark_done(exc)
        raise
    importer.status._mark_done()
    return importer.status
