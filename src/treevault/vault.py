"""Vault: an append-only, content-addressed entry log backed by git objects.

Every append is one commit on the vault ref.  The commit message holds the
entry metadata as JSON; the commit tree is the namespace of file contents,
so file bytes are stored as content-addressed blobs and identical content
is stored once.  Directory markers change the log but not the tree.
"""

from __future__ import annotations

import io
import json
import logging
import os
import threading
import time
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from dulwich.objects import Commit, Tree
from dulwich.repo import MemoryRepo, Repo

from ._tree import create_blob, read_blob_at_path, rebuild_tree

logger = logging.getLogger(__name__)

VAULT_REF = b"refs/heads/main"

FILE = "file"
DIRECTORY = "directory"


@dataclass(frozen=True)
class VaultEntry:
    """One named node in the vault namespace.

    *mtime* is integer epoch milliseconds.  Directory entries have
    ``length == 0`` and no blob.
    """
    name: str
    type: str
    mtime: int
    length: int = 0
    blob: str | None = None

    @property
    def is_directory(self) -> bool:
        return self.type == DIRECTORY

    def to_json(self) -> bytes:
        data = {"name": self.name, "type": self.type, "mtime": self.mtime}
        if self.type == FILE:
            data["length"] = self.length
            data["blob"] = self.blob
        return json.dumps(data, sort_keys=True).encode()

    @classmethod
    def from_json(cls, raw: bytes) -> VaultEntry:
        data = json.loads(raw)
        return cls(
            name=data["name"],
            type=data["type"],
            mtime=int(data["mtime"]),
            length=int(data.get("length", 0)),
            blob=data.get("blob"),
        )


class Vault:
    """Append-only entry log stored in a git repository."""

    def __init__(self, repo, *, ref: bytes = VAULT_REF,
                 author: str = "treevault", email: str = "treevault@localhost"):
        self._repo = repo
        self._ref = ref
        self._identity = f"{author} <{email}>".encode()
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        path = getattr(self._repo, "path", None)
        return f"Vault({path!r})" if path else "Vault(<memory>)"

    @classmethod
    def open(cls, path: str | os.PathLike[str], *, create: bool = True) -> Vault:
        """Open or create a vault stored in a bare git repository.

        Args:
            path: Path to the bare repository.
            create: If True (default), create the repo when it doesn't exist.
                    If False, raise FileNotFoundError when missing.
        """
        path = Path(path)
        if path.exists():
            return cls(Repo(str(path)))
        if not create:
            raise FileNotFoundError(f"Vault not found: {path}")
        repo = Repo.init_bare(str(path), mkdir=True)
        repo.refs.set_symbolic_ref(b"HEAD", VAULT_REF)
        return cls(repo)

    @classmethod
    def memory(cls) -> Vault:
        """Create a vault that lives only in memory."""
        return cls(MemoryRepo())

    # ------------------------------------------------------------------
    def _head(self) -> bytes | None:
        try:
            return self._repo.refs[self._ref]
        except KeyError:
            return None

    def _commit_entry(self, entry: VaultEntry, writes: dict[str, bytes]) -> None:
        store = self._repo.object_store
        with self._lock:
            head = self._head()
            base_tree = store[head].tree if head is not None else None
            if writes:
                tree_id = rebuild_tree(store, base_tree, writes)
            elif base_tree is not None:
                tree_id = base_tree
            else:
                empty = Tree()
                store.add_object(empty)
                tree_id = empty.id

            c = Commit()
            c.tree = tree_id
            c.parents = [head] if head is not None else []
            c.author = c.committer = self._identity
            c.author_time = c.commit_time = int(time.time())
            c.author_timezone = c.commit_timezone = 0
            c.encoding = b"UTF-8"
            c.message = entry.to_json() + b"\n"
            store.add_object(c)
            self._repo.refs[self._ref] = c.id
        logger.debug("vault append %s %r", entry.type, entry.name)

    def append(self, entry: VaultEntry) -> VaultEntry:
        """Append *entry* to the log.

        File entries must reference a blob already in the object store.
        """
        if entry.type == FILE:
            if not entry.name:
                raise ValueError("File entries need a non-empty name")
            if entry.blob is None:
                raise ValueError(f"File entry without blob: {entry.name!r}")
            self._commit_entry(entry, {entry.name: entry.blob.encode()})
        elif entry.type == DIRECTORY:
            self._commit_entry(entry, {})
        else:
            raise ValueError(f"Unknown entry type: {entry.type!r}")
        return entry

    def append_directory(self, name: str, mtime: int) -> VaultEntry:
        """Append a directory marker for *name*."""
        return self.append(VaultEntry(name=name, type=DIRECTORY, mtime=mtime))

    def write_file(self, name: str, data: bytes, *, mtime: int) -> VaultEntry:
        """Store *data* as a blob and append a file entry for it."""
        blob_id = create_blob(self._repo.object_store, data)
        entry = VaultEntry(name=name, type=FILE, mtime=mtime,
                           length=len(data), blob=blob_id.decode())
        return self.append(entry)

    def create_file_write_stream(self, name: str, *, mtime: int) -> VaultWriter:
        """Return a writable sink; the file entry is appended on close.

        The bytes are buffered in memory until close, so the whole file is
        held at once.
        """
        return VaultWriter(self, name, mtime)

    # ------------------------------------------------------------------
    def _log(self) -> Iterator[VaultEntry]:
        """Yield every appended entry, newest first."""
        store = self._repo.object_store
        sha = self._head()
        while sha is not None:
            commit = store[sha]
            yield VaultEntry.from_json(commit.message)
            sha = commit.parents[0] if commit.parents else None

    def list_entries(self, live: bool = False) -> Iterator[VaultEntry]:
        """Yield the current entry for every name, in first-append order.

        The last append for a name wins.  The iterator is single-pass.
        """
        if live:
            raise NotImplementedError("Live listing is not supported")
        latest: dict[str, VaultEntry] = {}
        # reassigning a key keeps its first-append position
        for entry in reversed(list(self._log())):
            latest[entry.name] = entry
        yield from latest.values()

    def get(self, name: str) -> VaultEntry | None:
        for entry in self._log():
            if entry.name == name:
                return entry
        return None

    def read(self, name: str) -> bytes:
        """Return the current bytes of the file at *name*."""
        head = self._head()
        if head is None:
            raise FileNotFoundError(name)
        return read_blob_at_path(self._repo.object_store, self._repo.object_store[head].tree, name)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __len__(self) -> int:
        return len({entry.name for entry in self._log()})


class VaultWriter:
    """Writable file-like object that appends a file entry on close."""

    def __init__(self, vault: Vault, name: str, mtime: int):
        self._vault = vault
        self._name = name
        self._mtime = mtime
        self._buf = io.BytesIO()
        self._closed = False
        self.entry: VaultEntry | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    def readable(self) -> bool:
        return False

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError("I/O operation on closed file.")
        return self._buf.write(data)

    def close(self) -> None:
        if not self._closed:
            self.entry = self._vault.write_file(self._name, self._buf.getvalue(), mtime=self._mtime)
            self._closed = True

    def abort(self) -> None:
        """Discard buffered data without appending anything."""
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.close()
        else:
            self.abort()
        return False
