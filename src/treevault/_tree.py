"""Vault path helpers and low-level tree manipulation.

Vault paths are posix-style, relative, and never carry leading or trailing
slashes.  The empty string is the mirror root.
"""

from __future__ import annotations

import os
import posixpath
from collections import defaultdict

from dulwich.objects import Blob, Tree

GIT_FILEMODE_TREE = 0o040000
GIT_FILEMODE_BLOB = 0o100644


def _to_posix(path: str | os.PathLike[str]) -> str:
    p = os.fspath(path)
    if os.sep != "/":
        p = p.replace(os.sep, "/")
    return p


def normalize_base_path(path: str | os.PathLike[str] | None) -> str:
    """Normalize a base path prefix: strip slashes, reject bad segments.

    ``None`` and ``""`` both mean "no prefix".
    """
    if path is None:
        return ""
    p = _to_posix(path).strip("/")
    if not p:
        return ""
    segments = p.split("/")
    for seg in segments:
        if not seg:
            raise ValueError(f"Empty segment in path: {p!r}")
        if seg in (".", ".."):
            raise ValueError(f"Invalid path segment: {seg!r}")
    return "/".join(segments)


def join_vault_path(base: str, rel: str) -> str:
    """Join *base* and *rel* into a vault path.

    ``join_vault_path("", "")`` is the mirror root, ``""``.
    """
    joined = posixpath.normpath(posixpath.join(base, _to_posix(rel)))
    if joined == ".":
        return ""
    return joined.lstrip("/")


def rebuild_tree(store, base_tree_id: bytes | None, writes: dict[str, bytes]) -> bytes:
    """Rebuild a tree with blob *writes* applied; return the new tree id.

    *writes* maps a non-empty vault path to a blob id.  Only the ancestor
    chain from changed leaves to the root is rebuilt; sibling subtrees are
    shared by hash reference.  A blob standing where a subtree is needed is
    replaced, and the reverse.
    """
    sub_writes: dict[str, dict[str, bytes]] = defaultdict(dict)
    leaf_writes: dict[str, bytes] = {}
    for path, blob_id in writes.items():
        parts = path.split("/", 1)
        if len(parts) == 1:
            leaf_writes[parts[0]] = blob_id
        else:
            sub_writes[parts[0]][parts[1]] = blob_id

    entries: dict[bytes, tuple[int, bytes]] = {}
    if base_tree_id is not None:
        for item in store[base_tree_id].iteritems():
            entries[item.path] = (item.mode, item.sha)

    for name, blob_id in leaf_writes.items():
        entries[name.encode()] = (GIT_FILEMODE_BLOB, blob_id)

    for subdir, child_writes in sub_writes.items():
        key = subdir.encode()
        existing = entries.get(key)
        existing_id = existing[1] if existing and existing[0] == GIT_FILEMODE_TREE else None
        entries[key] = (GIT_FILEMODE_TREE, rebuild_tree(store, existing_id, child_writes))

    tree = Tree()
    for name, (mode, sha) in sorted(entries.items()):
        tree.add(name, mode, sha)
    store.add_object(tree)
    return tree.id


def create_blob(store, data: bytes) -> bytes:
    blob = Blob.from_string(data)
    store.add_object(blob)
    return blob.id


def read_blob_at_path(store, tree_id: bytes, path: str) -> bytes:
    """Read a blob at the given vault path in the tree."""
    if not path:
        raise IsADirectoryError(path)
    obj = store[tree_id]
    for seg in path.split("/"):
        if not isinstance(obj, Tree):
            raise NotADirectoryError(path)
        try:
            _mode, sha = obj[seg.encode()]
        except KeyError:
            raise FileNotFoundError(path)
        obj = store[sha]
    if isinstance(obj, Tree):
        raise IsADirectoryError(path)
    return obj.data
