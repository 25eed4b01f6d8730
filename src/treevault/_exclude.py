"""Ignore-rule support for imports.

Combines ``ignore`` patterns and an optional ``exclude_from`` pattern file
into a single predicate used by the tree walker and the live watcher.

Pattern syntax follows gitignore rules (implemented by
``dulwich.ignore.IgnoreFilter``).  Paths are matched relative to the
import target, with ``/`` separators.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from dulwich.ignore import IgnoreFilter as _DIgnoreFilter


class IgnoreFilter:
    """Combines ignore patterns and an ``exclude_from`` file."""

    def __init__(
        self,
        patterns: Iterable[str] | None = None,
        *,
        exclude_from: str | os.PathLike[str] | None = None,
    ) -> None:
        lines: list[bytes] = []
        for p in patterns or ():
            lines.append(p.encode("utf-8"))
        if exclude_from is not None:
            for raw in Path(exclude_from).read_bytes().splitlines():
                line = raw.strip()
                if line and not line.startswith(b"#"):
                    lines.append(line)
        self._lines = lines
        self._filter: _DIgnoreFilter | None = _DIgnoreFilter(lines) if lines else None

    def __repr__(self) -> str:
        return f"IgnoreFilter({[ln.decode('utf-8', 'replace') for ln in self._lines]!r})"

    @property
    def active(self) -> bool:
        """True if any pattern is configured."""
        return self._filter is not None

    def matches(self, rel_path: str, *, is_dir: bool = False) -> bool:
        """Return True if *rel_path* is ignored.

        The target root itself (``""``) is never ignored.  A path below an
        ignored directory is ignored too, since the walker never enters
        that directory.
        """
        if self._filter is None or not rel_path:
            return False
        if os.sep != "/":
            rel_path = rel_path.replace(os.sep, "/")
        parts = rel_path.strip("/").split("/")
        for depth in range(1, len(parts)):
            if self._filter.is_ignored("/".join(parts[:depth]) + "/") is True:
                return True
        check = rel_path + "/" if is_dir else rel_path
        return self._filter.is_ignored(check) is True


def as_ignore_filter(value) -> IgnoreFilter:
    """Coerce ``None``, a pattern string, or an iterable of patterns."""
    if isinstance(value, IgnoreFilter):
        return value
    if value is None:
        return IgnoreFilter()
    if isinstance(value, str):
        return IgnoreFilter([value])
    return IgnoreFilter(list(value))
