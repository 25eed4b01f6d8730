"""Exceptions for treevault."""

from __future__ import annotations


class ImportFailure(OSError):
    """Base class for failures while importing a tree into a vault.

    *path* is the source path (or vault path for :class:`AppendError`)
    the failing step was working on.  The underlying ``OSError``, if any,
    is chained as ``__cause__``.
    """

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        msg = self.args[0] if self.args else ""
        if self.path is not None and self.path not in msg:
            return f"{msg}: {self.path}"
        return msg


class StatError(ImportFailure):
    """Raised when a node vanished or could not be stat'ed."""


class ListError(ImportFailure):
    """Raised when a directory could not be listed."""


class TransferError(ImportFailure):
    """Raised when copying a file's bytes into the vault failed.

    The entry index is never updated for a failed transfer, so the next
    walk (or live event) for the same file treats it as not yet imported.
    """


class AppendError(ImportFailure):
    """Raised when appending a directory marker to the vault failed."""


class ConflictError(ImportFailure):
    """Raised when a path changed kind (file <-> directory) between imports.

    The entry index records one kind per destination path.  Rather than
    overwrite a directory with a file (or the reverse), the import stops
    at that path.
    """
