from .vault import Vault, VaultEntry, VaultWriter
from .index import EntryIndex, FileRecord, DirectoryRecord
from .status import ImportStatus, ImportedFile, SkippedFile, FILE_IMPORTED, FILE_SKIPPED, ERROR
from .importer import Importer, ImportOptions, import_tree, start_import
from .watch import LiveWatcher, WatchEvent, WatchState
from ._exclude import IgnoreFilter
from .exceptions import (
    ImportFailure, StatError, ListError, TransferError, AppendError, ConflictError,
)

__all__ = [
    "Vault", "VaultEntry", "VaultWriter",
    "EntryIndex", "FileRecord", "DirectoryRecord",
    "ImportStatus", "ImportedFile", "SkippedFile", "FILE_IMPORTED", "FILE_SKIPPED", "ERROR",
    "Importer", "ImportOptions", "import_tree", "start_import",
    "LiveWatcher", "WatchEvent", "WatchState", "IgnoreFilter",
    "ImportFailure", "StatError", "ListError", "TransferError", "AppendError", "ConflictError",
]
