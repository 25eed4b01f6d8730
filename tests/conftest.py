"""Shared fixtures for treevault tests."""

import os

import pytest
from click.testing import CliRunner

from treevault import Vault

# Fixed mtimes (ns, whole milliseconds) so size+mtime comparisons are exact.
MTIME_D = 1_600_000_000_000_000_000
MTIME_E = 1_600_000_001_000_000_000
MTIME_DIR = 1_600_000_002_000_000_000


def set_mtime(path, ns):
    os.utime(path, ns=(ns, ns))


@pytest.fixture
def vault():
    """An empty in-memory vault."""
    return Vault.memory()


@pytest.fixture
def tree(tmp_path):
    """Directory with d.txt (4 bytes) and e.txt (5 bytes).

    Returned path has a trailing separator, like a shell-completed dir.
    """
    root = tmp_path / "a" / "b" / "c"
    root.mkdir(parents=True)
    (root / "d.txt").write_bytes(b"abc\n")
    (root / "e.txt").write_bytes(b"abcd\n")
    set_mtime(root / "d.txt", MTIME_D)
    set_mtime(root / "e.txt", MTIME_E)
    set_mtime(root, MTIME_DIR)
    return str(root) + os.sep


# ---------------------------------------------------------------------------
# CLI fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def vault_path(tmp_path):
    """Return a path to a not-yet-created vault."""
    return str(tmp_path / "test.vault")
