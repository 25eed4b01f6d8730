"""Tests for the dulwich-backed vault."""

import pytest
from dulwich.repo import Repo as DulwichRepo

from treevault import Vault, VaultEntry
from treevault.vault import VAULT_REF


class TestAppend:
    def test_directory_marker(self, vault):
        vault.append_directory("", 1000)
        entries = list(vault.list_entries())
        assert entries == [VaultEntry(name="", type="directory", mtime=1000)]
        assert entries[0].is_directory

    def test_write_file(self, vault):
        entry = vault.write_file("a/b.txt", b"hello", mtime=42)
        assert entry.length == 5
        assert entry.blob is not None
        assert vault.read("a/b.txt") == b"hello"

    def test_identical_content_shares_blob(self, vault):
        a = vault.write_file("a.txt", b"same", mtime=1)
        b = vault.write_file("b.txt", b"same", mtime=2)
        assert a.blob == b.blob

    def test_file_without_blob_rejected(self, vault):
        with pytest.raises(ValueError):
            vault.append(VaultEntry(name="x", type="file", mtime=1, length=3))

    def test_file_without_name_rejected(self, vault):
        with pytest.raises(ValueError):
            vault.write_file("", b"x", mtime=1)

    def test_unknown_type_rejected(self, vault):
        with pytest.raises(ValueError):
            vault.append(VaultEntry(name="x", type="symlink", mtime=1))

    def test_append_is_one_commit_each(self, vault):
        vault.append_directory("", 1)
        vault.write_file("a", b"1", mtime=1)
        vault.write_file("a", b"2", mtime=2)
        assert sum(1 for _ in vault._log()) == 3


class TestListEntries:
    def test_last_append_wins_first_position_kept(self, vault):
        vault.append_directory("", 1)
        vault.write_file("a.txt", b"one", mtime=1)
        vault.write_file("b.txt", b"two", mtime=2)
        vault.write_file("a.txt", b"three!", mtime=3)
        entries = list(vault.list_entries())
        assert [e.name for e in entries] == ["", "a.txt", "b.txt"]
        assert entries[1].length == 6
        assert entries[1].mtime == 3
        assert vault.read("a.txt") == b"three!"

    def test_empty_vault(self, vault):
        assert list(vault.list_entries()) == []
        assert len(vault) == 0

    def test_live_listing_not_supported(self, vault):
        with pytest.raises(NotImplementedError):
            list(vault.list_entries(live=True))

    def test_len_and_contains(self, vault):
        vault.append_directory("", 1)
        vault.write_file("a.txt", b"x", mtime=1)
        vault.write_file("a.txt", b"y", mtime=2)
        assert len(vault) == 2
        assert "a.txt" in vault
        assert "b.txt" not in vault


class TestRead:
    def test_missing(self, vault):
        with pytest.raises(FileNotFoundError):
            vault.read("nope.txt")
        vault.write_file("a.txt", b"x", mtime=1)
        with pytest.raises(FileNotFoundError):
            vault.read("nope.txt")

    def test_directory(self, vault):
        vault.write_file("dir/a.txt", b"x", mtime=1)
        with pytest.raises(IsADirectoryError):
            vault.read("dir")


class TestWriteStream:
    def test_commit_on_close(self, vault):
        w = vault.create_file_write_stream("f.bin", mtime=7)
        w.write(b"ab")
        w.write(b"cd")
        assert "f.bin" not in vault
        w.close()
        assert w.closed
        assert w.entry.length == 4
        assert vault.read("f.bin") == b"abcd"

    def test_context_manager(self, vault):
        with vault.create_file_write_stream("f.bin", mtime=7) as w:
            w.write(b"data")
        assert vault.get("f.bin").mtime == 7

    def test_exception_discards(self, vault):
        with pytest.raises(RuntimeError):
            with vault.create_file_write_stream("f.bin", mtime=7) as w:
                w.write(b"partial")
                raise RuntimeError("boom")
        assert "f.bin" not in vault

    def test_write_after_close(self, vault):
        w = vault.create_file_write_stream("f.bin", mtime=7)
        w.close()
        with pytest.raises(ValueError):
            w.write(b"late")

    def test_close_twice(self, vault):
        w = vault.create_file_write_stream("f.bin", mtime=7)
        w.close()
        w.close()
        assert sum(1 for _ in vault._log()) == 1


class TestOpen:
    def test_create_and_reopen(self, tmp_path):
        path = tmp_path / "v.vault"
        v = Vault.open(path)
        v.write_file("a.txt", b"persisted", mtime=5)

        again = Vault.open(path, create=False)
        assert again.read("a.txt") == b"persisted"
        assert [e.name for e in again.list_entries()] == ["a.txt"]

    def test_missing_no_create(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Vault.open(tmp_path / "missing.vault", create=False)

    def test_is_a_bare_git_repo(self, tmp_path):
        path = tmp_path / "v.vault"
        Vault.open(path).write_file("a.txt", b"x", mtime=1)
        repo = DulwichRepo(str(path))
        assert VAULT_REF in repo.refs.allkeys()
        assert repo.bare


class TestEntryJson:
    def test_directory_has_no_length(self):
        raw = VaultEntry(name="d", type="directory", mtime=3).to_json()
        assert b"length" not in raw
        assert VaultEntry.from_json(raw) == VaultEntry(name="d", type="directory", mtime=3)

    def test_file(self):
        e = VaultEntry(name="f", type="file", mtime=3, length=9, blob="ab" * 20)
        assert VaultEntry.from_json(e.to_json()) == e
