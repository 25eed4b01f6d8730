"""Tests for IgnoreFilter."""

import pytest

from treevault import IgnoreFilter
from treevault._exclude import as_ignore_filter


class TestIgnoreFilter:
    def test_no_patterns_not_active(self):
        f = IgnoreFilter()
        assert f.active is False
        assert f.matches("anything.txt") is False

    def test_pattern_match(self):
        f = IgnoreFilter(["*.pyc"])
        assert f.active is True
        assert f.matches("foo.pyc") is True
        assert f.matches("sub/bar.pyc") is True
        assert f.matches("foo.py") is False

    def test_directory_pattern(self):
        f = IgnoreFilter(["build/"])
        assert f.matches("build", is_dir=True) is True
        # A file named "build" is not matched by "build/"
        assert f.matches("build", is_dir=False) is False

    def test_below_ignored_directory(self):
        f = IgnoreFilter(["build/"])
        assert f.matches("build/out.o") is True
        assert f.matches("build/sub", is_dir=True) is True
        assert f.matches("src/out.o") is False

    def test_negation(self):
        f = IgnoreFilter(["*.pyc", "!important.pyc"])
        assert f.matches("foo.pyc") is True
        assert f.matches("important.pyc") is False

    def test_anchored(self):
        f = IgnoreFilter(["/build"])
        assert f.matches("build") is True
        assert f.matches("src/build") is False

    def test_root_never_matched(self):
        f = IgnoreFilter(["*"])
        assert f.matches("", is_dir=True) is False

    def test_exclude_from_file(self, tmp_path):
        pfile = tmp_path / "excludes.txt"
        pfile.write_text("*.log\n# comment\n\n__pycache__/\n")
        f = IgnoreFilter(exclude_from=str(pfile))
        assert f.active is True
        assert f.matches("app.log") is True
        assert f.matches("__pycache__", is_dir=True) is True
        assert f.matches("app.py") is False

    def test_patterns_and_file_combined(self, tmp_path):
        pfile = tmp_path / "excludes.txt"
        pfile.write_text("*.log\n")
        f = IgnoreFilter(["*.tmp"], exclude_from=pfile)
        assert f.matches("a.log") is True
        assert f.matches("a.tmp") is True


class TestAsIgnoreFilter:
    def test_none(self):
        assert as_ignore_filter(None).active is False

    def test_string(self):
        assert as_ignore_filter("*.tmp").matches("x.tmp") is True

    def test_iterable(self):
        f = as_ignore_filter(("*.a", "*.b"))
        assert f.matches("x.a") and f.matches("x.b")

    def test_passthrough(self):
        f = IgnoreFilter(["*.a"])
        assert as_ignore_filter(f) is f

    @pytest.mark.parametrize("value", [[], ()])
    def test_empty_iterable_inactive(self, value):
        assert as_ignore_filter(value).active is False
