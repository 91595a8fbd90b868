"""Tests for the memory and disk backends."""

from __future__ import annotations

import sqlite3

import diskcache
import pytest

from rescache.backends import Backend, DiskBackend, MemoryBackend
from rescache.exceptions import StorageError


class _MinimalBackend(Backend):
    def read(self, key):
        return None

    def write(self, key, value):
        pass


@pytest.fixture(params=["memory", "disk"])
def any_backend(request, tmp_path):
    if request.param == "memory":
        yield MemoryBackend()
    else:
        b = DiskBackend(tmp_path / "responses")
        yield b
        b.close()


class TestReadWrite:
    def test_miss_returns_none(self, any_backend) -> None:
        assert any_backend.read("missing") is None

    def test_write_then_read(self, any_backend) -> None:
        any_backend.write("k", b"\x00payload")
        assert any_backend.read("k") == b"\x00payload"

    def test_overwrite(self, any_backend) -> None:
        any_backend.write("k", b"one")
        any_backend.write("k", b"two")
        assert any_backend.read("k") == b"two"
        assert len(any_backend) == 1

    def test_delete(self, any_backend) -> None:
        any_backend.write("k", b"v")
        assert any_backend.delete("k") is True
        assert any_backend.read("k") is None
        assert any_backend.delete("k") is False

    def test_clear_returns_count(self, any_backend) -> None:
        any_backend.write("a", b"1")
        any_backend.write("b", b"2")
        assert any_backend.clear() == 2
        assert len(any_backend) == 0

    def test_stats_size(self, any_backend) -> None:
        any_backend.write("a", b"1")
        assert any_backend.stats()["size"] == 1


class TestDiskBackend:
    def test_directory_created_lazily(self, tmp_path) -> None:
        directory = tmp_path / "lazy"
        backend = DiskBackend(directory)
        assert not directory.exists()
        backend.write("k", b"v")
        assert directory.is_dir()
        backend.close()

    def test_persists_across_instances(self, tmp_path) -> None:
        with DiskBackend(tmp_path / "d") as first:
            first.write("k", b"value")
        with DiskBackend(tmp_path / "d") as second:
            assert second.read("k") == b"value"

    def test_stats_directory(self, disk_backend, tmp_path) -> None:
        stats = disk_backend.stats()
        assert stats["backend"] == "disk"
        assert stats["directory"] == str(tmp_path / "responses")

    def test_double_close(self, tmp_path) -> None:
        backend = DiskBackend(tmp_path / "d")
        backend.write("k", b"v")
        backend.close()
        backend.close()

    def test_reopens_after_close(self, tmp_path) -> None:
        backend = DiskBackend(tmp_path / "d")
        backend.write("k", b"v")
        backend.close()
        assert backend.read("k") == b"v"
        backend.close()


class TestMinimalBackend:
    def test_maintenance_helpers_are_optional(self) -> None:
        backend = _MinimalBackend()
        assert backend.stats() == {"backend": "_MinimalBackend"}
        with pytest.raises(NotImplementedError):
            backend.clear()
        with pytest.raises(NotImplementedError):
            backend.delete("k")
        backend.close()

    def test_abstract_methods_required(self) -> None:
        with pytest.raises(TypeError):
            Backend()  # type: ignore[abstract]


def _locked(*args, **kwargs):
    raise sqlite3.OperationalError("database is locked")


class TestDiskBackendFailures:
    def test_stats_wraps_database_errors(self, disk_backend, monkeypatch) -> None:
        disk_backend.write("k", b"v")
        monkeypatch.setattr(diskcache.Cache, "volume", _locked)
        with pytest.raises(StorageError, match="statistics"):
            disk_backend.stats()

    def test_len_wraps_database_errors(self, disk_backend, monkeypatch) -> None:
        disk_backend.write("k", b"v")
        monkeypatch.setattr(diskcache.Cache, "__len__", _locked)
        with pytest.raises(StorageError, match="count"):
            len(disk_backend)

    def test_unusable_directory(self, tmp_path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(StorageError):
            DiskBackend(blocker).stats()
