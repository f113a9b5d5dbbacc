"""Unit tests for bzlq.cache."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from bzlq.cache import QueryCache
from bzlq.errors import ExternalToolError, StorageError
from bzlq.models.workspace import Dataset

if TYPE_CHECKING:
    from pathlib import Path

    from conftest import FakeRunner


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


class TestPaths:
    def test_path_layout(self, cache: QueryCache, cache_root: Path) -> None:
        assert cache.path_for("ws", Dataset.QUERY) == cache_root / "ws" / "query.bin"
        assert cache.path_for("ws", "external") == cache_root / "ws" / "external.bin"
        assert cache.path_for("ws", Dataset.TARGETS) == cache_root / "ws" / "targets.bin"

    def test_path_for_has_no_side_effects(self, cache: QueryCache, cache_root: Path) -> None:
        cache.path_for("ws", Dataset.QUERY)
        assert not cache_root.exists()

    def test_unknown_dataset_rejected(self, cache: QueryCache) -> None:
        with pytest.raises(ValueError):
            cache.path_for("ws", "bogus")

    def test_exists_tracks_file_presence(self, cache: QueryCache) -> None:
        assert cache.exists("ws", Dataset.QUERY) is False
        cache.write("ws", Dataset.QUERY, b"payload")
        assert cache.exists("ws", Dataset.QUERY) is True


# ---------------------------------------------------------------------------
# get_or_run / force_update
# ---------------------------------------------------------------------------


class TestGetOrRun:
    def test_miss_runs_query_and_persists(
        self, cache: QueryCache, fake_runner: FakeRunner
    ) -> None:
        fake_runner.set("//...", b"\x0a\x00")

        data = cache.get_or_run("ws", Dataset.QUERY, "//...")

        assert data == b"\x0a\x00"
        assert fake_runner.calls == [("query", "//...")]
        assert cache.path_for("ws", Dataset.QUERY).read_bytes() == b"\x0a\x00"

    def test_second_call_is_served_from_cache(
        self, cache: QueryCache, fake_runner: FakeRunner
    ) -> None:
        fake_runner.set("//...", b"first")

        first = cache.get_or_run("ws", Dataset.QUERY, "//...")
        fake_runner.set("//...", b"second")
        second = cache.get_or_run("ws", Dataset.QUERY, "//...")

        assert first == second == b"first"
        assert len(fake_runner.calls) == 1

    def test_existing_file_never_spawns(self, cache: QueryCache, fake_runner: FakeRunner) -> None:
        cache.write("ws", Dataset.QUERY, b"seeded")
        assert cache.get_or_run("ws", Dataset.QUERY, "//...") == b"seeded"
        assert cache.get_or_run("ws", Dataset.QUERY, "//...") == b"seeded"
        assert fake_runner.calls == []

    def test_empty_file_is_still_a_hit(self, cache: QueryCache, fake_runner: FakeRunner) -> None:
        cache.write("ws", Dataset.QUERY, b"")
        assert cache.get_or_run("ws", Dataset.QUERY, "//...") == b""
        assert fake_runner.calls == []

    def test_verb_is_forwarded(self, cache: QueryCache, fake_runner: FakeRunner) -> None:
        fake_runner.set("//...", b"configured", verb="cquery")
        assert cache.get_or_run("ws", Dataset.CQUERY, "//...", "cquery") == b"configured"
        assert fake_runner.calls == [("cquery", "//...")]

    def test_force_update_bypasses_cache(
        self, cache: QueryCache, fake_runner: FakeRunner
    ) -> None:
        cache.write("ws", Dataset.QUERY, b"stale")
        fake_runner.set("//...", b"fresh")

        assert cache.force_update("ws", Dataset.QUERY, "//...") == b"fresh"
        assert cache.read("ws", Dataset.QUERY) == b"fresh"

    def test_tool_failure_leaves_no_file(self, cache: QueryCache, fake_runner: FakeRunner) -> None:
        fake_runner.set("//...", ExternalToolError("boom", returncode=7))

        with pytest.raises(ExternalToolError):
            cache.get_or_run("ws", Dataset.QUERY, "//...")
        assert not cache.exists("ws", Dataset.QUERY)

    def test_workspaces_are_isolated(self, cache: QueryCache, fake_runner: FakeRunner) -> None:
        fake_runner.set("//...", b"root")
        fake_runner.set("@dep//...", b"dep")

        cache.get_or_run("root", Dataset.QUERY, "//...")
        cache.get_or_run("dep", Dataset.QUERY, "@dep//...")

        assert cache.read("root", Dataset.QUERY) == b"root"
        assert cache.read("dep", Dataset.QUERY) == b"dep"


# ---------------------------------------------------------------------------
# Storage failures
# ---------------------------------------------------------------------------


class TestStorage:
    def test_write_leaves_no_temp_file(self, cache: QueryCache) -> None:
        path = cache.write("ws", Dataset.TARGETS, b"data")
        assert sorted(p.name for p in path.parent.iterdir()) == ["targets.bin"]

    def test_write_replaces_existing(self, cache: QueryCache) -> None:
        cache.write("ws", Dataset.TARGETS, b"old contents that are longer")
        cache.write("ws", Dataset.TARGETS, b"new")
        assert cache.read("ws", Dataset.TARGETS) == b"new"

    def test_unwritable_root_raises_storage_error(
        self, tmp_path: Path, fake_runner: FakeRunner
    ) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        cache = QueryCache(blocker, fake_runner)

        with pytest.raises(StorageError, match="Unable to write"):
            cache.write("ws", Dataset.QUERY, b"data")

    def test_replace_failure_raises_storage_error(
        self, cache: QueryCache, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def failing_replace(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", failing_replace)
        with pytest.raises(StorageError):
            cache.write("ws", Dataset.QUERY, b"data")
        assert not cache.exists("ws", Dataset.QUERY)
        assert list(cache.workspace_dir("ws").iterdir()) == []

    def test_read_missing_raises_storage_error(self, cache: QueryCache) -> None:
        with pytest.raises(StorageError, match="Unable to read"):
            cache.read("ws", Dataset.TARGETS)
