"""Integration test fixtures.

Provides a throwaway Bazel workspace and Settings pointing the cache at an
isolated tmp directory. Query payload builders come from tests/conftest.py.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from bzlq.config import Settings

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def workspace_dir(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    (root / "app").mkdir(parents=True)
    (root / "MODULE.bazel").write_text('module(name = "demo_repo", version = "0.1.0")\n')
    return root


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(cache={"root_dir": str(tmp_path / "cache")}, logging={"level": "ERROR"})
