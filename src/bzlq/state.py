"""Application state container.

AppState is created once per CLI invocation (or by an embedding tool) and
passed to every facade function. The cache root is an explicit value here,
never ambient global state, so tests inject a temporary directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from bzlq.cache import QueryCache
from bzlq.runner import BazelRunner
from bzlq.workspace import load_workspace

if TYPE_CHECKING:
    from pathlib import Path

    from bzlq.config import Settings
    from bzlq.models.workspace import WorkspaceRef
    from bzlq.protocols import QueryRunnerProtocol, QueryVerb


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every facade function."""

    settings: Settings
    workspace: WorkspaceRef
    cache: QueryCache

    @property
    def workspace_name(self) -> str:
        return self.workspace.name

    @property
    def verb(self) -> QueryVerb:
        return self.settings.bazel.query_verb

    @classmethod
    def create(
        cls,
        settings: Settings,
        start_dir: Path,
        runner: QueryRunnerProtocol | None = None,
    ) -> AppState:
        """Locate the workspace enclosing ``start_dir`` and wire the cache."""
        workspace = load_workspace(start_dir)
        if runner is None:
            runner = BazelRunner.from_settings(settings.bazel)
        return cls(
            settings=settings,
            workspace=workspace,
            cache=QueryCache(settings.cache_root, runner),
        )
