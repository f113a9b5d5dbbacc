"""File-backed query cache with invalidation-by-absence.

Each workspace owns ``<cache_root>/<workspace_name>/`` and every dataset is one
opaque ``<dataset>.bin`` file. The presence of the file is the only validity
signal: no TTL, hash or timestamp. An entry stays valid until a caller forces
an update.

Unlike a best-effort cache, failures here are fatal for the dataset being
read or written: filesystem errors surface as ``StorageError`` and query
failures as ``ExternalToolError``. Nothing is retried.

Writes go to a sibling ``.tmp`` file which is then renamed into place, so a
reader never observes a partial file. Concurrent processes resolve to
last-writer-wins.
"""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from typing import TYPE_CHECKING

import structlog

from bzlq.errors import StorageError
from bzlq.models.workspace import Dataset

if TYPE_CHECKING:
    from pathlib import Path

    from bzlq.protocols import QueryRunnerProtocol, QueryVerb

log = structlog.get_logger()


class QueryCache:
    """Per-workspace binary cache in front of a query runner."""

    def __init__(self, root: Path, runner: QueryRunnerProtocol) -> None:
        self.root = root
        self._runner = runner

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def workspace_dir(self, workspace_name: str) -> Path:
        return self.root / workspace_name

    def path_for(self, workspace_name: str, dataset: Dataset | str) -> Path:
        """Map (workspace, dataset) to its cache file. No I/O."""
        return self.workspace_dir(workspace_name) / f"{Dataset(dataset)}.bin"

    def exists(self, workspace_name: str, dataset: Dataset | str) -> bool:
        return self.path_for(workspace_name, dataset).is_file()

    # ------------------------------------------------------------------
    # Raw dataset access
    # ------------------------------------------------------------------

    def read(self, workspace_name: str, dataset: Dataset | str) -> bytes:
        path = self.path_for(workspace_name, dataset)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(
                f"Unable to read cache file {path}: {exc}",
                suggestion="Run `bzlq update` to rebuild the cache.",
            ) from exc

    def write(self, workspace_name: str, dataset: Dataset | str, data: bytes) -> Path:
        """Replace a dataset file atomically. Returns the written path."""
        path = self.path_for(workspace_name, dataset)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            _write_bytes_fsync(tmp_path, data)
            os.replace(tmp_path, path)
            _fsync_directory(path.parent)
        except OSError as exc:
            raise StorageError(
                f"Unable to write cache file {path}: {exc}",
                suggestion="Check that the cache directory is writable "
                "(override it with BZLQ__CACHE__ROOT_DIR).",
            ) from exc
        finally:
            with suppress(OSError):
                tmp_path.unlink(missing_ok=True)

        log.debug("cache_write", path=str(path), size=len(data))
        return path

    # ------------------------------------------------------------------
    # Query execution
    # ------------------------------------------------------------------

    def get_or_run(
        self,
        workspace_name: str,
        dataset: Dataset | str,
        expression: str,
        verb: QueryVerb = "query",
    ) -> bytes:
        """Return cached bytes if present, otherwise run the query and cache it."""
        if self.exists(workspace_name, dataset):
            log.debug("query_cache_hit", workspace=workspace_name, dataset=str(dataset))
            return self.read(workspace_name, dataset)

        log.debug("query_cache_miss", workspace=workspace_name, dataset=str(dataset))
        return self.force_update(workspace_name, dataset, expression, verb)

    def force_update(
        self,
        workspace_name: str,
        dataset: Dataset | str,
        expression: str,
        verb: QueryVerb = "query",
    ) -> bytes:
        """Run the query unconditionally and overwrite the cached bytes."""
        data = self._runner.run(verb, expression)
        self.write(workspace_name, dataset, data)
        return data


def _write_bytes_fsync(path: Path, data: bytes) -> None:
    with path.open("wb") as file_obj:
        file_obj.write(data)
        file_obj.flush()
        os.fsync(file_obj.fileno())


def _fsync_directory(path: Path) -> None:
    if sys.platform == "win32":
        return  # Windows does not support fsync on directory handles
    directory_fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(directory_fd)
    finally:
        os.close(directory_fd)
