from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class Dataset(StrEnum):
    """Independently cached query results, stored as ``<dataset>.bin``."""

    QUERY = "query"
    CQUERY = "cquery"
    EXTERNAL = "external"
    TARGETS = "targets"


class WorkspaceRef(BaseModel):
    """An enclosing Bazel workspace. ``name`` keys every cache lookup."""

    model_config = ConfigDict(frozen=True)

    root_path: Path
    marker_path: Path  # MODULE.bazel, WORKSPACE.bazel or WORKSPACE
    name: str
