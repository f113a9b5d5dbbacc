from __future__ import annotations

from bzlq.models.target import TargetDetail, TargetFilters
from bzlq.models.workspace import Dataset, WorkspaceRef

__all__ = [
    # target
    "TargetDetail",
    "TargetFilters",
    # workspace
    "Dataset",
    "WorkspaceRef",
]
