"""Public entry points for the CLI and editor tooling.

Receives AppState, delegates to the resolver and aggregator modules. No
argparse or printing here: cli.py owns the console.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import structlog

from bzlq.details import load_or_materialize, materialize
from bzlq.models.target import TargetFilters
from bzlq.models.workspace import Dataset
from bzlq.resolver import EXTERNAL_EXPRESSION, ROOT_EXPRESSION, dataset_for_verb

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

    from bzlq.models.target import TargetDetail
    from bzlq.state import AppState


def update_all(
    state: AppState,
    on_update: Callable[[Path], None] | None = None,
) -> list[TargetDetail]:
    """Force-refresh the root query, external and targets datasets, in order.

    ``on_update`` is called with each dataset path just before it is rebuilt.
    """
    log = structlog.get_logger().bind(workspace=state.workspace_name)
    cache = state.cache
    name = state.workspace_name
    root_dataset = dataset_for_verb(state.verb)

    def _announce(dataset: Dataset) -> None:
        path = cache.path_for(name, dataset)
        log.info("dataset_updating", dataset=str(dataset), path=str(path))
        if on_update is not None:
            on_update(path)

    _announce(root_dataset)
    cache.force_update(name, root_dataset, ROOT_EXPRESSION, state.verb)

    _announce(Dataset.EXTERNAL)
    cache.force_update(name, Dataset.EXTERNAL, EXTERNAL_EXPRESSION, "query")

    _announce(Dataset.TARGETS)
    details = materialize(cache, name, verb=state.verb)
    log.info("update_complete", targets=len(details))
    return details


def filter_targets(details: Iterable[TargetDetail], filters: TargetFilters) -> list[TargetDetail]:
    """Apply executable-only, test-only and label-prefix filters. Order is kept."""
    selected: list[TargetDetail] = []
    for detail in details:
        if filters.run_only and not detail.is_executable:
            continue
        if filters.test_only and not detail.is_test:
            continue
        if filters.search and not detail.label.startswith(filters.search):
            continue
        selected.append(detail)
    return selected


def list_targets(state: AppState, filters: TargetFilters | None = None) -> list[TargetDetail]:
    """Load (or build) the targets dataset and filter it."""
    details = load_or_materialize(state.cache, state.workspace_name, verb=state.verb)
    return filter_targets(details, filters or TargetFilters())


def render_target_line(detail: TargetDetail) -> str:
    """One newline-delimited JSON record: ``{"label":...,"description":...}``."""
    return json.dumps(
        {"label": detail.label, "description": detail.description},
        separators=(",", ":"),
        ensure_ascii=False,
    )
