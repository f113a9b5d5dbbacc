"""Target details aggregation and the ``targets`` dataset.

Merges the root workspace's targets with those of its external repositories
and persists the result as a ``bzlq.TargetDetails`` protobuf message. The
file is overwritten wholesale on every materialization; there is no
incremental merge.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from google.protobuf.message import DecodeError as ProtobufDecodeError

from bzlq import protos
from bzlq.errors import DecodeError
from bzlq.models.target import TargetDetail
from bzlq.models.workspace import Dataset
from bzlq.resolver import ROOT_EXPRESSION, list_external_targets, list_targets

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bzlq.cache import QueryCache
    from bzlq.protocols import QueryVerb

log = structlog.get_logger()


def encode_target_details(details: Sequence[TargetDetail]) -> bytes:
    message = protos.TargetDetailsMessage()
    for detail in details:
        message.target_detail.add(
            label=detail.label,
            description=detail.description,
            is_executable=detail.is_executable,
            is_test=detail.is_test,
        )
    return message.SerializeToString()


def decode_target_details(data: bytes) -> list[TargetDetail]:
    try:
        message = protos.TargetDetailsMessage.FromString(data)
    except ProtobufDecodeError as exc:
        raise DecodeError(
            f"Malformed targets cache ({len(data)} bytes): {exc}",
            suggestion="Run `bzlq update` to rebuild the targets cache.",
        ) from exc
    return [
        TargetDetail(
            label=entry.label,
            description=entry.description,
            is_executable=entry.is_executable,
            is_test=entry.is_test,
        )
        for entry in message.target_detail
    ]


def build_details(
    cache: QueryCache,
    workspace_name: str,
    *,
    verb: QueryVerb = "query",
) -> list[TargetDetail]:
    """Root workspace targets first, then external targets in scan order."""
    details = list_targets(cache, workspace_name, ROOT_EXPRESSION, verb=verb)
    details.extend(list_external_targets(cache, workspace_name, verb=verb))
    return details


def materialize(
    cache: QueryCache,
    workspace_name: str,
    *,
    verb: QueryVerb = "query",
) -> list[TargetDetail]:
    """Rebuild the targets dataset, always overwriting the cached file."""
    details = build_details(cache, workspace_name, verb=verb)
    path = cache.write(workspace_name, Dataset.TARGETS, encode_target_details(details))
    log.info("targets_materialized", workspace=workspace_name, count=len(details), path=str(path))
    return details


def load_or_materialize(
    cache: QueryCache,
    workspace_name: str,
    *,
    verb: QueryVerb = "query",
) -> list[TargetDetail]:
    if cache.exists(workspace_name, Dataset.TARGETS):
        return decode_target_details(cache.read(workspace_name, Dataset.TARGETS))
    return materialize(cache, workspace_name, verb=verb)
