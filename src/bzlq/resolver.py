"""Target resolution: raw query bytes to classified TargetDetail lists.

Root workspace failures propagate to the caller. External workspace
expansion is the one place that recovers locally: a failing external
repository is logged and dropped so the remaining ones still resolve.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from google.protobuf.message import DecodeError as ProtobufDecodeError

from bzlq import protos
from bzlq.classifier import create_target_detail, rule_label
from bzlq.errors import BzlqError, DecodeError
from bzlq.models.workspace import Dataset

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from bzlq.cache import QueryCache
    from bzlq.models.target import TargetDetail
    from bzlq.protocols import QueryVerb

log = structlog.get_logger()

ROOT_EXPRESSION = "//..."
EXTERNAL_EXPRESSION = "//external:*"
EXTERNAL_PREFIX = "//external:"
# Synthetic entry listed by //external:*, not a real repository
_EXTERNAL_WORKSPACE_FILE_SUFFIX = "WORKSPACE.bazel"


def dataset_for_verb(verb: QueryVerb) -> Dataset:
    return Dataset.CQUERY if verb == "cquery" else Dataset.QUERY


def external_expression(dep_name: str) -> str:
    return f"@{dep_name}//..."


def decode_query_targets(data: bytes, verb: QueryVerb = "query") -> list[Any]:
    """Decode ``--output=proto`` bytes into ``blaze_query.Target`` messages.

    ``cquery`` wraps each target in a ``ConfiguredTarget``; the wrapper is
    unpacked so both verbs yield the same shape.
    """
    try:
        if verb == "cquery":
            result = protos.CqueryResult.FromString(data)
            return [configured.target for configured in result.results]
        return list(protos.QueryResult.FromString(data).target)
    except ProtobufDecodeError as exc:
        raise DecodeError(
            f"Malformed {verb} output ({len(data)} bytes): {exc}",
            suggestion="Run `bzlq update` to refresh the cached query results.",
        ) from exc


def iter_rules(targets: Iterable[Any], workspace_name: str) -> Iterator[Any]:
    """Yield rule messages. File and group targets are skipped."""
    for target in targets:
        if target.type == protos.Discriminator.RULE and target.HasField("rule"):
            yield target.rule
            continue
        log.debug(
            "target_skipped",
            workspace=workspace_name,
            discriminator=_discriminator_name(target.type),
        )


def _discriminator_name(value: int) -> str:
    try:
        return protos.Discriminator(value).name
    except ValueError:
        return str(value)


def list_targets(
    cache: QueryCache,
    workspace_name: str,
    expression: str = ROOT_EXPRESSION,
    *,
    verb: QueryVerb = "query",
) -> list[TargetDetail]:
    """Resolve and classify every rule target matched by ``expression``."""
    dataset = dataset_for_verb(verb)
    data = cache.get_or_run(workspace_name, dataset, expression, verb)
    targets = decode_query_targets(data, verb)
    details = [create_target_detail(rule) for rule in iter_rules(targets, workspace_name)]
    log.debug("targets_resolved", workspace=workspace_name, count=len(details))
    return details


def select_external_dependencies(labels: Iterable[str]) -> list[str]:
    """Pick top-level external repository names from ``//external:*`` labels.

    Keeps ``//external:<name>`` labels, drops the synthetic ``WORKSPACE.bazel``
    entry and any name containing ``/`` (nested paths are not repositories).
    Order is preserved.
    """
    names: list[str] = []
    for label in labels:
        if not label.startswith(EXTERNAL_PREFIX):
            continue
        if label.endswith(_EXTERNAL_WORKSPACE_FILE_SUFFIX):
            continue
        dep_name = label[len(EXTERNAL_PREFIX) :]
        if not dep_name or "/" in dep_name:
            continue
        names.append(dep_name)
    return names


def list_external_targets(
    cache: QueryCache,
    workspace_name: str,
    *,
    verb: QueryVerb = "query",
) -> list[TargetDetail]:
    """Resolve targets of every external repository of ``workspace_name``.

    Expansion is one level deep: externals of externals are not scanned.
    """
    # //external is a query-only package; cquery cannot list it.
    data = cache.get_or_run(workspace_name, Dataset.EXTERNAL, EXTERNAL_EXPRESSION, "query")
    rules = iter_rules(decode_query_targets(data, "query"), workspace_name)
    dep_names = select_external_dependencies(rule_label(rule) for rule in rules)

    details: list[TargetDetail] = []
    for dep_name in dep_names:
        try:
            details.extend(list_targets(cache, dep_name, external_expression(dep_name), verb=verb))
        except BzlqError as exc:
            log.warning(
                "external_workspace_skipped",
                workspace=workspace_name,
                dependency=dep_name,
                code=exc.code,
                message=exc.message,
            )
    return details
