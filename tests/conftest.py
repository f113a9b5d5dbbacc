"""Shared test fixtures for the bzlq test suite.

Query payloads are built as real ``blaze_query`` protobuf messages, so the
decoding path under test is the same one Bazel output goes through.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import pytest

from bzlq import protos
from bzlq.cache import QueryCache
from bzlq.errors import ExternalToolError

if TYPE_CHECKING:
    from pathlib import Path


class FakeRunner:
    """In-memory QueryRunnerProtocol keyed by (verb, expression)."""

    def __init__(self) -> None:
        self.responses: dict[tuple[str, str], bytes | Exception] = {}
        self.calls: list[tuple[str, str]] = []

    def set(self, expression: str, payload: bytes | Exception, verb: str = "query") -> None:
        self.responses[(verb, expression)] = payload

    def run(self, verb: str, expression: str) -> bytes:
        self.calls.append((verb, expression))
        payload = self.responses.get((verb, expression))
        if payload is None:
            raise ExternalToolError(
                f"no canned response for {verb} {expression}", returncode=1
            )
        if isinstance(payload, Exception):
            raise payload
        return payload


def rule_target(label: str, rule_class: str, **bool_attrs: bool):
    """A RULE target with optional boolean attributes (e.g. linkshared=True)."""
    target = protos.Target(type=int(protos.Discriminator.RULE))
    target.rule.name = label.encode()
    target.rule.rule_class = rule_class.encode()
    for name, value in bool_attrs.items():
        target.rule.attribute.add(name=name.encode(), boolean_value=value)
    return target


def file_target(label: str, discriminator: protos.Discriminator = protos.Discriminator.SOURCE_FILE):
    target = protos.Target(type=int(discriminator))
    if discriminator == protos.Discriminator.SOURCE_FILE:
        target.source_file.name = label.encode()
    elif discriminator == protos.Discriminator.GENERATED_FILE:
        target.generated_file.name = label.encode()
    elif discriminator == protos.Discriminator.PACKAGE_GROUP:
        target.package_group.name = label.encode()
    else:
        target.environment_group.name = label.encode()
    return target


def query_bytes(*targets) -> bytes:
    result = protos.QueryResult()
    result.target.extend(targets)
    return result.SerializeToString()


def cquery_bytes(*targets) -> bytes:
    result = protos.CqueryResult()
    for target in targets:
        result.results.add().target.CopyFrom(target)
    return result.SerializeToString()


@pytest.fixture()
def make_rule() -> Callable[..., object]:
    return rule_target


@pytest.fixture()
def make_file() -> Callable[..., object]:
    return file_target


@pytest.fixture()
def make_query() -> Callable[..., bytes]:
    return query_bytes


@pytest.fixture()
def make_cquery() -> Callable[..., bytes]:
    return cquery_bytes


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def cache_root(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture()
def cache(cache_root: Path, fake_runner: FakeRunner) -> QueryCache:
    """QueryCache rooted in a temporary directory, backed by FakeRunner."""
    return QueryCache(cache_root, fake_runner)
