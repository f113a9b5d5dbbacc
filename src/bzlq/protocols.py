"""Protocol interfaces for swappable components.

QueryCache references this protocol, not the concrete subprocess runner.
Tests use a lightweight in-memory runner that returns canned protobuf bytes
instead of launching Bazel.
"""

from __future__ import annotations

from typing import Literal, Protocol

QueryVerb = Literal["query", "cquery"]


class QueryRunnerProtocol(Protocol):
    """Interface for invoking the build tool's query command."""

    def run(self, verb: QueryVerb, expression: str) -> bytes: ...
