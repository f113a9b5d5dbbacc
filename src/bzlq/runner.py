"""Subprocess runner for ``bazel query`` / ``bazel cquery``.

The child inherits the caller's environment and working directory. No
timeout is enforced: the call blocks until Bazel exits.
"""

from __future__ import annotations

import subprocess
from typing import TYPE_CHECKING

import structlog

from bzlq.errors import ExternalToolError

if TYPE_CHECKING:
    from bzlq.config import BazelSettings
    from bzlq.protocols import QueryVerb

log = structlog.get_logger()

OUTPUT_FLAG = "--output=proto"

# Bazel prints progress on stderr; keep only the tail in error messages
_STDERR_TAIL_LINES = 20


class BazelRunner:
    """Runs the query command and returns its binary stdout."""

    def __init__(self, executable: str = "bazel", extra_args: list[str] | None = None) -> None:
        self.executable = executable
        self.extra_args = list(extra_args or [])

    @classmethod
    def from_settings(cls, settings: BazelSettings) -> BazelRunner:
        return cls(settings.executable, settings.extra_args)

    def command(self, verb: QueryVerb, expression: str) -> list[str]:
        return [self.executable, verb, expression, OUTPUT_FLAG, *self.extra_args]

    def run(self, verb: QueryVerb, expression: str) -> bytes:
        argv = self.command(verb, expression)
        log.info("query_run", argv=argv)
        try:
            completed = subprocess.run(argv, capture_output=True, check=False)
        except OSError as exc:
            raise ExternalToolError(
                f"Failed to launch {self.executable!r}: {exc}",
                suggestion="Install Bazel (or bazelisk) and make sure it is on PATH, "
                "or set BZLQ__BAZEL__EXECUTABLE.",
            ) from exc

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace")
            tail = "\n".join(stderr.strip().splitlines()[-_STDERR_TAIL_LINES:])
            log.warning(
                "query_failed",
                argv=argv,
                returncode=completed.returncode,
            )
            raise ExternalToolError(
                f"`{' '.join(argv)}` exited with status {completed.returncode}"
                + (f":\n{tail}" if tail else ""),
                suggestion="Run the command above directly to diagnose the failure.",
                returncode=completed.returncode,
                stderr=stderr,
            )
        return completed.stdout
