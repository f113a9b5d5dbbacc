"""CLI entrypoint.

Responsibilities (and nothing more):
- Parse arguments
- Configure structlog
- Create AppState for the enclosing workspace
- Dispatch to the facade and print results

Logs and progress go to stderr. stdout carries only newline-delimited JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from bzlq import __version__
from bzlq.config import Settings
from bzlq.errors import BzlqError
from bzlq.facade import list_targets, render_target_line, update_all
from bzlq.models.target import TargetFilters
from bzlq.state import AppState

if TYPE_CHECKING:
    from bzlq.protocols import QueryRunnerProtocol

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer(colors=False)]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # Logs go to stderr; stdout is reserved for target records
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        # main() may run several times per process when embedded
        cache_logger_on_first_use=False,
    )


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="bzlq",
        description="Cached Bazel target listing with runnable/test classification.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-C",
        "--cwd",
        type=Path,
        default=None,
        help="Start the workspace search here instead of the current directory",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("update", help="Update query data")

    targets = subparsers.add_parser("targets", help="List bazel targets")
    targets.add_argument(
        "search", nargs="?", default=None, help="Only show labels starting with this prefix"
    )
    targets.add_argument("-r", "--run-only", action="store_true", help="Only show executable targets")
    targets.add_argument("-t", "--test-only", action="store_true", help="Only show test targets")

    subparsers.add_parser("cache-dir", help="Print the cache directory of this workspace")

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _handle_update(state: AppState) -> int:
    update_all(state, on_update=lambda path: print(f"Updating {path}", file=sys.stderr))
    print("Done!", file=sys.stderr)
    return 0


def _handle_targets(state: AppState, args: argparse.Namespace) -> int:
    filters = TargetFilters(run_only=args.run_only, test_only=args.test_only, search=args.search)
    for detail in list_targets(state, filters):
        sys.stdout.write(render_target_line(detail) + "\n")
    sys.stdout.flush()
    return 0


def _handle_cache_dir(state: AppState) -> int:
    print(state.cache.workspace_dir(state.workspace_name))
    return 0


# ---------------------------------------------------------------------------
# Error reporting
# ---------------------------------------------------------------------------


def _format_config_errors(exc: ValidationError) -> str:
    lines = ["Configuration error:"]
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "settings"
        lines.append(f"  {location}: {error['msg']}")
    return "\n".join(lines)


def _report_error(exc: BzlqError, settings: Settings) -> None:
    """Render to stderr, as one JSON object when logs are JSON too."""
    if settings.logging.format == "json":
        print(json.dumps(exc.to_dict()), file=sys.stderr)
        return
    print(f"error: {exc.message}", file=sys.stderr)
    if exc.suggestion:
        print(f"hint: {exc.suggestion}", file=sys.stderr)


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main(
    argv: list[str] | None = None,
    *,
    settings: Settings | None = None,
    runner: QueryRunnerProtocol | None = None,
) -> int:
    """CLI entrypoint. ``settings`` and ``runner`` are injectable for embedding."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if settings is None:
        try:
            settings = Settings()
        except ValidationError as exc:
            print(_format_config_errors(exc), file=sys.stderr)
            return 2
    _setup_logging(settings)

    start_dir = args.cwd if args.cwd is not None else Path.cwd()
    try:
        state = AppState.create(settings, start_dir, runner=runner)
        if args.command == "update":
            return _handle_update(state)
        if args.command == "targets":
            return _handle_targets(state, args)
        if args.command == "cache-dir":
            return _handle_cache_dir(state)
    except BzlqError as exc:
        log.debug("command_failed", command=args.command, code=exc.code)
        _report_error(exc, settings)
        return 1

    parser.error(f"Unsupported command: {args.command}")


if __name__ == "__main__":
    sys.exit(main())
