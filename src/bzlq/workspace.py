"""Workspace discovery: find the enclosing marker file and read its name.

Pure filesystem reads, no caching. The name extracted here is the primary
key for every cache lookup (see cache.py).
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from bzlq.errors import NotFoundError, ParseError
from bzlq.models.workspace import WorkspaceRef

log = structlog.get_logger()

# Checked in this order inside each directory
MARKER_FILES = ("MODULE.bazel", "WORKSPACE.bazel", "WORKSPACE")

# Name must be the first argument. The quoted literal cannot contain a quote
# or newline, so a match never runs into a following statement.
_NAME_ARG = r"\s*\(\s*name\s*=\s*(?P<quote>[\"'])(?P<name>[^\"'\n]*)(?P=quote)"
_WORKSPACE_STATEMENT_RE = re.compile(r"\bworkspace" + _NAME_ARG)
_MODULE_STATEMENT_RE = re.compile(r"\bmodule" + _NAME_ARG)


def find_workspace_marker(start_dir: Path) -> Path:
    """Return the first marker file found in ``start_dir`` or its ancestors."""
    start_dir = start_dir.resolve()
    for directory in (start_dir, *start_dir.parents):
        for marker in MARKER_FILES:
            candidate = directory / marker
            if candidate.is_file():
                return candidate

    raise NotFoundError(
        f"No Bazel workspace found at or above {start_dir}",
        suggestion="bzlq must be used within a bazel workspace "
        f"(a directory containing one of: {', '.join(MARKER_FILES)}).",
    )


def locate_workspace(start_dir: Path) -> Path:
    """Return the root directory of the workspace enclosing ``start_dir``."""
    return find_workspace_marker(start_dir).parent


def resolve_workspace_name(marker_path: Path) -> str:
    """Extract the workspace name from a marker file's declaration statement.

    ``WORKSPACE`` and ``WORKSPACE.bazel`` are read for ``workspace(name = ...)``;
    ``MODULE.bazel`` for ``module(name = ...)``.
    """
    if marker_path.stem == "WORKSPACE":
        statement_re, kind = _WORKSPACE_STATEMENT_RE, "workspace"
    else:
        statement_re, kind = _MODULE_STATEMENT_RE, "module"

    try:
        contents = marker_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(
            f"Unable to read {marker_path}: {exc}",
            suggestion="Check that the file exists and is readable UTF-8 text.",
        ) from exc

    match = statement_re.search(contents)
    if match is None or not match.group("name"):
        raise ParseError(
            f"Unable to extract {kind} name from {marker_path}",
            suggestion=f'Declare the name explicitly, e.g. {kind}(name = "my_{kind}").',
        )
    return match.group("name")


def load_workspace(start_dir: Path) -> WorkspaceRef:
    """Locate the enclosing workspace and resolve its name."""
    marker_path = find_workspace_marker(start_dir)
    name = resolve_workspace_name(marker_path)
    log.debug("workspace_located", root=str(marker_path.parent), name=name)
    return WorkspaceRef(root_path=marker_path.parent, marker_path=marker_path, name=name)
