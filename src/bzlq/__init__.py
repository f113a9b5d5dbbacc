"""Cached Bazel target listing with runnable and test classification."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version(__name__)
except PackageNotFoundError:
    # Uninstalled source checkout
    __version__ = "0.0.0.dev0"
