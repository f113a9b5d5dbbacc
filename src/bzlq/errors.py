from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    WORKSPACE_NOT_FOUND = "WORKSPACE_NOT_FOUND"
    WORKSPACE_NAME_INVALID = "WORKSPACE_NAME_INVALID"
    QUERY_FAILED = "QUERY_FAILED"
    CACHE_IO_FAILED = "CACHE_IO_FAILED"
    DECODE_FAILED = "DECODE_FAILED"


class BzlqError(Exception):
    """Base class for every expected failure condition.

    Raised by business logic and caught only by the CLI, which renders the
    message and suggestion to stderr. External workspace expansion is the one
    place that recovers from it locally.
    """

    code: ErrorCode

    def __init__(self, message: str, suggestion: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
            }
        }


class NotFoundError(BzlqError):
    """No workspace marker file in the start directory or any parent."""

    code = ErrorCode.WORKSPACE_NOT_FOUND


class ParseError(BzlqError):
    """The marker file is unreadable or lacks a name statement."""

    code = ErrorCode.WORKSPACE_NAME_INVALID


class ExternalToolError(BzlqError):
    """The query subprocess could not be spawned or exited non-zero."""

    code = ErrorCode.QUERY_FAILED

    def __init__(
        self,
        message: str,
        suggestion: str = "",
        *,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message, suggestion)
        self.returncode = returncode
        self.stderr = stderr

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["error"]["returncode"] = self.returncode
        payload["error"]["stderr"] = self.stderr
        return payload


class StorageError(BzlqError):
    """Reading or writing a cache file failed."""

    code = ErrorCode.CACHE_IO_FAILED


class DecodeError(BzlqError):
    """Cached or freshly fetched bytes do not parse as the expected schema."""

    code = ErrorCode.DECODE_FAILED
