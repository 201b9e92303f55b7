"""
Engine errors — one exception family per failure kind.

Every error carries a stable machine-readable ``code`` and, where one
applies, the ``path`` it concerns. The blueprint executor converts these
into structured entries on the ExecutionResult; nothing here is retried.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error codes surfaced in results and JSON output."""

    # Path resolution
    UNKNOWN_PATH_KEY = "UNKNOWN_PATH_KEY"
    INVALID_OVERRIDE = "INVALID_OVERRIDE"
    PATH_OUTSIDE_PROJECT = "PATH_OUTSIDE_PROJECT"

    # Conflicts
    FILE_EXISTS = "FILE_EXISTS"
    TARGET_MISSING = "TARGET_MISSING"

    # Modifiers
    MODIFIER_NOT_FOUND = "MODIFIER_NOT_FOUND"
    INVALID_MODIFIER_PARAMS = "INVALID_MODIFIER_PARAMS"
    UNSUPPORTED_FILE_TYPE = "UNSUPPORTED_FILE_TYPE"
    INVALID_JSON = "INVALID_JSON"
    EXPORT_NOT_FOUND = "EXPORT_NOT_FOUND"
    TRANSFORM_FAILED = "TRANSFORM_FAILED"

    # Commands
    COMMAND_FAILED = "COMMAND_FAILED"
    COMMAND_TIMEOUT = "COMMAND_TIMEOUT"

    # I/O
    READ_FAILED = "READ_FAILED"
    WRITE_FAILED = "WRITE_FAILED"
    COMMIT_FAILED = "COMMIT_FAILED"

    # Validation
    INVALID_ACTION = "INVALID_ACTION"
    INVALID_CONDITION = "INVALID_CONDITION"
    BLUEPRINT_RESOLUTION_FAILED = "BLUEPRINT_RESOLUTION_FAILED"

    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class ArchitechError(Exception):
    """Base class for all engine errors."""

    kind = "ArchitechError"
    default_code = ErrorCode.UNEXPECTED_ERROR

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        path: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.path = path
        self.details = details or {}

    def to_dict(self) -> dict:
        data = {
            "code": str(self.code),
            "kind": self.kind,
            "message": self.message,
        }
        if self.path:
            data["path"] = self.path
        if self.details:
            data["details"] = self.details
        return data


class PathResolutionError(ArchitechError):
    """Unknown path key or invalid override."""

    kind = "PathResolutionError"
    default_code = ErrorCode.UNKNOWN_PATH_KEY

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        path: str | None = None,
        suggestions: list[str] | None = None,
        **kwargs,
    ):
        super().__init__(message, code=code, path=path, **kwargs)
        self.suggestions = suggestions or []
        if self.suggestions:
            self.details.setdefault("suggestions", self.suggestions)


class ConflictError(ArchitechError):
    """A destructive action targets existing content with no resolution."""

    kind = "ConflictError"
    default_code = ErrorCode.FILE_EXISTS


class ModifierError(ArchitechError):
    """Modifier not registered, bad params, or its transform failed."""

    kind = "ModifierError"
    default_code = ErrorCode.TRANSFORM_FAILED


class CommandExecutionError(ArchitechError):
    """Subprocess exited non-zero or timed out."""

    kind = "CommandExecutionError"
    default_code = ErrorCode.COMMAND_FAILED


class IoError(ArchitechError):
    """Underlying read/write failure."""

    kind = "IoError"
    default_code = ErrorCode.WRITE_FAILED


class ValidationError(ArchitechError):
    """Action payload, condition or target path failed its checks before dispatch."""

    kind = "ValidationError"
    default_code = ErrorCode.INVALID_ACTION
