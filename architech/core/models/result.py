"""
Execution result models — what the executor hands back to its caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from architech.core.errors import ArchitechError, ErrorCode
from architech.core.models.action import ActionResult


class ExecutionState(StrEnum):
    PENDING = "pending"
    RESOLVING = "resolving"
    EXECUTING = "executing"
    COMMITTING = "committing"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class ExecutionError:
    """A structured error entry on an ExecutionResult."""

    code: str
    kind: str
    message: str
    path: str | None = None
    action_index: int | None = None
    action_type: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(
        cls,
        exc: ArchitechError,
        action_index: int | None = None,
        action_type: str | None = None,
    ) -> ExecutionError:
        return cls(
            code=str(exc.code),
            kind=exc.kind,
            message=exc.message,
            path=exc.path,
            action_index=action_index,
            action_type=action_type,
            details=dict(exc.details),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExecutionError:
        return cls(
            code=data.get("code", str(ErrorCode.UNEXPECTED_ERROR)),
            kind=data.get("kind", "ArchitechError"),
            message=data.get("message", ""),
            path=data.get("path"),
            action_index=data.get("action_index"),
            action_type=data.get("action_type"),
            details=dict(data.get("details") or {}),
        )

    def describe(self, module_id: str | None = None) -> str:
        """Render as ``module X failed at action N (TYPE) targeting PATH: msg``."""
        parts = []
        if module_id:
            parts.append(f"module {module_id} failed")
        if self.action_index is not None:
            label = f"action {self.action_index + 1}"
            if self.action_type:
                label += f" ({self.action_type})"
            parts.append(f"at {label}" if parts else label)
        if self.path:
            parts.append(f"targeting {self.path}")
        prefix = " ".join(parts)
        return f"{prefix}: {self.message}" if prefix else self.message

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "code": self.code,
            "kind": self.kind,
            "message": self.message,
        }
        if self.path is not None:
            data["path"] = self.path
        if self.action_index is not None:
            data["action_index"] = self.action_index
        if self.action_type is not None:
            data["action_type"] = self.action_type
        if self.details:
            data["details"] = self.details
        return data


@dataclass
class ExecutionResult:
    """Outcome of one blueprint execution."""

    module_id: str = ""
    blueprint_id: str = ""
    state: ExecutionState = ExecutionState.PENDING
    success: bool = False
    dry_run: bool = False

    artifacts: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[ExecutionError] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    action_results: list[ActionResult] = field(default_factory=list)
    dependencies: dict[str, dict[str, str]] = field(default_factory=dict)
    duration_ms: int = 0

    def add_artifact(self, path: str) -> None:
        if path not in self.artifacts:
            self.artifacts.append(path)

    @property
    def error_messages(self) -> list[str]:
        return [e.describe(self.module_id) for e in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {
            "module_id": self.module_id,
            "blueprint_id": self.blueprint_id,
            "state": str(self.state),
            "success": self.success,
            "dry_run": self.dry_run,
            "artifacts": self.artifacts,
            "warnings": self.warnings,
            "errors": [e.to_dict() for e in self.errors],
            "notes": self.notes,
            "dependencies": self.dependencies,
            "duration_ms": self.duration_ms,
            "actions": [r.model_dump(mode="json", exclude_none=True) for r in self.action_results],
        }


@dataclass
class RunReport:
    """Outcome of executing a resolved module list."""

    operation_id: str = ""
    results: list[ExecutionResult] = field(default_factory=list)
    not_run: list[str] = field(default_factory=list)
    dry_run: bool = False
    duration_ms: int = 0

    @property
    def total(self) -> int:
        return len(self.results) + len(self.not_run)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0 and not self.not_run

    @property
    def status(self) -> str:
        if self.all_ok:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    @property
    def artifacts(self) -> list[str]:
        seen: list[str] = []
        for result in self.results:
            for path in result.artifacts:
                if path not in seen:
                    seen.append(path)
        return seen

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "dry_run": self.dry_run,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "not_run": self.not_run,
            "duration_ms": self.duration_ms,
            "results": [r.to_dict() for r in self.results],
        }
