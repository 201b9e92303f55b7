"""
Run use case — load a recipe, execute its modules, record the run.

The full vertical slice from ``architech run recipe.yml`` to committed
files and an audit entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from architech.adapters.base import CommandRunner
from architech.core.config.loader import ConfigError, LoadedRecipe, load_project
from architech.core.config.settings import EngineSettings
from architech.core.engine.executor import (
    BlueprintExecutor,
    execute_run,
    generate_operation_id,
    write_audit_entry,
)
from architech.core.models.result import RunReport
from architech.core.modifiers.registry import ModifierRegistry
from architech.core.persistence.audit import AuditWriter

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of running a recipe."""

    report: RunReport | None = None
    loaded: LoadedRecipe | None = None
    audit_path: Path | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None and self.report.all_ok

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        if self.loaded:
            result["project_name"] = self.loaded.name
            result["project_root"] = str(self.loaded.root)
            result["recipe"] = str(self.loaded.path)
        if self.audit_path:
            result["audit_path"] = str(self.audit_path)
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def run_recipe(
    recipe_path: Path,
    root: Path | None = None,
    dry_run: bool = False,
    stop_on_failure: bool = True,
    audit: bool = True,
    settings: EngineSettings | None = None,
    registry: ModifierRegistry | None = None,
    runner: CommandRunner | None = None,
) -> RunResult:
    """Execute every module of a recipe against its project root.

    Args:
        recipe_path: Recipe YAML file.
        root: Project root override (default: from the recipe).
        dry_run: Run in the VFS only; nothing is written, commands are skipped.
        stop_on_failure: Leave later modules unexecuted after a failure.
        audit: Append a ledger entry (never for dry runs).
        settings: Engine settings (default: from the environment).
        registry: Modifier registry (default: built-ins).
        runner: Command runner (default: real shell).

    Returns:
        RunResult with the run report, or ``error`` for config problems.
    """
    result = RunResult()

    # ── Load recipe ──────────────────────────────────────────────
    try:
        settings = settings or EngineSettings.from_env()
        loaded = load_project(recipe_path, root=root)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.loaded = loaded
    assert loaded.resolver is not None

    # ── Execute ──────────────────────────────────────────────────
    executor = BlueprintExecutor(registry=registry, runner=runner, settings=settings)
    report = execute_run(
        loaded.modules,
        loaded.resolver,
        executor=executor,
        project_name=loaded.name,
        dry_run=dry_run,
        stop_on_failure=stop_on_failure,
        operation_id=generate_operation_id(),
    )
    result.report = report

    # ── Write audit log ──────────────────────────────────────────
    if audit and not dry_run:
        writer = AuditWriter(project_root=loaded.root, audit_dir=settings.audit_dir)
        write_audit_entry(report, writer, project=loaded.name, recipe=str(loaded.path))
        result.audit_path = writer.path

    return result
