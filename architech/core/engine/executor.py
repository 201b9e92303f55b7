"""
Blueprint executor — runs one blueprint through its state machine.

    Pending → Resolving → Executing → Committing → Committed
                  │            │            │
                  └────────────┴────────────┴──→ RolledBack

Resolving turns a static or dynamic blueprint into a concrete action list
(``for_each`` expanded, contextual files checked). Executing applies the
actions in order against the VFS and stops at the first fatal error.
Committing stages the consolidated dependency merge and flushes the VFS.
A failure anywhere leaves the disk untouched.

``execute_run`` drives a list of modules through the same executor, one
after the other, sharing a single VFS session.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from architech.adapters.base import CommandRunner
from architech.adapters.shell.command import ShellCommandRunner
from architech.core.config.settings import EngineSettings
from architech.core.engine.conflict import ConflictResolver
from architech.core.engine.context import ModuleInfo, ProjectContext
from architech.core.engine.interpreter import ActionInterpreter
from architech.core.engine.templating import lookup, render_value
from architech.core.engine.vfs import VirtualFileSystem
from architech.core.errors import ArchitechError, ErrorCode, IoError, ValidationError
from architech.core.models.action import ActionResult, parse_action
from architech.core.models.blueprint import Blueprint, DynamicBlueprint, ModuleSpec
from architech.core.models.result import (
    ExecutionError,
    ExecutionResult,
    ExecutionState,
    RunReport,
)
from architech.core.modifiers import default_registry
from architech.core.modifiers.registry import ModifierRegistry
from architech.core.paths.resolver import PathResolver
from architech.core.persistence.audit import AuditEntry, AuditWriter

logger = logging.getLogger(__name__)

_MARKERS = {"ok": "✓", "skipped": "⊘", "failed": "✗"}


@dataclass
class ResolvedBlueprint:
    """A blueprint ready to execute: concrete actions plus resolve-time warnings."""

    blueprint: Blueprint
    actions: list[Any] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def resolve_blueprint(module: ModuleSpec) -> Blueprint:
    """Invoke a dynamic blueprint with the module's merged parameters.

    Raises:
        ValidationError: BLUEPRINT_RESOLUTION_FAILED if the factory fails.
    """
    blueprint = module.blueprint
    if isinstance(blueprint, Blueprint):
        return blueprint
    if not isinstance(blueprint, DynamicBlueprint):
        raise ValidationError(
            f"Module '{module.id}' has no usable blueprint",
            code=ErrorCode.BLUEPRINT_RESOLUTION_FAILED,
        )
    try:
        return blueprint.resolve(module.parameters)
    except ArchitechError as e:
        raise ValidationError(
            f"Blueprint '{blueprint.id}' produced an invalid action: {e.message}",
            code=ErrorCode.BLUEPRINT_RESOLUTION_FAILED,
        ) from e
    except Exception as e:
        raise ValidationError(
            f"Blueprint '{blueprint.id}' could not be resolved: {e}",
            code=ErrorCode.BLUEPRINT_RESOLUTION_FAILED,
        ) from e


def expand_for_each(action, namespace: dict[str, Any]) -> list[Any]:
    """One copy of ``action`` per item of the list named by ``for_each``.

    ``{{item}}`` (and ``{{item.field}}`` for mapping items) is substituted
    in every string field. A missing list expands to nothing.

    Raises:
        ValidationError: INVALID_ACTION if the name points at a non-list.
    """
    if not action.for_each:
        return [action]

    items = lookup(namespace, action.for_each, default=None)
    if items is None and "." not in action.for_each:
        items = namespace["module"]["parameters"].get(action.for_each)
    if items is None:
        return []
    if not isinstance(items, (list, tuple)):
        raise ValidationError(
            f"for_each '{action.for_each}' is not a list ({type(items).__name__})",
            code=ErrorCode.INVALID_ACTION,
        )

    data = action.model_dump(exclude={"for_each"})
    return [parse_action(render_value(data, {"item": item})) for item in items]


class BlueprintExecutor:
    """Executes blueprints against a project.

    Args:
        registry:  Modifier catalog (``default_registry()`` when omitted).
        runner:    Command runner (real shell when omitted).
        conflicts: Conflict decision table.
        settings:  Engine settings (timeouts, manifest path).
    """

    def __init__(
        self,
        registry: ModifierRegistry | None = None,
        runner: CommandRunner | None = None,
        conflicts: ConflictResolver | None = None,
        settings: EngineSettings | None = None,
    ):
        self.registry = registry if registry is not None else default_registry()
        self.runner = runner or ShellCommandRunner()
        self.settings = settings or EngineSettings()
        self.interpreter = ActionInterpreter(self.registry, self.runner, conflicts)

    def execute(
        self,
        module: ModuleSpec,
        resolver: PathResolver,
        vfs: VirtualFileSystem | None = None,
        project_name: str = "",
        dry_run: bool = False,
    ) -> ExecutionResult:
        """Run one module's blueprint to Committed or RolledBack."""
        start = time.monotonic()
        vfs = vfs or VirtualFileSystem()
        result = ExecutionResult(module_id=module.id, dry_run=dry_run)
        context = ProjectContext(
            project_name=project_name,
            resolver=resolver,
            vfs=vfs,
            module=ModuleInfo(
                id=module.id,
                category=module.category,
                parameters=dict(module.parameters),
                conflict_policy=dict(module.conflict_policy),
            ),
            settings=self.settings,
            logger=logging.getLogger(f"architech.blueprint.{module.id}"),
            dry_run=dry_run,
        )

        # ── Resolving ───────────────────────────────────────────
        result.state = ExecutionState.RESOLVING
        try:
            resolved = self._resolve(module, context)
        except ArchitechError as e:
            result.errors.append(ExecutionError.from_exception(e))
            return self._finish(result, context, start, rolled_back=True)
        result.blueprint_id = resolved.blueprint.id
        result.warnings.extend(resolved.warnings)
        logger.info("▸ %s (%s, %d action(s))", module.id, resolved.blueprint.label, len(resolved.actions))

        # ── Executing ───────────────────────────────────────────
        result.state = ExecutionState.EXECUTING
        for index, action in enumerate(resolved.actions):
            outcome = self._apply(action, context, index)
            result.action_results.append(outcome)
            logger.info(
                "%s %s:%d %s → %s",
                _MARKERS[outcome.status],
                module.id,
                index + 1,
                action.describe(),
                outcome.status,
            )
            if outcome.warning:
                result.warnings.append(outcome.warning)
            if outcome.note:
                result.notes.append(outcome.note)
            if outcome.failed:
                result.errors.append(ExecutionError.from_dict(outcome.error or {}))
                return self._finish(result, context, start, rolled_back=True)
            if outcome.artifact:
                result.add_artifact(outcome.artifact)

        # ── Committing ──────────────────────────────────────────
        result.state = ExecutionState.COMMITTING
        try:
            self._stage_dependencies(result, context)
        except ArchitechError as e:
            result.errors.append(ExecutionError.from_exception(e))
            return self._finish(result, context, start, rolled_back=True)

        if dry_run:
            dropped = vfs.rollback()
            result.notes.append(f"dry run: {dropped} pending change(s) discarded")
            result.success = True
            result.state = ExecutionState.ROLLED_BACK
            result.duration_ms = _elapsed(start)
            return result

        try:
            vfs.commit()
        except IoError as e:
            result.errors.append(ExecutionError.from_exception(e))
            return self._finish(result, context, start, rolled_back=True)

        result.state = ExecutionState.COMMITTED
        result.success = True
        return self._finish(result, context, start, rolled_back=False)

    # ── Stages ──────────────────────────────────────────────────

    def _resolve(self, module: ModuleSpec, context: ProjectContext) -> ResolvedBlueprint:
        blueprint = resolve_blueprint(module)
        resolved = ResolvedBlueprint(blueprint=blueprint)
        namespace = context.namespace()

        for action in blueprint.actions:
            resolved.actions.extend(expand_for_each(action, namespace))

        for path in blueprint.contextual_files:
            rendered = context.render(path)
            if not context.vfs.exists(context.target(rendered)):
                resolved.warnings.append(f"contextual file {rendered} not found")
        return resolved

    def _apply(self, action, context: ProjectContext, index: int) -> ActionResult:
        """Interpreter call with unexpected exceptions turned into results."""
        try:
            return self.interpreter.apply(action, context, index)
        except OSError as e:
            error = IoError(f"{action.describe()}: {e}", path=getattr(action, "path", None))
        except Exception as e:
            logger.exception("Unexpected error in %s", action.describe())
            error = ArchitechError(
                f"{action.describe()}: {type(e).__name__}: {e}",
                code=ErrorCode.UNEXPECTED_ERROR,
            )
        data = error.to_dict()
        data.update(action_index=index, action_type=str(action.type))
        return ActionResult.failure(str(action.type), index, data)

    def _stage_dependencies(self, result: ExecutionResult, context: ProjectContext) -> None:
        """Write the consolidated dependency merge into the VFS."""
        result.dependencies = {k: dict(v) for k, v in context.dependencies.items() if v}
        if not context.has_dependencies:
            return
        manifest = context.target(self.settings.manifest_path)
        relative = context.relative(manifest)
        current = context.vfs.read(manifest)
        updated = self.registry.apply(
            "package-json-merger",
            current,
            {
                "dependencies": context.dependencies.get("dependencies") or None,
                "dev_dependencies": context.dependencies.get("devDependencies") or None,
            },
            relative,
        )
        if current is None or updated != current:
            context.vfs.write(manifest, updated)
            result.add_artifact(relative)

    def _finish(
        self,
        result: ExecutionResult,
        context: ProjectContext,
        start: float,
        rolled_back: bool,
    ) -> ExecutionResult:
        if rolled_back:
            context.vfs.rollback()
            result.state = ExecutionState.ROLLED_BACK
            result.success = False
            for error in result.errors:
                logger.error("✗ %s", error.describe(result.module_id))
        result.duration_ms = _elapsed(start)
        return result


# ── Runs ─────────────────────────────────────────────────────────


def execute_run(
    modules: list[ModuleSpec],
    resolver: PathResolver,
    executor: BlueprintExecutor | None = None,
    project_name: str = "",
    dry_run: bool = False,
    stop_on_failure: bool = True,
    operation_id: str | None = None,
) -> RunReport:
    """Execute modules in order; each is committed or rolled back before the next.

    With ``stop_on_failure`` the modules after a failed one are listed in
    ``not_run`` instead of being executed.
    """
    executor = executor or BlueprintExecutor()
    report = RunReport(operation_id=operation_id or generate_operation_id(), dry_run=dry_run)
    start = time.monotonic()
    vfs = VirtualFileSystem()

    for position, module in enumerate(modules):
        result = executor.execute(module, resolver, vfs=vfs, project_name=project_name, dry_run=dry_run)
        report.results.append(result)
        if not result.success and stop_on_failure:
            report.not_run = [m.id for m in modules[position + 1:]]
            if report.not_run:
                logger.warning("Stopping after %s; not run: %s", module.id, ", ".join(report.not_run))
            break

    report.duration_ms = _elapsed(start)
    logger.info(
        "Run %s: %s (%d/%d modules succeeded)",
        report.operation_id, report.status, report.succeeded, report.total,
    )
    return report


def write_audit_entry(
    report: RunReport,
    audit_writer: AuditWriter,
    project: str = "",
    recipe: str = "",
) -> AuditEntry:
    """Append a run summary to the audit ledger."""
    errors = [
        error.describe(result.module_id)
        for result in report.results
        for error in result.errors
    ]
    entry = AuditEntry(
        operation_id=report.operation_id,
        operation_type="dry-run" if report.dry_run else "run",
        project=project,
        recipe=recipe,
        modules=[r.module_id for r in report.results],
        status=report.status,
        modules_total=report.total,
        modules_succeeded=report.succeeded,
        modules_failed=report.failed,
        modules_not_run=list(report.not_run),
        artifacts=report.artifacts,
        duration_ms=report.duration_ms,
        errors=errors,
    )
    audit_writer.write(entry)
    return entry


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"


def _elapsed(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
