"""
Action interpreter — turns one Action into VFS operations, modifier calls
or a subprocess, and reports an ActionResult.

Dispatch is a table keyed by action class. A variant without a handler is
detected when the interpreter is constructed, not when the first
blueprint happens to use it.

Engine errors (``ArchitechError``) are converted into failed results;
anything else propagates to the executor, which wraps it.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from architech.adapters.base import CommandRequest, CommandRunner
from architech.core.engine.conflict import ConflictResolver, Decision, MergeKind
from architech.core.engine.context import ProjectContext
from architech.core.errors import (
    ArchitechError,
    CommandExecutionError,
    ConflictError,
    ErrorCode,
    ModifierError,
)
from architech.core.models.action import (
    ACTION_CLASSES,
    ActionResult,
    AddDependency,
    AddDevDependency,
    AddEnvVar,
    AddScript,
    AddTsImport,
    AppendToFile,
    ConflictStrategy,
    CreateFile,
    EnhanceFile,
    ExtendSchema,
    InstallPackages,
    MergeConfig,
    MergeJson,
    PrependToFile,
    RunCommand,
    WrapConfig,
)
from architech.core.modifiers.registry import ModifierRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[Any, ProjectContext, int], ActionResult]


class ActionInterpreter:
    """Applies actions against a ProjectContext.

    Args:
        registry:  Modifier catalog used by every merge-family action.
        runner:    Command runner for RUN_COMMAND.
        conflicts: Conflict decision table.
    """

    def __init__(
        self,
        registry: ModifierRegistry,
        runner: CommandRunner,
        conflicts: ConflictResolver | None = None,
    ):
        self.registry = registry
        self.runner = runner
        self.conflicts = conflicts or ConflictResolver()
        self._handlers: dict[type, Handler] = {
            InstallPackages: self._add_dependencies,
            AddDependency: self._add_dependencies,
            AddDevDependency: self._add_dependencies,
            AddScript: self._add_script,
            AddEnvVar: self._add_env_var,
            CreateFile: self._create_file,
            AppendToFile: self._concatenate,
            PrependToFile: self._concatenate,
            RunCommand: self._run_command,
            MergeJson: self._merge_json,
            AddTsImport: self._add_ts_import,
            EnhanceFile: self._enhance_file,
            MergeConfig: self._merge_config,
            WrapConfig: self._wrap_config,
            ExtendSchema: self._extend_schema,
        }
        missing = [cls.__name__ for cls in ACTION_CLASSES if cls not in self._handlers]
        if missing:
            raise TypeError(f"No interpreter handler for: {', '.join(missing)}")

    # ── Entry point ──────────────────────────────────────────────

    def apply(self, action, context: ProjectContext, index: int = 0) -> ActionResult:
        """Apply one action.

        Condition first (false → informational skip), then templating, then
        the variant's handler. Engine errors become a failed result.
        """
        start = time.monotonic()
        action_type = str(action.type)
        try:
            if not context.check(action.condition):
                result = ActionResult.skip(
                    action_type,
                    index,
                    note=f"condition not met: {action.condition}",
                )
            else:
                rendered = self._render(action, context)
                result = self._handlers[type(action)](rendered, context, index)
        except ArchitechError as e:
            error = e.to_dict()
            error["action_index"] = index
            error["action_type"] = action_type
            result = ActionResult.failure(action_type, index, error)

        result.duration_ms = int((time.monotonic() - start) * 1000)
        return result

    def _render(self, action, context: ProjectContext):
        data = action.model_dump(exclude={"condition"})
        rendered = context.render(data)
        if rendered == data:
            return action
        return type(action).model_validate({**rendered, "condition": action.condition})

    # ── Shared helpers ───────────────────────────────────────────

    def _target(self, context: ProjectContext, path: str) -> tuple[str, str]:
        absolute = context.target(path)
        return absolute, context.relative(absolute)

    def _decide(self, action, context: ProjectContext, absolute: str, relative: str) -> Decision:
        decision = self.conflicts.decide(
            action, absolute, context.vfs, relative, context.module.conflict_policy
        )
        logger.debug("conflict %s %s → %s (%s)", action.type, relative, decision.kind, decision.source)
        return decision

    def _refuse(self, decision: Decision, action, index: int, relative: str) -> ActionResult | None:
        """Result for SKIP, raise for ERROR, None when the action proceeds."""
        if decision.kind == ConflictStrategy.SKIP:
            return ActionResult.skip(
                str(action.type), index, warning=f"{relative} already exists, skipped"
            )
        if decision.kind == ConflictStrategy.ERROR:
            raise ConflictError(
                f"{relative} already exists",
                code=ErrorCode.FILE_EXISTS,
                path=relative,
            )
        return None

    def _write(self, context: ProjectContext, absolute: str, relative: str, new: str, old: str | None):
        if old is not None and new == old:
            return None
        context.vfs.write(absolute, new)
        return relative

    def _modify(
        self,
        action,
        context: ProjectContext,
        index: int,
        modifier: str,
        params: dict[str, Any],
        path: str,
    ) -> ActionResult:
        """Resolve → conflict decision → read → modifier → write."""
        absolute, relative = self._target(context, path)
        decision = self._decide(action, context, absolute, relative)
        refused = self._refuse(decision, action, index, relative)
        if refused is not None:
            return refused

        current = context.vfs.read(absolute) if decision.kind == ConflictStrategy.MERGE else None
        updated = self.registry.apply(modifier, current, params, relative)
        artifact = self._write(context, absolute, relative, updated, current)
        if artifact is None:
            return ActionResult.success(str(action.type), index, note=f"{relative} already up to date")
        return ActionResult.success(str(action.type), index, artifact=artifact)

    # ── Handlers ─────────────────────────────────────────────────

    def _add_dependencies(self, action, context: ProjectContext, index: int) -> ActionResult:
        dev = isinstance(action, AddDevDependency) or getattr(action, "is_dev", False)
        queued = context.add_dependencies(action.packages, dev=dev)
        section = "devDependencies" if dev else "dependencies"
        return ActionResult.success(
            str(action.type),
            index,
            note=f"queued {len(queued)} package(s) for {section}",
        )

    def _add_script(self, action: AddScript, context: ProjectContext, index: int) -> ActionResult:
        return self._modify(
            action, context, index,
            "package-json-merger",
            {"scripts": {action.name: action.command}},
            action.path,
        )

    def _add_env_var(self, action: AddEnvVar, context: ProjectContext, index: int) -> ActionResult:
        return self._modify(
            action, context, index,
            "env-merger",
            {
                "variables": [{"key": action.key, "value": action.value, "description": action.description}],
                "overwrite": action.overwrite,
            },
            action.path,
        )

    def _create_file(self, action: CreateFile, context: ProjectContext, index: int) -> ActionResult:
        absolute, relative = self._target(context, action.path)
        decision = self._decide(action, context, absolute, relative)
        refused = self._refuse(decision, action, index, relative)
        if refused is not None:
            return refused

        if decision.kind == ConflictStrategy.REPLACE:
            context.vfs.write(absolute, action.content)
            return ActionResult.success(str(action.type), index, artifact=relative)

        current = context.vfs.read(absolute)
        if decision.merge_kind == MergeKind.JSON:
            try:
                incoming = json.loads(action.content) if action.content.strip() else {}
            except json.JSONDecodeError as e:
                raise ModifierError(
                    f"Content for {relative} is not valid JSON: {e.msg}",
                    code=ErrorCode.INVALID_JSON,
                    path=relative,
                ) from e
            updated = self.registry.apply(
                "json-object-merger", current, {"properties_to_merge": incoming}, relative
            )
        elif decision.merge_kind == MergeKind.ENV:
            updated = self.registry.apply(
                "env-merger", current, {"variables": _env_lines(action.content)}, relative
            )
        else:
            updated = (current or "") + action.content

        artifact = self._write(context, absolute, relative, updated, current)
        return ActionResult.success(str(action.type), index, artifact=artifact)

    def _concatenate(self, action, context: ProjectContext, index: int) -> ActionResult:
        absolute, relative = self._target(context, action.path)
        current = context.vfs.read(absolute) or ""
        if isinstance(action, PrependToFile):
            updated = action.content + current
        else:
            updated = current + action.content
        context.vfs.write(absolute, updated)
        return ActionResult.success(str(action.type), index, artifact=relative)

    def _run_command(self, action: RunCommand, context: ProjectContext, index: int) -> ActionResult:
        request = CommandRequest(
            command=action.command,
            cwd=context.target(action.working_dir) if action.working_dir else context.root,
            timeout=action.timeout or context.settings.command_timeout,
        )
        if context.dry_run:
            return ActionResult.skip(
                str(action.type), index, note=f"dry run: `{request.display}` not executed"
            )

        logger.debug("run %s (cwd=%s)", request.display, request.cwd)
        receipt = self.runner.run(request)
        output = (receipt.stdout + receipt.stderr).strip()
        if receipt.ok:
            return ActionResult.success(str(action.type), index, output=output)

        if action.best_effort:
            return ActionResult.success(
                str(action.type), index, output=output, warning=f"best effort: {receipt.summary()}"
            )
        raise CommandExecutionError(
            receipt.summary(),
            code=ErrorCode.COMMAND_TIMEOUT if receipt.timed_out else ErrorCode.COMMAND_FAILED,
            details={
                "command": receipt.command,
                "return_code": receipt.return_code,
                "stdout": receipt.stdout,
                "stderr": receipt.stderr,
            },
        )

    def _merge_json(self, action: MergeJson, context: ProjectContext, index: int) -> ActionResult:
        return self._modify(
            action, context, index,
            "json-object-merger",
            {"properties_to_merge": action.content, "merge_strategy": str(action.merge_strategy)},
            action.path,
        )

    def _add_ts_import(self, action: AddTsImport, context: ProjectContext, index: int) -> ActionResult:
        imports = [
            {
                "module": spec.module_specifier,
                "named": spec.named_imports,
                "default": spec.default_import,
                "namespace": spec.namespace_import,
                "type_only": spec.type_only,
            }
            for spec in action.imports
        ]
        return self._modify(
            action, context, index, "ts-module-enhancer", {"imports_to_add": imports}, action.path
        )

    def _enhance_file(self, action: EnhanceFile, context: ProjectContext, index: int) -> ActionResult:
        self.registry.get(action.modifier)
        absolute, relative = self._target(context, action.path)
        if not context.vfs.exists(absolute):
            if action.fallback == "skip":
                return ActionResult.skip(
                    str(action.type), index, warning=f"{relative} does not exist, {action.modifier} skipped"
                )
            if action.fallback == "error":
                raise ConflictError(
                    f"{relative} does not exist",
                    code=ErrorCode.TARGET_MISSING,
                    path=relative,
                )
        return self._modify(action, context, index, action.modifier, action.params, action.path)

    def _merge_config(self, action: MergeConfig, context: ProjectContext, index: int) -> ActionResult:
        return self._modify(
            action, context, index,
            "js-config-merger",
            {
                "properties_to_merge": action.config,
                "export_name": action.export_name,
                "merge_strategy": str(action.strategy),
            },
            action.path,
        )

    def _wrap_config(self, action: WrapConfig, context: ProjectContext, index: int) -> ActionResult:
        return self._modify(
            action, context, index,
            "js-export-wrapper",
            {
                "wrapper_function": {"name": action.wrapper, "import_from": action.import_from},
                "export_to_wrap": action.export_name,
                "wrapper_options": action.options,
            },
            action.path,
        )

    def _extend_schema(self, action: ExtendSchema, context: ProjectContext, index: int) -> ActionResult:
        return self._modify(
            action, context, index,
            "schema-extender",
            {
                "tables": [table.model_dump() for table in action.tables],
                "additional_imports": action.additional_imports,
                "import_from": action.import_from,
            },
            action.path,
        )


def _env_lines(content: str) -> list[dict[str, str]]:
    """``KEY=value`` lines of a .env snippet, comments dropped."""
    variables = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        key = key.removeprefix("export ").strip()
        variables.append({"key": key, "value": value.strip().strip("'\"")})
    return variables
