"""
Tests for the blueprint executor — state machine, atomicity, runs and audit.
"""

import json
from pathlib import Path

from architech.adapters.shell.command import ShellCommandRunner
from architech.core.engine.executor import (
    BlueprintExecutor,
    execute_run,
    expand_for_each,
    generate_operation_id,
    write_audit_entry,
)
from architech.core.models.action import ConflictStrategy, parse_action
from architech.core.models.blueprint import DynamicBlueprint, ModuleSpec
from architech.core.models.result import ExecutionState
from architech.core.modifiers import default_registry
from architech.core.modifiers.base import ModifierDefinition, ModifierParams
from architech.core.persistence.audit import AuditWriter

# ── Acceptance scenarios ─────────────────────────────────────────────


class TestScenarios:
    def test_install_then_create(self, project, resolver, executor, make_module):
        module = make_module([
            {"type": "INSTALL_PACKAGES", "packages": ["left-pad"]},
            {"type": "CREATE_FILE", "path": "src/a.ts", "content": "export const a=1;"},
        ])

        result = executor.execute(module, resolver)

        assert result.success
        assert result.state == ExecutionState.COMMITTED
        manifest = json.loads((project / "package.json").read_text())
        assert manifest == {"dependencies": {"left-pad": "latest"}}
        assert (project / "src" / "a.ts").read_text() == "export const a=1;"
        assert result.artifacts == ["src/a.ts", "package.json"]
        assert result.dependencies == {"dependencies": {"left-pad": "latest"}}

    def test_deep_merge_into_manifest(self, project, resolver, executor, make_module):
        (project / "package.json").write_text('{"dependencies":{"left-pad":"^1.0.0"}}')
        module = make_module([
            {
                "type": "MERGE_JSON",
                "path": "package.json",
                "content": {"dependencies": {"right-pad": "^2.0.0"}},
                "mergeStrategy": "deep",
            },
        ])

        result = executor.execute(module, resolver)

        assert result.success
        manifest = json.loads((project / "package.json").read_text())
        assert manifest == {"dependencies": {"left-pad": "^1.0.0", "right-pad": "^2.0.0"}}

    def test_failing_command_rolls_back(self, project, resolver, make_module):
        executor = BlueprintExecutor(runner=ShellCommandRunner())
        module = make_module([
            {"type": "CREATE_FILE", "path": "x.txt", "content": "A"},
            {"type": "RUN_COMMAND", "command": ["false"]},
        ])

        result = executor.execute(module, resolver)

        assert not result.success
        assert result.state == ExecutionState.ROLLED_BACK
        assert not (project / "x.txt").exists()
        assert len(result.errors) == 1
        assert result.errors[0].kind == "CommandExecutionError"
        assert result.errors[0].code == "COMMAND_FAILED"
        assert result.errors[0].action_index == 1

    def test_unknown_modifier(self, project, resolver, executor, make_module):
        module = make_module([
            {"type": "CREATE_FILE", "path": "keep.txt", "content": "x"},
            {"type": "ENHANCE_FILE", "path": "a.ts", "modifier": "does-not-exist"},
        ])

        result = executor.execute(module, resolver)

        assert not result.success
        assert result.errors[0].kind == "ModifierError"
        assert result.errors[0].code == "MODIFIER_NOT_FOUND"
        assert list(project.iterdir()) == []

    def test_false_condition_is_informational_skip(self, project, resolver, executor, make_module):
        module = make_module(
            [
                {
                    "type": "CREATE_FILE",
                    "path": "auth.ts",
                    "content": "x",
                    "condition": "module.parameters.auth",
                },
            ],
            parameters={"auth": False},
        )

        result = executor.execute(module, resolver)

        assert result.success
        assert result.action_results[0].status == "skipped"
        assert not result.action_results[0].failed
        assert result.artifacts == []
        assert result.warnings == []
        assert result.notes == ["condition not met: module.parameters.auth"]
        assert not (project / "auth.ts").exists()


# ── Properties ───────────────────────────────────────────────────────


class TestAtomicity:
    def test_failure_leaves_no_effects(self, project, resolver, executor, make_module):
        (project / "config.json").write_text('{"a": 1}\n')
        module = make_module([
            {"type": "CREATE_FILE", "path": "one.txt", "content": "1"},
            {"type": "MERGE_JSON", "path": "config.json", "content": {"b": 2}},
            {"type": "APPEND_TO_FILE", "path": "one.txt", "content": "2"},
            {"type": "ENHANCE_FILE", "path": "x.ts", "modifier": "nope"},
            {"type": "CREATE_FILE", "path": "never.txt", "content": "3"},
        ])

        result = executor.execute(module, resolver)

        assert not result.success
        assert not (project / "one.txt").exists()
        assert not (project / "never.txt").exists()
        assert (project / "config.json").read_text() == '{"a": 1}\n'
        assert [r.status for r in result.action_results] == ["ok", "ok", "ok", "failed"]

    def test_replaced_file_is_restored_on_failure(self, project, resolver, executor, make_module):
        (project / "README.md").write_text("original")
        module = make_module([
            {"type": "CREATE_FILE", "path": "README.md", "content": "new", "conflict": "replace"},
            {"type": "ENHANCE_FILE", "path": "x.ts", "modifier": "nope"},
        ])

        executor.execute(module, resolver)

        assert (project / "README.md").read_text() == "original"

    def test_earlier_module_survives_later_failure(self, project, resolver, executor, make_module):
        first = make_module([{"type": "CREATE_FILE", "path": "a.txt", "content": "a"}], "base/first")
        second = make_module(
            [
                {"type": "CREATE_FILE", "path": "b.txt", "content": "b"},
                {"type": "ENHANCE_FILE", "path": "x.ts", "modifier": "nope"},
            ],
            "base/second",
        )

        report = execute_run([first, second], resolver, executor=executor)

        assert (project / "a.txt").read_text() == "a"
        assert not (project / "b.txt").exists()
        assert report.status == "partial"


class TestVisibility:
    def test_append_sees_uncommitted_create(self, project, resolver, executor, make_module):
        module = make_module([
            {"type": "CREATE_FILE", "path": "A", "content": "x"},
            {"type": "APPEND_TO_FILE", "path": "A", "content": "y"},
        ])

        result = executor.execute(module, resolver)

        assert result.success
        assert (project / "A").read_text() == "xy"

    def test_prepend(self, project, resolver, executor, make_module):
        (project / "notes.txt").write_text("body\n")
        module = make_module([{"type": "PREPEND_TO_FILE", "path": "notes.txt", "content": "head\n"}])

        executor.execute(module, resolver)

        assert (project / "notes.txt").read_text() == "head\nbody\n"


class TestConflictDefaults:
    def test_create_over_existing_fails_without_mutation(self, project, resolver, executor, make_module):
        (project / "existing.txt").write_text("keep")
        module = make_module([
            {"type": "CREATE_FILE", "path": "other.txt", "content": "o"},
            {"type": "CREATE_FILE", "path": "existing.txt", "content": "overwrite"},
        ])

        result = executor.execute(module, resolver)

        assert not result.success
        error = result.errors[0]
        assert error.kind == "ConflictError"
        assert error.code == "FILE_EXISTS"
        assert error.path == "existing.txt"
        assert (project / "existing.txt").read_text() == "keep"
        assert not (project / "other.txt").exists()

    def test_skip_strategy_warns(self, project, resolver, executor, make_module):
        (project / "existing.txt").write_text("keep")
        module = make_module([
            {"type": "CREATE_FILE", "path": "existing.txt", "content": "x", "conflict": "skip"},
        ])

        result = executor.execute(module, resolver)

        assert result.success
        assert result.warnings == ["existing.txt already exists, skipped"]
        assert (project / "existing.txt").read_text() == "keep"

    def test_second_module_cannot_recreate_file(self, project, resolver, executor, make_module):
        first = make_module([{"type": "CREATE_FILE", "path": "lib.ts", "content": "1"}], "a/first")
        second = make_module([{"type": "CREATE_FILE", "path": "lib.ts", "content": "2"}], "a/second")

        report = execute_run([first, second], resolver, executor=executor)

        assert report.results[0].success
        assert report.results[1].errors[0].code == "FILE_EXISTS"
        assert (project / "lib.ts").read_text() == "1"

    def test_module_policy_replaces_matching_files(self, project, resolver, executor, make_module):
        (project / "README.md").write_text("old")
        module = make_module(
            [{"type": "CREATE_FILE", "path": "README.md", "content": "new"}],
            conflict_policy={"*.md": ConflictStrategy.REPLACE},
        )

        result = executor.execute(module, resolver)

        assert result.success
        assert (project / "README.md").read_text() == "new"


# ── Resolving ────────────────────────────────────────────────────────


class TestResolving:
    def test_dynamic_blueprint_uses_parameters(self, project, resolver, executor):
        blueprint = DynamicBlueprint(
            id="dyn",
            factory=lambda params: [
                {"type": "CREATE_FILE", "path": f"{params['name']}.txt", "content": "x"},
            ],
        )
        module = ModuleSpec(id="gen/dyn", blueprint=blueprint, parameters={"name": "hello"})

        result = executor.execute(module, resolver)

        assert result.success
        assert result.blueprint_id == "dyn"
        assert (project / "hello.txt").exists()

    def test_failing_factory(self, resolver, executor):
        def factory(params):
            raise RuntimeError("bad params")

        module = ModuleSpec(id="gen/broken", blueprint=DynamicBlueprint(id="broken", factory=factory))

        result = executor.execute(module, resolver)

        assert not result.success
        assert result.state == ExecutionState.ROLLED_BACK
        assert result.errors[0].code == "BLUEPRINT_RESOLUTION_FAILED"
        assert "bad params" in result.errors[0].message

    def test_missing_contextual_file_is_a_warning(self, resolver, executor, make_module):
        module = make_module(
            [{"type": "CREATE_FILE", "path": "a.txt", "content": "a"}],
            contextual_files=["tsconfig.json"],
        )

        result = executor.execute(module, resolver)

        assert result.success
        assert result.warnings == ["contextual file tsconfig.json not found"]

    def test_for_each_expands_items(self, project, resolver, executor, make_module):
        module = make_module(
            [
                {
                    "type": "CREATE_FILE",
                    "path": "src/{{item}}.ts",
                    "content": "export const {{item}} = '{{project.name}}';\n",
                    "forEach": "module.parameters.names",
                },
            ],
            parameters={"names": ["alpha", "beta"]},
        )

        result = executor.execute(module, resolver, project_name="demo")

        assert result.success
        assert len(result.action_results) == 2
        assert (project / "src" / "alpha.ts").read_text() == "export const alpha = 'demo';\n"
        assert (project / "src" / "beta.ts").exists()

    def test_for_each_over_mappings(self):
        action = parse_action({
            "type": "ADD_ENV_VAR",
            "key": "{{item.key}}",
            "value": "{{item.value}}",
            "for_each": "vars",
        })
        namespace = {"module": {"parameters": {"vars": [{"key": "A", "value": "1"}]}}}

        expanded = expand_for_each(action, namespace)

        assert len(expanded) == 1
        assert expanded[0].key == "A"
        assert expanded[0].value == "1"
        assert expanded[0].for_each is None

    def test_for_each_missing_list(self):
        action = parse_action({"type": "CREATE_FILE", "path": "{{item}}", "for_each": "nothing"})
        assert expand_for_each(action, {"module": {"parameters": {}}}) == []

    def test_for_each_non_list(self, resolver, executor, make_module):
        module = make_module(
            [{"type": "CREATE_FILE", "path": "{{item}}", "forEach": "module.parameters.name"}],
            parameters={"name": "scalar"},
        )

        result = executor.execute(module, resolver)

        assert not result.success
        assert result.errors[0].code == "INVALID_ACTION"


# ── Executing ────────────────────────────────────────────────────────


class TestExecuting:
    def test_templates_and_path_keys(self, project, resolver, executor, make_module):
        module = make_module([
            {
                "type": "CREATE_FILE",
                "path": "{{paths.apps.web.lib}}/utils.ts",
                "content": "// {{project.name}} {{module.id}}\n",
            },
        ])

        result = executor.execute(module, resolver, project_name="demo")

        assert result.success
        assert result.artifacts == ["src/lib/utils.ts"]
        assert (project / "src/lib/utils.ts").read_text() == "// demo test/module\n"

    def test_unknown_path_key_fails(self, resolver, executor, make_module):
        module = make_module([{"type": "CREATE_FILE", "path": "{{paths.apps.wbe.src}}/x.ts"}])

        result = executor.execute(module, resolver)

        assert not result.success
        assert result.errors[0].code == "UNKNOWN_PATH_KEY"

    def test_dependencies_are_consolidated(self, project, resolver, executor, make_module):
        (project / "package.json").write_text('{\n  "name": "app"\n}\n')
        module = make_module([
            {"type": "INSTALL_PACKAGES", "packages": ["react@^18.2.0"]},
            {"type": "ADD_DEPENDENCY", "packages": ["zod"]},
            {"type": "ADD_DEV_DEPENDENCY", "packages": ["@types/node"]},
            {"type": "INSTALL_PACKAGES", "packages": ["react"], "isDev": False},
        ])

        result = executor.execute(module, resolver)

        assert result.success
        manifest = json.loads((project / "package.json").read_text())
        assert manifest == {
            "name": "app",
            "dependencies": {"react": "^18.2.0", "zod": "latest"},
            "devDependencies": {"@types/node": "latest"},
        }
        assert result.artifacts == ["package.json"]

    def test_commands_run_in_project_root(self, project, resolver, executor, mock_runner, make_module):
        (project / "web").mkdir()
        module = make_module([
            {"type": "RUN_COMMAND", "command": "npm install"},
            {"type": "RUN_COMMAND", "command": ["npx", "prisma", "generate"], "workingDir": "web", "timeout": 5},
        ])

        result = executor.execute(module, resolver)

        assert result.success
        assert mock_runner.commands == ["npm install", "npx prisma generate"]
        assert mock_runner.call_log[0].cwd == str(project)
        assert mock_runner.call_log[0].timeout == 300
        assert mock_runner.call_log[1].cwd == str(project / "web")
        assert mock_runner.call_log[1].timeout == 5

    def test_best_effort_command(self, resolver, executor, mock_runner, make_module):
        mock_runner.set_failure("npm run lint")
        module = make_module([{"type": "RUN_COMMAND", "command": "npm run lint", "bestEffort": True}])

        result = executor.execute(module, resolver)

        assert result.success
        assert result.warnings == ["best effort: `npm run lint` exited with code 1: mock failure"]

    def test_command_timeout(self, resolver, executor, mock_runner, make_module):
        mock_runner.set_timeout("sleep 10")
        module = make_module([{"type": "RUN_COMMAND", "command": "sleep 10"}])

        result = executor.execute(module, resolver)

        assert not result.success
        assert result.errors[0].code == "COMMAND_TIMEOUT"

    def test_unexpected_exception_is_captured(self, project, resolver, mock_runner, make_module):
        def explode(content, params):
            raise RuntimeError("kaboom")

        registry = default_registry()
        registry.register(ModifierDefinition(
            name="explode", description="", params_model=ModifierParams, transform=explode,
        ))
        executor = BlueprintExecutor(registry=registry, runner=mock_runner)
        module = make_module([
            {"type": "CREATE_FILE", "path": "a.txt", "content": "a"},
            {"type": "ENHANCE_FILE", "path": "b.txt", "modifier": "explode"},
        ])

        result = executor.execute(module, resolver)

        assert not result.success
        assert result.errors[0].code == "UNEXPECTED_ERROR"
        assert "kaboom" in result.errors[0].message
        assert not (project / "a.txt").exists()

    def test_error_messages_name_module_and_action(self, resolver, executor, make_module):
        module = make_module(
            [
                {"type": "CREATE_FILE", "path": "a.txt", "content": "a"},
                {"type": "ENHANCE_FILE", "path": "b.ts", "modifier": "missing"},
            ],
            "ui/widgets",
        )

        result = executor.execute(module, resolver)

        assert result.error_messages[0].startswith(
            "module ui/widgets failed at action 2 (ENHANCE_FILE): Modifier 'missing'"
        )


# ── Dry run ──────────────────────────────────────────────────────────


class TestDryRun:
    def test_nothing_written_or_run(self, project, resolver, executor, mock_runner, make_module):
        module = make_module([
            {"type": "INSTALL_PACKAGES", "packages": ["zod"]},
            {"type": "CREATE_FILE", "path": "a.txt", "content": "a"},
            {"type": "RUN_COMMAND", "command": "npm install"},
        ])

        result = executor.execute(module, resolver, dry_run=True)

        assert result.success
        assert result.dry_run
        assert result.state == ExecutionState.ROLLED_BACK
        assert result.artifacts == ["a.txt", "package.json"]
        assert "dry run: `npm install` not executed" in result.notes
        assert "dry run: 2 pending change(s) discarded" in result.notes
        assert mock_runner.call_count == 0
        assert list(project.iterdir()) == []

    def test_dry_run_still_reports_conflicts(self, project, resolver, executor, make_module):
        (project / "a.txt").write_text("a")
        module = make_module([{"type": "CREATE_FILE", "path": "a.txt", "content": "b"}])

        result = executor.execute(module, resolver, dry_run=True)

        assert not result.success
        assert result.errors[0].code == "FILE_EXISTS"


# ── Runs and audit ───────────────────────────────────────────────────


class TestRuns:
    def _modules(self, make_module):
        return [
            make_module([{"type": "CREATE_FILE", "path": "a.txt", "content": "a"}], "m/a"),
            make_module([{"type": "ENHANCE_FILE", "path": "x.ts", "modifier": "nope"}], "m/b"),
            make_module([{"type": "CREATE_FILE", "path": "c.txt", "content": "c"}], "m/c"),
        ]

    def test_stop_on_failure(self, project, resolver, executor, make_module):
        report = execute_run(self._modules(make_module), resolver, executor=executor)

        assert [r.module_id for r in report.results] == ["m/a", "m/b"]
        assert report.not_run == ["m/c"]
        assert report.total == 3
        assert report.succeeded == 1
        assert report.status == "partial"
        assert not (project / "c.txt").exists()

    def test_continue_on_error(self, project, resolver, executor, make_module):
        report = execute_run(
            self._modules(make_module), resolver, executor=executor, stop_on_failure=False
        )

        assert report.not_run == []
        assert report.succeeded == 2
        assert report.failed == 1
        assert (project / "c.txt").exists()

    def test_all_ok(self, resolver, executor, make_module):
        modules = [make_module([{"type": "CREATE_FILE", "path": "a.txt", "content": "a"}])]

        report = execute_run(modules, resolver, executor=executor, operation_id="op-test")

        assert report.all_ok
        assert report.status == "ok"
        assert report.operation_id == "op-test"
        assert report.artifacts == ["a.txt"]

    def test_audit_entry(self, tmp_path: Path, resolver, executor, make_module):
        report = execute_run(self._modules(make_module), resolver, executor=executor)
        writer = AuditWriter(path=tmp_path / "audit.ndjson")

        entry = write_audit_entry(report, writer, project="demo", recipe="recipe.yml")

        assert entry.status == "partial"
        assert entry.modules == ["m/a", "m/b"]
        assert entry.modules_not_run == ["m/c"]
        assert entry.artifacts == ["a.txt"]
        assert entry.errors[0].startswith("module m/b failed at action 1 (ENHANCE_FILE)")
        assert writer.entry_count() == 1

    def test_operation_id_format(self):
        op_id = generate_operation_id()
        assert op_id.startswith("op-")
        assert len(op_id.split("-")) == 4
