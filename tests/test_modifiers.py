"""
Tests for the modifier registry and the structured-file modifiers.
"""

import json
import textwrap

import pytest

from architech.core.errors import ModifierError
from architech.core.modifiers import BUILTIN_MODIFIERS, default_registry
from architech.core.modifiers.base import ModifierDefinition, ModifierParams
from architech.core.modifiers.common import deep_merge, detect_indent, strip_jsonc
from architech.core.modifiers.registry import ModifierRegistry


@pytest.fixture
def registry() -> ModifierRegistry:
    return default_registry()


# ── Registry ─────────────────────────────────────────────────────────


class TestRegistry:
    def test_builtins(self, registry):
        names = [d.name for d in registry.list_modifiers()]
        assert names == sorted(d.name for d in BUILTIN_MODIFIERS)
        assert "package-json-merger" in registry
        assert len(names) == 10

    def test_unknown(self, registry):
        with pytest.raises(ModifierError) as exc:
            registry.get("does-not-exist")
        assert exc.value.code == "MODIFIER_NOT_FOUND"
        assert "package-json-merger" in exc.value.message

    def test_register_and_unregister(self):
        registry = ModifierRegistry()
        definition = ModifierDefinition(
            name="upper",
            description="Upper-case the file",
            params_model=ModifierParams,
            transform=lambda content, params: (content or "").upper(),
        )
        registry.register(definition)
        assert registry.apply("upper", "abc", {}) == "ABC"
        registry.unregister("upper")
        assert "upper" not in registry

    def test_transform_errors_are_wrapped(self):
        def broken(content, params):
            raise ValueError("cannot parse")

        registry = ModifierRegistry([
            ModifierDefinition(name="broken", description="", params_model=ModifierParams, transform=broken),
        ])
        with pytest.raises(ModifierError) as exc:
            registry.apply("broken", "", {}, "a.txt")
        assert exc.value.code == "TRANSFORM_FAILED"
        assert exc.value.path == "a.txt"

    def test_invalid_params_name_the_field(self, registry):
        with pytest.raises(ModifierError) as exc:
            registry.apply("json-object-merger", "{}", {"targetPath": ["a"]}, "a.json")
        assert exc.value.code == "INVALID_MODIFIER_PARAMS"
        assert exc.value.message == (
            "Invalid parameters for modifier 'json-object-merger': propertiesToMerge: Field required"
        )

    def test_file_type_check(self, registry):
        with pytest.raises(ModifierError) as exc:
            registry.apply("tsconfig-enhancer", "", {}, "tsconfig.yaml")
        assert exc.value.code == "UNSUPPORTED_FILE_TYPE"


# ── package-json-merger ──────────────────────────────────────────────


class TestPackageJsonMerger:
    def test_merge_sections(self, registry):
        content = json.dumps({"name": "app", "dependencies": {"react": "^18.0.0"}}, indent=2) + "\n"

        updated = registry.apply("package-json-merger", content, {
            "dependencies": {"zod": "^3.0.0"},
            "devDependencies": {"vitest": "^1.0.0"},
            "scripts": {"test": "vitest"},
        }, "package.json")

        assert json.loads(updated) == {
            "name": "app",
            "dependencies": {"react": "^18.0.0", "zod": "^3.0.0"},
            "devDependencies": {"vitest": "^1.0.0"},
            "scripts": {"test": "vitest"},
        }

    def test_idempotent(self, registry):
        params = {"dependencies": {"left-pad": "^1.0.0"}}
        once = registry.apply("package-json-merger", '{"name": "x"}', params, "package.json")
        twice = registry.apply("package-json-merger", once, params, "package.json")
        assert once == twice

    def test_untouched_when_nothing_changes(self, registry):
        content = '{"dependencies":{"a":"1"}}'
        assert registry.apply("package-json-merger", content, {"dependencies": {"a": "1"}}) == content

    def test_browserslist_dedupes(self, registry):
        content = '{"browserslist": ["defaults"]}'
        updated = registry.apply("package-json-merger", content, {"browserslist": ["defaults", "not ie 11"]})
        assert json.loads(updated)["browserslist"] == ["defaults", "not ie 11"]

    def test_replace_strategy(self, registry):
        content = '{"scripts": {"a": "1", "b": "2"}}'
        updated = registry.apply(
            "package-json-merger", content, {"scripts": {"c": "3"}, "mergeStrategy": "replace"}
        )
        assert json.loads(updated)["scripts"] == {"c": "3"}

    def test_invalid_json(self, registry):
        with pytest.raises(ModifierError) as exc:
            registry.apply("package-json-merger", "{oops", {"scripts": {"a": "b"}}, "package.json")
        assert exc.value.code == "INVALID_JSON"
        assert exc.value.path == "package.json"


# ── json-object-merger ───────────────────────────────────────────────


class TestJsonObjectMerger:
    def test_deep(self, registry):
        content = '{"a": {"x": 1, "list": [1, 2]}}'
        updated = registry.apply("json-object-merger", content, {
            "properties_to_merge": {"a": {"y": 2, "list": [2, 3]}},
        })
        assert json.loads(updated) == {"a": {"x": 1, "y": 2, "list": [1, 2, 3]}}

    def test_shallow(self, registry):
        content = '{"a": {"x": 1}, "b": 1}'
        updated = registry.apply("json-object-merger", content, {
            "propertiesToMerge": {"a": {"y": 2}},
            "mergeStrategy": "shallow-merge",
        })
        assert json.loads(updated) == {"a": {"y": 2}, "b": 1}

    def test_replace(self, registry):
        updated = registry.apply("json-object-merger", '{"a": 1}', {
            "properties_to_merge": {"b": 2}, "merge_strategy": "replace",
        })
        assert json.loads(updated) == {"b": 2}

    def test_target_path(self, registry):
        content = '{"compilerOptions": {"strict": true}}'
        updated = registry.apply("json-object-merger", content, {
            "properties_to_merge": {"@/*": ["./src/*"]},
            "target_path": ["compilerOptions", "paths"],
        })
        assert json.loads(updated) == {"compilerOptions": {"strict": True, "paths": {"@/*": ["./src/*"]}}}

    def test_path_spelling(self, registry):
        content = '{"compilerOptions": {"strict": true}}'
        updated = registry.apply("json-object-merger", content, {
            "path": ["compilerOptions"],
            "propertiesToMerge": {"baseUrl": ".", "paths": {"@/*": ["./src/*"]}},
            "mergeStrategy": "deep",
        }, "tsconfig.json")
        assert json.loads(updated) == {
            "compilerOptions": {"strict": True, "baseUrl": ".", "paths": {"@/*": ["./src/*"]}},
        }

    def test_empty_path_is_document_root(self, registry):
        updated = registry.apply("json-object-merger", '{"a": 1}', {
            "path": [], "propertiesToMerge": {"style": "default", "rsc": True},
        }, "components.json")
        assert json.loads(updated) == {"a": 1, "style": "default", "rsc": True}

    def test_target_path_through_scalar(self, registry):
        with pytest.raises(ModifierError) as exc:
            registry.apply("json-object-merger", '{"a": 1}', {
                "properties_to_merge": {"b": 1}, "target_path": ["a", "b"],
            })
        assert exc.value.code == "TRANSFORM_FAILED"

    def test_keeps_indentation(self, registry):
        content = '{\n    "a": 1\n}\n'
        updated = registry.apply("json-object-merger", content, {"properties_to_merge": {"b": 2}})
        assert updated == '{\n    "a": 1,\n    "b": 2\n}\n'

    def test_non_object_document(self, registry):
        with pytest.raises(ModifierError) as exc:
            registry.apply("json-object-merger", "[1, 2]", {"properties_to_merge": {}})
        assert exc.value.code == "INVALID_JSON"


# ── tsconfig-enhancer ────────────────────────────────────────────────


class TestTsconfigEnhancer:
    CONTENT = textwrap.dedent("""\
        {
          // generated
          "compilerOptions": {
            "strict": true,
            "paths": {"~/*": ["./*"]},
          },
          "include": ["next-env.d.ts"],
        }
    """)

    def test_merge(self, registry):
        updated = registry.apply("tsconfig-enhancer", self.CONTENT, {
            "compilerOptions": {"baseUrl": "."},
            "paths": {"@/*": ["./src/*"]},
            "include": ["next-env.d.ts", "**/*.ts"],
        }, "tsconfig.json")

        assert json.loads(updated) == {
            "compilerOptions": {
                "strict": True,
                "baseUrl": ".",
                "paths": {"~/*": ["./*"], "@/*": ["./src/*"]},
            },
            "include": ["next-env.d.ts", "**/*.ts"],
        }

    def test_extends_and_exclude(self, registry):
        updated = registry.apply("tsconfig-enhancer", None, {
            "extends": "./base.json", "exclude": ["node_modules"],
        })
        assert json.loads(updated) == {"extends": "./base.json", "exclude": ["node_modules"]}

    def test_jsonc_kept_when_unchanged(self, registry):
        updated = registry.apply("tsconfig-enhancer", self.CONTENT, {"include": ["next-env.d.ts"]})
        assert updated == self.CONTENT

    def test_string_values_survive_rewrite(self, registry):
        content = '{"compilerOptions": {"paths": {"@x": ["a,]"]}},}'
        updated = registry.apply("tsconfig-enhancer", content, {"compilerOptions": {"strict": True}})
        assert json.loads(updated) == {"compilerOptions": {"paths": {"@x": ["a,]"]}, "strict": True}}


# ── env-merger ───────────────────────────────────────────────────────


class TestEnvMerger:
    def test_adds_missing(self, registry):
        updated = registry.apply("env-merger", "A=1\n", {
            "variables": [{"key": "B", "value": "two words", "description": "Second"}],
        }, ".env")
        assert updated == 'A=1\n# Second\nB="two words"\n'

    def test_existing_key_kept(self, registry):
        content = "export A=1\n"
        assert registry.apply("env-merger", content, {"variables": [{"key": "A", "value": "2"}]}) == content

    def test_overwrite(self, registry):
        updated = registry.apply("env-merger", "A=1\nB=2\n", {
            "variables": [{"key": "A", "value": "3"}], "overwrite": True,
        })
        assert updated == "A=3\nB=2\n"

    def test_duplicate_keys_in_one_call(self, registry):
        updated = registry.apply("env-merger", None, {
            "variables": [{"key": "A", "value": "1"}, {"key": "A", "value": "2"}],
        })
        assert updated == "A=1\n"


# ── css-enhancer ─────────────────────────────────────────────────────


class TestCssEnhancer:
    CONTENT = textwrap.dedent("""\
        @tailwind base;
        @tailwind components;

        @layer base {
          body {
            color: black;
          }
        }
    """)

    def test_preamble_and_declarations(self, registry):
        updated = registry.apply("css-enhancer", self.CONTENT, {
            "imports": ["@tailwind utilities;"],
            "rules": [{
                "selector": "body",
                "declarations": {"color": "white", "margin": "0"},
                "atRule": "@layer base",
            }],
        }, "globals.css")

        assert updated == textwrap.dedent("""\
            @tailwind base;
            @tailwind components;
            @tailwind utilities;

            @layer base {
              body {
                color: white;
                margin: 0;
              }
            }
        """)

    def test_idempotent(self, registry):
        params = {
            "imports": ["@tailwind utilities;"],
            "rules": [{"selector": "body", "declarations": {"color": "white"}, "at_rule": "@layer base"}],
        }
        once = registry.apply("css-enhancer", self.CONTENT, params)
        assert registry.apply("css-enhancer", once, params) == once

    def test_new_block_inside_at_rule(self, registry):
        updated = registry.apply("css-enhancer", self.CONTENT, {
            "rules": [{"selector": ":root", "declarations": {"--radius": "0.5rem"}, "at_rule": "@layer base"}],
        })
        assert updated.endswith("  }\n  :root {\n    --radius: 0.5rem;\n  }\n}\n")

    def test_missing_at_rule_is_created(self, registry):
        updated = registry.apply("css-enhancer", "body {\n  margin: 0;\n}\n", {
            "rules": [{"selector": ".btn", "declarations": {"color": "red"}, "at_rule": "@layer components"}],
        })
        assert updated == "body {\n  margin: 0;\n}\n\n@layer components {\n  .btn {\n    color: red;\n  }\n}\n"

    def test_empty_file(self, registry):
        updated = registry.apply("css-enhancer", None, {
            "imports": ['@import "tailwindcss";'],
            "rules": [{"selector": ".btn", "declarations": {"color": "red"}}],
        })
        assert updated == '@import "tailwindcss";\n\n.btn {\n  color: red;\n}\n'

    def test_keep_existing_values(self, registry):
        updated = registry.apply("css-enhancer", self.CONTENT, {
            "rules": [{"selector": "body", "declarations": {"color": "white"}, "at_rule": "@layer base"}],
            "overwrite": False,
        })
        assert updated == self.CONTENT

    def test_descendant_selector_is_not_the_rule(self, registry):
        content = ".card .btn {\n  color: red;\n}\n"
        updated = registry.apply("css-enhancer", content, {
            "rules": [{"selector": ".btn", "declarations": {"padding": "4px"}}],
        })
        assert updated == ".card .btn {\n  color: red;\n}\n\n.btn {\n  padding: 4px;\n}\n"

    def test_top_level_rule_ignores_nested_blocks(self, registry):
        content = "@media (min-width: 640px) {\n  .btn {\n    color: red;\n  }\n}\n\n/* base */ .btn {\n  color: blue;\n}\n"
        updated = registry.apply("css-enhancer", content, {
            "rules": [{"selector": ".btn", "declarations": {"color": "green"}}],
        })
        assert updated == "@media (min-width: 640px) {\n  .btn {\n    color: red;\n  }\n}\n\n/* base */ .btn {\n  color: green;\n}\n"

    def test_selector_list_spacing(self, registry):
        content = "h1,h2 {\n  margin: 0;\n}\n"
        updated = registry.apply("css-enhancer", content, {
            "rules": [{"selector": "h1, h2", "declarations": {"margin": "1rem"}}],
        })
        assert updated == "h1,h2 {\n  margin: 1rem;\n}\n"


# ── Helpers ──────────────────────────────────────────────────────────


class TestCommon:
    def test_deep_merge_does_not_mutate(self):
        base = {"a": {"b": [1]}}
        merged = deep_merge(base, {"a": {"b": [2]}})
        assert merged == {"a": {"b": [1, 2]}}
        assert base == {"a": {"b": [1]}}

    def test_strip_jsonc_keeps_strings(self):
        text = '{"url": "http://x", /* c */ "a": [1,],}'
        assert json.loads(strip_jsonc(text)) == {"url": "http://x", "a": [1]}

    def test_strip_jsonc_trailing_comma_inside_string(self):
        text = '{"paths": {"@x": ["a,]", "b, }"],\n  // last\n},}'
        assert json.loads(strip_jsonc(text)) == {"paths": {"@x": ["a,]", "b, }"]}}

    def test_strip_jsonc_comma_before_comment(self):
        assert json.loads(strip_jsonc('[1, /* two */ 2, // end\n]')) == [1, 2]

    def test_detect_indent(self):
        assert detect_indent('{\n\t"a": 1\n}') == "\t"
        assert detect_indent('{\n    "a": 1\n}') == 4
        assert detect_indent(None) == 2
