"""
tsconfig-enhancer — merge compiler options, path aliases and include lists.

tsconfig files are JSONC: comments and trailing commas are tolerated on
read. A rewritten file is emitted as plain JSON.
"""

from __future__ import annotations

from typing import Any, Literal

from architech.core.modifiers.base import ModifierDefinition, ModifierParams
from architech.core.modifiers.common import dedupe, load_json, rewrite_json


class TsconfigParams(ModifierParams):
    compiler_options: dict[str, Any] | None = None
    paths: dict[str, list[str]] | None = None
    include: list[str] | None = None
    exclude: list[str] | None = None
    extends: str | None = None
    merge_strategy: Literal["merge", "replace"] = "merge"


def _merge_list(existing: Any, incoming: list[str], replace: bool) -> list[str]:
    if replace or not isinstance(existing, list):
        return dedupe(list(incoming))
    return dedupe([*existing, *incoming])


def enhance_tsconfig(content: str | None, params: TsconfigParams) -> str:
    config = load_json(content, allow_comments=True)
    updated: dict[str, Any] = dict(config)
    replace = params.merge_strategy == "replace"

    if params.extends:
        updated["extends"] = params.extends

    if params.compiler_options is not None or params.paths is not None:
        current = updated.get("compilerOptions")
        options = dict(current) if isinstance(current, dict) else {}
        if params.compiler_options is not None:
            options = dict(params.compiler_options) if replace else {**options, **params.compiler_options}
        if params.paths is not None:
            existing_paths = options.get("paths")
            base = existing_paths if isinstance(existing_paths, dict) and not replace else {}
            options["paths"] = {**base, **params.paths}
        updated["compilerOptions"] = options

    if params.include is not None:
        updated["include"] = _merge_list(updated.get("include"), params.include, replace)
    if params.exclude is not None:
        updated["exclude"] = _merge_list(updated.get("exclude"), params.exclude, replace)

    return rewrite_json(content, config, updated)


TSCONFIG_ENHANCER = ModifierDefinition(
    name="tsconfig-enhancer",
    description="Merge compilerOptions, paths, include/exclude and extends into tsconfig.json",
    params_model=TsconfigParams,
    transform=enhance_tsconfig,
    file_types=(".json",),
)
