"""
package-json-merger — merge dependencies and scripts into a package manifest.
"""

from __future__ import annotations

from typing import Any, Literal

from architech.core.modifiers.base import ModifierDefinition, ModifierParams
from architech.core.modifiers.common import dedupe, load_json, rewrite_json

# Sections merged as key unions (new value wins on collision).
KEYED_SECTIONS = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
    "scripts",
    "engines",
)


class PackageJsonParams(ModifierParams):
    dependencies: dict[str, str] | None = None
    dev_dependencies: dict[str, str] | None = None
    peer_dependencies: dict[str, str] | None = None
    optional_dependencies: dict[str, str] | None = None
    scripts: dict[str, str] | None = None
    engines: dict[str, str] | None = None
    browserslist: list[str] | None = None
    merge_strategy: Literal["merge", "replace"] = "merge"

    def sections(self) -> dict[str, dict[str, str]]:
        """Supplied keyed sections, by their manifest names."""
        values = {
            "dependencies": self.dependencies,
            "devDependencies": self.dev_dependencies,
            "peerDependencies": self.peer_dependencies,
            "optionalDependencies": self.optional_dependencies,
            "scripts": self.scripts,
            "engines": self.engines,
        }
        return {name: value for name, value in values.items() if value is not None}


def merge_package_json(content: str | None, params: PackageJsonParams) -> str:
    manifest = load_json(content)
    merged: dict[str, Any] = dict(manifest)

    for section, incoming in params.sections().items():
        if params.merge_strategy == "replace":
            merged[section] = dict(incoming)
            continue
        current = merged.get(section)
        merged[section] = {**(current if isinstance(current, dict) else {}), **incoming}

    if params.browserslist is not None:
        current = merged.get("browserslist")
        if params.merge_strategy == "replace" or not isinstance(current, list):
            merged["browserslist"] = dedupe(list(params.browserslist))
        else:
            merged["browserslist"] = dedupe([*current, *params.browserslist])

    return rewrite_json(content, manifest, merged)


PACKAGE_JSON_MERGER = ModifierDefinition(
    name="package-json-merger",
    description="Merge dependencies, scripts, engines and browserslist into package.json",
    params_model=PackageJsonParams,
    transform=merge_package_json,
    file_types=(".json",),
)
