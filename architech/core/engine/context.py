"""
Project context — everything one blueprint execution can see.

Owned by the executor for the duration of one blueprint and passed by
reference to every action handler: project identity, the path resolver,
the current module, the shared VFS session, a logger, and the pending
dependency set that is merged into the manifest at commit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from architech.core.config.settings import EngineSettings
from architech.core.engine import conditions, templating
from architech.core.engine.vfs import VirtualFileSystem
from architech.core.models.action import ConflictStrategy
from architech.core.paths.resolver import PathResolver

logger = logging.getLogger(__name__)

LATEST = "latest"


def split_package(spec: str) -> tuple[str, str]:
    """``react@^18`` → (react, ^18); ``@scope/pkg`` → (@scope/pkg, latest)."""
    spec = spec.strip()
    at = spec.rfind("@")
    if at > 0:
        name, version = spec[:at], spec[at + 1:].strip()
        return name, version or LATEST
    return spec, LATEST


@dataclass
class ModuleInfo:
    id: str
    category: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)
    conflict_policy: dict[str, ConflictStrategy] = field(default_factory=dict)


@dataclass
class ProjectContext:
    project_name: str
    resolver: PathResolver
    vfs: VirtualFileSystem
    module: ModuleInfo
    settings: EngineSettings = field(default_factory=EngineSettings)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("architech.blueprint"))
    dry_run: bool = False
    dependencies: dict[str, dict[str, str]] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)     # e.g. {"item": ...} during for_each

    @property
    def root(self) -> str:
        return self.resolver.root

    # ── Template namespace ───────────────────────────────────────

    def namespace(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "project": {
                "name": self.project_name,
                "root": self.resolver.root,
                "structure": str(self.resolver.structure),
            },
            "module": {
                "id": self.module.id,
                "category": self.module.category,
                "parameters": self.module.parameters,
            },
            "paths": self.resolver.relative,
        }
        data.update(self.extra)
        return data

    def render(self, value: Any) -> Any:
        return templating.render_value(value, self.namespace(), conditions.evaluate)

    def check(self, condition: str | None) -> bool:
        return conditions.evaluate(condition, self.namespace())

    def target(self, path: str) -> str:
        """Absolute path for a (rendered) action target."""
        return self.resolver.target(path)

    def relative(self, absolute: str) -> str:
        return self.resolver.to_relative(absolute)

    # ── Pending dependencies ─────────────────────────────────────

    def add_dependencies(self, packages: list[str], dev: bool = False) -> dict[str, str]:
        """Queue packages for the manifest merge. Returns what was queued."""
        section = self.dependencies.setdefault("devDependencies" if dev else "dependencies", {})
        queued = {}
        for spec in packages:
            name, version = split_package(spec)
            if not name:
                continue
            if section.get(name) not in (None, LATEST) and version == LATEST:
                continue
            section[name] = version
            queued[name] = version
        return queued

    @property
    def has_dependencies(self) -> bool:
        return any(self.dependencies.values())
