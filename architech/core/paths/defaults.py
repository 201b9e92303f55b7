"""
Built-in path key schema.

Single-app projects keep everything under ``src/``; monorepos put the web
app under ``apps/web`` and shared code under ``packages/<name>``.
"""

from __future__ import annotations

from architech.core.models.paths import PathKeyDefinition, PathKeySchema, ProjectStructure

_SINGLE = ProjectStructure.SINGLE_APP
_MONO = ProjectStructure.MONOREPO


def _key(key: str, single: str, mono: str, description: str = "") -> PathKeyDefinition:
    return PathKeyDefinition(
        key=key, paths={_SINGLE: single, _MONO: mono}, description=description
    )


def default_schema() -> PathKeySchema:
    """Return a fresh copy of the built-in schema."""
    return PathKeySchema(
        marketplace="core",
        path_keys=[
            _key("project.root", ".", ".", "Project root"),
            _key("project.manifest", "package.json", "package.json", "Root package manifest"),
            _key("project.config", ".", "apps/web", "Framework config directory"),
            _key("apps.web.root", ".", "apps/web", "Web application root"),
            _key("apps.web.src", "src", "apps/web/src", "Web application sources"),
            _key("apps.web.app", "src/app", "apps/web/src/app", "App router directory"),
            _key(
                "apps.web.components",
                "src/components",
                "apps/web/src/components",
                "UI components",
            ),
            _key("apps.web.lib", "src/lib", "apps/web/src/lib", "Shared utilities"),
            _key("apps.web.types", "src/types", "apps/web/src/types", "Type declarations"),
            _key("apps.web.public", "public", "apps/web/public", "Static assets"),
            _key("apps.web.*", ".", "apps/web", "Any path inside the web app"),
            _key("packages.ui.src", "src/lib/ui", "packages/ui/src", "UI package sources"),
            _key("packages.db.src", "src/lib/db", "packages/db/src", "Database package sources"),
            _key(
                "packages.auth.src",
                "src/lib/auth",
                "packages/auth/src",
                "Auth package sources",
            ),
            _key(
                "packages.config.src",
                "src/lib/config",
                "packages/config/src",
                "Shared config package sources",
            ),
        ],
    )
