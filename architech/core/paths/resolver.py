"""
Path resolver — logical path keys to concrete project paths.

Resolution order for a key such as ``apps.web.src``:

    1. an exact override                     (``apps.web.src: web/src``)
    2. the longest matching wildcard override (``apps.web.*: web``)
    3. the schema's template for the structure
    4. the longest matching wildcard schema key

Everything here is pure: no filesystem access and no caching, so the same
(key, overrides, structure) always produces the same string.
"""

from __future__ import annotations

import posixpath
from collections.abc import Mapping
from pathlib import PurePosixPath

from architech.core.errors import ErrorCode, PathResolutionError, ValidationError
from architech.core.models.paths import PathKeySchema, ProjectStructure
from architech.core.paths.defaults import default_schema

MAX_SUGGESTION_DISTANCE = 3
MAX_SUGGESTIONS = 3


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance between two strings."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def suggest_keys(key: str, candidates: list[str]) -> list[str]:
    """Nearest keys within the suggestion distance, closest first."""
    scored = []
    for candidate in candidates:
        distance = levenshtein(key, candidate)
        if distance <= MAX_SUGGESTION_DISTANCE:
            scored.append((distance, candidate))
    scored.sort()
    return [c for _, c in scored[:MAX_SUGGESTIONS]]


def _wildcard_prefixes(key: str) -> list[tuple[str, str]]:
    """``a.b.c`` → [("a.b.*", "c"), ("a.*", "b/c")], longest prefix first."""
    parts = key.split(".")
    out = []
    for i in range(len(parts) - 1, 0, -1):
        out.append((".".join(parts[:i]) + ".*", "/".join(parts[i:])))
    return out


def _check_override(key: str, value: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise PathResolutionError(
            f"Override for '{key}' is empty",
            code=ErrorCode.INVALID_OVERRIDE,
        )
    return value.strip()


def _join(base: str, rest: str) -> str:
    if not rest:
        return base
    return posixpath.join(base, rest)


def resolve_relative(
    key: str,
    overrides: Mapping[str, str],
    structure: ProjectStructure,
    schema: PathKeySchema,
) -> str:
    """Resolve a key to a project-relative POSIX path (``.`` for the root)."""
    if not key or not key.strip():
        raise PathResolutionError("Path key is empty", code=ErrorCode.UNKNOWN_PATH_KEY)
    key = key.strip()

    if key in overrides:
        return _normalize(_check_override(key, overrides[key]))

    for wildcard, rest in _wildcard_prefixes(key):
        if wildcard in overrides:
            return _normalize(_join(_check_override(wildcard, overrides[wildcard]), rest))

    definition = schema.get(key)
    if definition is not None:
        template = definition.template_for(structure)
        if template is None:
            raise PathResolutionError(
                f"Path key '{key}' is not defined for {structure} projects",
                code=ErrorCode.UNKNOWN_PATH_KEY,
            )
        return _normalize(template)

    for wildcard, rest in _wildcard_prefixes(key):
        definition = schema.get(wildcard)
        if definition is None:
            continue
        template = definition.template_for(structure)
        if template is not None:
            return _normalize(_join(template, rest))

    suggestions = suggest_keys(key, schema.keys())
    hint = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
    raise PathResolutionError(
        f"Unknown path key '{key}'.{hint}",
        code=ErrorCode.UNKNOWN_PATH_KEY,
        suggestions=suggestions,
    )


def _normalize(path: str) -> str:
    return posixpath.normpath(path.replace("\\", "/"))


def ensure_within(root: str, relative: str) -> str:
    """Join ``relative`` onto ``root``, refusing anything that escapes it."""
    root_path = PurePosixPath(posixpath.normpath(root))
    candidate = PurePosixPath(
        posixpath.normpath(relative if posixpath.isabs(relative) else posixpath.join(root, relative))
    )
    if candidate != root_path and root_path not in candidate.parents:
        raise ValidationError(
            f"Path '{relative}' resolves outside the project root",
            code=ErrorCode.PATH_OUTSIDE_PROJECT,
            path=relative,
        )
    return str(candidate)


def resolve(
    key: str,
    overrides: Mapping[str, str],
    structure: ProjectStructure,
    schema: PathKeySchema | None = None,
    root: str = "/",
) -> str:
    """Resolve a logical key to an absolute path under ``root``."""
    relative = resolve_relative(key, overrides, structure, schema or default_schema())
    return ensure_within(root, relative)


class PathResolver:
    """A resolver bound to one project's root, schema, structure and overrides.

    Holds configuration only; every call recomputes from scratch.
    """

    def __init__(
        self,
        root: str,
        structure: ProjectStructure = ProjectStructure.SINGLE_APP,
        overrides: Mapping[str, str] | None = None,
        schema: PathKeySchema | None = None,
    ):
        self.root = posixpath.normpath(str(root).replace("\\", "/"))
        self.structure = ProjectStructure(structure)
        self.overrides: dict[str, str] = dict(overrides or {})
        self.schema = schema or default_schema()

    def resolve(self, key: str) -> str:
        """Absolute path for a logical key."""
        return ensure_within(self.root, self.relative(key))

    def relative(self, key: str) -> str:
        """Project-relative path for a logical key."""
        return resolve_relative(key, self.overrides, self.structure, self.schema)

    def target(self, path: str) -> str:
        """Absolute path for an action target given relative to the root."""
        if not path or not path.strip():
            raise PathResolutionError("Target path is empty", code=ErrorCode.UNKNOWN_PATH_KEY)
        return ensure_within(self.root, path.strip().replace("\\", "/"))

    def to_relative(self, absolute: str) -> str:
        """Inverse of ``target`` for reporting."""
        return posixpath.relpath(absolute, self.root)

    def __repr__(self) -> str:
        return f"<PathResolver root={self.root!r} structure={self.structure}>"
