"""
Path key models — the schema the path resolver works against.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, model_validator


class ProjectStructure(StrEnum):
    SINGLE_APP = "single-app"
    MONOREPO = "monorepo"


class PathKeyDefinition(BaseModel):
    """One logical path key and its per-structure templates.

    ``path`` is a shorthand for a template shared by both structures.
    Keys ending in ``.*`` are wildcards: ``apps.web.*`` resolves any key
    under ``apps.web`` by appending the remaining segments to its template.
    """

    key: str
    paths: dict[ProjectStructure, str] = Field(default_factory=dict)
    path: str | None = None
    description: str = ""
    structure: ProjectStructure | None = None   # None = both
    deprecated: bool = False
    replacement: str | None = None

    @model_validator(mode="after")
    def fill_paths(self) -> PathKeyDefinition:
        if self.path is not None:
            for structure in ProjectStructure:
                self.paths.setdefault(structure, self.path)
        if not self.paths:
            raise ValueError(f"path key '{self.key}' defines no paths")
        return self

    @property
    def is_wildcard(self) -> bool:
        return self.key.endswith(".*")

    def template_for(self, structure: ProjectStructure) -> str | None:
        return self.paths.get(structure)


class PathKeySchema(BaseModel):
    """A marketplace-supplied set of path key definitions."""

    marketplace: str = "core"
    path_keys: list[PathKeyDefinition] = Field(default_factory=list)

    def get(self, key: str) -> PathKeyDefinition | None:
        for definition in self.path_keys:
            if definition.key == key:
                return definition
        return None

    def keys(self) -> list[str]:
        return [d.key for d in self.path_keys]

    def extended(self, extra: list[PathKeyDefinition]) -> PathKeySchema:
        """Return a new schema where ``extra`` definitions replace same-named keys."""
        by_key = {d.key: d for d in self.path_keys}
        for definition in extra:
            by_key[definition.key] = definition
        return PathKeySchema(marketplace=self.marketplace, path_keys=list(by_key.values()))
