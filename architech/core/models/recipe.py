"""
Recipe model — the YAML document a user hands to ``architech run``.

Example::

    project:
      name: my-app
      structure: single-app
      paths:
        apps.web.src: web/src
    modules:
      - id: framework/nextjs
        category: framework
        parameters: {typescript: true}
        blueprint_file: blueprints/nextjs.yml
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from architech.core.models.action import ConflictStrategy
from architech.core.models.blueprint import Blueprint
from architech.core.models.paths import PathKeyDefinition, ProjectStructure


class ProjectSettings(BaseModel):
    """Project-level settings from the recipe."""

    name: str
    root: str | None = None                  # default: the recipe's directory
    structure: ProjectStructure = ProjectStructure.SINGLE_APP
    paths: dict[str, str] = Field(default_factory=dict)
    description: str = ""


class RecipeModule(BaseModel):
    """A module entry. Exactly one blueprint source must be given."""

    model_config = ConfigDict(extra="forbid")

    id: str
    category: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)
    conflict_policy: dict[str, ConflictStrategy] = Field(default_factory=dict)

    blueprint: Blueprint | None = None
    blueprint_file: str | None = None
    blueprint_ref: str | None = None        # "package.module:attribute"

    @model_validator(mode="after")
    def check_blueprint_source(self) -> RecipeModule:
        sources = [
            s for s in (self.blueprint, self.blueprint_file, self.blueprint_ref) if s
        ]
        if len(sources) != 1:
            raise ValueError(
                f"module '{self.id}' must define exactly one of "
                "blueprint, blueprint_file, blueprint_ref"
            )
        return self


class Recipe(BaseModel):
    """Top-level recipe document."""

    project: ProjectSettings
    path_keys: list[PathKeyDefinition] = Field(default_factory=list)
    modules: list[RecipeModule] = Field(default_factory=list)

    @property
    def module_ids(self) -> list[str]:
        return [m.id for m in self.modules]
