"""
Blueprint models — ordered action lists and the modules that own them.

A blueprint is either static (a validated list of actions) or dynamic (a
callable from merged module parameters to actions). Both resolve to a
concrete ``Blueprint`` before the executor iterates it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from architech.core.models.action import Action, ConflictStrategy, parse_action


class Blueprint(BaseModel):
    """A static blueprint: identity plus an ordered action list."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    id: str
    name: str = ""
    version: str = "1.0.0"
    description: str = ""
    contextual_files: list[str] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.id}@{self.version}"


BlueprintFactory = Callable[[dict[str, Any]], "list[Any] | Blueprint"]


@dataclass
class DynamicBlueprint:
    """A blueprint whose actions depend on the module's parameters.

    The factory receives the merged parameters and returns either a list
    of actions (models or raw mappings) or a complete Blueprint.
    """

    id: str
    factory: BlueprintFactory
    name: str = ""
    version: str = "1.0.0"
    description: str = ""
    contextual_files: list[str] = field(default_factory=list)

    def resolve(self, parameters: dict[str, Any]) -> Blueprint:
        produced = self.factory(dict(parameters))
        if isinstance(produced, Blueprint):
            return produced
        return Blueprint(
            id=self.id,
            name=self.name,
            version=self.version,
            description=self.description,
            contextual_files=list(self.contextual_files),
            actions=[parse_action(a) for a in produced],
        )


@dataclass
class ModuleSpec:
    """One resolved technology choice handed to the executor.

    Attributes:
        id:              Module identifier, e.g. ``database/drizzle``.
        blueprint:       Static or dynamic blueprint.
        category:        Module category (framework, database, ui, ...).
        parameters:      Merged, defaulted module parameters.
        conflict_policy: Glob pattern → conflict strategy, first match wins.
    """

    id: str
    blueprint: Blueprint | DynamicBlueprint
    category: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)
    conflict_policy: dict[str, ConflictStrategy] = field(default_factory=dict)
