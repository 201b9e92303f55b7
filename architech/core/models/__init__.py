"""
Domain models — Pydantic types and result dataclasses for the engine.

    from architech.core.models import Blueprint, CreateFile, ExecutionResult
"""

from architech.core.models.action import (
    Action,
    ActionResult,
    ActionType,
    AddDependency,
    AddDevDependency,
    AddEnvVar,
    AddScript,
    AddTsImport,
    AppendToFile,
    ConflictStrategy,
    CreateFile,
    EnhanceFile,
    ExtendSchema,
    ImportDefinition,
    InstallPackages,
    MergeConfig,
    MergeJson,
    MergeStrategy,
    PrependToFile,
    RunCommand,
    SchemaTable,
    WrapConfig,
    parse_action,
)
from architech.core.models.blueprint import Blueprint, DynamicBlueprint, ModuleSpec
from architech.core.models.paths import PathKeyDefinition, PathKeySchema, ProjectStructure
from architech.core.models.recipe import ProjectSettings, Recipe, RecipeModule
from architech.core.models.result import (
    ExecutionError,
    ExecutionResult,
    ExecutionState,
    RunReport,
)

__all__ = [
    # action.py
    "Action",
    "ActionResult",
    "ActionType",
    "AddDependency",
    "AddDevDependency",
    "AddEnvVar",
    "AddScript",
    "AddTsImport",
    "AppendToFile",
    # blueprint.py
    "Blueprint",
    "ConflictStrategy",
    "CreateFile",
    "DynamicBlueprint",
    "EnhanceFile",
    # result.py
    "ExecutionError",
    "ExecutionResult",
    "ExecutionState",
    "ExtendSchema",
    "ImportDefinition",
    "InstallPackages",
    "MergeConfig",
    "MergeJson",
    "MergeStrategy",
    "ModuleSpec",
    # paths.py
    "PathKeyDefinition",
    "PathKeySchema",
    "PrependToFile",
    # recipe.py
    "ProjectSettings",
    "ProjectStructure",
    "Recipe",
    "RecipeModule",
    "RunCommand",
    "RunReport",
    "SchemaTable",
    "WrapConfig",
    "parse_action",
]
