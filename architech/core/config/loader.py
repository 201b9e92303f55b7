"""
Configuration loader — reads recipe and blueprint files into domain models.

Recipes and blueprints are YAML (JSON is accepted by the same parser).
Everything is validated with the Pydantic models; any problem surfaces as
a ``ConfigError`` with the offending file in the message.
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from architech.core.errors import ArchitechError
from architech.core.models.blueprint import Blueprint, DynamicBlueprint, ModuleSpec
from architech.core.models.paths import ProjectStructure
from architech.core.models.recipe import Recipe, RecipeModule
from architech.core.paths.defaults import default_schema
from architech.core.paths.resolver import PathResolver

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a recipe or blueprint is invalid or missing."""


@dataclass
class LoadedRecipe:
    """A recipe with everything the executor needs derived from it."""

    recipe: Recipe
    path: Path
    root: Path
    modules: list[ModuleSpec] = field(default_factory=list)
    resolver: PathResolver | None = None

    @property
    def name(self) -> str:
        return self.recipe.project.name


def _validation_message(exc: PydanticValidationError) -> str:
    lines = []
    for error in exc.errors()[:5]:
        loc = ".".join(str(part) for part in error.get("loc", ()))
        lines.append(f"{loc}: {error.get('msg', '')}" if loc else error.get("msg", ""))
    more = len(exc.errors()) - len(lines)
    if more > 0:
        lines.append(f"(+{more} more)")
    return "; ".join(lines)


def read_document(path: Path) -> dict[str, Any]:
    """Parse a YAML/JSON mapping.

    Raises:
        ConfigError: If the file is missing, unreadable or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"File not found: {path}")

    logger.debug("Loading %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_recipe(path: Path) -> Recipe:
    """Load and validate a recipe file.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    data = read_document(path)
    try:
        recipe = Recipe.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid recipe {path}: {_validation_message(e)}") from e

    logger.info("Loaded recipe '%s' with %d module(s)", recipe.project.name, len(recipe.modules))
    return recipe


def load_blueprint(path: Path) -> Blueprint:
    """Load a blueprint file; the document may be flat or under ``blueprint:``.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    data = read_document(path)
    if "blueprint" in data and isinstance(data["blueprint"], dict):
        data = data["blueprint"]
    try:
        return Blueprint.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid blueprint {path}: {_validation_message(e)}") from e


def import_blueprint(ref: str) -> Blueprint | DynamicBlueprint:
    """Import ``package.module:attribute``.

    The attribute may be a Blueprint, a DynamicBlueprint, a mapping that
    validates as a Blueprint, or a callable used as a dynamic factory.

    Raises:
        ConfigError: If the reference cannot be imported or used.
    """
    module_name, _, attribute = ref.partition(":")
    if not module_name or not attribute:
        raise ConfigError(f"Invalid blueprint_ref '{ref}': expected 'package.module:attribute'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import '{module_name}' for blueprint_ref '{ref}': {e}") from e

    target: Any = module
    for part in attribute.split("."):
        if not hasattr(target, part):
            raise ConfigError(f"'{module_name}' has no attribute '{attribute}'")
        target = getattr(target, part)

    if isinstance(target, (Blueprint, DynamicBlueprint)):
        return target
    if isinstance(target, dict):
        try:
            return Blueprint.model_validate(target)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid blueprint at '{ref}': {_validation_message(e)}") from e
    if callable(target):
        return DynamicBlueprint(id=ref, factory=target, name=attribute)
    raise ConfigError(f"'{ref}' is not a blueprint (got {type(target).__name__})")


def build_module(entry: RecipeModule, base_dir: Path) -> ModuleSpec:
    """Turn a recipe module entry into a ModuleSpec."""
    if entry.blueprint is not None:
        blueprint: Blueprint | DynamicBlueprint = entry.blueprint
    elif entry.blueprint_file:
        candidate = Path(entry.blueprint_file)
        blueprint = load_blueprint(candidate if candidate.is_absolute() else base_dir / candidate)
    else:
        blueprint = import_blueprint(entry.blueprint_ref or "")

    return ModuleSpec(
        id=entry.id,
        blueprint=blueprint,
        category=entry.category or entry.id.split("/", 1)[0],
        parameters=dict(entry.parameters),
        conflict_policy=dict(entry.conflict_policy),
    )


def build_resolver(
    recipe: Recipe,
    root: Path,
    structure: ProjectStructure | str | None = None,
) -> PathResolver:
    """Path resolver from the recipe's structure, overrides and extra keys."""
    schema = default_schema()
    if recipe.path_keys:
        schema = schema.extended(recipe.path_keys)
    try:
        return PathResolver(
            root=str(root),
            structure=ProjectStructure(structure or recipe.project.structure),
            overrides=recipe.project.paths,
            schema=schema,
        )
    except ValueError as e:
        raise ConfigError(f"Invalid project structure: {e}") from e


def load_project(
    recipe_path: Path,
    root: Path | None = None,
    structure: ProjectStructure | str | None = None,
) -> LoadedRecipe:
    """Load a recipe and everything derived from it.

    The project root is, in order: ``root``, ``project.root`` (relative
    to the recipe), the recipe's directory.

    Raises:
        ConfigError: If anything in the recipe or its blueprints is invalid.
    """
    recipe_path = recipe_path.resolve()
    recipe = load_recipe(recipe_path)
    base_dir = recipe_path.parent

    if root is not None:
        project_root = root.resolve()
    elif recipe.project.root:
        project_root = (base_dir / recipe.project.root).resolve()
    else:
        project_root = base_dir

    try:
        modules = [build_module(entry, base_dir) for entry in recipe.modules]
    except ArchitechError as e:
        raise ConfigError(f"Invalid blueprint in {recipe_path}: {e.message}") from e

    return LoadedRecipe(
        recipe=recipe,
        path=recipe_path,
        root=project_root,
        modules=modules,
        resolver=build_resolver(recipe, project_root, structure),
    )
