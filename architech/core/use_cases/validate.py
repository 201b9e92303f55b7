"""
Validate use case — check a recipe without touching the project.

Loads the recipe and its blueprints, resolves dynamic blueprints with the
module parameters, checks path overrides against the key schema, and
checks every action's condition parses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from architech.core.config.loader import ConfigError, LoadedRecipe, load_project
from architech.core.engine import conditions
from architech.core.engine.executor import resolve_blueprint
from architech.core.errors import ArchitechError
from architech.core.paths.validation import validate_overrides


@dataclass
class ValidateResult:
    """Result of recipe validation."""

    valid: bool = False
    recipe_path: Path | None = None
    loaded: LoadedRecipe | None = None
    action_count: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        recipe = self.loaded.recipe if self.loaded else None
        return {
            "valid": self.valid,
            "recipe_path": str(self.recipe_path) if self.recipe_path else None,
            "project_name": recipe.project.name if recipe else None,
            "module_count": len(recipe.modules) if recipe else 0,
            "action_count": self.action_count,
            "errors": self.errors,
            "warnings": self.warnings,
        }


def validate_recipe(recipe_path: Path) -> ValidateResult:
    """Validate a recipe and report issues.

    Returns:
        ValidateResult; ``valid`` is False when any error was found.
    """
    result = ValidateResult(recipe_path=recipe_path)

    try:
        loaded = load_project(recipe_path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result
    result.loaded = loaded
    recipe = loaded.recipe
    resolver = loaded.resolver
    assert resolver is not None

    # ── Path overrides ───────────────────────────────────────────
    overrides = validate_overrides(recipe.project.paths, resolver.schema, resolver.structure)
    result.errors.extend(f"paths.{issue.key}: {issue.message}" for issue in overrides.errors)
    result.warnings.extend(f"paths.{issue.key}: {issue.message}" for issue in overrides.warnings)

    # ── Modules ──────────────────────────────────────────────────
    ids = recipe.module_ids
    dupes = sorted({i for i in ids if ids.count(i) > 1})
    if dupes:
        result.errors.append(f"Duplicate module ids: {', '.join(dupes)}")
    if not recipe.modules:
        result.warnings.append("No modules defined. The recipe has nothing to do.")

    for module in loaded.modules:
        try:
            blueprint = resolve_blueprint(module)
        except ArchitechError as e:
            result.errors.append(f"{module.id}: {e.message}")
            continue
        if not blueprint.actions:
            result.warnings.append(f"{module.id}: blueprint '{blueprint.id}' has no actions")
        result.action_count += len(blueprint.actions)
        for index, action in enumerate(blueprint.actions):
            if not action.condition:
                continue
            try:
                conditions.evaluate(action.condition, {"module": {"parameters": module.parameters}})
            except ArchitechError as e:
                result.errors.append(f"{module.id}: action {index + 1} ({action.type}): {e.message}")

    result.valid = not result.errors
    return result
