"""
Override validation — check user path overrides against a key schema.

Unknown keys and empty values are errors. Keys that only match an
implicit wildcard, keys defined for the other project structure, and
deprecated keys produce warnings.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from architech.core.models.paths import PathKeySchema, ProjectStructure
from architech.core.paths.resolver import suggest_keys


@dataclass
class OverrideIssue:
    key: str
    message: str
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {"key": self.key, "message": self.message}
        if self.suggestions:
            data["suggestions"] = self.suggestions
        return data


@dataclass
class OverrideValidation:
    """Result of validating a set of path overrides."""

    errors: list[OverrideIssue] = field(default_factory=list)
    warnings: list[OverrideIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }


def _implicit_wildcards(schema: PathKeySchema) -> set[str]:
    """Every dotted prefix of a defined key becomes ``prefix.*``."""
    wildcards = set()
    for key in schema.keys():
        parts = key.split(".")
        for i in range(1, len(parts)):
            wildcards.add(".".join(parts[:i]) + ".*")
    return wildcards


def _matches_wildcard(key: str, wildcards: set[str]) -> str | None:
    parts = key.split(".")
    for i in range(len(parts) - 1, 0, -1):
        candidate = ".".join(parts[:i]) + ".*"
        if candidate in wildcards:
            return candidate
    return None


def validate_overrides(
    overrides: Mapping[str, str],
    schema: PathKeySchema,
    structure: ProjectStructure,
) -> OverrideValidation:
    result = OverrideValidation()
    defined = set(schema.keys())
    explicit_wildcards = {k for k in defined if k.endswith(".*")}
    implicit = _implicit_wildcards(schema)

    for key, value in overrides.items():
        if not isinstance(value, str) or not value.strip():
            result.errors.append(OverrideIssue(key, f"Override for '{key}' is empty"))
            continue

        definition = schema.get(key)
        if definition is None:
            if key in implicit:
                continue
            if _matches_wildcard(key, explicit_wildcards):
                continue
            wildcard = _matches_wildcard(key, implicit)
            if wildcard:
                result.warnings.append(
                    OverrideIssue(
                        key,
                        f"'{key}' is not a defined key; accepted through wildcard '{wildcard}'",
                    )
                )
                continue
            suggestions = suggest_keys(key, sorted(defined))
            hint = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
            result.errors.append(
                OverrideIssue(key, f"Unknown path key '{key}'.{hint}", suggestions)
            )
            continue

        if definition.structure is not None and definition.structure != structure:
            result.warnings.append(
                OverrideIssue(
                    key,
                    f"'{key}' is meant for {definition.structure} projects, "
                    f"this project is {structure}",
                )
            )
        if definition.deprecated:
            replacement = f"; use '{definition.replacement}'" if definition.replacement else ""
            result.warnings.append(OverrideIssue(key, f"'{key}' is deprecated{replacement}"))

    return result
