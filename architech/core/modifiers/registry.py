"""
Modifier registry — name → ModifierDefinition lookup and dispatch.

The registry is an explicit value: build one with ``default_registry()``
(or empty, in tests) and pass it to the executor.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from architech.core.errors import ArchitechError, ErrorCode, ModifierError
from architech.core.models.action import describe_validation_error
from architech.core.modifiers.base import ModifierDefinition

logger = logging.getLogger(__name__)


class ModifierRegistry:
    """Catalog of named modifiers."""

    def __init__(self, definitions: list[ModifierDefinition] | None = None):
        self._modifiers: dict[str, ModifierDefinition] = {}
        for definition in definitions or []:
            self.register(definition)

    def register(self, definition: ModifierDefinition) -> None:
        if definition.name in self._modifiers:
            logger.warning("Overwriting existing modifier: %s", definition.name)
        self._modifiers[definition.name] = definition
        logger.debug("Registered modifier: %s", definition.name)

    def unregister(self, name: str) -> None:
        self._modifiers.pop(name, None)

    def get(self, name: str) -> ModifierDefinition:
        """Look up a modifier.

        Raises:
            ModifierError: MODIFIER_NOT_FOUND when the name is unknown.
        """
        definition = self._modifiers.get(name)
        if definition is None:
            available = ", ".join(sorted(self._modifiers)) or "none"
            raise ModifierError(
                f"Modifier '{name}' is not registered (available: {available})",
                code=ErrorCode.MODIFIER_NOT_FOUND,
            )
        return definition

    def __contains__(self, name: str) -> bool:
        return name in self._modifiers

    def list_modifiers(self) -> list[ModifierDefinition]:
        return [self._modifiers[name] for name in sorted(self._modifiers)]

    def apply(
        self,
        name: str,
        content: str | None,
        params: dict[str, Any],
        path: str | None = None,
    ) -> str:
        """Validate params and run the named modifier's transform.

        Raises:
            ModifierError: unknown modifier, bad params, unsupported file
                type, or a failure inside the transform.
        """
        definition = self.get(name)

        if not definition.supports(path):
            raise ModifierError(
                f"Modifier '{name}' does not support {path} "
                f"(expects {', '.join(definition.file_types)})",
                code=ErrorCode.UNSUPPORTED_FILE_TYPE,
                path=path,
            )

        try:
            validated = definition.params_model.model_validate(params or {})
        except PydanticValidationError as e:
            raise ModifierError(
                f"Invalid parameters for modifier '{name}': {describe_validation_error(e)}",
                code=ErrorCode.INVALID_MODIFIER_PARAMS,
                path=path,
            ) from e

        try:
            return definition.transform(content, validated)
        except ModifierError as e:
            if e.path is None:
                e.path = path
            raise
        except ArchitechError:
            raise
        except (ValueError, TypeError, KeyError) as e:
            raise ModifierError(
                f"Modifier '{name}' failed: {e}",
                code=ErrorCode.TRANSFORM_FAILED,
                path=path,
            ) from e
