"""
Modifier definition — a named, pure content transform.

A modifier receives the current file content (None when the file does
not exist yet) and validated parameters, and returns the new content.
It never touches the filesystem: the interpreter supplies the content
and persists the result.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

Transform = Callable[[str | None, Any], str]


class ModifierParams(BaseModel):
    """Base class for modifier parameter schemas.

    Accepts both snake_case and camelCase keys so blueprints written
    either way validate.
    """

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )


@dataclass(frozen=True)
class ModifierDefinition:
    """Registry entry for one modifier.

    Attributes:
        name:         Name actions refer to (``package-json-merger``).
        description:  One-line summary for ``architech modifiers``.
        params_model: Pydantic model the raw params are validated with.
        transform:    ``(content | None, params) -> new content``.
        file_types:   Accepted file suffixes; empty means any file.
    """

    name: str
    description: str
    params_model: type[ModifierParams]
    transform: Transform
    file_types: tuple[str, ...] = field(default_factory=tuple)

    def supports(self, path: str | None) -> bool:
        if not self.file_types or not path:
            return True
        name = path.rsplit("/", 1)[-1].lower()
        return any(name.endswith(suffix) for suffix in self.file_types)
