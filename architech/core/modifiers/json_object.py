"""
json-object-merger — merge arbitrary properties into a JSON document.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator, model_validator

from architech.core.errors import ErrorCode, ModifierError
from architech.core.models.action import MergeStrategy
from architech.core.modifiers.base import ModifierDefinition, ModifierParams
from architech.core.modifiers.common import load_json, merge, rewrite_json


class JsonObjectParams(ModifierParams):
    properties_to_merge: dict[str, Any]
    target_path: list[str] = Field(default_factory=list)   # empty = document root
    merge_strategy: MergeStrategy = MergeStrategy.DEEP
    allow_comments: bool = False

    @model_validator(mode="before")
    @classmethod
    def accept_path(cls, data: Any) -> Any:
        """``path`` is the older spelling of ``targetPath``."""
        if isinstance(data, dict) and "path" in data:
            data = dict(data)
            path = data.pop("path")
            if "targetPath" not in data and "target_path" not in data:
                data["targetPath"] = path
        return data

    @field_validator("merge_strategy", mode="before")
    @classmethod
    def parse_strategy(cls, value: Any) -> MergeStrategy:
        return MergeStrategy.parse(value)


def merge_json_object(content: str | None, params: JsonObjectParams) -> str:
    document = load_json(content, allow_comments=params.allow_comments)
    if not params.target_path:
        updated = merge(document, params.properties_to_merge, params.merge_strategy)
        return rewrite_json(content, document, updated)

    updated = dict(document)
    parent = updated
    for i, segment in enumerate(params.target_path[:-1]):
        child = parent.get(segment)
        if child is None:
            child = {}
        elif not isinstance(child, dict):
            where = ".".join(params.target_path[: i + 1])
            raise ModifierError(
                f"Cannot merge into '{where}': not an object",
                code=ErrorCode.TRANSFORM_FAILED,
            )
        parent[segment] = dict(child)
        parent = parent[segment]

    leaf = params.target_path[-1]
    current = parent.get(leaf, {})
    if not isinstance(current, dict):
        raise ModifierError(
            f"Cannot merge into '{'.'.join(params.target_path)}': not an object",
            code=ErrorCode.TRANSFORM_FAILED,
        )
    parent[leaf] = merge(current, params.properties_to_merge, params.merge_strategy)
    return rewrite_json(content, document, updated)


JSON_OBJECT_MERGER = ModifierDefinition(
    name="json-object-merger",
    description="Deep, shallow or replace merge of properties into a JSON file",
    params_model=JsonObjectParams,
    transform=merge_json_object,
    file_types=(".json",),
)
