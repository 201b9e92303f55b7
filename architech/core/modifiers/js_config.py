"""
js-config-merger — merge properties into an exported config object.

Handles ``export default {...}``, ``module.exports = {...}``,
``export const NAME = {...}`` and ``export default ident`` where ``ident``
is a ``const``/``let``/``var`` object in the same file. Only the object
literal's span is rewritten.
"""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from architech.core.errors import ErrorCode, ModifierError
from architech.core.models.action import MergeStrategy
from architech.core.modifiers.base import ModifierDefinition, ModifierParams
from architech.core.modifiers.common import merge
from architech.core.modifiers.jssource import (
    find_export,
    indent_unit,
    line_indent,
    match_bracket,
    parse_literal,
    to_js,
)


class JsConfigParams(ModifierParams):
    properties_to_merge: dict[str, Any]
    export_name: str = "default"
    merge_strategy: MergeStrategy = MergeStrategy.DEEP

    @field_validator("merge_strategy", mode="before")
    @classmethod
    def parse_strategy(cls, value: Any) -> MergeStrategy:
        return MergeStrategy.parse(value)

    @field_validator("export_name")
    @classmethod
    def check_export_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("export_name must not be empty")
        return value.strip()


def new_config_module(export_name: str, properties: dict[str, Any]) -> str:
    body = to_js(properties)
    if export_name == "default":
        return f"const config = {body};\n\nexport default config;\n"
    return f"export const {export_name} = {body};\n"


def merge_js_config(content: str | None, params: JsConfigParams) -> str:
    if content is None or not content.strip():
        return new_config_module(params.export_name, params.properties_to_merge)

    site = find_export(content, params.export_name)
    if site is None:
        raise ModifierError(
            f"Export '{params.export_name}' not found",
            code=ErrorCode.EXPORT_NOT_FOUND,
        )
    if not content.startswith("{", site.start):
        raise ModifierError(
            f"Export '{params.export_name}' is not an object literal",
            code=ErrorCode.TRANSFORM_FAILED,
        )

    end = match_bracket(content, site.start)
    current = parse_literal(content[site.start:end])
    merged = merge(current, params.properties_to_merge, params.merge_strategy)
    if merged == current:
        return content

    rendered = to_js(merged, indent=indent_unit(content), base=line_indent(content, site.start))
    return content[: site.start] + rendered + content[end:]


JS_CONFIG_MERGER = ModifierDefinition(
    name="js-config-merger",
    description="Deep, shallow or replace merge into an exported JS/TS config object",
    params_model=JsConfigParams,
    transform=merge_js_config,
    file_types=(".js", ".mjs", ".cjs", ".ts", ".mts", ".cts"),
)
