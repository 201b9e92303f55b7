"""
js-export-wrapper — wrap an export in a function call.

``export default nextConfig`` becomes
``export default withSentryConfig(nextConfig, {...})`` and the wrapper's
import is added. An export that already calls the wrapper is left alone.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from architech.core.errors import ErrorCode, ModifierError
from architech.core.modifiers.base import ModifierDefinition, ModifierParams
from architech.core.modifiers.jssource import add_import, find_export, indent_unit, to_js


class WrapperFunction(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    name: str
    import_from: str | None = None


class JsExportWrapperParams(ModifierParams):
    wrapper_function: WrapperFunction
    export_to_wrap: str = "default"
    wrapper_options: dict[str, Any] | None = None


def wrap_export(content: str | None, params: JsExportWrapperParams) -> str:
    site = find_export(content or "", params.export_to_wrap, follow=False)
    if site is None:
        raise ModifierError(
            f"Export '{params.export_to_wrap}' not found",
            code=ErrorCode.EXPORT_NOT_FOUND,
        )
    assert content is not None  # find_export found something

    expression = site.text(content).rstrip(";").rstrip()
    wrapper = params.wrapper_function
    updated = content

    if not re.match(rf"{re.escape(wrapper.name)}\s*\(", expression):
        call = f"{wrapper.name}({expression}"
        if params.wrapper_options:
            call += f", {to_js(params.wrapper_options, indent=indent_unit(content))}"
        call += ")"
        updated = content[: site.start] + call + content[site.start + len(expression):]

    if wrapper.import_from:
        updated = add_import(updated, wrapper.import_from, named=[wrapper.name])
    return updated


JS_EXPORT_WRAPPER = ModifierDefinition(
    name="js-export-wrapper",
    description="Wrap an exported value in a function call and import the wrapper",
    params_model=JsExportWrapperParams,
    transform=wrap_export,
    file_types=(".js", ".mjs", ".cjs", ".ts", ".mts", ".cts"),
)
