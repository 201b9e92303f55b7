"""
ts-module-enhancer — add imports, statements and exports to a TS/JS module.

Imports are merged with existing declarations for the same module.
Statements and exports are appended only when the same text is not
already present in the file.

Blueprints may also use the descriptor form::

    importsToAdd:       [{name: NextResponse, from: next/server, type: import}]
    statementsToAppend: [{type: raw, content: "..."}]
    exportsToAdd:       [{name: config, content: "const config = {}"}]

``type`` is ``import``, ``import type`` or ``import * as``; ``name`` is one
binding or a list of them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from architech.core.modifiers.base import ModifierDefinition, ModifierParams
from architech.core.modifiers.jssource import add_import

_IMPORT_KINDS = ("import", "import type", "import * as")


class ImportSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    module: str = Field(min_length=1)
    named: list[str] = Field(default_factory=list)
    default: str | None = None
    namespace: str | None = None
    type_only: bool = False

    @model_validator(mode="before")
    @classmethod
    def from_descriptor(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "from" not in data:
            return data
        kind = str(data.get("type", "import")).strip()
        if kind not in _IMPORT_KINDS:
            raise ValueError(f"type must be one of {', '.join(_IMPORT_KINDS)}, got '{kind}'")
        name = data.get("name")
        spec: dict[str, Any] = {"module": data["from"]}
        if kind == "import * as":
            if not isinstance(name, str) or not name.strip():
                raise ValueError("'import * as' needs a single name")
            spec["namespace"] = name.strip()
            return spec
        names = [name] if isinstance(name, str) else list(name or [])
        if not names:
            raise ValueError("name is required")
        spec["named"] = names
        spec["type_only"] = kind == "import type"
        return spec


def _statement_text(item: Any) -> Any:
    return item.get("content") if isinstance(item, dict) else item


def _export_text(item: Any) -> Any:
    if not isinstance(item, dict):
        return item
    content = str(item.get("content", "")).strip().rstrip(";")
    return f"export {content};" if content else ""


class TsModuleParams(ModifierParams):
    imports_to_add: list[ImportSpec] = Field(default_factory=list)
    statements_to_append: list[str] = Field(default_factory=list)
    exports_to_add: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def flatten_descriptors(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("statementsToAppend", "statements_to_append"):
            if isinstance(data.get(key), list):
                data[key] = [_statement_text(item) for item in data[key]]
        for key in ("exportsToAdd", "exports_to_add"):
            if isinstance(data.get(key), list):
                data[key] = [_export_text(item) for item in data[key]]
        return data


def _normalize(text: str) -> str:
    return " ".join(text.replace(";", " ").split())


def _append_block(src: str, blocks: list[str]) -> str:
    present = _normalize(src)
    fresh = []
    for block in blocks:
        text = block.strip()
        if not text or _normalize(text) in present:
            continue
        fresh.append(text)
        present += " " + _normalize(text)
    if not fresh:
        return src
    head = src.rstrip("\n")
    separator = "\n\n" if head.strip() else ""
    return head + separator + "\n".join(fresh) + "\n"


def enhance_ts_module(content: str | None, params: TsModuleParams) -> str:
    src = content or ""
    for spec in params.imports_to_add:
        src = add_import(
            src,
            spec.module,
            named=spec.named,
            default=spec.default,
            namespace=spec.namespace,
            type_only=spec.type_only,
        )
    src = _append_block(src, params.statements_to_append)
    src = _append_block(src, params.exports_to_add)
    return src


TS_MODULE_ENHANCER = ModifierDefinition(
    name="ts-module-enhancer",
    description="Add imports, top-level statements and exports to a TS/JS module",
    params_model=TsModuleParams,
    transform=enhance_ts_module,
    file_types=(".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".mts", ".cts"),
)
