"""
schema-extender — append table declarations to a Drizzle-style schema file.

A table is written as ``export const <name> = <definition>;`` unless a
binding with that name already exists. The column builders used by the
appended definitions (``pgTable``, ``text``, ``uuid`` ...) are merged into
the import from ``import_from``.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator

from architech.core.modifiers.base import ModifierDefinition, ModifierParams
from architech.core.modifiers.jssource import add_import

BUILDERS = frozenset({
    "pgTable", "pgEnum", "pgSchema",
    "text", "varchar", "char",
    "integer", "smallint", "bigint", "serial", "smallserial", "bigserial",
    "numeric", "decimal", "real", "doublePrecision",
    "boolean", "uuid", "json", "jsonb",
    "timestamp", "date", "time", "interval",
    "primaryKey", "foreignKey", "index", "uniqueIndex", "unique", "check",
})

_CALL_RE = re.compile(r"(?<![\w$.])([A-Za-z_$][\w$]*)\s*\(")


class TableSpec(BaseModel):
    name: str
    definition: str

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        if not re.fullmatch(r"[A-Za-z_$][\w$]*", value):
            raise ValueError(f"'{value}' is not a valid identifier")
        return value


class SchemaParams(ModifierParams):
    tables: list[TableSpec] = Field(default_factory=list)
    additional_imports: list[str] = Field(default_factory=list)
    import_from: str = "drizzle-orm/pg-core"


def _declares(src: str, name: str) -> bool:
    return re.search(rf"\b(?:const|let|var|function|class)\s+{re.escape(name)}\b", src) is not None


def _render_table(table: TableSpec) -> str:
    text = table.definition.strip().rstrip(";")
    if re.match(r"(?:export\s+)?(?:const|let|var)\s", text):
        return text + ";"
    return f"export const {table.name} = {text};"


def builders_used(definition: str) -> list[str]:
    names = []
    for match in _CALL_RE.finditer(definition):
        name = match.group(1)
        if name in BUILDERS and name not in names:
            names.append(name)
    return names


def extend_schema(content: str | None, params: SchemaParams) -> str:
    src = content or ""
    blocks = []
    needed: list[str] = []

    for table in params.tables:
        if _declares(src, table.name) or any(b.startswith(f"export const {table.name} ") for b in blocks):
            continue
        blocks.append(_render_table(table))
        needed += [n for n in builders_used(table.definition) if n not in needed]

    needed += [n for n in params.additional_imports if n not in needed]
    if needed:
        src = add_import(src, params.import_from, named=needed)

    if blocks:
        head = src.rstrip("\n")
        separator = "\n\n" if head.strip() else ""
        src = head + separator + "\n\n".join(blocks) + "\n"
    return src


SCHEMA_EXTENDER = ModifierDefinition(
    name="schema-extender",
    description="Append table declarations and merge column-builder imports into a schema file",
    params_model=SchemaParams,
    transform=extend_schema,
    file_types=(".ts", ".js", ".mts", ".mjs"),
)
