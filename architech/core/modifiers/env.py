"""
env-merger — add variables to a dotenv file.

Existing keys keep their value unless ``overwrite`` is set, so two modules
can both ask for ``DATABASE_URL`` without clobbering each other.
"""

from __future__ import annotations

import re

from pydantic import BaseModel

from architech.core.modifiers.base import ModifierDefinition, ModifierParams

_ASSIGNMENT_RE = re.compile(r"^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_.-]*)\s*=")


class EnvVariable(BaseModel):
    key: str
    value: str = ""
    description: str = ""


class EnvParams(ModifierParams):
    variables: list[EnvVariable]
    overwrite: bool = False


def _format_value(value: str) -> str:
    if value == "" or re.fullmatch(r"[A-Za-z0-9_./:@+-]*", value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def merge_env(content: str | None, params: EnvParams) -> str:
    lines = content.splitlines() if content else []
    index = {}
    for i, line in enumerate(lines):
        match = _ASSIGNMENT_RE.match(line)
        if match:
            index[match.group(1)] = i

    changed = False
    additions: list[str] = []
    added: set[str] = set()
    for variable in params.variables:
        rendered = f"{variable.key}={_format_value(variable.value)}"
        if variable.key in added:
            continue
        if variable.key in index:
            position = index[variable.key]
            if params.overwrite and lines[position] != rendered:
                lines[position] = rendered
                changed = True
            continue
        if variable.description:
            additions.append(f"# {variable.description}")
        additions.append(rendered)
        added.add(variable.key)
        changed = True

    if not changed:
        return content or ""

    return "\n".join([*lines, *additions]) + "\n"


ENV_MERGER = ModifierDefinition(
    name="env-merger",
    description="Add KEY=value lines to a .env file, keeping existing keys",
    params_model=EnvParams,
    transform=merge_env,
)
