"""
css-enhancer — add preamble at-rules and merge declarations into rule blocks.

Rule blocks are found by selector, optionally inside an at-rule block
such as ``@layer base``. Existing declarations get the new value, missing
ones are appended, missing blocks are added at the end. Everything else
in the stylesheet is left as it was.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from architech.core.modifiers.base import ModifierDefinition, ModifierParams


class CssRule(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    selector: str
    declarations: dict[str, str] = Field(default_factory=dict)
    at_rule: str | None = None          # e.g. "@layer base", "@media (min-width: 640px)"


class CssParams(ModifierParams):
    imports: list[str] = Field(default_factory=list)   # full lines: '@import "tailwindcss";'
    rules: list[CssRule] = Field(default_factory=list)
    overwrite: bool = True               # replace values of existing declarations


def _skip_css_string(css: str, i: int) -> int:
    quote = css[i]
    i += 1
    while i < len(css):
        if css[i] == "\\":
            i += 2
            continue
        if css[i] == quote:
            return i + 1
        i += 1
    return len(css)


def _close_brace(css: str, open_at: int) -> int:
    """Index of the ``}`` matching the ``{`` at ``open_at``."""
    depth = 0
    i = open_at
    while i < len(css):
        ch = css[i]
        if ch in "'\"":
            i = _skip_css_string(css, i)
            continue
        if css.startswith("/*", i):
            end = css.find("*/", i + 2)
            i = len(css) if end == -1 else end + 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise ValueError("unbalanced braces in stylesheet")


def _prelude(text: str) -> str:
    text = re.sub(r"/\*.*?\*/", " ", text, flags=re.DOTALL)
    text = re.sub(r"\s*,\s*", ", ", text)
    return " ".join(text.split())


def _find_block(css: str, head: str, start: int, end: int) -> tuple[int, int] | None:
    """(open brace, close brace) of the first depth-0 block in ``css[start:end]``
    whose whole prelude is ``head``."""
    wanted = _prelude(head)
    prelude_start = start
    i = start
    while i < end:
        ch = css[i]
        if ch in "'\"":
            i = _skip_css_string(css, i)
            continue
        if css.startswith("/*", i):
            close = css.find("*/", i + 2)
            i = end if close == -1 else close + 2
            continue
        if ch == "{":
            close_at = _close_brace(css, i)
            if _prelude(css[prelude_start:i]) == wanted:
                return i, close_at
            i = prelude_start = close_at + 1
            continue
        if ch in ";}":
            prelude_start = i + 1
        i += 1
    return None


def _block_indent(css: str, open_at: int) -> str:
    line_start = css.rfind("\n", 0, open_at) + 1
    return re.match(r"[ \t]*", css[line_start:]).group(0)


def _render_block(selector: str, declarations: dict[str, str], indent: str, unit: str) -> str:
    lines = [f"{indent}{selector} {{"]
    lines += [f"{indent}{unit}{prop}: {value};" for prop, value in declarations.items()]
    lines.append(f"{indent}}}")
    return "\n".join(lines)


def _merge_declarations(
    css: str, open_at: int, close_at: int, declarations: dict[str, str], overwrite: bool, unit: str
) -> str:
    body = css[open_at + 1:close_at]
    outer = _block_indent(css, open_at)
    existing_indent = re.search(r"\n([ \t]+)\S", body)
    inner = existing_indent.group(1) if existing_indent else outer + unit
    additions = []

    for prop, value in declarations.items():
        decl = re.compile(
            r"(?P<lead>(?:^|[;{\s]))(?P<prop>" + re.escape(prop) + r")\s*:\s*(?P<value>[^;{}]*?)\s*(?=;|$)",
            re.MULTILINE,
        )
        match = decl.search(body)
        if match:
            if overwrite and match.group("value") != value:
                body = body[: match.start("value")] + value + body[match.end("value"):]
            continue
        additions.append(f"{inner}{prop}: {value};")

    if additions:
        stripped = body.rstrip()
        if stripped and not stripped.endswith((";", "{", "}")):
            stripped += ";"
        body = stripped + "\n" + "\n".join(additions) + "\n" + outer
    return css[: open_at + 1] + body + css[close_at:]


def _indent_unit(css: str) -> str:
    match = re.search(r"\{\s*\n([ \t]+)\S", css)
    return match.group(1) if match else "  "


def enhance_css(content: str | None, params: CssParams) -> str:
    css = content or ""
    unit = _indent_unit(css)

    for line in params.imports:
        wanted = line.strip()
        if not wanted:
            continue
        if any(existing.strip() == wanted for existing in css.splitlines()):
            continue
        preamble = list(re.finditer(r"^[ \t]*@(?:import|tailwind|plugin|config|source|charset|use)\b[^\n]*$", css, re.MULTILINE))
        if preamble:
            at = preamble[-1].end()
            css = css[:at] + "\n" + wanted + css[at:]
        else:
            css = wanted + ("\n\n" + css if css.strip() else "\n")

    for rule in params.rules:
        region = (0, len(css))
        outer_indent = ""
        container = None
        if rule.at_rule:
            container = _find_block(css, rule.at_rule, 0, len(css))
            if container is None:
                block = _render_block(rule.selector, rule.declarations, unit, unit)
                css = css.rstrip() + ("\n\n" if css.strip() else "") + f"{rule.at_rule} {{\n{block}\n}}\n"
                continue
            region = (container[0] + 1, container[1])
            outer_indent = _block_indent(css, container[0]) + unit

        found = _find_block(css, rule.selector, *region)
        if found is not None:
            css = _merge_declarations(css, found[0], found[1], rule.declarations, params.overwrite, unit)
            continue

        block = _render_block(rule.selector, rule.declarations, outer_indent, unit)
        if container is not None:
            close_at = container[1]
            head = css[:close_at].rstrip()
            css = head + "\n" + block + "\n" + _block_indent(css, container[0]) + css[close_at:]
        else:
            css = css.rstrip() + ("\n\n" if css.strip() else "") + block + "\n"

    return css


CSS_ENHANCER = ModifierDefinition(
    name="css-enhancer",
    description="Add @import/@tailwind lines and merge declarations into CSS rule blocks",
    params_model=CssParams,
    transform=enhance_css,
    file_types=(".css", ".scss", ".pcss"),
)
