"""
jsx-wrapper — wrap a JSX element in a provider or wrapper component.

The first ``<targetComponent ...>`` element in the file is wrapped together
with its children, and the wrapper's import is added::

    <body className={inter.className}>{children}</body>

becomes::

    <Sentry.Provider dsn={process.env.NEXT_PUBLIC_SENTRY_DSN}>
      <body className={inter.className}>{children}</body>
    </Sentry.Provider>

A file that already renders the wrapper only gets the import.

Prop values: a string is written as ``key="value"``, or as an expression
when it is itself wrapped in braces (``"{process.env.X}"``); ``true`` is a
bare attribute; anything else becomes ``key={<json>}``.
"""

from __future__ import annotations

import json
import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from architech.core.errors import ErrorCode, ModifierError
from architech.core.modifiers.base import ModifierDefinition, ModifierParams
from architech.core.modifiers.jssource import (
    add_import,
    indent_unit,
    line_indent,
    match_bracket,
    skip_string,
)

_TAG_NAME_RE = re.compile(r"[A-Za-z_$][\w$-]*(?:\.[A-Za-z_$][\w$]*)*")


def _check_tag_name(value: str) -> str:
    value = value.strip()
    if not _TAG_NAME_RE.fullmatch(value):
        raise ValueError(f"'{value}' is not a JSX tag name")
    return value


class WrapperComponent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    name: str                                   # "ThemeProvider", "Sentry.Provider"
    import_from: str | None = None              # None for intrinsic tags like <main>
    import_style: Literal["named", "default", "namespace"] = "named"
    props: dict[str, Any] = Field(default_factory=dict)

    check_name = field_validator("name")(_check_tag_name)


class JsxWrapperParams(ModifierParams):
    target_component: str
    wrapper_component: WrapperComponent
    wrap_strategy: Literal["provider", "wrapper", "hoc"] = "provider"   # all wrap the element in place

    check_target = field_validator("target_component")(_check_tag_name)


# ── Tag scanning ─────────────────────────────────────────────────


def _open_tag_re(name: str) -> re.Pattern[str]:
    return re.compile(r"(?<![\w$.])<" + re.escape(name) + r"(?=[\s/>])")


def _tag_end(src: str, start: int) -> tuple[int, bool]:
    """(index past the opening tag's ``>``, whether it self-closes)."""
    i = start + 1
    n = len(src)
    while i < n:
        ch = src[i]
        if ch in "'\"":
            i = skip_string(src, i)
            continue
        if ch == "{":
            i = match_bracket(src, i)
            continue
        if src.startswith("/>", i):
            return i + 2, True
        if ch == ">":
            return i + 1, False
        i += 1
    raise ValueError(f"unterminated tag at offset {start}")


def _element_end(src: str, name: str, start: int) -> int:
    """Index just past the element whose opening tag starts at ``start``."""
    end, self_closing = _tag_end(src, start)
    if self_closing:
        return end
    opens = _open_tag_re(name)
    closes = re.compile(r"</" + re.escape(name) + r"\s*>")
    depth = 1
    i = end
    while depth:
        close = closes.search(src, i)
        if close is None:
            raise ValueError(f"<{name}> is never closed")
        nested = opens.search(src, i, close.start())
        if nested:
            i, nested_self_closing = _tag_end(src, nested.start())
            if not nested_self_closing:
                depth += 1
            continue
        depth -= 1
        i = close.end()
    return i


# ── Rendering ────────────────────────────────────────────────────


def _render_prop(key: str, value: Any) -> str:
    if value is True:
        return key
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("{") and text.endswith("}"):
            return f"{key}={text}"
        if '"' not in value:
            return f'{key}="{value}"'
    return f"{key}={{{json.dumps(value)}}}"


def _open_tag(wrapper: WrapperComponent) -> str:
    props = " ".join(_render_prop(key, value) for key, value in wrapper.props.items())
    return f"<{wrapper.name} {props}>" if props else f"<{wrapper.name}>"


def _wrap(src: str, start: int, end: int, wrapper: WrapperComponent) -> str:
    element = src[start:end]
    opening = _open_tag(wrapper)
    closing = f"</{wrapper.name}>"

    line_start = src.rfind("\n", 0, start) + 1
    if src[line_start:start].strip():
        return src[:start] + opening + element + closing + src[end:]

    indent = line_indent(src, start)
    unit = indent_unit(src)
    lines = element.split("\n")
    body = "\n".join([indent + unit + lines[0], *(unit + line if line.strip() else line for line in lines[1:])])
    return src[:start] + opening + "\n" + body + "\n" + indent + closing + src[end:]


def _import_wrapper(src: str, wrapper: WrapperComponent) -> str:
    if not wrapper.import_from:
        return src
    binding = wrapper.name.split(".", 1)[0]
    if wrapper.import_style == "default":
        return add_import(src, wrapper.import_from, default=binding)
    if wrapper.import_style == "namespace":
        return add_import(src, wrapper.import_from, namespace=binding)
    return add_import(src, wrapper.import_from, named=[binding])


def wrap_jsx(content: str | None, params: JsxWrapperParams) -> str:
    src = content or ""
    wrapper = params.wrapper_component

    if not _open_tag_re(wrapper.name).search(src):
        target = _open_tag_re(params.target_component).search(src)
        if target is None:
            raise ModifierError(
                f"<{params.target_component}> not found",
                code=ErrorCode.TRANSFORM_FAILED,
            )
        end = _element_end(src, params.target_component, target.start())
        src = _wrap(src, target.start(), end, wrapper)

    return _import_wrapper(src, wrapper)


JSX_WRAPPER = ModifierDefinition(
    name="jsx-wrapper",
    description="Wrap a JSX element in a provider or wrapper component and import it",
    params_model=JsxWrapperParams,
    transform=wrap_jsx,
    file_types=(".tsx", ".jsx", ".js", ".ts"),
)
