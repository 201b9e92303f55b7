"""
Shared helpers for structured modifiers — merge strategies and JSON I/O.
"""

from __future__ import annotations

import copy
import json
import re
from typing import Any

from architech.core.errors import ErrorCode, ModifierError
from architech.core.models.action import MergeStrategy


def dedupe(items: list[Any]) -> list[Any]:
    """Keep the first occurrence of each item (compared by JSON value)."""
    seen: set[str] = set()
    out = []
    for item in items:
        marker = json.dumps(item, sort_keys=True, default=str)
        if marker in seen:
            continue
        seen.add(marker)
        out.append(item)
    return out


def deep_merge(base: Any, incoming: Any) -> Any:
    """Recursive merge: dicts merge key by key, lists concatenate without
    duplicates, anything else is replaced by ``incoming``."""
    if isinstance(base, dict) and isinstance(incoming, dict):
        merged = {key: copy.deepcopy(value) for key, value in base.items()}
        for key, value in incoming.items():
            merged[key] = deep_merge(merged[key], value) if key in merged else copy.deepcopy(value)
        return merged
    if isinstance(base, list) and isinstance(incoming, list):
        return dedupe([*copy.deepcopy(base), *copy.deepcopy(incoming)])
    return copy.deepcopy(incoming)


def shallow_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    return {**copy.deepcopy(base), **copy.deepcopy(incoming)}


def merge(base: dict[str, Any], incoming: dict[str, Any], strategy: MergeStrategy) -> dict[str, Any]:
    if strategy == MergeStrategy.REPLACE:
        return copy.deepcopy(incoming)
    if strategy == MergeStrategy.SHALLOW:
        return shallow_merge(base, incoming)
    return deep_merge(base, incoming)


# ── JSON text ────────────────────────────────────────────────────

_INDENT_RE = re.compile(r"^([ \t]+)\S", re.MULTILINE)


def detect_indent(content: str | None, default: int | str = 2) -> int | str:
    """Indentation of the first indented line, so rewrites keep the file's style."""
    if not content:
        return default
    match = _INDENT_RE.search(content)
    if not match:
        return default
    indent = match.group(1)
    return "\t" if indent.startswith("\t") else len(indent)


def _skip_jsonc_trivia(text: str, i: int) -> int:
    """Index of the next character that is not whitespace or a comment."""
    n = len(text)
    while i < n:
        if text[i].isspace():
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        else:
            break
    return i


def strip_jsonc(text: str) -> str:
    """Remove // and /* */ comments and trailing commas outside strings."""
    out = []
    i = 0
    n = len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        elif ch == ",":
            nxt = _skip_jsonc_trivia(text, i + 1)
            if nxt >= n or text[nxt] not in "}]":
                out.append(ch)
            i += 1
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def load_json(content: str | None, allow_comments: bool = False) -> dict[str, Any]:
    """Parse a JSON object; absent or blank content gives ``{}``.

    Raises:
        ModifierError: INVALID_JSON if the text does not parse to an object.
    """
    if content is None or not content.strip():
        return {}
    text = strip_jsonc(content) if allow_comments else content
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ModifierError(
            f"Invalid JSON: {e.msg} at line {e.lineno} column {e.colno}",
            code=ErrorCode.INVALID_JSON,
        ) from e
    if not isinstance(data, dict):
        raise ModifierError(
            f"Expected a JSON object, found {type(data).__name__}",
            code=ErrorCode.INVALID_JSON,
        )
    return data


def dump_json(data: dict[str, Any], indent: int | str = 2) -> str:
    return json.dumps(data, indent=indent, ensure_ascii=False) + "\n"


def rewrite_json(
    content: str | None,
    original: dict[str, Any],
    updated: dict[str, Any],
) -> str:
    """Serialize ``updated``, or return ``content`` untouched if nothing changed."""
    if content is not None and content.strip() and original == updated:
        return content
    return dump_json(updated, indent=detect_indent(content))
