"""
Template rendering for blueprint strings.

Supported forms:
    {{project.name}}, {{module.parameters.x}}, {{item}}  — dotted lookups
    {{paths.apps.web.src}}                              — logical path keys
    {{#if cond}}...{{else}}...{{/if}}                   — conditional blocks

Placeholders that do not resolve are left as written. A
``{{paths.<key>}}`` with an unknown key raises ``PathResolutionError``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping
from typing import Any

_MISSING = object()
_UNRESOLVED = object()

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_$][\w$.\-]*)\s*\}\}")
_IF_BLOCK_RE = re.compile(
    r"\{\{#if\s+(?P<cond>(?:(?!\}\}).)+?)\s*\}\}"
    r"(?P<body>(?:(?!\{\{#if\s).)*?)"
    r"\{\{/if\}\}",
    re.DOTALL,
)
_ELSE_RE = re.compile(r"\{\{\s*else\s*\}\}")


def lookup(namespace: Mapping[str, Any], dotted: str, default: Any = _MISSING) -> Any:
    """Walk ``a.b.c`` through nested mappings (and list indexes).

    ``paths`` is special: everything after it is one logical key, handed
    to the namespace's ``paths`` callable.
    """
    head, _, rest = dotted.partition(".")
    if head == "paths" and rest and callable(namespace.get("paths")):
        return namespace["paths"](rest)

    current: Any = namespace
    for part in dotted.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        elif isinstance(current, (list, tuple)) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            if default is _MISSING:
                raise KeyError(dotted)
            return default
    return current


def to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def render(
    text: str,
    namespace: Mapping[str, Any],
    evaluate: Callable[[str, Mapping[str, Any]], bool] | None = None,
) -> str:
    """Render conditional blocks, then placeholders."""
    if "{{" not in text:
        return text

    if evaluate is not None:
        while True:
            match = _IF_BLOCK_RE.search(text)
            if not match:
                break
            branches = _ELSE_RE.split(match.group("body"), maxsplit=1)
            chosen = branches[0] if evaluate(match.group("cond"), namespace) else (
                branches[1] if len(branches) > 1 else ""
            )
            text = text[: match.start()] + chosen + text[match.end():]

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name.split(".", 1)[0] not in namespace:
            return match.group(0)
        value = lookup(namespace, name, default=_UNRESOLVED)
        return match.group(0) if value is _UNRESOLVED else to_text(value)

    return _PLACEHOLDER_RE.sub(replace, text)


def render_value(
    value: Any,
    namespace: Mapping[str, Any],
    evaluate: Callable[[str, Mapping[str, Any]], bool] | None = None,
) -> Any:
    """Render every string inside nested dicts and lists."""
    if isinstance(value, str):
        return render(value, namespace, evaluate)
    if isinstance(value, dict):
        return {key: render_value(item, namespace, evaluate) for key, item in value.items()}
    if isinstance(value, list):
        return [render_value(item, namespace, evaluate) for item in value]
    return value
