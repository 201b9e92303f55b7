"""
Condition evaluator — the small boolean language of ``condition`` fields.

    module.parameters.auth
    project.structure == 'monorepo'
    !module.parameters.typescript || module.parameters.strict == true
    {{module.parameters.ui}} and not (module.id == "ui/shadcn")

Names are dotted lookups into {project, module, paths} (bare names also
fall back to ``module.parameters``); a missing name is falsy. Nothing is
passed to ``eval``.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from architech.core.engine.templating import lookup
from architech.core.errors import ErrorCode, PathResolutionError, ValidationError

_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
      | (?P<number>-?\d+(?:\.\d+)?)
      | (?P<op>==|!=|&&|\|\||!|\(|\))
      | (?P<name>[A-Za-z_$][\w$\-]*(?:\.[\w$\-]+)*)
    )""",
    re.VERBOSE,
)

_KEYWORDS = {"and": "&&", "or": "||", "not": "!"}
_LITERALS = {"true": True, "false": False, "null": None, "none": None, "undefined": None}


def tokenize(text: str) -> list[tuple[str, Any]]:
    text = text.strip()
    if text.startswith("{{") and text.endswith("}}"):
        text = text[2:-2]
    text = re.sub(r"\{\{\s*(.*?)\s*\}\}", r"\1", text)

    tokens: list[tuple[str, Any]] = []
    pos = 0
    while pos < len(text):
        if text[pos:].strip() == "":
            break
        match = _TOKEN_RE.match(text, pos)
        if not match or match.end() == pos:
            raise ValidationError(
                f"Invalid condition '{text}': unexpected {text[pos:].strip()[:1]!r}",
                code=ErrorCode.INVALID_CONDITION,
            )
        pos = match.end()
        if match.group("string") is not None:
            raw = match.group("string")[1:-1]
            tokens.append(("lit", re.sub(r"\\(.)", r"\1", raw)))
        elif match.group("number") is not None:
            number = match.group("number")
            tokens.append(("lit", float(number) if "." in number else int(number)))
        elif match.group("op") is not None:
            tokens.append(("op", match.group("op")))
        else:
            name = match.group("name")
            lowered = name.lower()
            if lowered in _KEYWORDS:
                tokens.append(("op", _KEYWORDS[lowered]))
            elif lowered in _LITERALS:
                tokens.append(("lit", _LITERALS[lowered]))
            else:
                tokens.append(("name", name))
    return tokens


class _Parser:
    """or → and → not → comparison → atom."""

    def __init__(self, source: str, tokens: list[tuple[str, Any]], namespace: Mapping[str, Any]):
        self.source = source
        self.tokens = tokens
        self.namespace = namespace
        self.pos = 0

    def parse(self) -> bool:
        if not self.tokens:
            self._fail("empty expression")
        value = self._or()
        if self.pos != len(self.tokens):
            self._fail(f"unexpected {self.tokens[self.pos][1]!r}")
        return bool(value)

    def _peek(self) -> tuple[str, Any] | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _accept(self, op: str) -> bool:
        token = self._peek()
        if token == ("op", op):
            self.pos += 1
            return True
        return False

    def _or(self) -> Any:
        value = self._and()
        while self._accept("||"):
            right = self._and()
            value = value or right
        return value

    def _and(self) -> Any:
        value = self._not()
        while self._accept("&&"):
            right = self._not()
            value = value and right
        return value

    def _not(self) -> Any:
        if self._accept("!"):
            return not self._not()
        return self._comparison()

    def _comparison(self) -> Any:
        left = self._atom()
        if self._accept("=="):
            return _equals(left, self._atom())
        if self._accept("!="):
            return not _equals(left, self._atom())
        return left

    def _atom(self) -> Any:
        token = self._peek()
        if token is None:
            self._fail("unexpected end of expression")
        kind, value = token
        self.pos += 1
        if kind == "lit":
            return value
        if kind == "name":
            return self._resolve(value)
        if value == "(":
            inner = self._or()
            if not self._accept(")"):
                self._fail("missing ')'")
            return inner
        self._fail(f"unexpected {value!r}")

    def _resolve(self, name: str) -> Any:
        try:
            value = lookup(self.namespace, name, default=None)
        except PathResolutionError:
            return None
        if value is None and "." not in name:
            parameters = lookup(self.namespace, "module.parameters", default={}) or {}
            value = parameters.get(name) if isinstance(parameters, Mapping) else None
        return value

    def _fail(self, reason: str) -> None:
        raise ValidationError(
            f"Invalid condition '{self.source}': {reason}",
            code=ErrorCode.INVALID_CONDITION,
        )


def _equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return left == right
    if isinstance(left, (int, float)) and isinstance(right, str):
        return str(left) == right
    if isinstance(right, (int, float)) and isinstance(left, str):
        return left == str(right)
    return left == right


def evaluate(condition: str | None, namespace: Mapping[str, Any]) -> bool:
    """Evaluate a condition; ``None`` or blank is true.

    Raises:
        ValidationError: INVALID_CONDITION for malformed expressions.
    """
    if condition is None or not condition.strip():
        return True
    return _Parser(condition, tokenize(condition), namespace).parse()
