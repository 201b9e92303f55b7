"""
JavaScript/TypeScript source helpers — a small text-level toolkit.

Not a parser for the whole language: it scans enough to find exports,
balanced brackets and import declarations, and it reads object literals
best-effort. Anything it does not understand inside a literal (calls,
identifiers, arrow functions, spreads) is kept verbatim as a
``RawExpression`` / ``RawMember`` and written back unchanged.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

_IDENT_RE = re.compile(r"[A-Za-z_$][\w$]*")
_NUMBER_RE = re.compile(r"-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_OPEN = "([{"
_CLOSE = ")]}"


@dataclass(frozen=True)
class RawExpression:
    """A value kept as source text (``process.env.X``, ``require('y')``)."""

    text: str


@dataclass(frozen=True)
class RawMember:
    """An object member kept as source text (spreads, methods, computed keys)."""

    text: str


# ── Scanning ─────────────────────────────────────────────────────


def skip_string(src: str, i: int) -> int:
    """Index just past the string literal that starts at ``i``."""
    quote = src[i]
    i += 1
    n = len(src)
    while i < n:
        ch = src[i]
        if ch == "\\":
            i += 2
            continue
        if quote == "`" and src.startswith("${", i):
            i = match_bracket(src, i + 1)
            continue
        if ch == quote:
            return i + 1
        if ch == "\n" and quote != "`":
            return i
        i += 1
    return n


def skip_comment(src: str, i: int) -> int:
    """Index past a comment starting at ``i``, or ``i`` if there is none."""
    if src.startswith("//", i):
        end = src.find("\n", i)
        return len(src) if end == -1 else end
    if src.startswith("/*", i):
        end = src.find("*/", i + 2)
        return len(src) if end == -1 else end + 2
    return i


def skip_ws(src: str, i: int) -> int:
    """Skip whitespace and comments."""
    n = len(src)
    while i < n:
        if src[i].isspace():
            i += 1
            continue
        after = skip_comment(src, i)
        if after == i:
            break
        i = after
    return i


def match_bracket(src: str, i: int) -> int:
    """Index just past the bracket that closes the one at ``i``."""
    depth = 0
    n = len(src)
    while i < n:
        ch = src[i]
        if ch in "'\"`":
            i = skip_string(src, i)
            continue
        after = skip_comment(src, i)
        if after != i:
            i = after
            continue
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    raise ValueError("unbalanced brackets")


def scan_expression(src: str, i: int, stops: str) -> int:
    """Index of the first depth-0 character in ``stops`` (or end of text)."""
    n = len(src)
    while i < n:
        ch = src[i]
        if ch in stops:
            return i
        if ch in "'\"`":
            i = skip_string(src, i)
            continue
        after = skip_comment(src, i)
        if after != i:
            i = after
            continue
        if ch in _OPEN:
            i = match_bracket(src, i)
            continue
        if ch in _CLOSE:
            return i
        i += 1
    return n


def line_indent(src: str, i: int) -> str:
    """Leading whitespace of the line containing index ``i``."""
    start = src.rfind("\n", 0, i) + 1
    end = start
    while end < len(src) and src[end] in " \t":
        end += 1
    return src[start:end]


# ── Exports ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class ExportSite:
    """Where an export's value expression lives in the source.

    ``statement_start`` is the start of the declaring statement, which for
    ``export default ident`` is the ``const ident = ...`` declaration.
    """

    start: int
    end: int
    statement_start: int
    declared_as: str            # "default", "module.exports", "const", "let" or "var"

    def text(self, src: str) -> str:
        return src[self.start:self.end]


def _declaration_re(name: str, exported: bool) -> re.Pattern[str]:
    prefix = r"export\s+" if exported else r"(?:export\s+)?"
    return re.compile(
        rf"^[ \t]*{prefix}(const|let|var)\s+{re.escape(name)}\b\s*(?::[^=\n]+)?=\s*",
        re.MULTILINE,
    )


_DEFAULT_RE = re.compile(r"^[ \t]*(export\s+default|module\.exports\s*=)\s*", re.MULTILINE)


def _statement_value(src: str, match: re.Match[str], declared_as: str) -> ExportSite:
    start = match.end()
    end = scan_expression(src, start, ";\n")
    while end > start and src[end - 1].isspace():
        end -= 1
    return ExportSite(start=start, end=end, statement_start=match.start(), declared_as=declared_as)


def find_export(src: str, export_name: str = "default", follow: bool = True) -> ExportSite | None:
    """Locate the value expression of an export.

    With ``follow``, ``export default ident`` is followed one level to
    ``const ident = ...``.
    """
    if export_name != "default":
        match = _declaration_re(export_name, exported=True).search(src)
        return _statement_value(src, match, match.group(1)) if match else None

    match = _DEFAULT_RE.search(src)
    if not match:
        return None
    declared_as = "default" if match.group(1).startswith("export") else "module.exports"
    site = _statement_value(src, match, declared_as)
    value = site.text(src).rstrip(";").strip()
    if follow and _IDENT_RE.fullmatch(value):
        declaration = _declaration_re(value, exported=False).search(src, 0, site.statement_start)
        if declaration:
            return _statement_value(src, declaration, declaration.group(1))
    return site


# ── Object literals ──────────────────────────────────────────────


class _LiteralParser:
    def __init__(self, src: str):
        self.src = src
        self.pos = 0

    def parse(self) -> Any:
        self.pos = skip_ws(self.src, 0)
        return self.value(",}]")

    def value(self, stops: str) -> Any:
        src = self.src
        start = self.pos = skip_ws(src, self.pos)
        if start >= len(src):
            raise ValueError("unexpected end of literal")
        literal = self._literal()
        after = skip_ws(src, self.pos)
        if literal is not _NOT_LITERAL and (after >= len(src) or src[after] in stops):
            self.pos = after
            return literal
        end = scan_expression(src, start, stops)
        if end == start:
            raise ValueError(f"unexpected {src[start]!r} at offset {start}")
        self.pos = end
        return RawExpression(src[start:end].strip())

    def _literal(self) -> Any:
        src = self.src
        ch = src[self.pos]
        if ch == "{":
            return self._object()
        if ch == "[":
            return self._array()
        if ch in "'\"" or (ch == "`" and "${" not in src[self.pos:skip_string(src, self.pos)]):
            return self._string()
        number = _NUMBER_RE.match(src, self.pos)
        if number:
            self.pos = number.end()
            text = number.group(0)
            return float(text) if any(c in text for c in ".eE") else int(text)
        ident = _IDENT_RE.match(src, self.pos)
        if ident and ident.group(0) in ("true", "false", "null"):
            self.pos = ident.end()
            return {"true": True, "false": False, "null": None}[ident.group(0)]
        return _NOT_LITERAL

    def _string(self) -> str:
        end = skip_string(self.src, self.pos)
        body = self.src[self.pos + 1:end - 1]
        self.pos = end
        return _unescape(body)

    def _object(self) -> dict[Any, Any]:
        src = self.src
        self.pos += 1
        result: dict[Any, Any] = {}
        while True:
            self.pos = skip_ws(src, self.pos)
            if self.pos >= len(src):
                raise ValueError("unterminated object literal")
            if src[self.pos] == "}":
                self.pos += 1
                return result
            member_start = self.pos
            key = self._key()
            self.pos = skip_ws(src, self.pos)
            nxt = src[self.pos] if self.pos < len(src) else ""
            if key is not None and nxt == ":":
                self.pos += 1
                result[key] = self.value(",}")
            elif key is not None and isinstance(key, str) and nxt in ",}" and _IDENT_RE.fullmatch(key):
                result[key] = RawExpression(key)
            else:
                end = scan_expression(src, member_start, ",}")
                if end == member_start and src[end] != ",":
                    raise ValueError(f"unexpected {src[end]!r} at offset {end}")
                result[RawMember(src[member_start:end].strip())] = None
                self.pos = end
            self.pos = skip_ws(src, self.pos)
            if self.pos < len(src) and src[self.pos] == ",":
                self.pos += 1

    def _key(self) -> str | None:
        src = self.src
        ch = src[self.pos]
        if ch in "'\"":
            return self._string()
        if src.startswith("...", self.pos) or ch == "[":
            return None
        ident = _IDENT_RE.match(src, self.pos) or _NUMBER_RE.match(src, self.pos)
        if not ident:
            return None
        self.pos = ident.end()
        return ident.group(0)

    def _array(self) -> list[Any]:
        src = self.src
        self.pos += 1
        items: list[Any] = []
        while True:
            self.pos = skip_ws(src, self.pos)
            if self.pos >= len(src):
                raise ValueError("unterminated array literal")
            if src[self.pos] == "]":
                self.pos += 1
                return items
            if src[self.pos] == ",":
                self.pos += 1
                continue
            items.append(self.value(",]"))


_NOT_LITERAL = object()

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "0": "\0", "v": "\v"}


def _unescape(body: str) -> str:
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            if nxt == "u" and re.fullmatch(r"[0-9a-fA-F]{4}", body[i + 2:i + 6]):
                out.append(chr(int(body[i + 2:i + 6], 16)))
                i += 6
                continue
            out.append(_ESCAPES.get(nxt, nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def parse_literal(text: str) -> Any:
    """Read a JS literal into Python values, keeping unknown parts raw."""
    return _LiteralParser(text).parse()


# ── Serialization ────────────────────────────────────────────────


def quote(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f"'{escaped}'"


def _key_text(key: str) -> str:
    return key if _IDENT_RE.fullmatch(key) else quote(key)


def _is_simple(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool, RawExpression)) or value is None


def to_js(value: Any, indent: str = "  ", level: int = 0, base: str = "") -> str:
    """Serialize Python values (and raw parts) as a JS literal.

    ``base`` is the indentation of the line the literal starts on.
    """
    pad = base + indent * (level + 1)
    close = base + indent * level
    if isinstance(value, RawExpression):
        return value.text
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, str):
        return quote(value)
    if isinstance(value, dict):
        if not value:
            return "{}"
        members = []
        for key, item in value.items():
            if isinstance(key, RawMember):
                members.append(f"{pad}{key.text},")
            elif isinstance(item, RawExpression) and item.text == key:
                members.append(f"{pad}{key},")
            else:
                members.append(f"{pad}{_key_text(str(key))}: {to_js(item, indent, level + 1, base)},")
        return "{\n" + "\n".join(members) + f"\n{close}}}"
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        items = [to_js(item, indent, level + 1, base) for item in value]
        inline = "[" + ", ".join(items) + "]"
        if all(_is_simple(item) for item in value) and len(inline) <= 80:
            return inline
        return "[\n" + "\n".join(f"{pad}{item}," for item in items) + f"\n{close}]"
    raise TypeError(f"cannot serialize {type(value).__name__} to JavaScript")


def indent_unit(src: str | None) -> str:
    """Indentation unit used by the file (two spaces when unknown)."""
    if src:
        match = re.search(r"^([ \t]+)\S", src, re.MULTILINE)
        if match:
            return "\t" if match.group(1).startswith("\t") else " " * min(len(match.group(1)), 8)
    return "  "


# ── Imports ──────────────────────────────────────────────────────

_IMPORT_RE = re.compile(
    r"^[ \t]*import\s+(?P<type>type\s+)?(?P<clause>[^'\";]*?)\s*(?:from\s*)?"
    r"(?P<q>['\"])(?P<module>[^'\"]+)(?P=q)\s*;?[ \t]*$",
    re.MULTILINE,
)


@dataclass
class ImportStatement:
    start: int
    end: int
    module: str
    type_only: bool
    default: str | None
    namespace: str | None
    named: list[str]

    def render(self) -> str:
        return render_import(self.module, self.named, self.default, self.namespace, self.type_only)


def parse_imports(src: str) -> list[ImportStatement]:
    """Single-line import declarations, in source order."""
    statements = []
    for match in _IMPORT_RE.finditer(src):
        clause = match.group("clause").strip()
        default = namespace = None
        named: list[str] = []
        brace = re.search(r"\{([^}]*)\}", clause)
        if brace:
            named = [n.strip() for n in brace.group(1).split(",") if n.strip()]
            clause = (clause[: brace.start()] + clause[brace.end():]).strip()
        for part in (p.strip() for p in clause.split(",") if p.strip()):
            ns = re.fullmatch(r"\*\s+as\s+([A-Za-z_$][\w$]*)", part)
            if ns:
                namespace = ns.group(1)
            elif _IDENT_RE.fullmatch(part):
                default = part
        statements.append(
            ImportStatement(
                start=match.start(),
                end=match.end(),
                module=match.group("module"),
                type_only=bool(match.group("type")),
                default=default,
                namespace=namespace,
                named=named,
            )
        )
    return statements


def render_import(
    module: str,
    named: list[str] | None = None,
    default: str | None = None,
    namespace: str | None = None,
    type_only: bool = False,
) -> str:
    keyword = "import type" if type_only else "import"
    parts = []
    if default:
        parts.append(default)
    if namespace:
        parts.append(f"* as {namespace}")
    if named:
        parts.append("{ " + ", ".join(named) + " }")
    if not parts:
        return f"{keyword} '{module}';"
    return f"{keyword} {', '.join(parts)} from '{module}';"


def _imported_name(specifier: str) -> str:
    """``a as b`` → ``a``; ``type X`` → ``X``."""
    name = specifier.strip()
    if name.startswith("type "):
        name = name[5:].strip()
    return name.split(" as ", 1)[0].strip()


def add_import(
    src: str,
    module: str,
    named: list[str] | None = None,
    default: str | None = None,
    namespace: str | None = None,
    type_only: bool = False,
) -> str:
    """Ensure an import exists.

    Named specifiers are merged into an existing declaration for the same
    module. Returns ``src`` unchanged when every requested binding (or,
    for a side-effect import, the module itself) is already imported.
    """
    imports = parse_imports(src)
    if not named and not default and not namespace:
        if any(s.module == module for s in imports):
            return src
        return _insert_import(src, render_import(module, type_only=type_only))

    existing = [s for s in imports if s.module == module and s.type_only == type_only]
    if namespace and any(s.namespace == namespace for s in existing):
        namespace = None
    if default and any(s.default == default for s in existing):
        default = None
    imported = {_imported_name(n) for s in existing for n in s.named}
    named = [n for n in (named or []) if _imported_name(n) not in imported]

    if not named and not default and not namespace:
        return src

    if namespace:
        src = _insert_import(src, render_import(module, None, None, namespace, type_only))
        if not named and not default:
            return src
        return add_import(src, module, named, default, None, type_only)

    target = next(
        (s for s in existing if s.namespace is None and not (default and s.default)),
        None,
    )
    if target is None:
        return _insert_import(src, render_import(module, named, default, None, type_only))
    target.named = [*target.named, *named]
    target.default = target.default or default
    return src[: target.start] + target.render() + src[target.end:]


def _insert_import(src: str, line: str) -> str:
    """Insert after the last import, or at the top (after directives)."""
    imports = parse_imports(src)
    if imports:
        end = imports[-1].end
        return src[:end] + "\n" + line + src[end:]
    directive = re.match(r"(?:[ \t]*(['\"])use [a-z ]+\1;?[ \t]*\n)+", src)
    if directive:
        return src[: directive.end()] + line + "\n" + src[directive.end():]
    if not src.strip():
        return line + "\n"
    return line + "\n\n" + src
